# app/api/deps.py
from fastapi import Depends, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.actor import Actor
from app.domain.enums import Role
from app.services.cart_service import CartService
from app.services.lock_service import LockService
from app.services.order_service import OrderService
from app.services.review_service import ReviewService
from app.services.transaction_service import TransactionService


def get_actor(
    user_id: int = Query(..., gt=0, description="ID uwierzytelnionego uzytkownika"),
    role: Role = Query(Role.USER, description="Rola z bramki auth"),
) -> Actor:
    #tozsamosc dostarcza zewnetrzna warstwa auth, tu tylko ja odbieramy
    return Actor(id=user_id, role=role)


def get_lock_service() -> LockService:
    return LockService()


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_order_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> OrderService:
    return OrderService(db, lock_service=lock_service)


def get_transaction_service(db: Session = Depends(get_db)) -> TransactionService:
    return TransactionService(db)


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)

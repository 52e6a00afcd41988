# app/repos/order_repo.py
from typing import Any, Dict

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.domain.errors import DuplicateKeyError
from app.repos._errors import is_unique_violation


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def insert_order(self, order: OrderModel) -> OrderModel:
        """
        Dodaje zamowienie w biezacej transakcji (flush, bez commita).
        Musi byc pierwszym zapisem w transakcji: przy kolizji numeru
        robimy rollback calej sesji i zglaszamy DuplicateKeyError.
        """
        self.db.add(order)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e, "order_number"):
                raise DuplicateKeyError("order_number") from e
            raise
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id, populate_existing=True)

    def list_orders(
        self,
        customer_id: int | None = None,
        seller_id: int | None = None,
        status: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[OrderModel], int]:
        conditions = []
        if customer_id is not None:
            conditions.append(OrderModel.customer_id == customer_id)
        if seller_id is not None:
            conditions.append(OrderModel.seller_id == seller_id)
        if status is not None:
            conditions.append(OrderModel.status == status)

        total = self.db.execute(
            select(func.count()).select_from(OrderModel).where(*conditions)
        ).scalar_one()

        rows = self.db.execute(
            select(OrderModel)
            .where(*conditions)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().unique().all()

        return list(rows), total

    def update_order_version(self, order_id: int, old_version: int, new_data: Dict[str, Any]) -> int:
        # UPDATE orders SET ..., version = old + 1 WHERE id = ? AND version = old
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.version == old_version)
            .values(version=old_version + 1, **new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def set_payment_status(self, order_id: int, payment_status: str) -> int:
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .values(payment_status=payment_status, version=OrderModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def refresh(self, order: OrderModel) -> OrderModel:
        self.db.refresh(order)
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

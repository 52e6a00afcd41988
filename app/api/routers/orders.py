# app/api/routers/orders.py
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_actor, get_order_service
from app.domain.actor import Actor
from app.domain.enums import OrderStatus
from app.domain.schemas import OrderCreate, OrderListOut, OrderOut, ReasonIn, StatusIn
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    """
    Tworzy zamowienie z koszyka uzytkownika.
    """
    return svc.create_order(
        customer_id=actor.id,
        shipping_address=payload.shipping_address,
        payment_method=payload.payment_method,
        notes=payload.notes,
    )


@router.get("", response_model=OrderListOut)
def list_my_orders(
    status: OrderStatus | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_customer_orders(actor.id, status=status, page=page, limit=limit)


@router.get("/seller", response_model=OrderListOut)
def list_seller_orders(
    status: OrderStatus | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_seller_orders(actor.id, status=status, page=page, limit=limit)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    return svc.get_order(actor, order_id)


@router.put("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    payload: ReasonIn | None = None,
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    return svc.cancel_order(actor.id, order_id, payload.reason if payload else None)


@router.put("/{order_id}/confirm-delivery", response_model=OrderOut)
def confirm_delivery(
    order_id: int,
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    return svc.confirm_delivery(actor.id, order_id)


@router.put("/{order_id}/confirm", response_model=OrderOut)
def confirm_order(
    order_id: int,
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    return svc.confirm_order(actor.id, order_id)


@router.put("/{order_id}/reject", response_model=OrderOut)
def reject_order(
    order_id: int,
    payload: ReasonIn | None = None,
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    return svc.reject_order(actor.id, order_id, payload.reason if payload else None)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: StatusIn,
    actor: Actor = Depends(get_actor),
    svc: OrderService = Depends(get_order_service),
):
    return svc.update_order_status(actor.id, order_id, payload.status)

#app/api/routers/carts.py
from fastapi import APIRouter, Depends

from app.api.deps import get_actor, get_cart_service
from app.domain.actor import Actor
from app.domain.schemas import CartOut, ItemIn, QuantityIn
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    actor: Actor = Depends(get_actor),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_or_create_cart(actor.id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    actor: Actor = Depends(get_actor),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add_item(
        user_id=actor.id,
        product_id=payload.product_id,
        quantity=payload.quantity,
    )


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: QuantityIn,
    actor: Actor = Depends(get_actor),
    svc: CartService = Depends(get_cart_service),
):
    return svc.update_item_quantity(actor.id, item_id, payload.quantity)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    actor: Actor = Depends(get_actor),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_item(actor.id, item_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    actor: Actor = Depends(get_actor),
    svc: CartService = Depends(get_cart_service),
):
    return svc.clear(actor.id)

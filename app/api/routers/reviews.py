# app/api/routers/reviews.py
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_actor, get_review_service
from app.domain.actor import Actor
from app.domain.schemas import ReviewCreate, ReviewListOut, ReviewOut, ReviewStatusOut
from app.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewOut, status_code=201)
def create_review(
    payload: ReviewCreate,
    actor: Actor = Depends(get_actor),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.create_review(
        customer_id=actor.id,
        order_id=payload.order_id,
        product_id=payload.product_id,
        rating=payload.rating,
        comment=payload.comment,
        images=payload.images,
    )


@router.get("/order/{order_id}/check", response_model=ReviewStatusOut)
def check_order_review_status(
    order_id: int,
    actor: Actor = Depends(get_actor),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.check_order_review_status(actor.id, order_id)


@router.get("/order/{order_id}", response_model=ReviewListOut)
def list_order_reviews(
    order_id: int,
    actor: Actor = Depends(get_actor),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.list_order_reviews(actor, order_id)


# publiczne, bez aktora
@router.get("/product/{product_id}", response_model=ReviewListOut)
def list_product_reviews(
    product_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.list_product_reviews(product_id, page=page, limit=limit)


@router.get("/seller/{seller_id}", response_model=ReviewListOut)
def list_seller_reviews(
    seller_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.list_seller_reviews(seller_id, page=page, limit=limit)

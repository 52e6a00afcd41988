# app/services/review_service.py
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.review import ReviewModel
from app.domain.actor import Actor
from app.domain.enums import OrderStatus
from app.domain.errors import (
    DuplicateKeyError,
    DuplicateReview,
    Fatal,
    Forbidden,
    InvalidRating,
    NotFound,
    OrderNotDelivered,
    ProductNotInOrder,
)
from app.repos.order_repo import OrderRepo
from app.repos.product_repo import ProductRepo
from app.repos.review_repo import ReviewRepo
from app.repos.store_repo import StoreRepo
from app.utils.logging import get_logger
from app.utils.pagination import page_info, page_window

logger = get_logger(__name__)


class ReviewService:
    """Recenzje tylko po dostarczeniu zamowienia, jedna na pare (zamowienie, produkt)."""

    def __init__(self, db: Session):
        self.repo = ReviewRepo(db)
        self.orders = OrderRepo(db)
        self.products = ProductRepo(db)
        self.stores = StoreRepo(db)

    def create_review(
        self,
        customer_id: int,
        order_id: int,
        product_id: int,
        rating: int,
        comment: str | None = None,
        images: List[str] | None = None,
    ) -> Dict[str, Any]:
        if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
            raise InvalidRating(rating)

        order = self._get_order(order_id)

        if order.customer_id != customer_id:
            raise Forbidden("Only the customer can review this order")

        if order.status != OrderStatus.DELIVERED.value:
            raise OrderNotDelivered(order.id, order.status)

        if not any(i.product_id == product_id for i in order.items):
            raise ProductNotInOrder(order.id, product_id)

        if self.repo.exists(order.id, product_id):
            raise DuplicateReview(order.id, product_id)

        review = ReviewModel(
            order_id=order.id,
            customer_id=customer_id,
            seller_id=order.seller_id,
            product_id=product_id,
            rating=rating,
            comment=comment.strip() if comment else comment,
            images=list(images or []),
            is_verified=True,
        )

        try:
            try:
                self.repo.insert_review(review)
            except DuplicateKeyError:
                #rownolegla recenzja wygrala wyscig
                raise DuplicateReview(order.id, product_id) from None

            # pelne przeliczenie sredniej, O(n) po recenzjach
            avg, count = self.repo.rating_stats(product_id=product_id)
            self.products.set_aggregate_rating(product_id, avg, count)

            seller_avg, seller_count = self.repo.rating_stats(seller_id=order.seller_id)
            self.stores.set_aggregate_rating(order.seller_id, seller_avg, seller_count)

            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Saving review failed for order {order_id}")
            raise Fatal(str(e)) from e

        logger.info(
            f"Review {review.id} for product {product_id} in order {order.order_number}: "
            f"rating {rating}, product avg {avg:.2f} ({count})"
        )
        return self._to_dict(review)

    def check_order_review_status(self, customer_id: int, order_id: int) -> Dict[str, Any]:
        order = self._get_order(order_id)

        if order.customer_id != customer_id:
            raise Forbidden("You do not have access to this order")

        reviewed = {r.product_id for r in self.repo.list_by_order(order.id)}
        products = [
            {
                "product_id": i.product_id,
                "product_name": i.product_name,
                "product_image": i.product_image,
                "quantity": i.quantity,
                "unit_price": i.unit_price,
                "is_reviewed": i.product_id in reviewed,
            }
            for i in order.items
        ]

        return {
            "can_review": order.status == OrderStatus.DELIVERED.value,
            "order_status": order.status,
            "products": products,
            "all_reviewed": all(p["is_reviewed"] for p in products),
        }

    def list_order_reviews(self, actor: Actor, order_id: int) -> Dict[str, Any]:
        order = self._get_order(order_id)

        if actor.id not in (order.customer_id, order.seller_id) and not actor.is_admin:
            raise Forbidden("You do not have access to reviews of this order")

        return {"reviews": [self._to_dict(r) for r in self.repo.list_by_order(order.id)]}

    def list_product_reviews(self, product_id: int, page: int = 1, limit: int | None = None) -> Dict[str, Any]:
        page, limit, offset = page_window(page, limit)
        rows, total = self.repo.list_reviews(product_id=product_id, offset=offset, limit=limit)
        return {
            "reviews": [self._to_dict(r) for r in rows],
            "pagination": page_info(page, limit, total),
        }

    def list_seller_reviews(self, seller_id: int, page: int = 1, limit: int | None = None) -> Dict[str, Any]:
        page, limit, offset = page_window(page, limit)
        rows, total = self.repo.list_reviews(seller_id=seller_id, offset=offset, limit=limit)
        avg, _ = self.repo.rating_stats(seller_id=seller_id)
        return {
            "reviews": [self._to_dict(r) for r in rows],
            "average_rating": avg,
            "total_reviews": total,
            "pagination": page_info(page, limit, total),
        }

    def _get_order(self, order_id: int) -> OrderModel:
        order = self.orders.get_order(order_id)
        if not order:
            raise NotFound("Order", order_id)
        return order

    @staticmethod
    def _to_dict(review: ReviewModel) -> Dict[str, Any]:
        return {
            "id": review.id,
            "order_id": review.order_id,
            "customer_id": review.customer_id,
            "seller_id": review.seller_id,
            "product_id": review.product_id,
            "rating": review.rating,
            "comment": review.comment,
            "images": review.images or [],
            "is_verified": review.is_verified,
            "created_at": review.created_at,
        }

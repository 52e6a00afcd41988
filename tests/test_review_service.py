"""Tests for ReviewService."""

import pytest

from app.data.models import ProductModel, ReviewModel, StoreModel
from app.domain.actor import Actor
from app.domain.enums import Role
from app.domain.errors import (
    DuplicateReview,
    Forbidden,
    InvalidRating,
    NotFound,
    OrderNotDelivered,
    ProductNotInOrder,
)
from app.services.cart_service import CartService
from app.services.order_service import OrderService
from app.services.review_service import ReviewService


@pytest.fixture
def reviews(db):
    return ReviewService(db)


@pytest.fixture
def place_order(db, lock_service, buyer, address):
    def _place(*products):
        for product in products:
            CartService(db).add_item(buyer.id, product.id, 1)
        return OrderService(db, lock_service=lock_service).create_order(buyer.id, address)

    return _place


@pytest.fixture
def deliver(db, buyer, seller):
    def _deliver(order):
        orders = OrderService(db)
        orders.confirm_order(seller.id, order["id"])
        orders.update_order_status(seller.id, order["id"], "shipped")
        return orders.confirm_delivery(buyer.id, order["id"])

    return _deliver


class TestCreateReview:
    def test_review_requires_delivery(self, reviews, db, place_order, buyer, seller, make_product):
        product = make_product(seller, stock=5)
        order = place_order(product)
        OrderService(db).confirm_order(seller.id, order["id"])

        with pytest.raises(OrderNotDelivered) as exc:
            reviews.create_review(buyer.id, order["id"], product.id, 5)

        assert exc.value.status == "confirmed"
        assert db.query(ReviewModel).count() == 0

    def test_review_after_delivery_updates_aggregates(
        self, reviews, db, place_order, deliver, buyer, seller, make_product
    ):
        product = make_product(seller, stock=5)
        order = deliver(place_order(product))

        review = reviews.create_review(buyer.id, order["id"], product.id, 4, comment="  solid  ", images=["a.jpg"])

        assert review["rating"] == 4
        assert review["comment"] == "solid"
        assert review["images"] == ["a.jpg"]
        assert review["is_verified"] is True
        assert review["seller_id"] == seller.id

        stored = db.get(ProductModel, product.id, populate_existing=True)
        assert stored.average_rating == pytest.approx(4.0)
        assert stored.rating_count == 1

        store = db.query(StoreModel).filter_by(seller_id=seller.id).populate_existing().one()
        assert store.rating_average == pytest.approx(4.0)
        assert store.rating_count == 1

    def test_averages_over_several_orders(self, reviews, db, place_order, deliver, buyer, seller, make_product):
        product = make_product(seller, stock=5)
        first = deliver(place_order(product))
        second = deliver(place_order(product))

        reviews.create_review(buyer.id, first["id"], product.id, 5)
        reviews.create_review(buyer.id, second["id"], product.id, 2)

        stored = db.get(ProductModel, product.id, populate_existing=True)
        assert stored.average_rating == pytest.approx(3.5)
        assert stored.rating_count == 2

    def test_duplicate_review(self, reviews, place_order, deliver, buyer, seller, make_product):
        product = make_product(seller, stock=5)
        order = deliver(place_order(product))
        reviews.create_review(buyer.id, order["id"], product.id, 5)

        with pytest.raises(DuplicateReview):
            reviews.create_review(buyer.id, order["id"], product.id, 3)

    def test_duplicate_detected_by_unique_key(self, reviews, place_order, deliver, buyer, seller, make_product, monkeypatch):
        product = make_product(seller, stock=5)
        order = deliver(place_order(product))
        reviews.create_review(buyer.id, order["id"], product.id, 5)

        # wyscig: sprawdzenie nie widzi jeszcze recenzji drugiego zapytania
        monkeypatch.setattr(reviews.repo, "exists", lambda order_id, product_id: False)

        with pytest.raises(DuplicateReview):
            reviews.create_review(buyer.id, order["id"], product.id, 3)

    def test_product_not_in_order(self, reviews, place_order, deliver, buyer, seller, make_product):
        product = make_product(seller, title="A", stock=5)
        other = make_product(seller, title="B", stock=5)
        order = deliver(place_order(product))

        with pytest.raises(ProductNotInOrder):
            reviews.create_review(buyer.id, order["id"], other.id, 5)

    def test_only_customer_can_review(self, reviews, place_order, deliver, seller, make_product):
        product = make_product(seller, stock=5)
        order = deliver(place_order(product))

        with pytest.raises(Forbidden):
            reviews.create_review(seller.id, order["id"], product.id, 5)

    def test_unknown_order(self, reviews, buyer):
        with pytest.raises(NotFound):
            reviews.create_review(buyer.id, 404, 1, 5)

    @pytest.mark.parametrize("rating", [0, 6, -1, 4.5, "5", True])
    def test_invalid_rating(self, reviews, buyer, rating):
        with pytest.raises(InvalidRating):
            reviews.create_review(buyer.id, 1, 1, rating)


class TestQueries:
    def test_check_order_review_status(self, reviews, place_order, deliver, buyer, seller, make_product):
        a = make_product(seller, title="A", stock=5)
        b = make_product(seller, title="B", stock=5)
        order = place_order(a, b)

        status = reviews.check_order_review_status(buyer.id, order["id"])
        assert status["can_review"] is False
        assert status["order_status"] == "pending"

        deliver(order)
        reviews.create_review(buyer.id, order["id"], a.id, 5)

        status = reviews.check_order_review_status(buyer.id, order["id"])
        assert status["can_review"] is True
        assert {p["product_id"]: p["is_reviewed"] for p in status["products"]} == {a.id: True, b.id: False}
        assert status["all_reviewed"] is False

        reviews.create_review(buyer.id, order["id"], b.id, 4)
        assert reviews.check_order_review_status(buyer.id, order["id"])["all_reviewed"] is True

    def test_check_status_for_foreign_order(self, reviews, place_order, seller, make_product):
        product = make_product(seller, stock=5)
        order = place_order(product)

        with pytest.raises(Forbidden):
            reviews.check_order_review_status(seller.id, order["id"])

    def test_list_order_reviews_access(self, reviews, place_order, deliver, buyer, seller, make_user, make_product):
        stranger = make_user("Stranger")
        product = make_product(seller, stock=5)
        order = deliver(place_order(product))
        reviews.create_review(buyer.id, order["id"], product.id, 5)

        assert len(reviews.list_order_reviews(Actor(buyer.id), order["id"])["reviews"]) == 1
        assert len(reviews.list_order_reviews(Actor(seller.id, Role.SELLER), order["id"])["reviews"]) == 1

        with pytest.raises(Forbidden):
            reviews.list_order_reviews(Actor(stranger.id), order["id"])

    def test_list_product_and_seller_reviews(self, reviews, place_order, deliver, buyer, seller, make_product):
        product = make_product(seller, stock=5)
        first = deliver(place_order(product))
        second = deliver(place_order(product))
        reviews.create_review(buyer.id, first["id"], product.id, 5)
        reviews.create_review(buyer.id, second["id"], product.id, 3)

        by_product = reviews.list_product_reviews(product.id, page=1, limit=1)
        assert len(by_product["reviews"]) == 1
        assert by_product["pagination"]["total"] == 2
        assert by_product["pagination"]["total_pages"] == 2

        by_seller = reviews.list_seller_reviews(seller.id)
        assert by_seller["total_reviews"] == 2
        assert by_seller["average_rating"] == pytest.approx(4.0)

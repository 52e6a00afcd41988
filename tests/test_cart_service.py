"""Tests for CartService."""

from decimal import Decimal

import pytest
from sqlalchemy import update

from app.data.models import ProductModel
from app.domain.enums import ProductStatus
from app.domain.errors import (
    InsufficientStock,
    InvalidQuantity,
    NotFound,
    ProductUnavailable,
    SelfPurchase,
)
from app.services.cart_service import CartService


@pytest.fixture
def carts(db):
    return CartService(db)


class TestGetOrCreateCart:
    def test_creates_empty_cart_on_first_access(self, carts, buyer):
        cart = carts.get_or_create_cart(buyer.id)

        assert cart["user_id"] == buyer.id
        assert cart["items"] == []
        assert cart["total"] == Decimal("0.00")
        assert cart["item_count"] == 0

    def test_returns_same_cart_on_second_access(self, carts, buyer):
        first = carts.get_or_create_cart(buyer.id)
        second = carts.get_or_create_cart(buyer.id)
        assert first["cart_id"] == second["cart_id"]

    def test_drops_items_that_are_no_longer_purchasable(self, carts, db, buyer, seller, make_product):
        keep = make_product(seller, title="Lamp", price="300", stock=3)
        hidden = make_product(seller, title="Chair", stock=2)
        sold_out = make_product(seller, title="Desk", stock=1)

        carts.add_item(buyer.id, keep.id, 1)
        carts.add_item(buyer.id, hidden.id, 1)
        carts.add_item(buyer.id, sold_out.id, 1)

        db.execute(
            update(ProductModel)
            .where(ProductModel.id == hidden.id)
            .values(status=ProductStatus.HIDDEN.value)
        )
        db.execute(update(ProductModel).where(ProductModel.id == sold_out.id).values(stock=0))
        db.commit()

        cart = carts.get_or_create_cart(buyer.id)

        assert [i["product"]["id"] for i in cart["items"]] == [keep.id]
        assert cart["total"] == Decimal("300")

        # wynik filtrowania jest zapisany, nie tylko ukryty w odpowiedzi
        assert len(carts.repo.get_cart_items(cart["cart_id"])) == 1


class TestAddItem:
    def test_adds_new_line(self, carts, buyer, seller, make_product):
        product = make_product(seller, price="1000", stock=5)

        cart = carts.add_item(buyer.id, product.id, 2)

        assert cart["item_count"] == 1
        line = cart["items"][0]
        assert line["quantity"] == 2
        assert line["subtotal"] == Decimal("2000")
        assert line["product"]["title"] == product.title
        assert line["product"]["image"] == product.images[0]

    def test_merges_quantity_into_existing_line(self, carts, buyer, seller, make_product):
        product = make_product(seller, stock=5)

        carts.add_item(buyer.id, product.id, 2)
        cart = carts.add_item(buyer.id, product.id, 3)

        assert cart["item_count"] == 1
        assert cart["items"][0]["quantity"] == 5

    def test_missing_product(self, carts, buyer):
        with pytest.raises(NotFound):
            carts.add_item(buyer.id, 999, 1)

    def test_inactive_product(self, carts, buyer, seller, make_product):
        product = make_product(seller, status=ProductStatus.PENDING)
        with pytest.raises(ProductUnavailable):
            carts.add_item(buyer.id, product.id, 1)

    def test_quantity_above_stock(self, carts, buyer, seller, make_product):
        product = make_product(seller, stock=1)
        with pytest.raises(InsufficientStock):
            carts.add_item(buyer.id, product.id, 2)

    def test_merged_quantity_above_stock(self, carts, buyer, seller, make_product):
        product = make_product(seller, stock=3)
        carts.add_item(buyer.id, product.id, 2)

        with pytest.raises(InsufficientStock):
            carts.add_item(buyer.id, product.id, 2)

        assert carts.get_or_create_cart(buyer.id)["items"][0]["quantity"] == 2

    def test_cannot_buy_own_product(self, carts, seller, make_product):
        product = make_product(seller)
        with pytest.raises(SelfPurchase):
            carts.add_item(seller.id, product.id, 1)

    def test_zero_quantity(self, carts, buyer, seller, make_product):
        product = make_product(seller)
        with pytest.raises(InvalidQuantity):
            carts.add_item(buyer.id, product.id, 0)

    def test_bumps_cart_version(self, carts, buyer, seller, make_product):
        product = make_product(seller)
        carts.get_or_create_cart(buyer.id)
        before = carts.repo.get_cart_by_user(buyer.id).version

        carts.add_item(buyer.id, product.id, 1)

        assert carts.repo.get_cart_by_user(buyer.id).version == before + 1


class TestUpdateItemQuantity:
    def test_sets_quantity(self, carts, buyer, seller, make_product):
        product = make_product(seller, stock=5)
        item_id = carts.add_item(buyer.id, product.id, 1)["items"][0]["id"]

        cart = carts.update_item_quantity(buyer.id, item_id, 4)

        assert cart["items"][0]["quantity"] == 4

    def test_rejects_quantity_below_one(self, carts, buyer, seller, make_product):
        product = make_product(seller)
        item_id = carts.add_item(buyer.id, product.id, 1)["items"][0]["id"]

        with pytest.raises(InvalidQuantity):
            carts.update_item_quantity(buyer.id, item_id, 0)

    def test_unknown_item(self, carts, buyer):
        carts.get_or_create_cart(buyer.id)
        with pytest.raises(NotFound):
            carts.update_item_quantity(buyer.id, 12345, 1)

    def test_checks_live_stock(self, carts, db, buyer, seller, make_product):
        product = make_product(seller, stock=5)
        item_id = carts.add_item(buyer.id, product.id, 1)["items"][0]["id"]

        db.execute(update(ProductModel).where(ProductModel.id == product.id).values(stock=2))
        db.commit()

        with pytest.raises(InsufficientStock):
            carts.update_item_quantity(buyer.id, item_id, 3)


class TestRemoveAndClear:
    def test_remove_is_idempotent(self, carts, buyer, seller, make_product):
        a = make_product(seller, title="A")
        b = make_product(seller, title="B")
        carts.add_item(buyer.id, a.id, 1)
        item_id = carts.add_item(buyer.id, b.id, 1)["items"][1]["id"]

        once = carts.remove_item(buyer.id, item_id)
        twice = carts.remove_item(buyer.id, item_id)

        assert once["items"] == twice["items"]
        assert [i["product"]["id"] for i in twice["items"]] == [a.id]

    def test_remove_unknown_item_is_not_an_error(self, carts, buyer):
        cart = carts.remove_item(buyer.id, 42)
        assert cart["items"] == []

    def test_clear_empties_but_keeps_cart(self, carts, buyer, seller, make_product):
        product = make_product(seller)
        cart_id = carts.add_item(buyer.id, product.id, 1)["cart_id"]

        cart = carts.clear(buyer.id)

        assert cart["cart_id"] == cart_id
        assert cart["items"] == []

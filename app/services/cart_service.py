# app/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.enums import ProductStatus
from app.domain.errors import (
    ConcurrencyConflict,
    InsufficientStock,
    InvalidQuantity,
    NotFound,
    ProductUnavailable,
    SelfPurchase,
)
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use case'y koszyka.
    Jeden koszyk na uzytkownika, tworzony leniwie przy pierwszym dostepie.
    Kazda zmiana podbija carts.version (optimistic locking).
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    # =====================================================
    # QUERY
    # =====================================================
    def get_or_create_cart(self, user_id: int) -> Dict[str, Any]:
        """
        Zwraca koszyk uzytkownika. Przy okazji wyrzuca pozycje, ktorych
        produkt nie jest juz aktywny albo ma stock == 0, i zapisuje wynik.
        """
        cart = self.repo.get_or_create_cart(user_id)
        items = self.repo.get_cart_items(cart.id)

        stale = [i.id for i in items if not self._is_purchasable(i)]
        if stale:
            logger.info(f"Removing {len(stale)} unavailable item(s) from cart {cart.id}")
            self.repo.delete_cart_items(cart.id, stale)
            self._bump_version(cart)
            self.repo.commit()
            items = [i for i in items if i.id not in stale]

        return self._to_dict(cart, items)

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        if quantity < 1:
            raise InvalidQuantity(quantity)

        product = self.products.get_product(product_id)
        if not product:
            raise NotFound("Product", product_id)

        if product.status != ProductStatus.ACTIVE.value:
            raise ProductUnavailable(product.id, product.title)

        if product.stock < quantity:
            raise InsufficientStock(product.id, product.title, quantity, product.stock)

        #nie mozna kupic wlasnego produktu
        if product.seller_id == user_id:
            raise SelfPurchase(product.id)

        cart = self.repo.get_or_create_cart(user_id)
        existing_item = self.repo.get_item_by_product(cart.id, product_id)

        if existing_item:
            new_quantity = existing_item.quantity + quantity
            if new_quantity > product.stock:
                raise InsufficientStock(product.id, product.title, new_quantity, product.stock)

            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing_item.quantity} -> {new_quantity}"
            )
            existing_item.quantity = new_quantity
            self.repo.add_cart_item(existing_item)
        else:
            logger.info(f"Adding product {product_id} x{quantity} to cart {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product_id,
                    quantity=quantity,
                )
            )

        self._bump_version(cart)
        self.repo.commit()

        return self.get_or_create_cart(user_id)

    def update_item_quantity(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise InvalidQuantity(quantity)

        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFound("Cart", user_id)

        item = self.repo.get_cart_item(cart.id, item_id)
        if not item:
            raise NotFound("Cart item", item_id)

        #stock sprawdzany na zywo, nie z koszyka
        product = self.products.get_product(item.product_id)
        if not product:
            raise NotFound("Product", item.product_id)
        if product.stock < quantity:
            raise InsufficientStock(product.id, product.title, quantity, product.stock)

        item.quantity = quantity
        self.repo.add_cart_item(item)
        self._bump_version(cart)
        self.repo.commit()

        logger.info(f"Cart {cart.id} item {item_id} quantity set to {quantity}")

        return self.get_or_create_cart(user_id)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        """Usuwa pozycje; brak pozycji to nie blad (idempotentne)."""
        cart = self.repo.get_or_create_cart(user_id)

        removed = self.repo.delete_cart_items(cart.id, [item_id])
        if removed:
            self._bump_version(cart)
            self.repo.commit()
            logger.info(f"Item {item_id} removed from cart {cart.id}")

        return self.get_or_create_cart(user_id)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if cart:
            removed = self.repo.clear_items(cart.id)
            if removed:
                self._bump_version(cart)
                self.repo.commit()
                logger.info(f"Cart {cart.id} cleared")

        return self.get_or_create_cart(user_id)

    # =====================================================
    # HELPERS
    # =====================================================
    def _bump_version(self, cart: CartModel) -> None:
        # Optimistic locking
        # np w bazie update set version 2 where id 1 and version 1
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={"version": cart.version + 1},
        )

        if rowcount == 0:
            self.repo.rollback()
            raise ConcurrencyConflict("Cart", cart.id)

        # nowa wersja jest juz w bazie, obiekt doczyta ja przy nastepnym dostepie
        self.repo.expire(cart)

    @staticmethod
    def _is_purchasable(item: CartItemModel) -> bool:
        product = item.product
        return (
            product is not None
            and product.status == ProductStatus.ACTIVE.value
            and product.stock > 0
        )

    @staticmethod
    def _to_dict(cart: CartModel, items) -> Dict[str, Any]:
        lines = []
        total = Decimal("0.00")

        for i in items:
            subtotal = i.product.price * i.quantity
            total += subtotal
            lines.append(
                {
                    "id": i.id,
                    "product": {
                        "id": i.product.id,
                        "title": i.product.title,
                        "price": i.product.price,
                        "image": i.product.main_image,
                        "stock": i.product.stock,
                    },
                    "quantity": i.quantity,
                    "subtotal": subtotal,
                }
            )

        #dict przeksztalcany w jsona
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": lines,
            "total": total,
            "item_count": len(lines),
        }

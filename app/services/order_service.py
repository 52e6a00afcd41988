# app/services/order_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.transaction import TransactionModel
from app.domain.actor import Actor
from app.domain.enums import (
    CANCELLABLE_STATUSES,
    SELLER_SETTABLE_STATUSES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductStatus,
    TransactionStatus,
)
from app.domain.errors import (
    AlreadyDelivered,
    CheckoutInProgress,
    ConcurrencyConflict,
    DuplicateKeyError,
    EmptyCart,
    Fatal,
    Forbidden,
    InsufficientStock,
    InvalidAddress,
    InvalidStatus,
    InvalidTransition,
    MarketError,
    MixedSellers,
    NotFound,
    ProductUnavailable,
)
from app.domain.schemas import ShippingAddress
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.repos.product_repo import ProductRepo
from app.repos.transaction_repo import TransactionRepo
from app.services.lock_service import LockService
from app.utils.identifiers import generate_order_number, generate_transaction_number
from app.utils.logging import get_logger
from app.utils.pagination import page_info, page_window
from app.utils.retry import order_number_retry
from app.utils.settings import CHECKOUT_LOCK_TTL_SECONDS

logger = get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("full_name", "phone", "address", "city")


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.

    Zamowienie powstaje z koszyka w jednej transakcji bazy: walidacja,
    zapis zamowienia, atomowe zdjecie stocku, czyszczenie koszyka i
    ewentualna transakcja platnosci. Blad na dowolnym kroku = rollback calosci.
    Kazda zmiana statusu to compare-and-set na orders.version.
    """

    def __init__(self, db: Session, lock_service: LockService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.transactions = TransactionRepo(db)
        self.lock_service = lock_service

    # =====================================================
    # CREATE
    # =====================================================
    def create_order(
        self,
        customer_id: int,
        shipping_address: ShippingAddress | Dict[str, Any],
        payment_method: PaymentMethod | str = PaymentMethod.COD,
        notes: str | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamowienia z koszyka.

        1. Koszyk nie moze byc pusty
        2. Adres dostawy kompletny
        3. Produkty czytane na zywo: aktywne i ze stockiem
        4. Jeden sprzedawca na zamowienie
        5. Snapshot pozycji + suma
        6. Zapis zamowienia (jedna ponowna proba przy kolizji numeru)
        7. Atomowe zdjecie stocku
        8. Czyszczenie koszyka
        9. Transakcja platnosci dla metod innych niz cod
        """
        payment_method = PaymentMethod(payment_method)
        if isinstance(shipping_address, dict):
            shipping_address = ShippingAddress(**shipping_address)

        token = self._acquire_checkout(customer_id)
        try:
            order = self._create_order(customer_id, shipping_address, payment_method, notes)
        finally:
            self._release_checkout(customer_id, token)

        return self._to_dict(order)

    def _create_order(
        self,
        customer_id: int,
        address: ShippingAddress,
        payment_method: PaymentMethod,
        notes: str | None,
    ) -> OrderModel:
        cart = self.carts.get_cart_by_user(customer_id)
        cart_items = self.carts.get_cart_items(cart.id) if cart else []

        if not cart_items:
            raise EmptyCart()

        missing = [f for f in REQUIRED_ADDRESS_FIELDS if not (getattr(address, f) or "").strip()]
        if missing:
            raise InvalidAddress(missing)

        lines: List[Dict[str, Any]] = []
        seller_id = None
        total = Decimal("0.00")

        for item in cart_items:
            # swiezy odczyt produktu, nie kopia z koszyka
            product = self.products.get_product(item.product_id)

            if not product or product.status != ProductStatus.ACTIVE.value:
                raise ProductUnavailable(item.product_id, product.title if product else None)

            if product.stock < item.quantity:
                raise InsufficientStock(product.id, product.title, item.quantity, product.stock)

            if seller_id is None:
                seller_id = product.seller_id
            elif product.seller_id != seller_id:
                raise MixedSellers({seller_id, product.seller_id})

            subtotal = product.price * item.quantity
            total += subtotal
            lines.append(
                {
                    "product_id": product.id,
                    "product_name": product.title,
                    "product_image": product.main_image,
                    "unit_price": product.price,
                    "quantity": item.quantity,
                    "subtotal": subtotal,
                }
            )

        cart_id, cart_version = cart.id, cart.version

        try:
            try:
                order = self._insert_order(customer_id, seller_id, lines, total, address, payment_method, notes)
            except DuplicateKeyError as e:
                logger.error(f"Order number collision persisted after retry for customer {customer_id}")
                raise Fatal("Could not allocate a unique order number") from e

            for line in lines:
                if not self.products.adjust_stock(line["product_id"], -line["quantity"], require_active=True):
                    # ktos wykupil towar miedzy walidacja a zapisem
                    self.repo.rollback()
                    product = self.products.get_product(line["product_id"])
                    if not product or product.status != ProductStatus.ACTIVE.value:
                        raise ProductUnavailable(line["product_id"], line["product_name"])
                    raise InsufficientStock(product.id, product.title, line["quantity"], product.stock)

            self.carts.clear_items(cart_id)
            if self.carts.update_cart_version(cart_id, cart_version, {"version": cart_version + 1}) == 0:
                self.repo.rollback()
                raise ConcurrencyConflict("Cart", cart_id)

            if payment_method != PaymentMethod.COD:
                self.transactions.insert_transaction(
                    TransactionModel(
                        transaction_number=generate_transaction_number(),
                        order_id=order.id,
                        customer_id=customer_id,
                        seller_id=seller_id,
                        amount=total,
                        payment_method=payment_method.value,
                        status=TransactionStatus.PENDING.value,
                        payment_details={},
                    )
                )

            self.repo.commit()

        except MarketError:
            self.repo.rollback()
            raise
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Order creation failed for customer {customer_id}")
            raise Fatal(str(e)) from e

        logger.info(
            f"Order {order.order_number} created for customer {customer_id}: "
            f"{len(lines)} item(s), total {total}, payment {payment_method.value}"
        )

        return self.repo.refresh(order)

    @order_number_retry()
    def _insert_order(
        self,
        customer_id: int,
        seller_id: int,
        lines: List[Dict[str, Any]],
        total: Decimal,
        address: ShippingAddress,
        payment_method: PaymentMethod,
        notes: str | None,
    ) -> OrderModel:
        #nowy numer przy kazdej probie
        order = OrderModel(
            order_number=generate_order_number(),
            customer_id=customer_id,
            seller_id=seller_id,
            total_amount=total,
            ship_full_name=address.full_name.strip(),
            ship_phone=address.phone.strip(),
            ship_address=address.address.strip(),
            ship_city=address.city.strip(),
            ship_district=address.district,
            ship_ward=address.ward,
            notes=notes,
            status=OrderStatus.PENDING.value,
            # takze dla cod, oplacone dopiero przy dostawie
            payment_status=PaymentStatus.PENDING.value,
            payment_method=payment_method.value,
            version=1,
            items=[OrderItemModel(**line) for line in lines],
        )
        try:
            return self.repo.insert_order(order)
        except DuplicateKeyError:
            logger.warning(f"Order number {order.order_number} already taken, retrying")
            raise

    # =====================================================
    # CUSTOMER COMMANDS
    # =====================================================
    def cancel_order(self, customer_id: int, order_id: int, reason: str | None = None) -> Dict[str, Any]:
        order = self._get(order_id)

        if order.customer_id != customer_id:
            raise Forbidden("Only the customer can cancel this order")

        current = OrderStatus(order.status)
        if current not in CANCELLABLE_STATUSES:
            raise InvalidTransition("Order", current, CANCELLABLE_STATUSES)

        now = datetime.now(timezone.utc)
        self._apply(
            order,
            {
                "status": OrderStatus.CANCELLED.value,
                "cancelled_at": now,
                "cancelled_by": customer_id,
                "cancellation_reason": reason,
            },
            restore_stock=True,
        )

        logger.info(f"Order {order.order_number} cancelled by customer {customer_id}")
        return self._to_dict(self.repo.refresh(order))

    def confirm_delivery(self, customer_id: int, order_id: int) -> Dict[str, Any]:
        order = self._get(order_id)

        if order.customer_id != customer_id:
            raise Forbidden("Only the customer can confirm delivery of this order")

        current = OrderStatus(order.status)
        if current == OrderStatus.DELIVERED:
            raise AlreadyDelivered(order.id)
        if current != OrderStatus.SHIPPED:
            raise InvalidTransition("Order", current, OrderStatus.SHIPPED)

        now = datetime.now(timezone.utc)
        self._apply(
            order,
            {
                "status": OrderStatus.DELIVERED.value,
                "delivered_at": now,
                # przy cod tutaj uznajemy platnosc za rozliczona
                "payment_status": PaymentStatus.PAID.value,
            },
            complete_transaction_at=now,
        )

        logger.info(f"Order {order.order_number} delivered to customer {customer_id}")
        return self._to_dict(self.repo.refresh(order))

    # =====================================================
    # SELLER COMMANDS
    # =====================================================
    def confirm_order(self, seller_id: int, order_id: int) -> Dict[str, Any]:
        order = self._get(order_id)
        self._check_seller(order, seller_id)

        current = OrderStatus(order.status)
        if current != OrderStatus.PENDING:
            raise InvalidTransition("Order", current, OrderStatus.PENDING)

        self._apply(order, {"status": OrderStatus.CONFIRMED.value})

        logger.info(f"Order {order.order_number} confirmed by seller {seller_id}")
        return self._to_dict(self.repo.refresh(order))

    def reject_order(self, seller_id: int, order_id: int, reason: str | None = None) -> Dict[str, Any]:
        order = self._get(order_id)
        self._check_seller(order, seller_id)

        current = OrderStatus(order.status)
        if current != OrderStatus.PENDING:
            raise InvalidTransition("Order", current, OrderStatus.PENDING)

        now = datetime.now(timezone.utc)
        self._apply(
            order,
            {
                "status": OrderStatus.REJECTED.value,
                "cancelled_at": now,
                "cancelled_by": seller_id,
                "cancellation_reason": reason,
            },
            restore_stock=True,
        )

        logger.info(f"Order {order.order_number} rejected by seller {seller_id}")
        return self._to_dict(self.repo.refresh(order))

    def update_order_status(self, seller_id: int, order_id: int, status: OrderStatus | str) -> Dict[str, Any]:
        try:
            target = OrderStatus(status)
        except ValueError:
            raise InvalidStatus(status, SELLER_SETTABLE_STATUSES) from None

        if target not in SELLER_SETTABLE_STATUSES:
            raise InvalidStatus(target, SELLER_SETTABLE_STATUSES)

        order = self._get(order_id)
        self._check_seller(order, seller_id)

        current = OrderStatus(order.status)
        if not current.can_transition_to(target):
            allowed_from = {s for s in OrderStatus if s.can_transition_to(target)}
            raise InvalidTransition("Order", current, allowed_from)

        self._apply(order, {"status": target.value})

        logger.info(f"Order {order.order_number} moved {current.value} -> {target.value} by seller {seller_id}")
        return self._to_dict(self.repo.refresh(order))

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, actor: Actor, order_id: int) -> Dict[str, Any]:
        order = self._get(order_id)

        if actor.id not in (order.customer_id, order.seller_id) and not actor.is_admin:
            raise Forbidden("You do not have access to this order")

        return self._to_dict(order)

    def list_customer_orders(
        self, customer_id: int, status: OrderStatus | None = None, page: int = 1, limit: int | None = None
    ) -> Dict[str, Any]:
        return self._list(status, page, limit, customer_id=customer_id)

    def list_seller_orders(
        self, seller_id: int, status: OrderStatus | None = None, page: int = 1, limit: int | None = None
    ) -> Dict[str, Any]:
        return self._list(status, page, limit, seller_id=seller_id)

    def _list(self, status, page, limit, **owner) -> Dict[str, Any]:
        page, limit, offset = page_window(page, limit)
        orders, total = self.repo.list_orders(
            status=OrderStatus(status).value if status else None,
            offset=offset,
            limit=limit,
            **owner,
        )
        return {
            "orders": [self._to_dict(o) for o in orders],
            "pagination": page_info(page, limit, total),
        }

    # =====================================================
    # HELPERS
    # =====================================================
    def _get(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Order", order_id)
        return order

    @staticmethod
    def _check_seller(order: OrderModel, seller_id: int) -> None:
        if order.seller_id != seller_id:
            raise Forbidden("Only the seller can manage this order")

    def _apply(
        self,
        order: OrderModel,
        new_data: Dict[str, Any],
        restore_stock: bool = False,
        complete_transaction_at: datetime | None = None,
    ) -> None:
        """
        Zmiana stanu zamowienia z optimistic locking.
        restore_stock: kompensacja zdjetego stocku (anulowanie / odrzucenie).
        complete_transaction_at: domkniecie powiazanej transakcji przy dostawie.
        """
        try:
            rowcount = self.repo.update_order_version(order.id, order.version, new_data)
            if rowcount == 0:
                self.repo.rollback()
                logger.warning(f"Order {order.id} changed concurrently, version {order.version} is stale")
                raise ConcurrencyConflict("Order", order.id)

            if restore_stock:
                for item in order.items:
                    self.products.adjust_stock(item.product_id, item.quantity)

            if complete_transaction_at is not None:
                txn = self.transactions.get_by_order(order.id)
                # transakcja musi zgadzac sie z payment_status zamowienia
                if txn and txn.status != TransactionStatus.COMPLETED.value:
                    self.transactions.update_if_status(
                        txn.id,
                        txn.status,
                        {
                            "status": TransactionStatus.COMPLETED.value,
                            "completed_at": complete_transaction_at,
                        },
                    )

            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Status change failed for order {order.id}")
            raise Fatal(str(e)) from e

    def _acquire_checkout(self, customer_id: int) -> str | None:
        if self.lock_service is None:
            return None

        token = self.lock_service.acquire_checkout_lock(customer_id, ttl=CHECKOUT_LOCK_TTL_SECONDS)
        if not token:
            logger.warning(f"Checkout already running for customer {customer_id}")
            raise CheckoutInProgress(customer_id)
        return token

    def _release_checkout(self, customer_id: int, token: str | None) -> None:
        if self.lock_service is None or token is None:
            return
        try:
            self.lock_service.release_checkout_lock(customer_id, token)
        except Exception as e:
            # lock i tak wygasnie po TTL
            logger.warning(f"Failed to release checkout lock for customer {customer_id}: {e}")

    @staticmethod
    def _to_dict(order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "customer_id": order.customer_id,
            "customer_name": order.customer.name if order.customer else None,
            "seller_id": order.seller_id,
            "seller_name": order.seller.name if order.seller else None,
            "items": [
                {
                    "product_id": i.product_id,
                    "product_name": i.product_name,
                    "product_image": i.product_image,
                    "unit_price": i.unit_price,
                    "quantity": i.quantity,
                    "subtotal": i.subtotal,
                }
                for i in order.items
            ],
            "total_amount": order.total_amount,
            "shipping_address": {
                "full_name": order.ship_full_name,
                "phone": order.ship_phone,
                "address": order.ship_address,
                "city": order.ship_city,
                "district": order.ship_district,
                "ward": order.ship_ward,
            },
            "notes": order.notes,
            "status": order.status,
            "payment_status": order.payment_status,
            "payment_method": order.payment_method,
            "cancelled_at": order.cancelled_at,
            "cancelled_by": order.cancelled_by,
            "cancellation_reason": order.cancellation_reason,
            "delivered_at": order.delivered_at,
            "created_at": order.created_at,
        }

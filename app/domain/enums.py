# app/domain/enums.py
from enum import Enum


class Role(str, Enum):
    USER = "user"
    SELLER = "seller"
    ADMIN = "admin"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    HIDDEN = "hidden"
    VIOLATION = "violation"
    DRAFT = "draft"
    SOLD = "sold"


class PaymentMethod(str, Enum):
    COD = "cod"
    BANK_TRANSFER = "bank_transfer"
    STRIPE = "stripe"
    VNPAY = "vnpay"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PACKAGED = "packaged"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return not ORDER_TRANSITIONS[self]

    def can_transition_to(self, target: "OrderStatus") -> bool:
        return target in ORDER_TRANSITIONS[self]


# kazdy status musi miec wpis, pusty zbior = stan koncowy
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.CONFIRMED, OrderStatus.REJECTED, OrderStatus.CANCELLED}
    ),
    OrderStatus.CONFIRMED: frozenset(
        {
            OrderStatus.PROCESSING,
            OrderStatus.PACKAGED,
            OrderStatus.SHIPPED,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.PROCESSING: frozenset({OrderStatus.PACKAGED, OrderStatus.SHIPPED}),
    OrderStatus.PACKAGED: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}

# statusy ktore sprzedawca moze ustawic przez update-status
SELLER_SETTABLE_STATUSES = frozenset({OrderStatus.PACKAGED, OrderStatus.SHIPPED})

# statusy z ktorych klient moze anulowac
CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})

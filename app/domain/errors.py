"""Wyjatki domenowe sklepu.

Kazdy wyjatek ma staly ``code`` oraz ``status_code`` uzywany przez handler
w app.main. Bledy uprawnien dziedzicza po PermissionError, bledy walidacji
po ValueError.
"""


class MarketError(Exception):
    """Base exception for all marketplace errors."""

    code = "error"
    status_code = 400


# --- wyszukiwanie / uprawnienia ---


class NotFound(MarketError, LookupError):
    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class Forbidden(MarketError, PermissionError):
    code = "forbidden"
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


# --- maszyna stanow ---


class InvalidTransition(MarketError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, entity: str, current, required):
        self.entity = entity
        self.current = _value(current)
        if isinstance(required, (set, frozenset, list, tuple)):
            self.required = sorted(_value(r) for r in required)
            required_text = " or ".join(self.required)
        else:
            self.required = _value(required)
            required_text = self.required
        super().__init__(
            f"{entity} is '{self.current}', must be '{required_text}'"
        )


class AlreadyDelivered(MarketError):
    code = "already_delivered"
    status_code = 409

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} has already been delivered")


class ConcurrencyConflict(MarketError, RuntimeError):
    code = "concurrency_conflict"
    status_code = 409

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} {entity_id} was modified by another operation, retry"
        )


class CheckoutInProgress(MarketError, RuntimeError):
    code = "checkout_in_progress"
    status_code = 409

    def __init__(self, customer_id: int):
        self.customer_id = customer_id
        super().__init__(f"Another checkout is in progress for user {customer_id}")


# --- walidacja wejscia ---


class ValidationFailed(MarketError, ValueError):
    code = "invalid_input"


class InvalidAddress(ValidationFailed):
    code = "invalid_address"

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            f"Shipping address is incomplete, missing: {', '.join(missing)}"
        )


class InvalidQuantity(ValidationFailed):
    code = "invalid_quantity"

    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__(f"Quantity must be at least 1, got {quantity}")


class InvalidStatus(ValidationFailed):
    code = "invalid_status"

    def __init__(self, status, allowed):
        self.status = _value(status)
        self.allowed = sorted(_value(a) for a in allowed)
        super().__init__(
            f"Status '{self.status}' is not allowed, use one of: {', '.join(self.allowed)}"
        )


class InvalidRating(ValidationFailed):
    code = "invalid_rating"

    def __init__(self, rating):
        self.rating = rating
        super().__init__(f"Rating must be between 1 and 5, got {rating}")


# --- koszyk i zamowienie ---


class EmptyCart(MarketError, ValueError):
    code = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty")


class ProductUnavailable(MarketError, ValueError):
    code = "product_unavailable"

    def __init__(self, product_id: int, title: str | None = None):
        self.product_id = product_id
        self.title = title
        super().__init__(f"Product {title or product_id} is not available")


class InsufficientStock(MarketError, ValueError):
    code = "insufficient_stock"

    def __init__(self, product_id: int, title: str | None = None, requested: int | None = None, available: int | None = None):
        self.product_id = product_id
        self.title = title
        self.requested = requested
        self.available = available
        msg = f"Not enough stock for product {title or product_id}"
        if requested is not None and available is not None:
            msg = f"{msg} (requested {requested}, available {available})"
        super().__init__(msg)


class SelfPurchase(MarketError, ValueError):
    code = "self_purchase"

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("You cannot buy your own product")


class MixedSellers(MarketError, ValueError):
    code = "mixed_sellers"

    def __init__(self, seller_ids):
        self.seller_ids = sorted(seller_ids)
        super().__init__("All products in an order must come from the same seller")


# --- recenzje ---


class OrderNotDelivered(MarketError, ValueError):
    code = "order_not_delivered"

    def __init__(self, order_id: int, status):
        self.order_id = order_id
        self.status = _value(status)
        super().__init__(
            f"Order {order_id} is '{self.status}', only delivered orders can be reviewed"
        )


class ProductNotInOrder(MarketError, ValueError):
    code = "product_not_in_order"

    def __init__(self, order_id: int, product_id: int):
        self.order_id = order_id
        self.product_id = product_id
        super().__init__(f"Product {product_id} is not part of order {order_id}")


class DuplicateReview(MarketError):
    code = "duplicate_review"
    status_code = 409

    def __init__(self, order_id: int, product_id: int):
        self.order_id = order_id
        self.product_id = product_id
        super().__init__(
            f"Product {product_id} in order {order_id} has already been reviewed"
        )


# --- platnosci ---


class PaymentFailed(MarketError):
    code = "payment_failed"
    status_code = 402

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Payment failed: {reason}")


# --- infrastruktura ---


class DuplicateKeyError(MarketError):
    """Naruszenie unikalnosci zgloszone przez repozytorium, niezaleznie od bazy."""

    code = "duplicate_key"
    status_code = 500

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Duplicate value for unique key '{key}'")


class Fatal(MarketError):
    code = "fatal"
    status_code = 500

    def __init__(self, message: str = "Unexpected storage error"):
        super().__init__(message)


def _value(status) -> str:
    return getattr(status, "value", status)

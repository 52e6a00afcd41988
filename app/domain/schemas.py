# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Any, List
from decimal import Decimal
from datetime import datetime

from app.domain.enums import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
)
from app.utils.settings import PAYMENT_DETAILS_MAX_KEYS


# =====================================================
# CART
# =====================================================
class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu")
    quantity: int = Field(1, description="Ilosc produktu")


class QuantityIn(BaseModel):
    quantity: int


class CartProductOut(BaseModel):
    id: int
    title: str
    price: Decimal
    image: str | None = None
    stock: int


class CartItemOut(BaseModel):
    id: int
    product: CartProductOut
    quantity: int
    subtotal: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int
    user_id: int
    items: List[CartItemOut]
    total: Decimal
    item_count: int


# =====================================================
# ORDERS
# =====================================================
class ShippingAddress(BaseModel):
    """Adres dostawy, walidacja kompletnosci w OrderService."""

    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    district: str | None = None
    ward: str | None = None


class OrderCreate(BaseModel):
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = PaymentMethod.COD
    notes: str | None = Field(None, max_length=1000)


class ReasonIn(BaseModel):
    reason: str | None = Field(None, max_length=500)


class StatusIn(BaseModel):
    status: str


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    product_image: str | None = None
    unit_price: Decimal
    quantity: int
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    order_number: str
    customer_id: int
    customer_name: str | None = None
    seller_id: int
    seller_name: str | None = None
    items: List[OrderItemOut]
    total_amount: Decimal
    shipping_address: ShippingAddress
    notes: str | None = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    cancelled_at: datetime | None = None
    cancelled_by: int | None = None
    cancellation_reason: str | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination


# =====================================================
# TRANSACTIONS
# =====================================================
class PaymentDetailsIn(BaseModel):
    """Dane z bramki platnosci; metadata to worek klucz-wartosc z limitem kluczy."""

    transaction_id: str | None = Field(None, max_length=200)
    payment_intent_id: str | None = Field(None, max_length=200)
    receipt_url: str | None = Field(None, max_length=2000)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata")
    @classmethod
    def limit_metadata(cls, value: dict[str, Any]) -> dict[str, Any]:
        if len(value) > PAYMENT_DETAILS_MAX_KEYS:
            raise ValueError(
                f"metadata may hold at most {PAYMENT_DETAILS_MAX_KEYS} keys"
            )
        return value


class PaymentIn(BaseModel):
    payment_details: PaymentDetailsIn = Field(default_factory=PaymentDetailsIn)


class TransactionOut(BaseModel):
    id: int
    transaction_number: str
    order_id: int
    customer_id: int
    seller_id: int
    amount: Decimal
    payment_method: PaymentMethod
    status: TransactionStatus
    payment_details: dict[str, Any] = Field(default_factory=dict)
    completed_at: datetime | None = None
    failed_at: datetime | None = None
    failure_reason: str | None = None
    refund_reason: str | None = None
    refunded_at: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TransactionListOut(BaseModel):
    transactions: List[TransactionOut]
    pagination: Pagination


# =====================================================
# REVIEWS
# =====================================================
class ReviewCreate(BaseModel):
    order_id: int = Field(..., gt=0)
    product_id: int = Field(..., gt=0)
    rating: int
    comment: str | None = Field(None, max_length=2000)
    images: List[str] = Field(default_factory=list, max_length=5)


class ReviewOut(BaseModel):
    id: int
    order_id: int
    customer_id: int
    seller_id: int
    product_id: int
    rating: int
    comment: str | None = None
    images: List[str] = Field(default_factory=list)
    is_verified: bool
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ReviewListOut(BaseModel):
    reviews: List[ReviewOut]
    pagination: Pagination | None = None
    average_rating: float | None = None
    total_reviews: int | None = None


class ProductReviewStatus(BaseModel):
    product_id: int
    product_name: str
    product_image: str | None = None
    quantity: int
    unit_price: Decimal
    is_reviewed: bool


class ReviewStatusOut(BaseModel):
    can_review: bool
    order_status: OrderStatus
    products: List[ProductReviewStatus]
    all_reviewed: bool

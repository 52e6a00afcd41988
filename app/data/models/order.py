from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from app.data.database import Base
from app.domain.enums import OrderStatus, PaymentMethod, PaymentStatus


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    total_amount = Column(Numeric(12, 2), nullable=False)

    # adres dostawy osadzony w zamowieniu
    ship_full_name = Column(String, nullable=False)
    ship_phone = Column(String, nullable=False)
    ship_address = Column(String, nullable=False)
    ship_city = Column(String, nullable=False)
    ship_district = Column(String, nullable=True)
    ship_ward = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(String(16), nullable=False, default=OrderStatus.PENDING.value, index=True)
    payment_status = Column(String(16), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = Column(String(16), nullable=False, default=PaymentMethod.COD.value)

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    #optimistic locking na przejsciach statusu
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
        lazy="selectin",
    )
    customer = relationship("UserModel", foreign_keys=[customer_id], lazy="joined")
    seller = relationship("UserModel", foreign_keys=[seller_id], lazy="joined")

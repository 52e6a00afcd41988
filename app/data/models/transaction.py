from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from app.data.database import Base
from app.domain.enums import TransactionStatus


class TransactionModel(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    transaction_number = Column(String(32), nullable=False, unique=True)
    # 1:1 z zamowieniem, tylko dla platnosci innych niz cod
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False, default=TransactionStatus.PENDING.value, index=True)
    payment_details = Column(JSON, nullable=False, default=dict)

    completed_at = Column(DateTime(timezone=True), nullable=True)
    failed_at = Column(DateTime(timezone=True), nullable=True)
    failure_reason = Column(Text, nullable=True)
    refund_reason = Column(Text, nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("OrderModel")

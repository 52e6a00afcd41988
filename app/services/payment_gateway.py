# app/services/payment_gateway.py
from datetime import datetime, timezone
from typing import Any, Dict, Protocol

from app.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentGateway(Protocol):
    """Bramka platnosci. charge() zwraca dane do zapisania w transakcji albo rzuca wyjatek."""

    def charge(self, transaction_number: str, amount, payment_method: str, details: Dict[str, Any]) -> Dict[str, Any]:
        ...


class MockPaymentGateway:
    """Platnosc testowa - zawsze konczy sie sukcesem, bez zewnetrznego wywolania."""

    def charge(self, transaction_number: str, amount, payment_method: str, details: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"[MOCK PAYMENT] {transaction_number}: {amount} via {payment_method}")
        return {
            **details,
            "mock_payment": True,
            "paid_at": datetime.now(timezone.utc).isoformat(),
        }

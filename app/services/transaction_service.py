# app/services/transaction_service.py
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.data.models.transaction import TransactionModel
from app.domain.actor import Actor
from app.domain.enums import PaymentStatus, Role, TransactionStatus
from app.domain.errors import (
    ConcurrencyConflict,
    Fatal,
    Forbidden,
    InvalidTransition,
    NotFound,
    PaymentFailed,
)
from app.repos.order_repo import OrderRepo
from app.repos.transaction_repo import TransactionRepo
from app.services.payment_gateway import MockPaymentGateway, PaymentGateway
from app.utils.logging import get_logger
from app.utils.pagination import page_info, page_window

logger = get_logger(__name__)


class TransactionService:
    """
    Ledger platnosci dla zamowien innych niz cod.
    Status transakcji i orders.payment_status zmieniaja sie razem, w jednym commicie.
    """

    def __init__(self, db: Session, gateway: PaymentGateway | None = None):
        self.repo = TransactionRepo(db)
        self.orders = OrderRepo(db)
        self.gateway = gateway or MockPaymentGateway()

    # =====================================================
    # COMMANDS
    # =====================================================
    def process_payment(
        self, customer_id: int, transaction_id: int, payment_details: Dict[str, Any] | None = None
    ) -> Dict[str, Any]:
        txn = self._get(transaction_id)

        if txn.customer_id != customer_id:
            raise Forbidden("Only the customer can pay this transaction")

        if txn.status != TransactionStatus.PENDING.value:
            raise InvalidTransition("Transaction", txn.status, TransactionStatus.PENDING)

        details = {k: v for k, v in (payment_details or {}).items() if v is not None}

        try:
            charged = self.gateway.charge(txn.transaction_number, txn.amount, txn.payment_method, details)
        except PaymentFailed as e:
            self._record_failure(txn, e.reason)
            raise

        now = datetime.now(timezone.utc)
        self._change(
            txn,
            TransactionStatus.PENDING,
            {
                "status": TransactionStatus.COMPLETED.value,
                "completed_at": now,
                "payment_details": {**(txn.payment_details or {}), **charged},
            },
            PaymentStatus.PAID,
        )

        logger.info(f"Transaction {txn.transaction_number} paid by customer {customer_id}")
        return self._to_dict(self.repo.refresh(txn))

    def refund_transaction(self, actor: Actor, transaction_id: int, reason: str | None = None) -> Dict[str, Any]:
        """
        Zwrot platnosci. Stock NIE jest przywracany - towar mogl juz zostac
        wyslany lub zuzyty; przywracanie stocku robi tylko anulowanie/odrzucenie.
        """
        txn = self._get(transaction_id)

        if txn.seller_id != actor.id and not actor.is_admin:
            raise Forbidden("Only the seller of the order or an admin can refund")

        if txn.status != TransactionStatus.COMPLETED.value:
            raise InvalidTransition("Transaction", txn.status, TransactionStatus.COMPLETED)

        now = datetime.now(timezone.utc)
        self._change(
            txn,
            TransactionStatus.COMPLETED,
            {
                "status": TransactionStatus.REFUNDED.value,
                "refund_reason": reason,
                "refunded_at": now,
            },
            PaymentStatus.REFUNDED,
        )

        logger.info(f"Transaction {txn.transaction_number} refunded by user {actor.id}")
        return self._to_dict(self.repo.refresh(txn))

    # =====================================================
    # QUERY
    # =====================================================
    def get_transaction(self, actor: Actor, transaction_id: int) -> Dict[str, Any]:
        txn = self._get(transaction_id)

        if actor.id not in (txn.customer_id, txn.seller_id) and not actor.is_admin:
            raise Forbidden("You do not have access to this transaction")

        return self._to_dict(txn)

    def list_transactions(
        self, actor: Actor, status: TransactionStatus | None = None, page: int = 1, limit: int | None = None
    ) -> Dict[str, Any]:
        #klient widzi swoje zakupy, sprzedawca swoje sprzedaze, admin wszystko
        scope = {}
        if actor.role == Role.USER:
            scope["customer_id"] = actor.id
        elif actor.role == Role.SELLER:
            scope["seller_id"] = actor.id

        page, limit, offset = page_window(page, limit)
        rows, total = self.repo.list_transactions(
            status=TransactionStatus(status).value if status else None,
            offset=offset,
            limit=limit,
            **scope,
        )
        return {
            "transactions": [self._to_dict(t) for t in rows],
            "pagination": page_info(page, limit, total),
        }

    # =====================================================
    # HELPERS
    # =====================================================
    def _get(self, transaction_id: int) -> TransactionModel:
        txn = self.repo.get_transaction(transaction_id)
        if not txn:
            raise NotFound("Transaction", transaction_id)
        return txn

    def _change(
        self,
        txn: TransactionModel,
        expected: TransactionStatus,
        new_data: Dict[str, Any],
        payment_status: PaymentStatus,
    ) -> None:
        try:
            if self.repo.update_if_status(txn.id, expected.value, new_data) == 0:
                self.repo.rollback()
                raise ConcurrencyConflict("Transaction", txn.id)

            self.orders.set_payment_status(txn.order_id, payment_status.value)
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Ledger update failed for transaction {txn.id}")
            raise Fatal(str(e)) from e

    def _record_failure(self, txn: TransactionModel, reason: str) -> None:
        logger.warning(f"Payment for transaction {txn.transaction_number} failed: {reason}")
        self._change(
            txn,
            TransactionStatus.PENDING,
            {
                "status": TransactionStatus.FAILED.value,
                "failed_at": datetime.now(timezone.utc),
                "failure_reason": reason,
            },
            PaymentStatus.FAILED,
        )

    @staticmethod
    def _to_dict(txn: TransactionModel) -> Dict[str, Any]:
        return {
            "id": txn.id,
            "transaction_number": txn.transaction_number,
            "order_id": txn.order_id,
            "customer_id": txn.customer_id,
            "seller_id": txn.seller_id,
            "amount": txn.amount,
            "payment_method": txn.payment_method,
            "status": txn.status,
            "payment_details": txn.payment_details or {},
            "completed_at": txn.completed_at,
            "failed_at": txn.failed_at,
            "failure_reason": txn.failure_reason,
            "refund_reason": txn.refund_reason,
            "refunded_at": txn.refunded_at,
            "created_at": txn.created_at,
        }

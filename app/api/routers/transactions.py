# app/api/routers/transactions.py
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_actor, get_transaction_service
from app.domain.actor import Actor
from app.domain.enums import TransactionStatus
from app.domain.schemas import PaymentIn, ReasonIn, TransactionListOut, TransactionOut
from app.services.transaction_service import TransactionService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListOut)
def list_transactions(
    status: TransactionStatus | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    svc: TransactionService = Depends(get_transaction_service),
):
    return svc.list_transactions(actor, status=status, page=page, limit=limit)


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(
    transaction_id: int,
    actor: Actor = Depends(get_actor),
    svc: TransactionService = Depends(get_transaction_service),
):
    return svc.get_transaction(actor, transaction_id)


@router.post("/{transaction_id}/pay", response_model=TransactionOut)
def process_payment(
    transaction_id: int,
    payload: PaymentIn | None = None,
    actor: Actor = Depends(get_actor),
    svc: TransactionService = Depends(get_transaction_service),
):
    details = payload.payment_details.model_dump() if payload else {}
    return svc.process_payment(actor.id, transaction_id, details)


@router.post("/{transaction_id}/refund", response_model=TransactionOut)
def refund_transaction(
    transaction_id: int,
    payload: ReasonIn | None = None,
    actor: Actor = Depends(get_actor),
    svc: TransactionService = Depends(get_transaction_service),
):
    return svc.refund_transaction(actor, transaction_id, payload.reason if payload else None)

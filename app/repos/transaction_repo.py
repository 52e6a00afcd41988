# app/repos/transaction_repo.py
from typing import Any, Dict

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.data.models.transaction import TransactionModel


class TransactionRepo:
    def __init__(self, db: Session):
        self.db = db

    def insert_transaction(self, txn: TransactionModel) -> TransactionModel:
        self.db.add(txn)
        self.db.flush()
        return txn

    def get_transaction(self, transaction_id: int) -> TransactionModel | None:
        return self.db.get(TransactionModel, transaction_id, populate_existing=True)

    def get_by_order(self, order_id: int) -> TransactionModel | None:
        return self.db.execute(
            select(TransactionModel)
            .where(TransactionModel.order_id == order_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_transactions(
        self,
        customer_id: int | None = None,
        seller_id: int | None = None,
        status: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[TransactionModel], int]:
        conditions = []
        if customer_id is not None:
            conditions.append(TransactionModel.customer_id == customer_id)
        if seller_id is not None:
            conditions.append(TransactionModel.seller_id == seller_id)
        if status is not None:
            conditions.append(TransactionModel.status == status)

        total = self.db.execute(
            select(func.count()).select_from(TransactionModel).where(*conditions)
        ).scalar_one()

        rows = self.db.execute(
            select(TransactionModel)
            .where(*conditions)
            .order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(rows), total

    def update_if_status(self, transaction_id: int, expected_status: str, new_data: Dict[str, Any]) -> int:
        #status pelni role wersji, tylko jedna operacja przejdzie z danego stanu
        result = self.db.execute(
            update(TransactionModel)
            .where(
                TransactionModel.id == transaction_id,
                TransactionModel.status == expected_status,
            )
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def refresh(self, txn: TransactionModel) -> TransactionModel:
        self.db.refresh(txn)
        return txn

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

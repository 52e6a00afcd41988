# app/repos/store_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.data.models.store import StoreModel


class StoreRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_seller(self, seller_id: int) -> StoreModel | None:
        return (
            self.db.query(StoreModel)
            .filter(StoreModel.seller_id == seller_id)
            .one_or_none()
        )

    def set_aggregate_rating(self, seller_id: int, average: float, count: int) -> bool:
        #brak sklepu nie jest bledem, sprzedawca mogl go jeszcze nie zalozyc
        result = self.db.execute(
            update(StoreModel)
            .where(StoreModel.seller_id == seller_id)
            .values(rating_average=average, rating_count=count)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

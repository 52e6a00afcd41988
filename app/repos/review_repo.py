# app/repos/review_repo.py
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.review import ReviewModel
from app.domain.errors import DuplicateKeyError
from app.repos._errors import is_unique_violation


class ReviewRepo:
    def __init__(self, db: Session):
        self.db = db

    def insert_review(self, review: ReviewModel) -> ReviewModel:
        self.db.add(review)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e, "order_id") or is_unique_violation(e, "u_review_order_product"):
                raise DuplicateKeyError("order_id, product_id") from e
            raise
        return review

    def exists(self, order_id: int, product_id: int) -> bool:
        return self.db.execute(
            select(ReviewModel.id).where(
                ReviewModel.order_id == order_id,
                ReviewModel.product_id == product_id,
            )
        ).first() is not None

    def list_by_order(self, order_id: int) -> list[ReviewModel]:
        return list(
            self.db.execute(
                select(ReviewModel)
                .where(ReviewModel.order_id == order_id)
                .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
            ).scalars().all()
        )

    def list_reviews(
        self,
        product_id: int | None = None,
        seller_id: int | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ReviewModel], int]:
        conditions = []
        if product_id is not None:
            conditions.append(ReviewModel.product_id == product_id)
        if seller_id is not None:
            conditions.append(ReviewModel.seller_id == seller_id)

        total = self.db.execute(
            select(func.count()).select_from(ReviewModel).where(*conditions)
        ).scalar_one()
        rows = self.db.execute(
            select(ReviewModel)
            .where(*conditions)
            .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()
        return list(rows), total

    def rating_stats(self, product_id: int | None = None, seller_id: int | None = None) -> tuple[float, int]:
        """Srednia arytmetyczna i liczba ocen, przeliczane od zera przy kazdej recenzji."""
        conditions = []
        if product_id is not None:
            conditions.append(ReviewModel.product_id == product_id)
        if seller_id is not None:
            conditions.append(ReviewModel.seller_id == seller_id)

        avg, count = self.db.execute(
            select(func.avg(ReviewModel.rating), func.count(ReviewModel.id)).where(*conditions)
        ).one()
        return float(avg or 0), int(count)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

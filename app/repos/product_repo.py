# app/repos/product_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.domain.enums import ProductStatus


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        # zawsze swiezy odczyt z bazy, nie z identity map sesji
        return self.db.get(ProductModel, product_id, populate_existing=True)

    def get_products(self, product_ids) -> dict[int, ProductModel]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self.db.query(ProductModel).filter(ProductModel.id.in_(ids)).all()
        return {p.id: p for p in rows}

    def adjust_stock(self, product_id: int, delta: int, require_active: bool = False) -> bool:
        """
        Atomowa zmiana stanu magazynu jednym UPDATE.
        Dla delta < 0 warunek stock >= -delta jest w WHERE, wiec dwa rownolegle
        zamowienia nie zejda ponizej zera. False = brak produktu lub za malo sztuk.
        """
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=ProductModel.stock + delta)
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            stmt = stmt.where(ProductModel.stock >= -delta)
        if require_active:
            stmt = stmt.where(ProductModel.status == ProductStatus.ACTIVE.value)

        result = self.db.execute(stmt)
        return result.rowcount == 1

    def set_aggregate_rating(self, product_id: int, average: float, count: int) -> None:
        self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(average_rating=average, rating_count=count)
            .execution_options(synchronize_session=False)
        )

    def refresh(self, product: ProductModel) -> ProductModel:
        self.db.refresh(product)
        return product

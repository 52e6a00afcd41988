from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Integer, JSON, Numeric, String

from app.data.database import Base
from app.domain.enums import ProductStatus


class ProductModel(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=1)
    status = Column(String(16), nullable=False, default=ProductStatus.PENDING.value)
    images = Column(JSON, nullable=False, default=list)

    average_rating = Column(Float, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)

    @property
    def main_image(self) -> str | None:
        return self.images[0] if self.images else None

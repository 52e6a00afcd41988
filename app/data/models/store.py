from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String

from app.data.database import Base


class StoreModel(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    store_name = Column(String, nullable=False)
    is_approved = Column(Boolean, nullable=False, default=False)

    rating_average = Column(Float, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)

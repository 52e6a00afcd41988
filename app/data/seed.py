# app/data/seed.py
from decimal import Decimal

from sqlalchemy.orm import Session

from app.data.database import SessionLocal
from app.data.models import ProductModel, StoreModel, UserModel
from app.domain.enums import ProductStatus, Role

PRODUCTS = [
    {"title": "Keyboard", "price": Decimal("199.99"), "stock": 5},
    {"title": "Mouse", "price": Decimal("49.50"), "stock": 10},
    {"title": "Monitor", "price": Decimal("899.00"), "stock": 2},
]


def seed(db: Session | None = None) -> bool:
    """Dane deweloperskie; nic nie robi jesli baza ma juz uzytkownikow."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(UserModel).first():
            return False

        seller = UserModel(name="Seller One", email="seller@example.com", role=Role.SELLER.value)
        db.add_all(
            [
                UserModel(name="Admin", email="admin@example.com", role=Role.ADMIN.value),
                seller,
                UserModel(name="Buyer One", email="buyer@example.com", role=Role.USER.value),
            ]
        )
        db.flush()

        db.add(StoreModel(seller_id=seller.id, store_name="Seller One Store", is_approved=True))
        db.add_all(
            [
                ProductModel(seller_id=seller.id, status=ProductStatus.ACTIVE.value, images=[], **p)
                for p in PRODUCTS
            ]
        )
        db.commit()
        return True
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()

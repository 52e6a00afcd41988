"""Pytest fixtures for the marketplace order service."""

import os

# baza testowa w pamieci, ustawiona zanim zaimportujemy cokolwiek z app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.data.database import Base
from app.data import models  # noqa: F401
from app.data.models import ProductModel, StoreModel, UserModel
from app.domain.enums import ProductStatus, Role
from app.domain.schemas import ShippingAddress


class InMemoryLockService:
    """Zastepuje LockService (redis) w testach, ta sama semantyka SET NX."""

    def __init__(self):
        self.locks = {}
        self.released = []

    def acquire_checkout_lock(self, customer_id, ttl):
        if customer_id in self.locks:
            return None
        token = f"token-{customer_id}-{len(self.released)}"
        self.locks[customer_id] = token
        return token

    def release_checkout_lock(self, customer_id, token):
        if self.locks.get(customer_id) != token:
            return False
        del self.locks[customer_id]
        self.released.append(customer_id)
        return True


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def lock_service():
    return InMemoryLockService()


@pytest.fixture
def make_user(db):
    def _make(name="User", role=Role.USER):
        user = UserModel(name=name, role=role.value)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_product(db):
    def _make(seller, title="Product", price="1000", stock=5, status=ProductStatus.ACTIVE, images=None):
        product = ProductModel(
            seller_id=seller.id,
            title=title,
            price=Decimal(price),
            stock=stock,
            status=status.value,
            images=images if images is not None else [f"https://img.example/{title}.jpg"],
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def buyer(make_user):
    return make_user("Buyer", Role.USER)


@pytest.fixture
def seller(make_user, db):
    user = make_user("Seller", Role.SELLER)
    db.add(StoreModel(seller_id=user.id, store_name="Seller Store", is_approved=True))
    db.commit()
    return user


@pytest.fixture
def admin(make_user):
    return make_user("Admin", Role.ADMIN)


@pytest.fixture
def address():
    return ShippingAddress(
        full_name="Nguyen Van A",
        phone="0901234567",
        address="12 Le Loi",
        city="Ho Chi Minh",
        district="District 1",
    )


@pytest.fixture
def stock_of(db):
    """Aktualny stock prosto z bazy."""

    def _stock(product_id):
        return db.get(ProductModel, product_id, populate_existing=True).stock

    return _stock

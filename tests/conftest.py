"""Pytest fixtures for storefront tests."""

import os
import tempfile
from decimal import Decimal
from pathlib import Path

# konfiguracja musi byc ustawiona przed pierwszym importem storefront
_TMP_DIR = Path(tempfile.mkdtemp(prefix="storefront-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'storefront.db'}"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOCAL_CART_PATH"] = str(_TMP_DIR / "cart.json")

import pytest
from unittest.mock import MagicMock

from storefront.data import models  # noqa: F401
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import ColorVariantModel, ProductModel, UserModel


class FakeNotifications:
    """Zamiast Celery - zapamietuje wyslane powiadomienia."""

    def __init__(self):
        self.sent = []

    def send_order_notification(self, user_id, order_id, event="placed"):
        self.sent.append((user_id, order_id, event))


class FakeLock:
    """Zamiast redisa - blokada checkoutu w pamieci."""

    def __init__(self):
        self.held = {}

    def acquire_checkout_lock(self, user_id, ttl):
        if user_id in self.held:
            return None
        token = f"token-{user_id}"
        self.held[user_id] = token
        return token

    def release_checkout_lock(self, user_id, token):
        if self.held.get(user_id) == token:
            del self.held[user_id]
            return True
        return False


@pytest.fixture(autouse=True)
def clean_db():
    """Fresh schema for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifications():
    return FakeNotifications()


@pytest.fixture
def lock():
    return FakeLock()


@pytest.fixture
def cart_sync():
    return MagicMock()


@pytest.fixture
def address():
    return {
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
    }


@pytest.fixture
def make_user(db):
    def _make(user_id=1, name="Anna"):
        user = UserModel(id=user_id, name=name)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Tote bag", price="100.00", stock=10, variants=()):
        product = ProductModel(
            name=name,
            price=Decimal(price),
            stock=stock,
            color_variants=[
                ColorVariantModel(name=v_name, code=v_code, stock=v_stock)
                for v_name, v_code, v_stock in variants
            ],
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def stock_of():
    """Odczyt stanu z osobnej sesji, bez cache sesji testu."""

    def _stock(product_id, color_name=None):
        with SessionLocal() as session:
            product = session.get(ProductModel, product_id)
            if color_name is None:
                return product.stock
            return product.find_variant(color_name).stock

    return _stock


@pytest.fixture
def client(notifications, lock, cart_sync):
    from fastapi.testclient import TestClient

    from storefront.api.deps import get_cart_sync_service, get_lock_service, get_notification_service
    from storefront.main import app

    app.dependency_overrides[get_notification_service] = lambda: notifications
    app.dependency_overrides[get_lock_service] = lambda: lock
    app.dependency_overrides[get_cart_sync_service] = lambda: cart_sync

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

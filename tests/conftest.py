"""Pytest fixtures for storefront tests."""

import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="storefront-tests-")

# settings are read at import time, so the environment has to be ready first
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["JWT_SECRET"] = "test-secret-for-storefront-signing-key"
os.environ["FREE_SHIPPING_THRESHOLD"] = "1000"
os.environ["SHIPPING_FLAT_FEE"] = "100"
os.environ["TAX_RATE"] = "0.18"

import pytest

from storefront.data import models  # noqa: F401
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models.user import UserModel
from storefront.domain.errors import CatalogUnavailable, NotFound
from storefront.services.cart_service import CartService
from storefront.services.identity_service import IdentityService
from storefront.services.order_service import OrderService


class FakeCatalog:
    """In-memory stand-in for the product service."""

    def __init__(self):
        self.products = {
            1: {"id": 1, "name": "Product X", "price": 500, "stock": 10, "category": "gadgets", "image": "/x.png"},
            2: {"id": 2, "name": "Product Y", "price": 300, "stock": 5, "category": "books", "image": "/y.png"},
            3: {"id": 3, "name": "Product Z", "price": 19.99, "stock": 50, "category": "misc", "image": None},
        }
        self.unavailable = False
        self.calls = []

    def get_product(self, product_id):
        self.calls.append(product_id)
        if self.unavailable:
            raise CatalogUnavailable("catalog down")
        pdata = self.products.get(product_id)
        if pdata is None:
            raise NotFound(f"Produkt {product_id} nie istnieje")
        return dict(pdata)

    def set_price(self, product_id, price):
        self.products[product_id]["price"] = price


class FakeLockService:
    def __init__(self):
        self.locks = {}

    def acquire_checkout_lock(self, user_id, token, ttl):
        if user_id in self.locks:
            return False
        self.locks[user_id] = token
        return True

    def release_checkout_lock(self, user_id, token):
        if self.locks.get(user_id) == token:
            del self.locks[user_id]
            return True
        return False


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def send_order_notification(self, user_id, order_id, event, status=None):
        self.events.append((user_id, order_id, event, status))


@pytest.fixture(autouse=True)
def reset_db():
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
def catalog():
    return FakeCatalog()


@pytest.fixture
def locks():
    return FakeLockService()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_user(db):
    def _make(name="Jan Kowalski", role="user", email=None):
        user = UserModel(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}.{role}@example.com",
            password_hash="not-a-real-hash",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user.id

    return _make


@pytest.fixture
def user_id(make_user):
    return make_user()


@pytest.fixture
def admin_id(make_user):
    return make_user(name="Admin", role="admin")


@pytest.fixture
def cart_service(db, catalog):
    return CartService(db=db, product_client=catalog)


@pytest.fixture
def order_service(db, catalog, locks, notifier):
    return OrderService(
        db=db,
        product_client=catalog,
        lock_service=locks,
        notification_service=notifier,
    )


@pytest.fixture
def address():
    return {
        "full_name": "Jan Kowalski",
        "street": "ul. Dluga 5",
        "city": "Krakow",
        "state": "Malopolska",
        "postal_code": "30-001",
        "country": "Poland",
        "email": "jan@example.com",
        "phone": "+48 600 100 200",
    }


@pytest.fixture
def fill_cart(cart_service):
    def _fill(user_id, items):
        for product_id, quantity in items.items():
            cart_service.set_item(user_id, product_id, quantity)
        return cart_service.get_cart(user_id)

    return _fill


@pytest.fixture
def identity():
    return IdentityService()



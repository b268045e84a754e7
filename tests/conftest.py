import itertools
import os
from datetime import datetime, timezone
from decimal import Decimal

#przed importem shopcore - settings czyta env przy imporcie
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

import pytest
import requests
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shopcore.data.database import init_db, make_engine
from shopcore.data.models import CartLineModel, ProductModel, VariantModel
from shopcore.services.order_service import OrderService
from shopcore.services.payment_gateway import to_minor_units
from shopcore.services.payment_service import PaymentService, compute_signature

SECRET = "test_secret"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

ADDRESS = {
    "name": "Jan Kowalski",
    "address_line1": "ul. Prosta 1",
    "city": "Warszawa",
    "state": "mazowieckie",
    "postal_code": "00-001",
    "country": "PL",
    "phone": "+48500100200",
}


def clock():
    return NOW


class FakeGateway:
    def __init__(self, payment_status="captured"):
        self.payment_status = payment_status
        self.fail_create = False
        self.created = []
        self.fetched = []

    def create_order(self, amount, receipt, notes, currency=None):
        if self.fail_create:
            raise requests.ConnectionError("gateway down")
        gateway_order = {
            "id": f"order_gw_{len(self.created) + 1}",
            "amount": to_minor_units(amount),
            "currency": currency or "INR",
            "receipt": receipt,
            "notes": notes,
        }
        self.created.append(gateway_order)
        return gateway_order

    def fetch_payment(self, payment_id):
        self.fetched.append(payment_id)
        return {"id": payment_id, "status": self.payment_status, "method": "card", "currency": "INR"}


class FakeLock:
    def __init__(self):
        self.held = {}
        self.released = []

    def acquire_payment_lock(self, gateway_order_id, ttl):
        if gateway_order_id in self.held:
            return None
        token = f"token-{gateway_order_id}"
        self.held[gateway_order_id] = token
        return token

    def release_payment_lock(self, gateway_order_id, token):
        self.released.append(gateway_order_id)
        return self.held.pop(gateway_order_id, None) == token


class RecordingNotifications:
    def __init__(self):
        self.events = []

    def emit(self, event, **payload):
        self.events.append((event, payload))

    def names(self):
        return [event for event, _ in self.events]


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def lock():
    return FakeLock()


@pytest.fixture
def notifications():
    return RecordingNotifications()


@pytest.fixture
def order_service(db, gateway, notifications):
    return OrderService(db, gateway=gateway, notifications=notifications, clock=clock)


@pytest.fixture
def payment_service(db, gateway, lock, notifications):
    return PaymentService(db, secret=SECRET, gateway=gateway, lock_service=lock, notifications=notifications)


@pytest.fixture
def make_product(db):
    counter = itertools.count(1)

    def _make(**fields):
        n = next(counter)
        values = {
            "name": f"Product {n}",
            "slug": f"product-{n}",
            "sku": f"SKU-{n}",
            "price": Decimal("50.00"),
            "inventory": 10,
            "images": [],
        }
        values.update(fields)
        product = ProductModel(**values)
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def make_variant(db):
    counter = itertools.count(1)

    def _make(product, **fields):
        n = next(counter)
        values = {
            "product_id": product.id,
            "name": f"Variant {n}",
            "sku": f"{product.sku}-V{n}",
            "options": {},
            "images": [],
        }
        values.update(fields)
        variant = VariantModel(**values)
        db.add(variant)
        db.commit()
        return variant

    return _make


@pytest.fixture
def add_line(db):
    def _add(owner_id, product, quantity=1, variant=None):
        line = CartLineModel(
            owner_id=owner_id,
            product_id=product.id,
            variant_id=variant.id if variant else None,
            quantity=quantity,
        )
        db.add(line)
        db.commit()
        return line

    return _add


def sign(gateway_order_id, gateway_payment_id, secret=SECRET):
    return compute_signature(secret, gateway_order_id, gateway_payment_id)

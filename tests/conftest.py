import os
import tempfile
from decimal import Decimal
from pathlib import Path

# Settings are read at import time, so the environment must be in place
# before anything under app/ is imported.
_TMP = Path(tempfile.mkdtemp(prefix="cantina-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""
os.environ.pop("MINIO_ENDPOINT", None)
os.environ.pop("SMTP_HOST", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from app.db.session import SessionLocal, create_db, engine
from app.main import app
from app.models.category import Category
from app.models.product import Product
from app.models.user import RoleEnum
from app.services.auth import create_user
from tests.helpers import PASSWORD, auth_headers

_TABLES = (
    "order_status_history",
    "order_items",
    "orders",
    "cart_items",
    "carts",
    "products",
    "categories",
    "users",
    "counters",
)


@pytest.fixture(scope="session", autouse=True)
def _schema():
    create_db()
    yield
    engine.dispose()


@pytest.fixture(autouse=True)
def _clean_tables(_schema):
    with engine.begin() as conn:
        for table in _TABLES:
            conn.execute(text(f"DELETE FROM {table}"))
        conn.execute(text("INSERT INTO counters (id, value) VALUES ('order_counter', 0)"))
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=RoleEnum.CLIENTE, email=None, name="Cliente Teste"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@cantina.com"
        return create_user(db, email, PASSWORD, name, role=role)

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(role=RoleEnum.ADMIN, email="admin@cantina.com", name="Admin")


@pytest.fixture
def customer(make_user):
    return make_user(email="cliente@cantina.com", name="Maria")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def client_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def make_category(db):
    def _make(name="Lanches", sort_order=0, is_active=True):
        c = Category(name=name, sort_order=sort_order, is_active=is_active)
        db.add(c)
        db.commit()
        db.refresh(c)
        return c

    return _make


@pytest.fixture
def make_product(db, make_category):
    state = {"category": None}

    def _make(name="Coxinha", price="5.50", is_available=True, category=None, description=None):
        if category is None:
            if state["category"] is None:
                state["category"] = make_category()
            category = state["category"]
        p = Product(
            name=name,
            description=description,
            price=Decimal(str(price)),
            is_available=is_available,
            category_id=category.id,
        )
        db.add(p)
        db.commit()
        db.refresh(p)
        return p

    return _make

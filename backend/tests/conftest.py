# -*- coding: utf-8 -*-
import os
import tempfile
import uuid

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="arbati-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["ALLOWED_HOSTS"] = "testserver,localhost"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")

from fastapi.testclient import TestClient  # noqa: E402

from arbati.core.security import create_access_token, get_password_hash  # noqa: E402
from arbati.db.base import Base  # noqa: E402
from arbati.db.session import SessionLocal, engine  # noqa: E402
from arbati.main import app  # noqa: E402
from arbati.models.customer import Customer  # noqa: E402
from arbati.models.motorcycle import Motorcycle  # noqa: E402
from arbati.models.product import Category, Product  # noqa: E402
from arbati.models.user import User, UserRole, UserStatus  # noqa: E402

PASSWORD = "Passw0rd!"


def _u_email(p="user"):
    return f"{p}_{uuid.uuid4().hex[:8]}@test.com"


@pytest.fixture(autouse=True)
def _tables():
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
def client():
    # no context manager: lifespan (bootstrap account) stays out of the tests
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(role=UserRole.ADMIN, status=UserStatus.ACTIVE, email=None, password=PASSWORD):
        user = User(
            email=email or _u_email(role.value.lower()),
            hashed_password=get_password_hash(password),
            name=f"{role.value.title()} User",
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def headers_for(make_user):
    def _headers(role=UserRole.ADMIN):
        user = make_user(role)
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}
    return _headers


@pytest.fixture
def admin_headers(headers_for):
    return headers_for(UserRole.ADMIN)


@pytest.fixture
def product(db):
    category = Category(name="Engine Parts", name_ku="پارچەکانی بزوێنەر")
    db.add(category)
    db.flush()
    p = Product(
        name="Spark Plug",
        name_ku="شەمعە",
        sku="SP-001",
        category_id=category.id,
        mufrad_price=5000,
        jumla_price=4000,
        rmb_price=12,
        stock_quantity=100,
        low_stock_threshold=10,
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@pytest.fixture
def motorcycle(db):
    m = Motorcycle(
        name="Haojue 150",
        sku="MC-HJ150",
        usd_retail_price=1450,
        usd_wholesale_price=1300,
        stock_quantity=3,
    )
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


@pytest.fixture
def customer(db):
    c = Customer(name="Karwan Motors", sku="C-0001", debt_iqd=0, debt_usd=0, current_balance=0)
    db.add(c)
    db.commit()
    db.refresh(c)
    return c

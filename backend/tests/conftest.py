"""
Pytest fixtures for the UniQverse API tests

Every test gets a fresh in-memory SQLite database shared by the test
session and the app through the get_db override.
"""
import os
import tempfile

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="uniqverse-uploads-"))
os.environ.setdefault("SECRET_KEY", "test-secret")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.main import app
from app.api.deps import get_db
from app.core.security import hash_password
from app.db.session import init_db
from app.models import Category, Product, User, UserRole
from app.services.search import suggestion_cache

PASSWORD = "secret-password"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def get_db_override():
        yield session

    app.dependency_overrides[get_db] = get_db_override
    suggestion_cache.clear()
    # No `with`: the lifespan would create tables on the configured engine
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
    suggestion_cache.clear()


def make_user(session: Session, email: str, role: UserRole = UserRole.CUSTOMER, **kwargs) -> User:
    user = User(
        email=email,
        name=kwargs.pop("name", email.split("@")[0].title()),
        password_hash=hash_password(kwargs.pop("password", PASSWORD)),
        role=role,
        **kwargs
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def login(client: TestClient, email: str, password: str = PASSWORD):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response


@pytest.fixture
def customer(session):
    return make_user(session, "jane@example.com")


@pytest.fixture
def admin(session):
    return make_user(session, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def vendor(session):
    return make_user(session, "seller@example.com", UserRole.VENDOR)


@pytest.fixture
def customer_client(client, customer):
    login(client, customer.email)
    return client


@pytest.fixture
def admin_client(client, admin):
    login(client, admin.email)
    return client


@pytest.fixture
def vendor_client(client, vendor):
    login(client, vendor.email)
    return client


@pytest.fixture
def category(session):
    category = Category(name="Electronics", slug="electronics")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def make_product(session: Session, name: str, price: str = "10.00", **kwargs) -> Product:
    product = Product(
        name=name,
        slug=kwargs.pop("slug", name.lower().replace(" ", "-")),
        price=Decimal(price),
        stock=kwargs.pop("stock", 10),
        **kwargs
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product

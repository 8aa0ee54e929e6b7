"""
Pytest fixtures for the back-office service.

Provides an in-memory database per test, a session shared with the API
client, two tenants, and factories for accounts and products.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from backoffice import models  # noqa: F401  registers every table
from backoffice.db import get_session
from backoffice.main import app
from backoffice.models import Account, Product, StockMovement, User
from backoffice.routers.auth import SESSION_COOKIE, create_session_value
from backoffice.schemas import ProductCreate
from backoffice.services import catalog


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def _make_user(session: Session, username: str) -> User:
    user = User(username=username, password_hash="unused")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def user(session):
    """Tenant A."""
    return _make_user(session, "alice")


@pytest.fixture
def other_user(session):
    """Tenant B."""
    return _make_user(session, "bob")


@pytest.fixture
def anon_client(session):
    app.dependency_overrides[get_session] = lambda: session
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def client(anon_client, user):
    anon_client.cookies.set(SESSION_COOKIE, create_session_value(user.id))
    return anon_client


@pytest.fixture
def other_client(session, other_user, anon_client):
    client = TestClient(app)
    client.cookies.set(SESSION_COOKIE, create_session_value(other_user.id))
    return client


@pytest.fixture
def make_account(session):
    def _make(owner: User, type: str = "customer", name: str = None, status: str = "active") -> Account:
        account = Account(
            owner_id=owner.id,
            name=name or f"{type.title()} Co",
            type=type,
            status=status,
        )
        session.add(account)
        session.commit()
        session.refresh(account)
        return account

    return _make


@pytest.fixture
def make_product(session):
    def _make(
        owner: User,
        name: str = "Widget",
        in_stock: float = 0,
        price: float = 100,
        cost_price: float = 60,
    ) -> Product:
        return catalog.create_product(
            session,
            owner.id,
            ProductCreate(name=name, in_stock=in_stock, price=price, cost_price=cost_price),
        )

    return _make


def movement_total(session: Session, product_id: int) -> float:
    """Sum of logged deltas; must always equal the product's in_stock."""
    movements = session.exec(
        select(StockMovement).where(StockMovement.product_id == product_id)
    ).all()
    return sum(movement.quantity for movement in movements)

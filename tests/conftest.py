"""Shared pytest fixtures for the marketplace tests.

Every test gets a fresh in-memory SQLite database. Services are built with
explicit fee and token settings so the numbers in assertions stay readable.
"""

from __future__ import annotations

import os

# bcrypt z domyslnymi 12 rundami spowalnia testy kilkukrotnie
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.data.database import Database
from app.data.models import AddressModel, DiscountModel, ProductModel, UserModel
from app.domain.enums import DiscountType, UserRole
from app.main import create_app
from app.services.auth_service import hash_password
from app.services.pricing import FeePolicy
from app.services.token_service import TokenService

TEST_SECRET = "test-secret-for-hs256-signing-0123456789"
PASSWORD = "password123"


@pytest.fixture
def database() -> Iterator[Database]:
    """Fresh in-memory database with all tables created."""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db(database: Database) -> Iterator[Session]:
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def fees() -> FeePolicy:
    """Delivery 2.00, service 1.00, no free delivery threshold."""
    return FeePolicy(Decimal("2"), Decimal("1"), None)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret=TEST_SECRET)


@pytest.fixture
def app(tokens: TokenService, fees: FeePolicy):
    return create_app(database_url="sqlite://", tokens=tokens, fees=fees)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def app_db(app) -> Iterator[Session]:
    """Session on the same database the test client talks to."""
    session = app.state.database.session()
    yield session
    session.close()


def _now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def make_user() -> Callable[..., UserModel]:
    counter = {"n": 0}

    def factory(
        db: Session,
        role: UserRole = UserRole.CONSUMER,
        email: str | None = None,
        name: str | None = None,
        password: str = PASSWORD,
    ) -> UserModel:
        counter["n"] += 1
        user = UserModel(
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            name=name or f"User {counter['n']}",
            role=role.value,
        )
        db.add(user)
        db.commit()
        return user

    return factory


@pytest.fixture
def make_product() -> Callable[..., ProductModel]:
    def factory(
        db: Session,
        seller: UserModel,
        price: str = "10.00",
        name: str = "Tomatoes",
        stock: int = 100,
        is_available: bool = True,
    ) -> ProductModel:
        product = ProductModel(
            seller_id=seller.id,
            name=name,
            price=Decimal(price),
            unit="kg",
            stock_quantity=stock,
            is_available=is_available,
        )
        db.add(product)
        db.commit()
        return product

    return factory


@pytest.fixture
def make_discount() -> Callable[..., DiscountModel]:
    def factory(
        db: Session,
        product: ProductModel,
        value: str,
        discount_type: DiscountType = DiscountType.PERCENTAGE,
        is_active: bool = True,
        starts: timedelta = timedelta(days=-1),
        ends: timedelta = timedelta(days=1),
    ) -> DiscountModel:
        now = _now()
        discount = DiscountModel(
            product_id=product.id,
            type=discount_type.value,
            value=Decimal(value),
            is_active=is_active,
            valid_from=now + starts,
            valid_until=now + ends,
        )
        db.add(discount)
        db.commit()
        return discount

    return factory


@pytest.fixture
def make_address() -> Callable[..., AddressModel]:
    def factory(db: Session, user: UserModel, label: str = "Home", is_primary: bool = False) -> AddressModel:
        address = AddressModel(
            user_id=user.id,
            label=label,
            recipient_name=user.name,
            phone="+62 811 0000",
            full_address="Jl. Merdeka 1",
            city="Bandung",
            postal_code="40111",
            is_primary=is_primary,
        )
        db.add(address)
        db.commit()
        return address

    return factory


@pytest.fixture
def auth_header(tokens: TokenService) -> Callable[[UserModel], dict[str, str]]:
    def factory(user: UserModel) -> dict[str, str]:
        return {"Authorization": f"Bearer {tokens.sign_access(user.id, user.role)}"}

    return factory


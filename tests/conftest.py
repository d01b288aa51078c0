"""
Pytest configuration and fixtures for FloresYa tests.

Service tests run against a throwaway SQLite database (aiosqlite) so the
transactional behavior is exercised for real.
"""
import os
from decimal import Decimal

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SENDGRID_API_KEY"] = ""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from floresya.core.database import create_tables
from floresya.core.security import hash_password
from floresya.models import PaymentMethod, Product, User, UserRole
from floresya.schemas.order import OrderCreate


class RecordingSink:
    """Event sink that keeps emitted events for assertions."""

    def __init__(self):
        self.events = []

    def emit(self, event) -> None:
        self.events.append(event)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'floresya_test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_product(db):
    async def _make(name="Red Roses", price="10.00", stock=5, active=True):
        product = Product(
            name=name,
            description=f"{name} bouquet",
            price=Decimal(price),
            stock_quantity=stock,
            active=active,
        )
        db.add(product)
        await db.commit()
        return product
    return _make


@pytest.fixture
async def customer(db) -> User:
    user = User(
        email="maria@example.com",
        hashed_password=hash_password("flores123"),
        first_name="Maria",
        last_name="Gonzalez",
        role=UserRole.CUSTOMER.value,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def admin(db) -> User:
    user = User(
        email="admin@floresya.com",
        hashed_password=hash_password("admin12345"),
        first_name="Admin",
        last_name="FloresYa",
        role=UserRole.ADMIN.value,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def payment_method(db) -> PaymentMethod:
    method = PaymentMethod(name="Pago Móvil", type="pago_movil", active=True, configuration={})
    db.add(method)
    await db.commit()
    return method


@pytest.fixture
async def inactive_payment_method(db) -> PaymentMethod:
    method = PaymentMethod(name="Binance Pay", type="binance_pay", active=False, configuration={})
    db.add(method)
    await db.commit()
    return method


@pytest.fixture
def shipping_address() -> dict:
    return {
        "first_name": "Maria",
        "last_name": "Gonzalez",
        "address_line_1": "Av. Francisco de Miranda 123",
        "city": "Caracas",
        "state": "Distrito Capital",
        "postal_code": "1060",
        "phone": "+584121234567",
    }


@pytest.fixture
def order_request(shipping_address):
    def _build(*lines, guest_email=None, **extra):
        return OrderCreate(
            items=[{"product_id": pid, "quantity": qty} for pid, qty in lines],
            shipping_address=shipping_address,
            guest_email=guest_email,
            **extra,
        )
    return _build

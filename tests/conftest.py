import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-with-enough-length")
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("ORDER_STORE_BACKEND", "database")

from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.security import hash_password, create_access_token
from storefront.db.base import Base
from storefront.db.models import Customer
from storefront.db.session import get_db
from storefront.main import app
from storefront.schemas.order import (
    OrderCreate,
    OrderItemCreate,
    OrderItemRecord,
    OrderRecord,
    ShippingInfo,
    ShippingInfoCreate,
)


DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    engine = create_async_engine(DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(engine):
    AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def customer(db_session):
    customer = Customer(
        name="Test Customer",
        email="customer@example.com",
        password_hash=hash_password("password123"),
    )
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    return customer


@pytest.fixture
async def other_customer(db_session):
    customer = Customer(
        name="Other Customer",
        email="other@example.com",
        password_hash=hash_password("password456"),
    )
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    return customer


@pytest.fixture
def auth_headers(customer):
    token = create_access_token({"sub": str(customer.id), "email": customer.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def shipping():
    return ShippingInfoCreate(
        full_name="Jane Doe",
        phone="555-0100",
        address="12 Market Street",
        city="Springfield",
        postal_code="12345",
    )


@pytest.fixture
def order_input(shipping):
    """Build an OrderCreate from (category, quantity, unit_price) tuples."""
    def build(*lines, payment_method="card"):
        items = [
            OrderItemCreate(
                product_id=index + 1,
                title=f"Product {index + 1}",
                unit_price=Decimal(str(price)),
                quantity=quantity,
                category=category,
            )
            for index, (category, quantity, price) in enumerate(lines)
        ]
        return OrderCreate(items=items, shipping_info=shipping, payment_method=payment_method)

    return build


@pytest.fixture
def make_order():
    """Build a stored OrderRecord directly, bypassing any store."""
    counter = {"n": 0}

    def build(created_at, *lines, total="0", owner_id=1):
        counter["n"] += 1
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at).replace(tzinfo=timezone.utc)
        return OrderRecord(
            id=f"order{counter['n']}",
            owner_id=owner_id,
            items=[
                OrderItemRecord(
                    product_id=index + 1,
                    title=f"Product {index + 1}",
                    unit_price=Decimal(str(price)),
                    quantity=quantity,
                    category=category,
                )
                for index, (category, quantity, price) in enumerate(lines)
            ],
            shipping_info=ShippingInfo(
                full_name="Jane Doe",
                phone="555-0100",
                address="12 Market Street",
                city="Springfield",
                postal_code="12345",
            ),
            payment_method="card",
            total=Decimal(total),
            created_at=created_at,
        )

    return build

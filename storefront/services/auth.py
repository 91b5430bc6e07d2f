import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from storefront.db.models import Customer
from storefront.core.security import (
    REFRESH_TOKEN_TYPE,
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from storefront.schemas.customer import CustomerRegister, CustomerResponse, TokenResponse

logger = logging.getLogger(__name__)


def issue_tokens(customer: Customer) -> TokenResponse:
    access_token = create_access_token({"sub": str(customer.id), "email": customer.email})
    refresh_token = create_refresh_token({"sub": str(customer.id)})

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        customer=CustomerResponse.model_validate(customer),
    )


async def register_customer(db: AsyncSession, data: CustomerRegister) -> Customer:
    logger.info(f"Starting customer registration for email: {data.email}")

    result = await db.execute(select(Customer).where(Customer.email == data.email))
    existing = result.scalar_one_or_none()
    if existing:
        logger.warning(f"Registration attempt with existing email: {data.email}")
        raise ValueError("Email already registered")

    customer = Customer(
        name=data.name.strip(),
        email=data.email,
        password_hash=hash_password(data.password),
    )
    db.add(customer)
    await db.commit()
    await db.refresh(customer)

    logger.info(f"New customer registered: id={customer.id}, email={customer.email}")
    return customer


async def login(db: AsyncSession, email: str, password: str) -> TokenResponse:
    result = await db.execute(select(Customer).where(Customer.email == email))
    customer = result.scalar_one_or_none()

    if not customer or not verify_password(password, customer.password_hash):
        logger.warning(f"Failed login for email: {email}")
        raise ValueError("Invalid email or password")

    logger.info(f"Customer logged in: {customer.email}")
    return issue_tokens(customer)


async def refresh_access_token(db: AsyncSession, refresh_token: str) -> TokenResponse:
    payload = verify_token(refresh_token, REFRESH_TOKEN_TYPE)
    if not payload or "sub" not in payload:
        raise ValueError("Invalid refresh token")

    customer_id = int(payload["sub"])
    result = await db.execute(select(Customer).where(Customer.id == customer_id))
    customer = result.scalar_one_or_none()

    if not customer:
        raise ValueError("Customer not found")

    return issue_tokens(customer)

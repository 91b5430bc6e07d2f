import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from storefront.core.config import settings
from storefront.core.security import ACCESS_TOKEN_TYPE, verify_token
from storefront.db.session import get_db
from storefront.db.models import Customer
from storefront.services.order_store import (
    InMemoryOrderStore,
    JsonFileOrderStore,
    OrderStore,
    SqlOrderStore,
)

logger = logging.getLogger(__name__)
security = HTTPBearer()

# Process-wide backends; the database backend is bound per request session
memory_order_store = InMemoryOrderStore()
file_order_store = JsonFileOrderStore(settings.ORDERS_FILE_PATH)


async def get_current_customer(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Customer:
    """
    Dependency to get current authenticated customer from JWT token.
    """
    payload = verify_token(credentials.credentials, ACCESS_TOKEN_TYPE)

    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )

    customer_id = int(payload["sub"])
    result = await db.execute(
        select(Customer).where(Customer.id == customer_id)
    )
    customer = result.scalar_one_or_none()

    if not customer:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Customer not found"
        )

    return customer


async def get_order_store(db: AsyncSession = Depends(get_db)) -> OrderStore:
    backend = settings.ORDER_STORE_BACKEND
    if backend == "memory":
        return memory_order_store
    if backend == "file":
        return file_order_store
    return SqlOrderStore(db)

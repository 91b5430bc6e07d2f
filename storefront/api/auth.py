from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from storefront.db.session import get_db
from storefront.db.models import Customer
from storefront.schemas.customer import (
    CustomerRegister,
    CustomerLogin,
    CustomerResponse,
    TokenResponse,
    RefreshTokenRequest
)
from storefront.services.auth import register_customer, login, refresh_access_token, issue_tokens
from storefront.api.dependencies import get_current_customer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    customer_data: CustomerRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new customer and log them straight in."""
    try:
        customer = await register_customer(db, customer_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return issue_tokens(customer)


@router.post("/login", response_model=TokenResponse)
async def login_route(
    credentials: CustomerLogin,
    db: AsyncSession = Depends(get_db)
):
    try:
        return await login(db, credentials.email, credentials.password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token_route(
    token_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    try:
        return await refresh_access_token(db, token_data.refresh_token)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.get("/me", response_model=CustomerResponse)
async def get_current_customer_info(
    customer: Customer = Depends(get_current_customer)
):
    """Get current customer information."""
    return CustomerResponse.model_validate(customer)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout():
    # Tokens are stateless; the client drops them
    return {"message": "Logged out successfully"}

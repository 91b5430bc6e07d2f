from fastapi import APIRouter, Depends

from storefront.db.models import Customer
from storefront.schemas.analytics import AnalyticsSnapshot
from storefront.services.analytics import summarize
from storefront.services.order_store import OrderStore
from storefront.api.dependencies import get_current_customer, get_order_store

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/overview", response_model=AnalyticsSnapshot)
async def analytics_overview(
    customer: Customer = Depends(get_current_customer),
    store: OrderStore = Depends(get_order_store)
):
    """Order count, revenue, average order value, monthly sales and category
    breakdown for the authenticated customer, computed on every request."""
    orders = await store.list_by_owner(customer.id)
    return summarize(orders)

from fastapi import APIRouter, Depends, HTTPException, Request, Query
import logging

from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.db.models import Customer
from storefront.schemas.order import CheckoutRequest, OrderCreate, OrderRecord, OrderListResponse
from storefront.services.order_store import OrderStore
from storefront.api.dependencies import get_current_customer, get_order_store
from storefront.api.cart import cart_order_items, save_cart_to_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])


async def place_order(
    store: OrderStore,
    customer: Customer,
    order_data: OrderCreate,
) -> OrderRecord:
    try:
        order = await store.append(customer.id, order_data)
    except ValidationError as e:
        logger.warning(f"Order rejected for customer {customer.id}: {str(e)}")
        raise HTTPException(status_code=400, detail=e.errors)

    logger.info(f"Order placed: id={order.id}, customer={customer.id}, total={order.total}")
    return order


@router.post("", response_model=OrderRecord, status_code=201)
async def create_order(
    order_data: OrderCreate,
    customer: Customer = Depends(get_current_customer),
    store: OrderStore = Depends(get_order_store)
):
    """Place an order from the submitted items. The total is computed here;
    any total sent by the client is ignored."""
    return await place_order(store, customer, order_data)


@router.post("/checkout", response_model=OrderRecord, status_code=201)
async def checkout_cart(
    request: Request,
    checkout: CheckoutRequest,
    customer: Customer = Depends(get_current_customer),
    store: OrderStore = Depends(get_order_store)
):
    """Place an order for the contents of the session cart."""
    items = cart_order_items(request)
    if not items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    order_data = OrderCreate(
        items=items,
        shipping_info=checkout.shipping_info,
        payment_method=checkout.payment_method
    )
    order = await place_order(store, customer, order_data)
    save_cart_to_session(request, [])
    return order


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    customer: Customer = Depends(get_current_customer),
    store: OrderStore = Depends(get_order_store)
):
    """List orders for authenticated customer, newest first."""
    orders = await store.list_by_owner(customer.id)
    orders.sort(key=lambda order: order.created_at, reverse=True)

    offset = (page - 1) * limit
    return OrderListResponse(
        orders=orders[offset:offset + limit],
        total=len(orders),
        page=page,
        limit=limit
    )


@router.get("/{order_id}", response_model=OrderRecord)
async def get_order(
    order_id: str,
    customer: Customer = Depends(get_current_customer),
    store: OrderStore = Depends(get_order_store)
):
    """Get single order detail."""
    try:
        return await store.get(customer.id, order_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")

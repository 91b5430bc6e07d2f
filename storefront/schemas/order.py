from decimal import Decimal
from typing import List, Optional
from datetime import datetime

from storefront.db.models import OrderStatus
from storefront.schemas.base import CamelModel


# Input types are deliberately loose; OrderStore.append checks the business
# rules and reports all of them at once.

class OrderItemCreate(CamelModel):
    product_id: int
    title: Optional[str] = None
    unit_price: Decimal
    quantity: int
    category: Optional[str] = None
    image: Optional[str] = None


class ShippingInfoCreate(CamelModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None


class OrderCreate(CamelModel):
    items: List[OrderItemCreate] = []
    shipping_info: Optional[ShippingInfoCreate] = None
    payment_method: Optional[str] = None


class OrderItemRecord(CamelModel):
    product_id: int
    title: str
    unit_price: Decimal
    quantity: int
    category: Optional[str] = None
    image: Optional[str] = None


class ShippingInfo(CamelModel):
    full_name: str
    phone: str
    address: str
    city: str
    postal_code: str


class OrderRecord(CamelModel):
    id: str
    owner_id: int
    items: List[OrderItemRecord]
    shipping_info: ShippingInfo
    payment_method: str
    total: Decimal
    status: OrderStatus = OrderStatus.PROCESSING
    created_at: datetime


class OrderListResponse(CamelModel):
    orders: List[OrderRecord]
    total: int
    page: int
    limit: int


class CheckoutRequest(CamelModel):
    """Checkout of the session cart; items come from the cart."""

    shipping_info: Optional[ShippingInfoCreate] = None
    payment_method: Optional[str] = None

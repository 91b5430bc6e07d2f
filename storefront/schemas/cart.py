from pydantic import BaseModel
from decimal import Decimal
from typing import List

from storefront.schemas.product import ProductResponse


class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = 1


class CartItemUpdate(BaseModel):
    product_id: int
    quantity: int


class CartItemResponse(BaseModel):
    product_id: int
    product_title: str
    product_price: Decimal
    category: str
    quantity: int
    subtotal: Decimal


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    total: Decimal
    item_count: int


class FavoritesResponse(BaseModel):
    products: List[ProductResponse]
    count: int

from fastapi import APIRouter, HTTPException, Request
from decimal import Decimal
from typing import List
import logging

from storefront.core.exceptions import NotFoundError
from storefront.schemas.cart import CartItemAdd, CartItemUpdate, CartItemResponse, CartResponse
from storefront.schemas.order import OrderItemCreate
from storefront.schemas.product import ProductResponse
from storefront.services import catalog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cart", tags=["cart"])


def get_cart_from_session(request: Request) -> list:
    """Get cart items from session."""
    return request.session.get("cart", [])


def save_cart_to_session(request: Request, cart: list):
    """Save cart items to session."""
    request.session["cart"] = cart


def validate_product(product_id: int) -> ProductResponse:
    try:
        return catalog.get_product(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def get_cart_with_details(request: Request) -> CartResponse:
    """Price the session cart against the catalog. Lines whose product left the
    catalog are skipped."""
    items = []
    total = Decimal("0.00")

    for cart_item in get_cart_from_session(request):
        try:
            product = catalog.get_product(cart_item["product_id"])
        except NotFoundError:
            continue

        subtotal = product.price * cart_item["quantity"]
        items.append(CartItemResponse(
            product_id=product.id,
            product_title=product.title,
            product_price=product.price,
            category=product.category,
            quantity=cart_item["quantity"],
            subtotal=subtotal
        ))
        total += subtotal

    return CartResponse(
        items=items,
        total=total,
        item_count=sum(item.quantity for item in items)
    )


def cart_order_items(request: Request) -> List[OrderItemCreate]:
    """Session cart as order line items, priced from the catalog."""
    return [
        OrderItemCreate(
            product_id=line.product_id,
            title=line.product_title,
            unit_price=line.product_price,
            quantity=line.quantity,
            category=line.category,
            image=catalog.get_product(line.product_id).image,
        )
        for line in get_cart_with_details(request).items
    ]


@router.get("", response_model=CartResponse)
async def get_cart(request: Request):
    """Get current shopping cart."""
    return get_cart_with_details(request)


@router.post("/add", response_model=CartResponse)
async def add_to_cart(request: Request, item: CartItemAdd):
    """Add item to cart."""
    if item.quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be greater than 0")

    validate_product(item.product_id)

    cart = get_cart_from_session(request)
    existing_item = next((ci for ci in cart if ci["product_id"] == item.product_id), None)

    if existing_item:
        existing_item["quantity"] += item.quantity
    else:
        cart.append({
            "product_id": item.product_id,
            "quantity": item.quantity
        })

    save_cart_to_session(request, cart)
    logger.info(f"Added to cart: product_id={item.product_id}, quantity={item.quantity}")

    return get_cart_with_details(request)


@router.put("/update", response_model=CartResponse)
async def update_cart_item(request: Request, item: CartItemUpdate):
    """Set a line's quantity; zero or less removes the line."""
    cart = get_cart_from_session(request)
    cart_item = next((ci for ci in cart if ci["product_id"] == item.product_id), None)

    if not cart_item:
        raise HTTPException(status_code=404, detail="Item not in cart")

    if item.quantity <= 0:
        cart = [ci for ci in cart if ci["product_id"] != item.product_id]
    else:
        cart_item["quantity"] = item.quantity

    save_cart_to_session(request, cart)
    logger.info(f"Updated cart item: product_id={item.product_id}, quantity={item.quantity}")

    return get_cart_with_details(request)


@router.delete("/remove/{product_id}", response_model=CartResponse)
async def remove_from_cart(request: Request, product_id: int):
    """Remove item from cart."""
    cart = [ci for ci in get_cart_from_session(request) if ci["product_id"] != product_id]

    save_cart_to_session(request, cart)
    logger.info(f"Removed from cart: product_id={product_id}")

    return get_cart_with_details(request)


@router.post("/clear", response_model=CartResponse)
async def clear_cart(request: Request):
    """Clear entire cart."""
    save_cart_to_session(request, [])
    logger.info("Cart cleared")
    return CartResponse(items=[], total=Decimal("0.00"), item_count=0)

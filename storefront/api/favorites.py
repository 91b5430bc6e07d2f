from fastapi import APIRouter, Request
import logging

from storefront.core.exceptions import NotFoundError
from storefront.schemas.cart import FavoritesResponse
from storefront.services import catalog
from storefront.api.cart import validate_product

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/favorites", tags=["favorites"])


def get_favorites(request: Request) -> FavoritesResponse:
    products = []
    for product_id in request.session.get("favorites", []):
        try:
            products.append(catalog.get_product(product_id))
        except NotFoundError:
            continue
    return FavoritesResponse(products=products, count=len(products))


@router.get("", response_model=FavoritesResponse)
async def list_favorites(request: Request):
    return get_favorites(request)


@router.post("/{product_id}/toggle", response_model=FavoritesResponse)
async def toggle_favorite(request: Request, product_id: int):
    """Add the product to favorites, or remove it if it is already there."""
    validate_product(product_id)

    favorites = list(request.session.get("favorites", []))
    if product_id in favorites:
        favorites.remove(product_id)
        logger.info(f"Removed favorite: product_id={product_id}")
    else:
        favorites.append(product_id)
        logger.info(f"Added favorite: product_id={product_id}")
    request.session["favorites"] = favorites

    return get_favorites(request)

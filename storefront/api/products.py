from fastapi import APIRouter, HTTPException, Query
from typing import Optional, List

from storefront.core.exceptions import NotFoundError
from storefront.schemas.product import ProductResponse, ProductListResponse
from storefront.services import catalog

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = Query(None, pattern="^(price-low|price-high|rating)$"),
):
    products = catalog.list_products(category=category, search=search, sort_by=sort)
    return ProductListResponse(products=products, total=len(products))


@router.get("/categories", response_model=List[str])
async def list_categories():
    return [catalog.ALL_CATEGORIES] + catalog.list_categories()


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int):
    try:
        return catalog.get_product(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

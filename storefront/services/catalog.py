import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from storefront.core.exceptions import NotFoundError
from storefront.schemas.product import ProductResponse

logger = logging.getLogger(__name__)

CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.json"
ALL_CATEGORIES = "All"
SORT_KEYS = {
    "price-low": (lambda p: p.price, False),
    "price-high": (lambda p: p.price, True),
    "rating": (lambda p: p.rating or 0, True),
}


@lru_cache(maxsize=1)
def load_catalog() -> tuple:
    with open(CATALOG_PATH, "r", encoding="utf-8") as f:
        data = json.load(f)
    products = tuple(ProductResponse.model_validate(raw) for raw in data.get("products", []))
    logger.info(f"Loaded {len(products)} products from {CATALOG_PATH.name}")
    return products


def list_categories() -> List[str]:
    categories = []
    for product in load_catalog():
        if product.category not in categories:
            categories.append(product.category)
    return categories


def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
) -> List[ProductResponse]:
    """Filter the catalog the way the storefront does: category "All" or None
    keeps everything, search matches title or description case-insensitively.
    Unknown sort keys keep catalog order."""
    term = search.strip().lower() if search else ""
    products = []
    for product in load_catalog():
        if category and category != ALL_CATEGORIES and product.category != category:
            continue
        if term and term not in product.title.lower() and term not in (product.description or "").lower():
            continue
        products.append(product)

    if sort_by in SORT_KEYS:
        key, reverse = SORT_KEYS[sort_by]
        products.sort(key=key, reverse=reverse)
    return products


def get_product(product_id: int) -> ProductResponse:
    for product in load_catalog():
        if product.id == product_id:
            return product
    raise NotFoundError("Product", product_id)

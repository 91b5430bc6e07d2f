from pydantic import BaseModel
from decimal import Decimal
from typing import List, Optional


class ProductResponse(BaseModel):
    id: int
    title: str
    price: Decimal
    rating: Optional[float] = None
    category: str
    image: Optional[str] = None
    description: Optional[str] = None


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    total: int

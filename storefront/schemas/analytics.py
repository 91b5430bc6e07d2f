from typing import List

from storefront.schemas.base import CamelModel


class MonthlySales(CamelModel):
    month: str
    total: float


class CategoryQuantity(CamelModel):
    category: str
    quantity: int


class AnalyticsSnapshot(CamelModel):
    total_orders: int
    total_revenue: float
    average_order_value: float
    monthly_sales: List[MonthlySales] = []
    category_breakdown: List[CategoryQuantity] = []

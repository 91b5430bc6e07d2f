from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

from storefront.core.exceptions import InvalidArgument
from storefront.schemas.analytics import AnalyticsSnapshot, CategoryQuantity, MonthlySales
from storefront.schemas.order import OrderRecord
from storefront.services.order_store import order_total

DEFAULT_CATEGORY = "Other"
CENT = Decimal("0.01")


def _money(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def month_key(created_at: datetime) -> str:
    """YYYY-MM of the order's creation time in UTC. Naive timestamps are
    taken to be UTC already."""
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc)
    return f"{created_at.year:04d}-{created_at.month:02d}"


def _check_orders(orders) -> None:
    if orders is None:
        raise InvalidArgument("orders must be a sequence of orders, got None")
    if isinstance(orders, (str, bytes, Mapping)) or not isinstance(orders, Sequence):
        raise InvalidArgument(f"orders must be a sequence of orders, got {type(orders).__name__}")
    for index, order in enumerate(orders):
        if not isinstance(order, OrderRecord):
            raise InvalidArgument(f"orders[{index}] is {type(order).__name__}, not an order")


def summarize(orders) -> AnalyticsSnapshot:
    """
    Reduce one owner's orders to headline figures and chart series.

    Revenue is recomputed from order items rather than read from the stored
    totals. Money accumulates as Decimal and is rounded half-up to cents only
    when the snapshot is built.
    """
    _check_orders(orders)

    total_revenue = Decimal("0")
    monthly: Dict[str, Decimal] = {}
    categories: Dict[str, int] = {}

    for order in orders:
        revenue = order_total(order.items)
        total_revenue += revenue

        key = month_key(order.created_at)
        monthly[key] = monthly.get(key, Decimal("0")) + revenue

        for item in order.items:
            category = item.category.strip() if item.category else ""
            category = category or DEFAULT_CATEGORY
            categories[category] = categories.get(category, 0) + item.quantity

    total_orders = len(orders)
    average = total_revenue / total_orders if total_orders > 0 else Decimal("0")

    # sorted() is stable, so equal quantities keep first-seen order
    breakdown = sorted(categories.items(), key=lambda entry: -entry[1])

    return AnalyticsSnapshot(
        total_orders=total_orders,
        total_revenue=_money(total_revenue),
        average_order_value=_money(average),
        monthly_sales=[
            MonthlySales(month=month, total=_money(monthly[month]))
            for month in sorted(monthly)
        ],
        category_breakdown=[
            CategoryQuantity(category=category, quantity=quantity)
            for category, quantity in breakdown
        ],
    )

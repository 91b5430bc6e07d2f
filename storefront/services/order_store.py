"""
Order persistence behind a single interface.

Every backend validates input the same way, assigns the id and creation
time, and computes the order total from the submitted items. A total sent by
the client is never read.
"""
import abc
import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.db.models import Order, OrderItem, OrderStatus
from storefront.schemas.order import OrderCreate, OrderItemRecord, OrderRecord, ShippingInfo

logger = logging.getLogger(__name__)

SHIPPING_FIELDS = ("full_name", "phone", "address", "city", "postal_code")

# Column limits of storefront.db.models, enforced for every backend
MAX_UNIT_PRICE = Decimal("99999999.99")
MAX_ORDER_TOTAL = Decimal("9999999999.99")
MAX_QUANTITY = 2**31 - 1
CENT = Decimal("0.01")
ITEM_LENGTHS = {"title": 255, "category": 100, "image": 500}
SHIPPING_LENGTHS = {"full_name": 255, "phone": 50, "address": 500, "city": 100, "postal_code": 20}
MAX_PAYMENT_METHOD_LENGTH = 100


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def _too_long(value, limit: int) -> bool:
    return value is not None and len(str(value).strip()) > limit


def order_total(items: Iterable) -> Decimal:
    """Sum of unit_price * quantity, in full precision."""
    total = Decimal("0")
    for item in items:
        total += Decimal(item.unit_price) * item.quantity
    return total


def _check_item(index: int, item, errors: list) -> bool:
    """Append problems with one line item; True when its amount is usable."""
    usable = True
    if _blank(item.title):
        errors.append(f"items[{index}]: title is required")
    if item.quantity < 1:
        errors.append(f"items[{index}]: quantity must be at least 1")
        usable = False
    elif item.quantity > MAX_QUANTITY:
        errors.append(f"items[{index}]: quantity cannot exceed {MAX_QUANTITY}")
        usable = False

    price = item.unit_price
    if not price.is_finite():
        errors.append(f"items[{index}]: unit price must be a number")
        return False
    if price < 0:
        errors.append(f"items[{index}]: unit price cannot be negative")
        usable = False
    elif price > MAX_UNIT_PRICE:
        errors.append(f"items[{index}]: unit price cannot exceed {MAX_UNIT_PRICE}")
        usable = False
    elif price != price.quantize(CENT):
        # Stored prices keep two places; more would change the total on read
        errors.append(f"items[{index}]: unit price cannot have more than two decimal places")
        usable = False

    for field, limit in ITEM_LENGTHS.items():
        if _too_long(getattr(item, field), limit):
            errors.append(f"items[{index}]: {field} cannot exceed {limit} characters")
    return usable


def validate_order(data: OrderCreate) -> None:
    """Raise ValidationError listing every problem with an order submission."""
    errors = []

    if not data.items:
        errors.append("Order items are required")

    usable = [_check_item(index, item, errors) for index, item in enumerate(data.items)]
    if data.items and all(usable) and order_total(data.items) > MAX_ORDER_TOTAL:
        errors.append(f"Order total cannot exceed {MAX_ORDER_TOTAL}")

    if data.shipping_info is None:
        errors.append("Shipping details are required")
    else:
        for field in SHIPPING_FIELDS:
            value = getattr(data.shipping_info, field)
            if _blank(value):
                errors.append(f"shipping: {field} is required")
            elif _too_long(value, SHIPPING_LENGTHS[field]):
                errors.append(f"shipping: {field} cannot exceed {SHIPPING_LENGTHS[field]} characters")

    if _blank(data.payment_method):
        errors.append("Payment method is required")
    elif _too_long(data.payment_method, MAX_PAYMENT_METHOD_LENGTH):
        errors.append(f"Payment method cannot exceed {MAX_PAYMENT_METHOD_LENGTH} characters")

    if errors:
        raise ValidationError(errors)


def build_record(owner_id: int, data: OrderCreate) -> OrderRecord:
    """Validate a submission and turn it into a new, not yet persisted record."""
    validate_order(data)

    items = [
        OrderItemRecord(
            product_id=item.product_id,
            title=item.title.strip(),
            unit_price=item.unit_price,
            quantity=item.quantity,
            category=item.category.strip() if item.category and item.category.strip() else None,
            image=item.image.strip() if item.image and item.image.strip() else None,
        )
        for item in data.items
    ]
    shipping = ShippingInfo(
        **{field: getattr(data.shipping_info, field).strip() for field in SHIPPING_FIELDS}
    )

    return OrderRecord(
        id=uuid.uuid4().hex,
        owner_id=owner_id,
        items=items,
        shipping_info=shipping,
        payment_method=data.payment_method.strip(),
        total=order_total(items),
        status=OrderStatus.PROCESSING,
        created_at=datetime.now(timezone.utc),
    )


class OrderStore(abc.ABC):
    """Append-only order persistence scoped by owner."""

    @abc.abstractmethod
    async def append(self, owner_id: int, data: OrderCreate) -> OrderRecord:
        ...

    @abc.abstractmethod
    async def list_by_owner(self, owner_id: int) -> List[OrderRecord]:
        """All orders of one owner, in no particular order. Empty when the
        owner has none."""

    async def get(self, owner_id: int, order_id: str) -> OrderRecord:
        for order in await self.list_by_owner(owner_id):
            if order.id == order_id:
                return order
        raise NotFoundError("Order", order_id)


class InMemoryOrderStore(OrderStore):
    def __init__(self):
        self._orders: Dict[str, OrderRecord] = {}

    async def append(self, owner_id: int, data: OrderCreate) -> OrderRecord:
        record = build_record(owner_id, data)
        self._orders[record.id] = record
        logger.info(f"Order stored in memory: id={record.id}, owner={owner_id}")
        return record

    async def list_by_owner(self, owner_id: int) -> List[OrderRecord]:
        return [order for order in self._orders.values() if order.owner_id == owner_id]

    async def get(self, owner_id: int, order_id: str) -> OrderRecord:
        order = self._orders.get(order_id)
        if order is None or order.owner_id != owner_id:
            raise NotFoundError("Order", order_id)
        return order


class JsonFileOrderStore(OrderStore):
    """All orders kept as one JSON array in a single file."""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> list:
        if not self.path.exists():
            return []
        text = self.path.read_text(encoding="utf-8").strip()
        if not text:
            return []
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError(f"Order file {self.path} does not contain a JSON array")
        return data

    def _write(self, data: list) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)

    async def append(self, owner_id: int, data: OrderCreate) -> OrderRecord:
        record = build_record(owner_id, data)
        async with self._lock:
            orders = await asyncio.to_thread(self._read)
            orders.append(record.model_dump(mode="json"))
            await asyncio.to_thread(self._write, orders)
        logger.info(f"Order written to {self.path}: id={record.id}, owner={owner_id}")
        return record

    async def list_by_owner(self, owner_id: int) -> List[OrderRecord]:
        async with self._lock:
            orders = await asyncio.to_thread(self._read)

        records = []
        for raw in orders:
            record = OrderRecord.model_validate(raw)
            if record.owner_id == owner_id:
                # Stored totals are advisory; items are the source of truth
                record.total = order_total(record.items)
                records.append(record)
        return records


class SqlOrderStore(OrderStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _to_record(order: Order) -> OrderRecord:
        items = [
            OrderItemRecord(
                product_id=item.product_id,
                title=item.title,
                unit_price=item.unit_price,
                quantity=item.quantity,
                category=item.category,
                image=item.image,
            )
            for item in order.items
        ]
        created_at = order.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return OrderRecord(
            id=order.id,
            owner_id=order.owner_id,
            items=items,
            shipping_info=ShippingInfo(
                full_name=order.shipping_full_name,
                phone=order.shipping_phone,
                address=order.shipping_address,
                city=order.shipping_city,
                postal_code=order.shipping_postal_code,
            ),
            payment_method=order.payment_method,
            total=order_total(items),
            status=order.status,
            created_at=created_at,
        )

    async def append(self, owner_id: int, data: OrderCreate) -> OrderRecord:
        record = build_record(owner_id, data)

        new_order = Order(
            id=record.id,
            owner_id=owner_id,
            payment_method=record.payment_method,
            total=record.total,
            status=record.status,
            shipping_full_name=record.shipping_info.full_name,
            shipping_phone=record.shipping_info.phone,
            shipping_address=record.shipping_info.address,
            shipping_city=record.shipping_info.city,
            shipping_postal_code=record.shipping_info.postal_code,
            created_at=record.created_at,
        )
        new_order.items = [
            OrderItem(
                position=position,
                product_id=item.product_id,
                title=item.title,
                unit_price=item.unit_price,
                quantity=item.quantity,
                category=item.category,
                image=item.image,
            )
            for position, item in enumerate(record.items)
        ]

        try:
            self.db.add(new_order)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to save order for owner {owner_id}: {str(e)}")
            raise

        logger.info(f"Order saved: id={record.id}, owner={owner_id}, total={record.total}")
        return record

    async def list_by_owner(self, owner_id: int) -> List[OrderRecord]:
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.owner_id == owner_id)
        )
        return [self._to_record(order) for order in result.scalars().all()]

    async def get(self, owner_id: int, order_id: str) -> OrderRecord:
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id, Order.owner_id == owner_id)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order", order_id)
        return self._to_record(order)

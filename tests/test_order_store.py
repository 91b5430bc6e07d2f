import json
from datetime import timezone
from decimal import Decimal

import pytest

from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.db.models import OrderStatus
from storefront.schemas.order import OrderCreate, OrderItemCreate, ShippingInfoCreate
from storefront.services.order_store import (
    InMemoryOrderStore,
    JsonFileOrderStore,
    SqlOrderStore,
    order_total,
)


@pytest.fixture(params=["memory", "file", "sql"])
def store(request, tmp_path, db_session):
    if request.param == "memory":
        return InMemoryOrderStore()
    if request.param == "file":
        return JsonFileOrderStore(tmp_path / "orders.json")
    return SqlOrderStore(db_session)


@pytest.fixture
def owners(customer, other_customer):
    # Real customer rows, so the SQL backend's foreign key holds
    return customer.id, other_customer.id


def test_order_total_is_exact():
    items = [
        OrderItemCreate(product_id=1, title="A", unit_price=Decimal("79.99"), quantity=3),
        OrderItemCreate(product_id=2, title="B", unit_price=Decimal("0.10"), quantity=7),
    ]

    assert order_total(items) == Decimal("240.67")


@pytest.mark.asyncio
async def test_append_assigns_id_time_and_total(store, owners, order_input):
    owner_id, _ = owners

    order = await store.append(owner_id, order_input(("Electronics", 2, "79.99"), ("Home", 1, "34.99")))

    assert order.id
    assert order.owner_id == owner_id
    assert order.total == Decimal("194.97")
    assert order.status == OrderStatus.PROCESSING
    assert order.created_at.tzinfo == timezone.utc
    assert [item.title for item in order.items] == ["Product 1", "Product 2"]
    assert order.shipping_info.full_name == "Jane Doe"


@pytest.mark.asyncio
async def test_append_ignores_client_total(store, owners, shipping):
    owner_id, _ = owners
    payload = {
        "items": [{"productId": 1, "title": "Mouse", "unitPrice": 29.99, "quantity": 2}],
        "shippingInfo": shipping.model_dump(),
        "paymentMethod": "card",
        "total": 1.00,
        "totals": {"total": 1.00},
    }

    order = await store.append(owner_id, OrderCreate.model_validate(payload))

    assert order.total == Decimal("59.98")


@pytest.mark.asyncio
async def test_list_by_owner_scopes_orders(store, owners, order_input):
    owner_id, other_id = owners
    first = await store.append(owner_id, order_input(("Home", 1, 5)))
    second = await store.append(owner_id, order_input(("Sports", 2, 10)))
    await store.append(other_id, order_input(("Fashion", 1, 50)))

    orders = await store.list_by_owner(owner_id)

    assert {order.id for order in orders} == {first.id, second.id}
    assert {order.total for order in orders} == {Decimal("5"), Decimal("20")}


@pytest.mark.asyncio
async def test_list_by_owner_without_orders_is_empty(store, owners):
    owner_id, _ = owners

    assert await store.list_by_owner(owner_id) == []


@pytest.mark.asyncio
async def test_get_is_scoped_to_owner(store, owners, order_input):
    owner_id, other_id = owners
    order = await store.append(owner_id, order_input(("Home", 1, 5)))

    fetched = await store.get(owner_id, order.id)
    assert fetched.id == order.id
    assert fetched.total == Decimal("5")

    with pytest.raises(NotFoundError):
        await store.get(other_id, order.id)
    with pytest.raises(NotFoundError):
        await store.get(owner_id, "does-not-exist")


@pytest.mark.asyncio
async def test_append_rejects_empty_items(store, owners, shipping):
    owner_id, _ = owners

    with pytest.raises(ValidationError, match="Order items are required"):
        await store.append(owner_id, OrderCreate(items=[], shipping_info=shipping, payment_method="card"))

    assert await store.list_by_owner(owner_id) == []


@pytest.mark.asyncio
async def test_append_rejects_bad_quantity_and_price(store, owners, order_input):
    owner_id, _ = owners

    with pytest.raises(ValidationError) as exc_info:
        await store.append(owner_id, order_input(("Home", 0, 5), ("Home", 1, -1)))

    assert exc_info.value.errors == [
        "items[0]: quantity must be at least 1",
        "items[1]: unit price cannot be negative",
    ]


@pytest.mark.asyncio
async def test_append_accepts_free_items(store, owners, order_input):
    owner_id, _ = owners

    order = await store.append(owner_id, order_input(("Home", 1, 0)))

    assert order.total == Decimal("0")


@pytest.mark.asyncio
async def test_append_rejects_missing_shipping_fields(store, owners, order_input):
    owner_id, _ = owners
    data = order_input(("Home", 1, 5))
    data.shipping_info = ShippingInfoCreate(full_name="Jane Doe", phone="  ", address="12 Market Street")

    with pytest.raises(ValidationError) as exc_info:
        await store.append(owner_id, data)

    assert exc_info.value.errors == [
        "shipping: phone is required",
        "shipping: city is required",
        "shipping: postal_code is required",
    ]


@pytest.mark.asyncio
async def test_append_rejects_missing_shipping_and_payment(store, owners, order_input):
    owner_id, _ = owners
    data = order_input(("Home", 1, 5), payment_method="")
    data.shipping_info = None

    with pytest.raises(ValidationError) as exc_info:
        await store.append(owner_id, data)

    assert "Shipping details are required" in exc_info.value.errors
    assert "Payment method is required" in exc_info.value.errors


@pytest.mark.asyncio
async def test_file_store_recomputes_tampered_totals(tmp_path, order_input):
    path = tmp_path / "orders.json"
    store = JsonFileOrderStore(path)
    order = await store.append(1, order_input(("Home", 2, 5)))

    data = json.loads(path.read_text(encoding="utf-8"))
    data[0]["total"] = "1000.00"
    path.write_text(json.dumps(data), encoding="utf-8")

    orders = await store.list_by_owner(1)

    assert orders[0].id == order.id
    assert orders[0].total == Decimal("10")


@pytest.mark.asyncio
async def test_file_store_missing_or_empty_file(tmp_path):
    path = tmp_path / "nested" / "orders.json"
    store = JsonFileOrderStore(path)

    assert await store.list_by_owner(1) == []

    path.parent.mkdir(parents=True)
    path.write_text("", encoding="utf-8")
    assert await store.list_by_owner(1) == []


@pytest.mark.asyncio
async def test_file_store_survives_reopen(tmp_path, order_input):
    path = tmp_path / "orders.json"
    order = await JsonFileOrderStore(path).append(7, order_input(("Sports", 1, 24.99)))

    reopened = JsonFileOrderStore(path)
    fetched = await reopened.get(7, order.id)

    assert fetched.total == Decimal("24.99")
    assert fetched.created_at == order.created_at


@pytest.mark.asyncio
async def test_total_on_read_matches_total_on_append(store, owners, order_input):
    owner_id, _ = owners
    order = await store.append(owner_id, order_input(("Home", 3, "19.99"), ("Sports", 1, "0.10")))

    if isinstance(store, SqlOrderStore):
        store.db.expire_all()
    fetched = await store.get(owner_id, order.id)
    listed = await store.list_by_owner(owner_id)

    assert fetched.total == order.total == Decimal("60.07")
    assert listed[0].total == order.total
    assert [item.unit_price for item in fetched.items] == [Decimal("19.99"), Decimal("0.10")]


@pytest.mark.asyncio
async def test_append_rejects_sub_cent_prices(store, owners, order_input):
    owner_id, _ = owners

    with pytest.raises(ValidationError) as exc_info:
        await store.append(owner_id, order_input(("Home", 3, "0.005")))

    assert exc_info.value.errors == ["items[0]: unit price cannot have more than two decimal places"]
    assert await store.list_by_owner(owner_id) == []


@pytest.mark.asyncio
async def test_append_accepts_trailing_zero_places(store, owners, order_input):
    owner_id, _ = owners

    order = await store.append(owner_id, order_input(("Home", 2, "4.500")))

    assert order.total == Decimal("9")


@pytest.mark.asyncio
async def test_append_rejects_values_over_column_limits(store, owners, order_input):
    owner_id, _ = owners
    data = order_input(("Home", 1, "123456789.00"), ("Home", 2**31, "1"), payment_method="p" * 101)
    data.items[0].title = "t" * 256
    data.items[1].category = "c" * 101
    data.shipping_info.postal_code = "9" * 21

    with pytest.raises(ValidationError) as exc_info:
        await store.append(owner_id, data)

    assert exc_info.value.errors == [
        "items[0]: unit price cannot exceed 99999999.99",
        "items[0]: title cannot exceed 255 characters",
        "items[1]: quantity cannot exceed 2147483647",
        "items[1]: category cannot exceed 100 characters",
        "shipping: postal_code cannot exceed 20 characters",
        "Payment method cannot exceed 100 characters",
    ]


@pytest.mark.asyncio
async def test_append_rejects_total_over_column_limit(store, owners, order_input):
    owner_id, _ = owners

    with pytest.raises(ValidationError, match="Order total cannot exceed 9999999999.99"):
        await store.append(owner_id, order_input(("Home", 1000, "99999999.99")))

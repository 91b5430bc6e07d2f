from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from storefront.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    orders = relationship("Order", back_populates="owner")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True)
    owner_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    payment_method = Column(String(100), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    status = Column(SQLEnum(OrderStatus), default=OrderStatus.PROCESSING, nullable=False)
    shipping_full_name = Column(String(255), nullable=False)
    shipping_phone = Column(String(50), nullable=False)
    shipping_address = Column(String(500), nullable=False)
    shipping_city = Column(String(100), nullable=False)
    shipping_postal_code = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    owner = relationship("Customer", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    product_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    category = Column(String(100), nullable=True)
    image = Column(String(500), nullable=True)

    order = relationship("Order", back_populates="items")


__all__ = [
    "Customer",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Base",
]

"""
Order models

An order is created together with its items and its first status history
row. After that it only changes through status transitions; orders are
never deleted (cancellation is a status).
"""
import enum

from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Date, Text, JSON, Numeric,
    Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from floresya.core.database import Base
from floresya.core.utils import utcnow


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls):
        return [s.value for s in cls]


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, index=True, nullable=False)

    # Guest checkout leaves user_id empty and sets guest_email
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    guest_email = Column(String(255))

    status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False, index=True)

    # Fixed at creation: sum of order_items.total_price
    total_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)

    shipping_address = Column(JSON, nullable=False)
    billing_address = Column(JSON)
    notes = Column(Text)
    delivery_date = Column(Date)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        order_by="OrderStatusHistory.id",
    )
    payments = relationship("Payment", back_populates="order", order_by="Payment.id")


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Snapshot of product at time of order
    product_snapshot = Column(JSON)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")

    @property
    def product_name(self):
        return (self.product_snapshot or {}).get("name")


class OrderStatusHistory(Base):
    """Append-only audit trail. Rows are never updated."""
    __tablename__ = "order_status_history"
    __table_args__ = (
        Index("ix_order_status_history_order_id", "order_id"),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    notes = Column(Text)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    order = relationship("Order", back_populates="status_history")

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, func, Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.core.database import Base
from storefront.services.pricing import PriceBreakdown, ShippingTier, price_lines


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

OPEN_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return OrderStatus(new) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def is_terminal(status: OrderStatus) -> bool:
    return not ALLOWED_TRANSITIONS[OrderStatus(status)]


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[OrderStatus] = mapped_column(
        SqlEnum(OrderStatus, name="order_status", native_enum=False,
                values_callable=lambda e: [m.value for m in e]),
        default=OrderStatus.PENDING,
        nullable=False,
    )
    shipping_tier: Mapped[ShippingTier] = mapped_column(
        SqlEnum(ShippingTier, name="shipping_tier", native_enum=False,
                values_callable=lambda e: [m.value for m in e]),
        default=ShippingTier.STANDARD,
        nullable=False,
    )
    # Fee and rate are frozen at placement so historical totals never move
    shipping_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relation to order items
    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )

    @property
    def pricing(self) -> PriceBreakdown:
        return price_lines(self.items, self.shipping_fee, self.tax_rate)

    def to_dict(self) -> dict:
        breakdown = self.pricing.rounded()
        return {
            "order_id": self.id,
            "customer_id": self.customer_id,
            "status": getattr(self.status, "value", self.status),
            "shipping_tier": getattr(self.shipping_tier, "value", self.shipping_tier),
            "items": [it.to_dict() for it in self.items],
            "total": str(breakdown.total),
        }


class OrderItem(Base):
    """Snapshot of a product at the moment the order was placed."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"))
    # Plain reference, no FK: the product may be edited or deleted later
    product_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Relation back to the order
    order: Mapped[Order] = relationship(back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
        }

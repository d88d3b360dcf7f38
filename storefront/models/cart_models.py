from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, backref, mapped_column, relationship

from storefront.core.database import Base
from storefront.models.inventory_models import InventoryItem


class CartItem(Base):
    """One product line in a customer's cart."""

    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("customer_id", "product_id", name="uq_cart_customer_product"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now(), nullable=False
    )

    product: Mapped[InventoryItem] = relationship(
        backref=backref("cart_lines", cascade="all, delete-orphan")
    )

    # Live price: a cart is repriced on every read, unlike an order
    @property
    def unit_price(self) -> Decimal:
        return Decimal(self.product.price)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from storefront.models.order_models import OPEN_STATUSES, Order, OrderItem, OrderStatus
from storefront.services.pricing import ShippingTier


class OrderRepository:
    """Data Access Layer for Order and OrderItem models."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: int, customer_id: Optional[str] = None) -> Optional[Order]:
        """Get an order by its ID, optionally scoped to its owner."""
        query = self.db.query(Order).filter(Order.id == order_id)
        if customer_id is not None:
            query = query.filter(Order.customer_id == customer_id)
        return query.first()

    def list(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Order]:
        """
        List orders with optional equality filters.
        Ex: filters={"customer_id": "c-1", "status": "pending"}
        """
        query = self.db.query(Order)
        if filters:
            for key, value in filters.items():
                if hasattr(Order, key) and value is not None:
                    query = query.filter(getattr(Order, key) == value)
        return query.order_by(Order.id).offset(skip).limit(limit).all()

    def list_open_for_customer(self, customer_id: str) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.customer_id == customer_id)
            .filter(Order.status.in_(OPEN_STATUSES))
            .order_by(Order.id)
            .all()
        )

    # ---------- CREATE ----------
    def create(
        self,
        customer_id: str,
        shipping_tier: ShippingTier,
        shipping_fee: Decimal,
        tax_rate: Decimal,
        items: Iterable[Dict[str, Any]],
    ) -> Order:
        """Create a pending order and its line-item snapshot in one commit."""
        db_order = Order(
            customer_id=customer_id,
            status=OrderStatus.PENDING,
            shipping_tier=shipping_tier,
            shipping_fee=shipping_fee,
            tax_rate=tax_rate,
            items=[OrderItem(**item) for item in items],
        )
        self.db.add(db_order)
        self.db.commit()
        self.db.refresh(db_order)
        return db_order

    def update(self, order: Order, changes: Dict[str, Any]) -> Order:
        """Apply already validated field changes to an order."""
        for field, value in changes.items():
            setattr(order, field, value)

        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from storefront.models.cart_models import CartItem


class CartRepository:
    """Data Access Layer for cart lines."""

    def __init__(self, db: Session):
        self.db = db

    def list_for(self, customer_id: str) -> List[CartItem]:
        return (
            self.db.query(CartItem)
            .options(joinedload(CartItem.product))
            .filter(CartItem.customer_id == customer_id)
            .order_by(CartItem.id)
            .all()
        )

    def get_line(self, customer_id: str, product_id: int) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.customer_id == customer_id, CartItem.product_id == product_id)
            .first()
        )

    def save(self, line: CartItem) -> CartItem:
        self.db.add(line)
        self.db.commit()
        self.db.refresh(line)
        return line

    def delete_line(self, line: CartItem) -> None:
        self.db.delete(line)
        self.db.commit()

    def clear(self, customer_id: str) -> int:
        removed = (
            self.db.query(CartItem)
            .filter(CartItem.customer_id == customer_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from storefront.models.inventory_models import InventoryItem
from storefront.schemas.inventory_schemas import InventoryItemCreate, InventoryItemUpdate


class InventoryRepository:
    """Data Access Layer for catalog items."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, item_id: int) -> Optional[InventoryItem]:
        return self.db.query(InventoryItem).filter(InventoryItem.id == item_id).first()

    def get_many(self, item_ids: Iterable[int]) -> Dict[int, InventoryItem]:
        ids = set(item_ids)
        if not ids:
            return {}
        rows = self.db.query(InventoryItem).filter(InventoryItem.id.in_(ids)).all()
        return {row.id: row for row in rows}

    def list(
        self,
        skip: int = 0,
        limit: int = 100,
        max_quantity: Optional[int] = None,
    ) -> List[InventoryItem]:
        """List items; ``max_quantity`` keeps only items strictly below it."""
        query = self.db.query(InventoryItem)
        if max_quantity is not None:
            query = query.filter(InventoryItem.quantity < max_quantity)
        return query.order_by(InventoryItem.id).offset(skip).limit(limit).all()

    def create(self, item_in: InventoryItemCreate) -> InventoryItem:
        item = InventoryItem(**item_in.model_dump())
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update(self, item: InventoryItem, item_in: InventoryItemUpdate) -> InventoryItem:
        update_data = item_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(item, field, value)

        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete(self, item: InventoryItem) -> InventoryItem:
        self.db.delete(item)
        self.db.commit()
        return item

from __future__ import annotations

import logging
from typing import List

from storefront.core.config import settings
from storefront.core.errors import NotFoundError
from storefront.models.inventory_models import InventoryItem
from storefront.repositories.inventory_repositories import InventoryRepository
from storefront.schemas.inventory_schemas import InventoryItemCreate, InventoryItemUpdate

logger = logging.getLogger(__name__)


class InventoryService:
    """Catalog CRUD. Stock is informational only and never reserved by orders."""

    def __init__(self, repository: InventoryRepository):
        self.repository = repository

    def get_item(self, item_id: int) -> InventoryItem:
        item = self.repository.get(item_id)
        if not item:
            logger.debug("inventory item not found", extra={"item_id": item_id})
            raise NotFoundError(f"Inventory item {item_id} not found")
        return item

    def list_items(self, skip: int = 0, limit: int = 100) -> List[InventoryItem]:
        return self.repository.list(skip=skip, limit=limit)

    def list_low_stock(self, skip: int = 0, limit: int = 100) -> List[InventoryItem]:
        return self.repository.list(
            skip=skip, limit=limit, max_quantity=settings.LOW_STOCK_THRESHOLD
        )

    def add_item(self, item_in: InventoryItemCreate) -> InventoryItem:
        item = self.repository.create(item_in)
        logger.info("inventory item created", extra={"item_id": item.id})
        return item

    def update_item(self, item_id: int, item_in: InventoryItemUpdate) -> InventoryItem:
        item = self.repository.update(self.get_item(item_id), item_in)
        if item.low_stock:
            logger.warning("inventory item low on stock", extra={"item_id": item.id, "quantity": item.quantity})
        return item

    def delete_item(self, item_id: int) -> InventoryItem:
        deleted = self.repository.delete(self.get_item(item_id))
        logger.info("inventory item deleted", extra={"item_id": item_id})
        return deleted

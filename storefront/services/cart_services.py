from __future__ import annotations

import logging
from typing import List, Protocol, Sequence

from storefront.core.errors import NotFoundError, ValidationError
from storefront.models.cart_models import CartItem
from storefront.repositories.cart_repositories import CartRepository
from storefront.repositories.inventory_repositories import InventoryRepository
from storefront.services.pricing import PriceBreakdown, ShippingTier, price_order

logger = logging.getLogger(__name__)


class CartProvider(Protocol):
    """What checkout needs from a cart: read the lines, then empty it."""

    def get_cart(self, customer_id: str) -> Sequence[CartItem]:
        ...

    def clear_cart(self, customer_id: str) -> None:
        ...


class CartService:
    """Server-side cart, one line per (customer, product)."""

    def __init__(self, repository: CartRepository, inventory: InventoryRepository):
        self.repository = repository
        self.inventory = inventory

    def get_cart(self, customer_id: str) -> List[CartItem]:
        return self.repository.list_for(customer_id)

    def clear_cart(self, customer_id: str) -> None:
        removed = self.repository.clear(customer_id)
        logger.info("cart cleared", extra={"customer_id": customer_id, "lines": removed})

    def add_item(self, customer_id: str, product_id: int, quantity: int = 1) -> List[CartItem]:
        if quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")
        if self.inventory.get(product_id) is None:
            raise NotFoundError(f"Product {product_id} not found")

        line = self.repository.get_line(customer_id, product_id)
        if line is None:
            line = CartItem(customer_id=customer_id, product_id=product_id, quantity=quantity)
        else:
            line.quantity += quantity
        self.repository.save(line)
        logger.debug("cart line added", extra={"customer_id": customer_id, "product_id": product_id})
        return self.get_cart(customer_id)

    def update_quantity(self, customer_id: str, product_id: int, quantity: int) -> List[CartItem]:
        """Sets the quantity of a line. Zero removes it."""
        if quantity < 0:
            raise ValidationError("Quantity must not be negative")
        if quantity == 0:
            return self.remove_item(customer_id, product_id)
        line = self.repository.get_line(customer_id, product_id)
        if line is None:
            raise NotFoundError(f"Product {product_id} is not in the cart")
        line.quantity = quantity
        self.repository.save(line)
        return self.get_cart(customer_id)

    def remove_item(self, customer_id: str, product_id: int) -> List[CartItem]:
        line = self.repository.get_line(customer_id, product_id)
        if line is None:
            raise NotFoundError(f"Product {product_id} is not in the cart")
        self.repository.delete_line(line)
        return self.get_cart(customer_id)

    def summarize(self, customer_id: str, shipping_tier=ShippingTier.STANDARD) -> dict:
        lines = self.get_cart(customer_id)
        breakdown: PriceBreakdown = price_order(lines, shipping_tier)
        return {
            "items": [
                {
                    "product_id": line.product_id,
                    "name": line.product.name,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "line_total": line.line_total,
                }
                for line in lines
            ],
            "shipping_tier": ShippingTier(shipping_tier),
            "pricing": breakdown,
        }

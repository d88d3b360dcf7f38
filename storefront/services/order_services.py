# storefront/services/order_services.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from storefront.core.config import settings
from storefront.core.errors import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from storefront.core.metrics import ORDER_TRANSITIONS, ORDERS_CREATED
from storefront.infra.events.contracts import MessagePublisher
from storefront.models.order_models import Order, OrderItem, OrderStatus, can_transition
from storefront.repositories.inventory_repositories import InventoryRepository
from storefront.repositories.order_repositories import OrderRepository
from storefront.schemas.order_schemas import OrderCreate, OrderItemCreate, OrderUpdate
from storefront.services.cart_services import CartProvider
from storefront.services.pricing import PriceBreakdown, ShippingTier, price_order, shipping_fee

logger = logging.getLogger(__name__)


class OrderService:
    """
    Business layer for orders.
    - Line items are snapshotted from the inventory when the order is placed.
    - Status changes follow the lifecycle table in ``order_models``.
    - Every ``customer_id`` argument scopes the lookup to that owner; ``None``
      means unscoped (admin or internal consumers).
    """

    def __init__(
        self,
        repository: OrderRepository,
        inventory: InventoryRepository,
        publisher: MessagePublisher,
        cart: Optional[CartProvider] = None,
    ):
        self.repository = repository
        self.inventory = inventory
        self.publisher = publisher
        self.cart = cart

    # ==========================================================
    # === Read =================================================
    # ==========================================================

    def get_order(self, order_id: int, customer_id: Optional[str] = None) -> Order:
        order = self.repository.get(order_id, customer_id=customer_id)
        if not order:
            logger.debug("order not found", extra={"order_id": order_id})
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def get_orders(self, customer_id: str, skip: int = 0, limit: int = 100) -> List[Order]:
        return self.repository.list(skip=skip, limit=limit, filters={"customer_id": customer_id})

    # ==========================================================
    # === Pricing ==============================================
    # ==========================================================

    def _snapshot(self, items: List[OrderItemCreate]) -> List[Dict[str, Any]]:
        """Copies name and current price of every requested product."""
        if not items:
            raise ValidationError("Order must contain at least one item")

        products = self.inventory.get_many(i.product_id for i in items)
        missing = sorted({i.product_id for i in items} - set(products))
        if missing:
            raise NotFoundError(f"Products not found: {', '.join(map(str, missing))}")

        return [
            {
                "product_id": i.product_id,
                "name": products[i.product_id].name,
                "quantity": i.quantity,
                "unit_price": products[i.product_id].price,
            }
            for i in items
        ]

    def quote(self, order_in: OrderCreate) -> PriceBreakdown:
        lines = [OrderItem(**line) for line in self._snapshot(order_in.items)]
        return price_order(lines, order_in.shipping_tier)

    # ==========================================================
    # === Creation =============================================
    # ==========================================================

    async def create_order(self, customer_id: str, order_in: OrderCreate, source: str = "api") -> Order:
        """
        Persists a pending order with its line-item snapshot, then publishes
        ``order.created``. Fee and tax rate are frozen on the order.
        """
        snapshot = self._snapshot(order_in.items)
        tier = ShippingTier(order_in.shipping_tier)

        order = self.repository.create(
            customer_id=customer_id,
            shipping_tier=tier,
            shipping_fee=shipping_fee(tier),
            tax_rate=settings.TAX_RATE,
            items=snapshot,
        )
        ORDERS_CREATED.labels(source, tier.value).inc()

        await self.publisher.publish_message("order.created", order.to_dict())
        logger.info("order created", extra={"order_id": order.id, "customer_id": customer_id, "source": source})
        return order

    async def checkout(self, customer_id: str, shipping_tier=ShippingTier.STANDARD) -> Order:
        """
        Places an order from the customer's cart and empties it.
        Order creation and cart clearing are two separate writes.
        """
        if self.cart is None:
            raise RuntimeError("OrderService was built without a cart provider")

        lines = self.cart.get_cart(customer_id)
        if not lines:
            raise ValidationError("Cart is empty")

        order_in = OrderCreate(
            items=[OrderItemCreate(product_id=l.product_id, quantity=l.quantity) for l in lines],
            shipping_tier=shipping_tier,
        )
        order = await self.create_order(customer_id, order_in, source="cart")
        self.cart.clear_cart(customer_id)
        return order

    # ==========================================================
    # === Updates ==============================================
    # ==========================================================

    def _check_allowed(self, new_status: OrderStatus, customer_id: Optional[str]) -> None:
        # scoped callers are customers: they may only cancel
        if customer_id is not None and new_status != OrderStatus.CANCELLED:
            raise ForbiddenError(f"Only an admin can mark an order as '{new_status.value}'")

    def _check_transition(self, order: Order, new_status: OrderStatus) -> None:
        if not can_transition(order.status, new_status):
            logger.warning(
                "order transition rejected",
                extra={"order_id": order.id, "from": order.status.value, "to": new_status.value},
            )
            raise InvalidTransitionError(order.status, new_status)

    async def _status_changed(self, order: Order, old_status: OrderStatus, publish: bool) -> None:
        ORDER_TRANSITIONS.labels(old_status.value, order.status.value).inc()
        if publish:
            await self.publisher.publish_message(f"order.{order.status.value}", order.to_dict())
        logger.info(
            "order status updated",
            extra={"order_id": order.id, "from": old_status.value, "to": order.status.value},
        )

    async def update_order_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        customer_id: Optional[str] = None,
        publish: bool = True,
    ) -> Order:
        order = self.get_order(order_id, customer_id=customer_id)
        new_status = OrderStatus(new_status)

        if order.status == new_status:
            logger.info("[order.status] %s already %s, no-op", order.id, new_status.value)
            return order

        self._check_allowed(new_status, customer_id)
        self._check_transition(order, new_status)
        old_status = order.status
        order = self.repository.update(order, {"status": new_status})
        await self._status_changed(order, old_status, publish)
        return order

    async def update_order(
        self,
        order_id: int,
        order_in: OrderUpdate,
        customer_id: Optional[str] = None,
    ) -> Order:
        """Typed partial update: status and/or shipping tier."""
        order = self.get_order(order_id, customer_id=customer_id)
        changes: Dict[str, Any] = {}

        if order_in.shipping_tier is not None and order_in.shipping_tier != order.shipping_tier:
            if order.status != OrderStatus.PENDING:
                raise ValidationError("Shipping tier can only change while the order is pending")
            changes["shipping_tier"] = order_in.shipping_tier
            changes["shipping_fee"] = shipping_fee(order_in.shipping_tier)

        old_status = order.status
        if order_in.status is not None and order_in.status != order.status:
            self._check_allowed(order_in.status, customer_id)
            self._check_transition(order, order_in.status)
            changes["status"] = order_in.status

        if not changes:
            return order

        order = self.repository.update(order, changes)
        if "status" in changes:
            await self._status_changed(order, old_status, publish=True)
        else:
            logger.info("order updated", extra={"order_id": order.id, "fields": sorted(changes)})
        return order

    async def cancel_order(self, order_id: int, customer_id: Optional[str] = None) -> Order:
        """Soft-cancel: the order is kept with status ``cancelled``."""
        return await self.update_order_status(order_id, OrderStatus.CANCELLED, customer_id=customer_id)

# storefront/infra/events/handlers.py

import logging
from sqlalchemy.orm import Session
from storefront.core.errors import InvalidTransitionError, NotFoundError
from storefront.models.order_models import OrderStatus
from storefront.repositories.cart_repositories import CartRepository
from storefront.repositories.inventory_repositories import InventoryRepository
from storefront.repositories.order_repositories import OrderRepository
from storefront.services.cart_services import CartService
from storefront.services.order_services import OrderService

logger = logging.getLogger(__name__)


# ----- CUSTOMER DELETED -----
async def handle_customer_deleted(payload: dict, db: Session, publisher):
    """
    The customer account is gone: cancel its open orders and drop its cart.
    Delivered and already cancelled orders are left as they are.
    """
    customer_id = payload.get("customer_id") or payload.get("id")
    if not customer_id:
        logger.warning("[customer.deleted] payload without id, ignored")
        return
    customer_id = str(customer_id)

    inventory = InventoryRepository(db)
    cart = CartService(CartRepository(db), inventory)
    service = OrderService(OrderRepository(db), inventory, publisher, cart=cart)

    orders = service.repository.list_open_for_customer(customer_id)
    logger.info(f"[customer.deleted] {len(orders)} open orders for customer {customer_id}")

    for order in orders:
        try:
            await service.update_order_status(order.id, OrderStatus.CANCELLED)
            logger.info(f"[customer.deleted] order {order.id} cancelled")
        except (NotFoundError, InvalidTransitionError) as exc:
            logger.warning(f"[customer.deleted] order {order.id} skipped: {exc}")

    cart.clear_cart(customer_id)


HANDLERS = {
    "customer.deleted": handle_customer_deleted,
}

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.infra.events.rabbitmq import rabbitmq
from storefront.repositories.cart_repositories import CartRepository
from storefront.repositories.inventory_repositories import InventoryRepository
from storefront.repositories.order_repositories import OrderRepository
from storefront.schemas.order_schemas import (
    CheckoutRequest,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
    OrderUpdate,
    QuoteResponse,
)
from storefront.security.security import AuthContext, require_customer
from storefront.services.cart_services import CartService
from storefront.services.order_services import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])
logger = logging.getLogger(__name__)


# ---------- Dependency injection ----------
def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Builds an OrderService with its repositories, the cart and the RabbitMQ publisher."""
    inventory = InventoryRepository(db)
    cart = CartService(CartRepository(db), inventory)
    return OrderService(OrderRepository(db), inventory, rabbitmq, cart=cart)


# ---------- Endpoints ----------

@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_in: OrderCreate,
    auth: AuthContext = Depends(require_customer),
    svc: OrderService = Depends(get_order_service),
):
    """Place an order from an explicit list of products."""
    logger.info("Creating order for customer %s", auth.customer_id)
    return await svc.create_order(auth.customer_id, order_in)


@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    body: CheckoutRequest,
    auth: AuthContext = Depends(require_customer),
    svc: OrderService = Depends(get_order_service),
):
    """Place an order from the caller's cart, then empty the cart."""
    return await svc.checkout(auth.customer_id, body.shipping_tier)


@router.post("/quote", response_model=QuoteResponse)
def quote_order(
    order_in: OrderCreate,
    auth: AuthContext = Depends(require_customer),
    svc: OrderService = Depends(get_order_service),
):
    """Price a prospective order without persisting anything."""
    return {"shipping_tier": order_in.shipping_tier, "pricing": svc.quote(order_in)}


@router.get("/", response_model=List[OrderResponse])
def list_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    auth: AuthContext = Depends(require_customer),
    svc: OrderService = Depends(get_order_service),
):
    """List the caller's orders."""
    return svc.get_orders(auth.customer_id, skip=skip, limit=limit)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    auth: AuthContext = Depends(require_customer),
    svc: OrderService = Depends(get_order_service),
):
    return svc.get_order(order_id, customer_id=auth.scope())


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: int,
    order_in: OrderUpdate,
    auth: AuthContext = Depends(require_customer),
    svc: OrderService = Depends(get_order_service),
):
    """Partial update (status, shipping tier). Status changes are transition-checked."""
    return await svc.update_order(order_id, order_in, customer_id=auth.scope())


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    status_update: OrderStatusUpdate,
    auth: AuthContext = Depends(require_customer),
    svc: OrderService = Depends(get_order_service),
):
    return await svc.update_order_status(order_id, status_update.status, customer_id=auth.scope())


@router.delete("/{order_id}", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    auth: AuthContext = Depends(require_customer),
    svc: OrderService = Depends(get_order_service),
):
    """Cancel an order. The order is kept with status ``cancelled``."""
    logger.info("Cancelling order %s", order_id)
    return await svc.cancel_order(order_id, customer_id=auth.scope())

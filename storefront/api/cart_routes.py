from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.repositories.cart_repositories import CartRepository
from storefront.repositories.inventory_repositories import InventoryRepository
from storefront.schemas.cart_schemas import CartItemChange, CartQuantityChange, CartResponse
from storefront.security.security import AuthContext, require_customer
from storefront.services.cart_services import CartService
from storefront.services.pricing import ShippingTier

router = APIRouter(prefix="/cart", tags=["cart"])


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(CartRepository(db), InventoryRepository(db))


@router.get("/", response_model=CartResponse)
def get_cart(
    shipping_tier: ShippingTier = Query(ShippingTier.STANDARD),
    auth: AuthContext = Depends(require_customer),
    svc: CartService = Depends(get_cart_service),
):
    """Cart lines at live prices, with the checkout breakdown for ``shipping_tier``."""
    return svc.summarize(auth.customer_id, shipping_tier)


@router.post("/", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    change: CartItemChange,
    auth: AuthContext = Depends(require_customer),
    svc: CartService = Depends(get_cart_service),
):
    svc.add_item(auth.customer_id, change.product_id, change.quantity)
    return svc.summarize(auth.customer_id)


@router.put("/", response_model=CartResponse)
def update_quantity(
    change: CartQuantityChange,
    auth: AuthContext = Depends(require_customer),
    svc: CartService = Depends(get_cart_service),
):
    svc.update_quantity(auth.customer_id, change.product_id, change.quantity)
    return svc.summarize(auth.customer_id)


@router.delete("/{product_id}", response_model=CartResponse)
def remove_from_cart(
    product_id: int,
    auth: AuthContext = Depends(require_customer),
    svc: CartService = Depends(get_cart_service),
):
    svc.remove_item(auth.customer_id, product_id)
    return svc.summarize(auth.customer_id)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(
    auth: AuthContext = Depends(require_customer),
    svc: CartService = Depends(get_cart_service),
):
    svc.clear_cart(auth.customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

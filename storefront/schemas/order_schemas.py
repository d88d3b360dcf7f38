from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.order_models import OrderStatus
from storefront.schemas.common import Money, PricingResponse
from storefront.services.pricing import ShippingTier


class OrderItemBase(BaseModel):
    product_id: int = Field(..., description="ID of the inventory item")
    quantity: int = Field(..., gt=0, description="Quantity of the product")


class OrderItemCreate(OrderItemBase):
    pass


class OrderItemResponse(OrderItemBase):
    id: int
    name: str
    unit_price: Money
    line_total: Money

    model_config = ConfigDict(from_attributes=True)


class OrderCreate(BaseModel):
    items: List[OrderItemCreate]
    shipping_tier: ShippingTier = ShippingTier.STANDARD

    model_config = ConfigDict(extra="forbid")


class CheckoutRequest(BaseModel):
    shipping_tier: ShippingTier = ShippingTier.STANDARD

    model_config = ConfigDict(extra="forbid")


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    shipping_tier: Optional[ShippingTier] = None

    model_config = ConfigDict(extra="forbid")


class OrderStatusUpdate(BaseModel):
    status: OrderStatus

    model_config = ConfigDict(extra="forbid")


class OrderResponse(BaseModel):
    id: int
    customer_id: str
    status: OrderStatus
    shipping_tier: ShippingTier
    tax_rate: float
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []
    pricing: PricingResponse

    model_config = ConfigDict(from_attributes=True)


class QuoteResponse(BaseModel):
    shipping_tier: ShippingTier
    pricing: PricingResponse

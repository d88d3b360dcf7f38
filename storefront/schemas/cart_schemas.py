from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from storefront.schemas.common import Money, PricingResponse
from storefront.services.pricing import ShippingTier


class CartItemChange(BaseModel):
    product_id: int = Field(..., description="ID of the inventory item")
    quantity: int = Field(1, gt=0)

    model_config = ConfigDict(extra="forbid")


class CartQuantityChange(BaseModel):
    product_id: int = Field(..., description="ID of the inventory item")
    quantity: int = Field(..., ge=0, description="New quantity; 0 removes the line")

    model_config = ConfigDict(extra="forbid")


class CartLineResponse(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: Money
    line_total: Money


class CartResponse(BaseModel):
    items: List[CartLineResponse] = []
    shipping_tier: ShippingTier
    pricing: PricingResponse

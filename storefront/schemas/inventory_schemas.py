from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.schemas.common import Money


class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=0)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    image: Optional[str] = Field(None, max_length=1024)

    model_config = ConfigDict(extra="forbid")


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    quantity: Optional[int] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    image: Optional[str] = Field(None, max_length=1024)

    model_config = ConfigDict(extra="forbid")


class InventoryItemResponse(BaseModel):
    id: int
    name: str
    quantity: int
    price: Money
    image: Optional[str] = None
    low_stock: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer

from storefront.services.pricing import to_cents

# Exact in Python, two decimals on the wire
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(to_cents(v)), return_type=float, when_used="json"),
]


class PricingResponse(BaseModel):
    subtotal: Money
    shipping: Money
    tax: Money
    total: Money

    model_config = ConfigDict(from_attributes=True)

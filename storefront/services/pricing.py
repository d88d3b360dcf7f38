"""
Checkout pricing.

Every amount is a ``Decimal`` and nothing is rounded here: callers get the
exact breakdown and round only when presenting it (see ``PriceBreakdown.rounded``).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Mapping, Optional, Protocol

from storefront.core.config import settings
from storefront.core.errors import ValidationError

CENT = Decimal("0.01")


class ShippingTier(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"


class PricedLine(Protocol):
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    def rounded(self) -> "PriceBreakdown":
        """Two-decimal view of the breakdown, for display only."""
        return PriceBreakdown(
            subtotal=to_cents(self.subtotal),
            shipping=to_cents(self.shipping),
            tax=to_cents(self.tax),
            total=to_cents(self.total),
        )


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def default_fees() -> dict[ShippingTier, Decimal]:
    return {
        ShippingTier.STANDARD: settings.SHIPPING_FEE_STANDARD,
        ShippingTier.EXPRESS: settings.SHIPPING_FEE_EXPRESS,
    }


def shipping_fee(tier, fees: Optional[Mapping[ShippingTier, Decimal]] = None) -> Decimal:
    try:
        tier = ShippingTier(tier)
    except ValueError:
        raise ValidationError(f"Unknown shipping tier: {tier!r}")
    return Decimal((fees or default_fees())[tier])


def price_lines(lines: Iterable[PricedLine], shipping: Decimal, tax_rate: Decimal) -> PriceBreakdown:
    """Prices lines against an already resolved shipping fee."""
    shipping = Decimal(shipping)
    tax_rate = Decimal(tax_rate)
    if shipping < 0:
        raise ValidationError("Shipping fee cannot be negative")
    if tax_rate < 0:
        raise ValidationError("Tax rate cannot be negative")

    subtotal = Decimal("0")
    for line in lines:
        unit_price = Decimal(line.unit_price)
        if unit_price < 0:
            raise ValidationError("Unit price cannot be negative")
        if line.quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")
        subtotal += unit_price * line.quantity

    tax = tax_rate * (subtotal + shipping)
    return PriceBreakdown(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
    )


def price_order(
    lines: Iterable[PricedLine],
    shipping_tier=ShippingTier.STANDARD,
    tax_rate: Optional[Decimal] = None,
    fees: Optional[Mapping[ShippingTier, Decimal]] = None,
) -> PriceBreakdown:
    """
    Computes subtotal, shipping, tax and total for a set of lines.

    ``tax_rate`` is a fraction (0.07 for 7%) applied to subtotal + shipping and
    defaults to the configured rate. An empty ``lines`` prices shipping alone.
    """
    rate = settings.TAX_RATE if tax_rate is None else tax_rate
    return price_lines(lines, shipping_fee(shipping_tier, fees), rate)

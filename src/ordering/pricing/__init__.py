"""Pricing engine: derives order totals from priced line items."""

from ordering.pricing.engine import (
    DiscountDescriptor,
    DiscountKind,
    PriceBreakdown,
    PricedLineItem,
    price_items,
)

__all__ = [
    "DiscountDescriptor",
    "DiscountKind",
    "PriceBreakdown",
    "PricedLineItem",
    "price_items",
]

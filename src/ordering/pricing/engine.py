"""Pure pricing of checkout line items.

Given priced line items, a flat VAT rate and an optional discount:

    subtotal                = sum(unit_price * quantity)
    discount_amount         = subtotal * value / 100      (percentage)
                            = min(value, subtotal)        (fixed)
    subtotal_after_discount = subtotal - discount_amount
    vat_amount              = subtotal_after_discount * vat_rate / 100
    total_amount            = subtotal_after_discount + vat_amount

Each line also keeps its own VAT amount, computed on the pre-discount line
subtotal with the line's own rate, for the order snapshot. Shipping is not
part of the total.

Arithmetic is done in ``Decimal``. Amounts are rounded half-up to cents once,
on the way out, and the total is assembled from the rounded parts so that
``total == subtotal - discount + vat`` holds exactly.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError

from ordering.utils.money import D, Money, round_money

DEFAULT_VAT_PERCENTAGE = Decimal("18")

HUNDRED = Decimal("100")


def configured_vat_percentage() -> Money:
    """Flat VAT rate for checkout, overridable with ``ORDERING_VAT_PERCENTAGE``."""
    raw = os.getenv("ORDERING_VAT_PERCENTAGE")
    return D(raw) if raw else DEFAULT_VAT_PERCENTAGE


class DiscountKind(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class DiscountDescriptor:
    """A discount to apply to an order subtotal. Only the derived amount is persisted."""

    kind: DiscountKind
    value: Money

    def __post_init__(self):
        try:
            object.__setattr__(self, "kind", DiscountKind(self.kind))
        except ValueError:
            raise ValidationError({"discount": [f"Unknown discount kind {self.kind!r}"]}) from None
        object.__setattr__(self, "value", D(self.value))

        if self.value < 0:
            raise ValidationError({"discount": ["Discount value cannot be negative"]})
        if self.kind == DiscountKind.PERCENTAGE and self.value > HUNDRED:
            raise ValidationError({"discount": ["Percentage discount cannot exceed 100"]})

    def amount_for(self, subtotal: Money) -> Money:
        if self.kind == DiscountKind.PERCENTAGE:
            return subtotal * self.value / HUNDRED
        return min(self.value, subtotal)


@dataclass(frozen=True)
class PricedLineItem:
    product_id: str
    quantity: int
    unit_price: Money
    vat_percentage: Money

    def __post_init__(self):
        object.__setattr__(self, "unit_price", D(self.unit_price))
        object.__setattr__(self, "vat_percentage", D(self.vat_percentage))

        if self.quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if self.unit_price < 0:
            raise ValidationError({"price": ["Unit price cannot be negative"]})

    @property
    def line_subtotal(self) -> Money:
        return self.unit_price * self.quantity

    @property
    def line_vat_amount(self) -> Money:
        return round_money(self.line_subtotal * self.vat_percentage / HUNDRED)

    def snapshot(self) -> dict:
        """The point-in-time copy stored on the order."""
        return {
            "product_id": str(self.product_id),
            "quantity": self.quantity,
            "price": float(round_money(self.unit_price)),
            "vat_percentage": float(self.vat_percentage),
            "vat_amount": float(self.line_vat_amount),
        }


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Money
    discount_amount: Money
    vat_percentage: Money
    vat_amount: Money
    total_amount: Money
    items: tuple[PricedLineItem, ...] = field(default_factory=tuple)

    @property
    def subtotal_after_discount(self) -> Money:
        return self.subtotal - self.discount_amount


def price_items(
    items: list[PricedLineItem],
    vat_percentage=DEFAULT_VAT_PERCENTAGE,
    discount: DiscountDescriptor | None = None,
) -> PriceBreakdown:
    """Compute subtotal, discount, VAT and total for ``items``."""
    vat_rate = D(vat_percentage)
    if vat_rate < 0:
        raise ValidationError({"vat_percentage": ["VAT percentage cannot be negative"]})

    subtotal = sum((item.line_subtotal for item in items), Decimal("0"))
    discount_amount = discount.amount_for(subtotal) if discount else Decimal("0")
    vat_amount = (subtotal - discount_amount) * vat_rate / HUNDRED

    subtotal = round_money(subtotal)
    discount_amount = round_money(discount_amount)
    vat_amount = round_money(vat_amount)

    return PriceBreakdown(
        subtotal=subtotal,
        discount_amount=discount_amount,
        vat_percentage=vat_rate,
        vat_amount=vat_amount,
        total_amount=subtotal - discount_amount + vat_amount,
        items=tuple(items),
    )

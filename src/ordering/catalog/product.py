"""CatalogProduct aggregate: the Ordering domain's local copy of sellable products.

Ordering does not own the product catalogue. It keeps just enough of each
product (price, currency, VAT rate, active flag, stock counter) to validate
carts and price orders, kept current by catalogue events. The stock counter
is the one field Ordering mutates itself, when an order takes stock.
"""

from datetime import UTC, datetime
from decimal import Decimal

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.catalog.port import ProductInfo
from ordering.domain import ordering
from ordering.exceptions import InsufficientStock


@ordering.event(part_of="CatalogProduct")
class StockDecremented:
    """Stock was taken for a placed order."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@ordering.aggregate
class CatalogProduct:
    product_id = Identifier(identifier=True, required=True)
    name = String(max_length=255)
    price = Float(required=True, min_value=0.0)
    currency = String(max_length=3)
    vat_percentage = Float(min_value=0.0)
    is_active = Boolean(default=True)
    stock_quantity = Integer(default=0)
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_go_negative(self):
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError({"stock_quantity": ["Stock cannot be negative"]})

    def to_info(self) -> ProductInfo:
        return ProductInfo(
            product_id=str(self.product_id),
            price=Decimal(str(self.price)),
            currency=self.currency,
            vat_percentage=Decimal(str(self.vat_percentage)) if self.vat_percentage is not None else None,
            is_active=bool(self.is_active),
            stock_quantity=self.stock_quantity or 0,
        )

    def decrement_stock(self, quantity):
        """Take ``quantity`` units out of stock, failing if fewer are on hand."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if quantity > self.stock_quantity:
            raise InsufficientStock(self.product_id, requested=quantity, available=self.stock_quantity)

        self.stock_quantity -= quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockDecremented(
                product_id=str(self.product_id),
                quantity=quantity,
                remaining=self.stock_quantity,
            )
        )

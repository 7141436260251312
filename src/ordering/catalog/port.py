"""Catalog port (abstract interface).

The cart and checkout only need a narrow, read-mostly view of the product
catalogue: price, currency, VAT rate, whether the product is for sale, and
how much stock is left. Checkout additionally asks the catalog to take
stock out atomically when an order is persisted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ordering.exceptions import ProductNotFound


@dataclass(frozen=True)
class ProductInfo:
    """Live catalogue data for one product."""

    product_id: str
    price: Decimal
    is_active: bool
    stock_quantity: int
    currency: str | None = None
    vat_percentage: Decimal | None = None


class Catalog(ABC):
    """Abstract catalog lookup interface."""

    @abstractmethod
    def find(self, product_id: str) -> ProductInfo | None:
        """Return the product, or None when it does not exist (or was deleted)."""
        ...

    @abstractmethod
    def decrement_stock(self, product_id: str, quantity: int) -> None:
        """Take ``quantity`` units out of stock, or raise InsufficientStock.

        Must be all-or-nothing: stock never goes negative.
        """
        ...

    def get(self, product_id: str) -> ProductInfo:
        product = self.find(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

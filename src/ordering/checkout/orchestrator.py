"""Checkout orchestrator: turns a cart or a guest item list into a persisted Order.

Stages run in order and stop at the first failure:

    VALIDATING  every product must exist, be active and have enough stock
    PRICING     price the lines at current catalogue prices
    PERSISTING  take the stock, allocate an order number, save the Order
    DONE

Validation is all-or-nothing: unlike cart sync, nothing is dropped or
capped. The orchestrator is meant to run inside one Unit of Work (see
PlaceOrderHandler), so a failure while persisting leaves no stock taken,
no order number consumed and no Order saved.
"""

import re
from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.catalog import get_catalog
from ordering.exceptions import InsufficientStock
from ordering.order.numbering import next_order_number
from ordering.order.order import Order
from ordering.pricing import PricedLineItem, price_items
from ordering.pricing.engine import configured_vat_percentage
from ordering.utils.money import D

logger = structlog.get_logger(__name__)

COUNTRY_CODE = re.compile(r"^[A-Z]{2}$")

CURRENCY_BY_COUNTRY = {
    "RW": "RWF",
    "CD": "CDF",
    "US": "USD",
    "CA": "CAD",
    "GB": "GBP",
    "DE": "EUR",
    "FR": "EUR",
}
DEFAULT_CURRENCY = "USD"


def currency_for_country(country) -> str:
    return CURRENCY_BY_COUNTRY.get((country or "").upper(), DEFAULT_CURRENCY)


class CheckoutStage(Enum):
    VALIDATING = "Validating"
    PRICING = "Pricing"
    PERSISTING = "Persisting"
    DONE = "Done"


@dataclass(frozen=True)
class CheckoutLine:
    product_id: str
    quantity: int


class CheckoutOrchestrator:
    def __init__(self, catalog=None, vat_percentage=None):
        self.catalog = catalog or get_catalog()
        self.vat_percentage = D(vat_percentage) if vat_percentage is not None else configured_vat_percentage()
        self.stage = CheckoutStage.VALIDATING

    def submit(self, lines, shipping, country, user_id=None, discount=None, placed_by=None) -> Order:
        """Run the checkout and return the persisted Order.

        Args:
            lines: CheckoutLine items (product and quantity).
            shipping: Dict of recipient and address fields for the order.
            country: Two-letter country code; prefixes the order number.
            user_id: Owner of the order, or None for a guest checkout.
            discount: Optional DiscountDescriptor.
            placed_by: Actor recorded on the first status history entry.
        """
        log = logger.bind(user_id=str(user_id) if user_id else None, country=country)
        try:
            self.stage = CheckoutStage.VALIDATING
            country = self._validate_country(country)
            validated = self._validate(lines)

            self.stage = CheckoutStage.PRICING
            breakdown = self._price(validated, discount)
            currency = self._currency(validated, country)

            self.stage = CheckoutStage.PERSISTING
            order = self._persist(validated, breakdown, currency, shipping, country, user_id, placed_by)
        except Exception as exc:
            log.warning("Checkout failed", stage=self.stage.value, error=type(exc).__name__)
            raise

        self.stage = CheckoutStage.DONE
        log.info(
            "Order placed",
            order_number=order.order_number,
            total_amount=order.total_amount,
            currency=order.currency,
        )
        return order

    # -------------------------------------------------------------------
    # Validating
    # -------------------------------------------------------------------
    def _validate_country(self, country):
        country = (country or "").strip().upper()
        if not COUNTRY_CODE.match(country):
            raise ValidationError({"country": ["Country must be a two-letter ISO code"]})
        return country

    def _validate(self, lines):
        if not lines:
            raise ValidationError({"items": ["Cannot check out without items"]})

        # Repeated products are checked against stock with their summed quantity
        quantities = {}
        for line in lines:
            if line.quantity < 1:
                raise ValidationError({"quantity": ["Quantity must be at least 1"]})
            quantities[str(line.product_id)] = quantities.get(str(line.product_id), 0) + line.quantity

        validated = []
        for product_id, quantity in quantities.items():
            product = self.catalog.find(product_id)
            if product is None or not product.is_active:
                raise InsufficientStock(product_id, requested=quantity, available=0)
            if product.stock_quantity < quantity:
                raise InsufficientStock(product_id, requested=quantity, available=product.stock_quantity)
            validated.append((product, quantity))
        return validated

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def _price(self, validated, discount):
        items = [
            PricedLineItem(
                product_id=product.product_id,
                quantity=quantity,
                unit_price=product.price,
                vat_percentage=(
                    product.vat_percentage if product.vat_percentage is not None else self.vat_percentage
                ),
            )
            for product, quantity in validated
        ]
        return price_items(items, vat_percentage=self.vat_percentage, discount=discount)

    def _currency(self, validated, country):
        currencies = {product.currency for product, _ in validated if product.currency}
        if len(currencies) > 1:
            raise ValidationError({"currency": ["All items in an order must share one currency"]})
        return currencies.pop() if currencies else currency_for_country(country)

    # -------------------------------------------------------------------
    # Persisting
    # -------------------------------------------------------------------
    def _persist(self, validated, breakdown, currency, shipping, country, user_id, placed_by):
        for product, quantity in validated:
            self.catalog.decrement_stock(product.product_id, quantity)

        order = Order.create(
            order_number=next_order_number(country),
            user_id=user_id,
            country=country,
            currency=currency,
            breakdown=breakdown,
            shipping=shipping,
            placed_by=placed_by or user_id,
        )
        current_domain.repository_for(Order).add(order)
        return order

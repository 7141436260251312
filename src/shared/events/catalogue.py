"""Cross-domain event contracts for Catalogue product events.

These classes define the event shape Ordering consumes to keep its local
CatalogProduct records current. They are registered as external events via
domain.register_external_event() with matching __type__ strings so Protean's
stream deserialization works correctly.
"""

from protean.core.event import BaseEvent
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String


class ProductListed(BaseEvent):
    """A product was put on sale with its initial price and stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    currency = String(max_length=3)
    vat_percentage = Float()
    stock_quantity = Integer(default=0)
    is_active = Boolean(default=True)
    listed_at = DateTime(required=True)


class ProductPriceChanged(BaseEvent):
    __version__ = 1

    product_id = Identifier(required=True)
    price = Float(required=True)
    currency = String(max_length=3)
    changed_at = DateTime(required=True)


class ProductStockAdjusted(BaseEvent):
    """The stock counter was set to a new absolute value (restock, recount)."""

    __version__ = 1

    product_id = Identifier(required=True)
    stock_quantity = Integer(required=True)
    adjusted_at = DateTime(required=True)


class ProductActivated(BaseEvent):
    __version__ = 1

    product_id = Identifier(required=True)
    activated_at = DateTime(required=True)


class ProductDeactivated(BaseEvent):
    __version__ = 1

    product_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


class ProductDeleted(BaseEvent):
    """The product was removed from the catalogue for good."""

    __version__ = 1

    product_id = Identifier(required=True)
    deleted_at = DateTime(required=True)

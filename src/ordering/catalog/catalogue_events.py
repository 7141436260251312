"""Inbound cross-domain event handler: Ordering mirrors Catalogue product changes.

Keeps CatalogProduct (price, VAT, active flag, stock) in step with the
Catalogue domain. Carts are not touched here: a cart drops lines for
deleted products the next time it is read, and inactive products are
rejected at checkout.

Cross-domain events are imported from shared.events.catalogue and registered
as external events via ordering.register_external_event().
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.catalogue import (
    ProductActivated,
    ProductDeactivated,
    ProductDeleted,
    ProductListed,
    ProductPriceChanged,
    ProductStockAdjusted,
)

from ordering.catalog.product import CatalogProduct
from ordering.domain import ordering

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
ordering.register_external_event(ProductListed, "Catalogue.ProductListed.v1")
ordering.register_external_event(ProductPriceChanged, "Catalogue.ProductPriceChanged.v1")
ordering.register_external_event(ProductStockAdjusted, "Catalogue.ProductStockAdjusted.v1")
ordering.register_external_event(ProductActivated, "Catalogue.ProductActivated.v1")
ordering.register_external_event(ProductDeactivated, "Catalogue.ProductDeactivated.v1")
ordering.register_external_event(ProductDeleted, "Catalogue.ProductDeleted.v1")


def _load(product_id):
    try:
        return current_domain.repository_for(CatalogProduct).get(str(product_id))
    except ObjectNotFoundError:
        logger.warning("Catalogue event for unknown product ignored", product_id=str(product_id))
        return None


@ordering.event_handler(part_of=CatalogProduct, stream_category="catalogue::product")
class CatalogueProductEventHandler:
    """Reacts to Catalogue domain events affecting sellable products."""

    @handle(ProductListed)
    def on_product_listed(self, event: ProductListed) -> None:
        repo = current_domain.repository_for(CatalogProduct)
        try:
            product = repo.get(str(event.product_id))
            product.name = event.name
            product.price = event.price
            product.currency = event.currency
            product.vat_percentage = event.vat_percentage
            product.stock_quantity = event.stock_quantity
            product.is_active = event.is_active
        except ObjectNotFoundError:
            product = CatalogProduct(
                product_id=str(event.product_id),
                name=event.name,
                price=event.price,
                currency=event.currency,
                vat_percentage=event.vat_percentage,
                stock_quantity=event.stock_quantity,
                is_active=event.is_active,
            )
        product.updated_at = event.listed_at
        repo.add(product)

        logger.info("Product listed for ordering", product_id=str(event.product_id))

    @handle(ProductPriceChanged)
    def on_price_changed(self, event: ProductPriceChanged) -> None:
        product = _load(event.product_id)
        if product is None:
            return

        product.price = event.price
        if event.currency:
            product.currency = event.currency
        product.updated_at = event.changed_at
        current_domain.repository_for(CatalogProduct).add(product)

    @handle(ProductStockAdjusted)
    def on_stock_adjusted(self, event: ProductStockAdjusted) -> None:
        product = _load(event.product_id)
        if product is None:
            return

        product.stock_quantity = event.stock_quantity
        product.updated_at = event.adjusted_at
        current_domain.repository_for(CatalogProduct).add(product)

    @handle(ProductActivated)
    def on_product_activated(self, event: ProductActivated) -> None:
        product = _load(event.product_id)
        if product is None:
            return

        product.is_active = True
        product.updated_at = event.activated_at
        current_domain.repository_for(CatalogProduct).add(product)

    @handle(ProductDeactivated)
    def on_product_deactivated(self, event: ProductDeactivated) -> None:
        product = _load(event.product_id)
        if product is None:
            return

        product.is_active = False
        product.updated_at = event.deactivated_at
        current_domain.repository_for(CatalogProduct).add(product)

    @handle(ProductDeleted)
    def on_product_deleted(self, event: ProductDeleted) -> None:
        product = _load(event.product_id)
        if product is None:
            return

        current_domain.repository_for(CatalogProduct)._dao.delete(product)
        logger.info(
            "Product deleted; carts will drop it on next read",
            product_id=str(event.product_id),
            deleted_at=str(event.deleted_at),
        )

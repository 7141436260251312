"""Catalog adapter backed by the local CatalogProduct repository."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalog.port import Catalog, ProductInfo
from ordering.catalog.product import CatalogProduct
from ordering.exceptions import InsufficientStock


class RepositoryCatalog(Catalog):
    """Reads and decrements stock through the active domain's repository.

    Stock changes are registered with the current Unit of Work, so they
    commit or roll back together with the order being placed.
    """

    def _load(self, product_id) -> CatalogProduct | None:
        try:
            return current_domain.repository_for(CatalogProduct).get(str(product_id))
        except ObjectNotFoundError:
            return None

    def find(self, product_id: str) -> ProductInfo | None:
        product = self._load(product_id)
        return product.to_info() if product else None

    def decrement_stock(self, product_id: str, quantity: int) -> None:
        product = self._load(product_id)
        if product is None:
            raise InsufficientStock(product_id, requested=quantity, available=0)

        product.decrement_stock(quantity)
        current_domain.repository_for(CatalogProduct).add(product)

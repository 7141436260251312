"""Catalog lookup factory.

Provides get_catalog() / set_catalog() to swap implementations:
- RepositoryCatalog (default) reads the local CatalogProduct records
- any other Catalog adapter, e.g. a client for a remote catalogue service

The default adapter is imported on first use: it depends on the
CatalogProduct aggregate, which itself imports this package's port.
"""

from ordering.catalog.port import Catalog, ProductInfo

_current_catalog: Catalog | None = None


def get_catalog() -> Catalog:
    """Return the current catalog. Defaults to RepositoryCatalog."""
    global _current_catalog
    if _current_catalog is None:
        from ordering.catalog.repository_adapter import RepositoryCatalog

        _current_catalog = RepositoryCatalog()
    return _current_catalog


def set_catalog(catalog: Catalog) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to default catalog."""
    global _current_catalog
    _current_catalog = None


__all__ = ["Catalog", "ProductInfo", "get_catalog", "set_catalog", "reset_catalog"]

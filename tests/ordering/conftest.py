import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def make_product():
    """Factory fixture: persist a CatalogProduct and return it."""
    from ordering.catalog.product import CatalogProduct
    from protean import current_domain

    def _make(product_id="prod-001", price=10.0, stock=10, is_active=True, currency="USD", vat_percentage=None):
        product = CatalogProduct(
            product_id=product_id,
            name=f"Product {product_id}",
            price=price,
            currency=currency,
            vat_percentage=vat_percentage,
            stock_quantity=stock,
            is_active=is_active,
        )
        current_domain.repository_for(CatalogProduct).add(product)
        return product

    return _make

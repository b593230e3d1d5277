import pytest
from protean.integrations.pytest import DomainFixture

from inventory.config import InventorySettings


@pytest.fixture(scope="session")
def inventory_bed():
    from inventory.domain import inventory

    bed = DomainFixture(inventory)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(inventory_bed):
    with inventory_bed.domain_context():
        yield


@pytest.fixture()
def settings(tmp_path):
    return InventorySettings(
        env="test",
        log_dir=str(tmp_path / "logs"),
        transaction_max_attempts=3,
        retry_base_delay_seconds=0,
        retry_max_delay_seconds=0,
    )


@pytest.fixture()
def service(settings):
    from inventory.service import InventoryService

    return InventoryService(settings)


@pytest.fixture()
def make_product(service):
    """Factory: initialize a product with test defaults."""

    def _make(product_id="prod-001", **fields):
        fields.setdefault("name", f"Product {product_id}")
        fields.setdefault("stock", 10)
        return service.initialize_stock(product_id, **fields)

    return _make


@pytest.fixture()
def delete_product():
    """Remove a product row directly, as if deleted by the catalogue."""
    from protean.utils.globals import current_domain

    from inventory.stock.product import Product

    def _delete(product_id):
        repo = current_domain.repository_for(Product)
        repo._dao.delete(repo.get(product_id))

    return _delete

"""Application tests for the status reconciliation handler."""

from protean import UnitOfWork
from protean.utils.globals import current_domain

from inventory.stock.product import Product
from inventory.stock.records import StockScope
from inventory.stock.status import InventoryStatus


def _corrupt_status(product_id, status, variant_id=None):
    """Overwrite a cached status without going through the handlers."""
    with UnitOfWork():
        repo = current_domain.repository_for(Product)
        product = repo.get(product_id)
        if variant_id is None:
            product.inventory_status = status
        else:
            product.update_variant(variant_id, inventory_status=status)
        repo.add(product)


class TestReconcile:
    def test_stale_status_is_corrected(self, service, make_product):
        make_product("prod-001", stock=0)
        _corrupt_status("prod-001", "in_stock")

        record = service.reconcile(StockScope("prod-001"))

        assert record.inventory_status is InventoryStatus.OUT_OF_STOCK
        assert service.get_product("prod-001").inventory_status == "out_of_stock"

    def test_reconcile_is_idempotent(self, service, make_product):
        make_product("prod-001", stock=3)
        _corrupt_status("prod-001", "in_stock")
        version = service.get_product("prod-001").version

        first = service.reconcile(StockScope("prod-001"))
        second = service.reconcile(StockScope("prod-001"))

        assert first.inventory_status is second.inventory_status is InventoryStatus.LOW_STOCK
        assert service.get_product("prod-001").version == version + 1

    def test_fresh_status_is_not_rewritten(self, service, make_product):
        product = make_product("prod-001", stock=20)

        service.reconcile(StockScope("prod-001"))

        assert service.get_product("prod-001").version == product.version

    def test_variant_status(self, service, make_product):
        make_product("prod-001", backorder_enabled=True, variants=[{"id": "v1", "stock": 0}])
        _corrupt_status("prod-001", "in_stock", variant_id="v1")

        record = service.reconcile(StockScope("prod-001", "v1"))

        assert record.inventory_status is InventoryStatus.BACKORDER

    def test_discontinued_is_overwritten_for_tracked_scopes(self, service, make_product):
        make_product("prod-001", stock=20)
        _corrupt_status("prod-001", "discontinued")

        assert service.reconcile(StockScope("prod-001")).inventory_status is InventoryStatus.IN_STOCK

    def test_untracked_scope_is_left_alone(self, service, make_product):
        make_product("prod-001", stock=0, track_inventory=False)
        _corrupt_status("prod-001", "in_stock")
        version = service.get_product("prod-001").version

        record = service.reconcile(StockScope("prod-001"))

        assert record.inventory_status is InventoryStatus.IN_STOCK
        assert service.get_product("prod-001").version == version

"""Status reconciliation: keep the cached ``inventory_status`` equal to
``classify(stock, threshold, backorder)`` for every tracked scope."""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from inventory.domain import inventory
from inventory.stock.product import Product
from inventory.stock.records import StockRecord, StockScope, resolve_stock_record

logger = structlog.get_logger(__name__)


def refresh_status(product: Product, variant_id: str | None = None) -> bool:
    """Write the classified status onto the in-memory aggregate if it differs.

    Returns True when the aggregate was changed. Callers own the Unit of Work.
    """
    record = resolve_stock_record(product, variant_id)
    expected = record.expected_status
    if record.inventory_status is expected:
        return False

    if variant_id is None:
        product.inventory_status = expected.value
    else:
        product.update_variant(variant_id, inventory_status=expected.value)
    return True


def refresh_all_statuses(product: Product) -> list[StockScope]:
    """Refresh the product and every variant; returns the scopes that changed.

    Needed after product-level settings change, since variants inherit
    unset thresholds and backorder flags from the product.
    """
    changed = []
    scopes = [StockScope(product.id)] + [StockScope(product.id, v.variant_id) for v in product.variant_list()]
    for scope in scopes:
        if resolve_stock_record(product, scope.variant_id).track_inventory and refresh_status(
            product, scope.variant_id
        ):
            changed.append(scope)
    return changed


@dataclass(frozen=True)
class Reconciliation:
    record: StockRecord
    changed: bool


@inventory.command(part_of="Product")
class ReconcileStatus:
    """Persist the classified status of a scope when the cached one is stale."""

    product_id = Identifier(required=True)
    variant_id = Identifier()


@inventory.command_handler(part_of=Product)
class StatusReconciliationHandler:
    @handle(ReconcileStatus)
    def reconcile_status(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get_product(command.product_id)
        record = resolve_stock_record(product, command.variant_id)
        # Untracked scopes keep whatever status was set on them.
        if not record.track_inventory:
            return Reconciliation(record, changed=False)

        changed = refresh_status(product, command.variant_id)
        if not changed:
            return Reconciliation(record, changed=False)

        product.touch()
        repo.add(product)
        record = resolve_stock_record(product, command.variant_id)
        logger.info(
            "inventory_status_reconciled",
            product_id=command.product_id,
            variant_id=command.variant_id,
            status=record.inventory_status.value,
        )
        return Reconciliation(record, changed=True)

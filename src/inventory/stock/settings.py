"""Inventory settings of a product or variant (tracking, threshold, backorders)."""

from typing import Any

import structlog
from protean import handle
from protean.fields import Dict, Identifier
from protean.utils.globals import current_domain

from inventory.domain import inventory
from inventory.exceptions import InvalidStockOperationError
from inventory.stock.product import VARIANT_SETTINGS, Product
from inventory.stock.reconciliation import refresh_all_statuses, refresh_status
from inventory.stock.records import StockScope, resolve_stock_record

logger = structlog.get_logger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()

_PRODUCT_ONLY = ("warehouse_location", "restock_date")
_REQUIRED_ON_PRODUCT = ("track_inventory", "low_stock_threshold", "backorder_enabled")
SETTINGS = VARIANT_SETTINGS + _PRODUCT_ONLY


def collect_changes(**values) -> dict:
    """Keep the settings that were passed, dropping ``UNSET`` ones."""
    unknown = set(values) - set(SETTINGS)
    if unknown:
        raise InvalidStockOperationError(sorted(unknown)[0], "Not an inventory setting")
    return {name: value for name, value in values.items() if value is not UNSET}


def check_settings(scope: StockScope, changes: dict) -> None:
    for name in ("low_stock_threshold", "backorder_limit"):
        value = changes.get(name)
        if value is not None and value < 0:
            raise InvalidStockOperationError(name, f"{name} cannot be negative, got {value}")

    if scope.variant_id is None:
        for name in _REQUIRED_ON_PRODUCT:
            if name in changes and changes[name] is None:
                raise InvalidStockOperationError(name, f"{name} cannot be cleared on a product")
    else:
        for name in _PRODUCT_ONLY:
            if name in changes:
                raise InvalidStockOperationError(name, f"{name} is a product-level setting")


@inventory.command(part_of="Product")
class UpdateInventorySettings:
    """Change settings of a scope.

    Keys absent from ``changes`` are left alone. On a variant scope a None
    value clears the variant's own setting so the product's applies again.
    On a product scope None is accepted only for ``backorder_limit``
    (unbounded) and the product-only fields.
    """

    product_id = Identifier(required=True)
    variant_id = Identifier()
    changes = Dict()


@inventory.command_handler(part_of=Product)
class InventorySettingsHandler:
    @handle(UpdateInventorySettings)
    def update_inventory_settings(self, command):
        scope = StockScope(command.product_id, command.variant_id)
        changes = dict(command.changes)
        check_settings(scope, changes)

        repo = current_domain.repository_for(Product)
        product = repo.get_product(scope.product_id)
        if scope.variant_id is None:
            for name, value in changes.items():
                setattr(product, name, value)
            # Variants inherit unset settings from the product.
            refresh_all_statuses(product)
        else:
            product.update_variant(scope.variant_id, **changes)
            if resolve_stock_record(product, scope.variant_id).track_inventory:
                refresh_status(product, scope.variant_id)

        product.touch()
        repo.add(product)

        logger.info(
            "inventory_settings_updated",
            product_id=scope.product_id,
            variant_id=scope.variant_id,
            fields=sorted(changes),
        )
        return resolve_stock_record(product, scope.variant_id)

"""Stock initialization: create a product with its opening stock."""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, Integer, List, String
from protean.utils.globals import current_domain

from inventory.domain import inventory
from inventory.exceptions import DuplicateProductError, InvalidStockOperationError
from inventory.stock.history import ChangeReason, InventoryHistoryLog
from inventory.stock.product import Product, Variant
from inventory.stock.reconciliation import refresh_all_statuses
from inventory.stock.records import DEFAULT_LOW_STOCK_THRESHOLD, StockScope, resolve_stock_record

logger = structlog.get_logger(__name__)


def _non_negative(field: str, value: int | None) -> None:
    if value is not None and value < 0:
        raise InvalidStockOperationError(field, f"{field} cannot be negative, got {value}")


def check_opening_stock(command) -> None:
    """Reject negative quantities and duplicate variant ids.

    Raises:
        InvalidStockOperationError: on the first offending field.
    """
    for field in ("stock", "low_stock_threshold", "backorder_limit"):
        _non_negative(field, getattr(command, field))

    variant_ids = []
    for variant in command.variants:
        variant_ids.append(variant.get("id") or variant.get("variant_id"))
        for field in ("stock", "low_stock_threshold", "backorder_limit"):
            _non_negative(field, variant.get(field))
    if None in variant_ids:
        raise InvalidStockOperationError("variants", "Every variant needs an id")
    if len(set(variant_ids)) != len(variant_ids):
        raise InvalidStockOperationError("variants", "Variant ids must be unique within a product")


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------
@inventory.command(part_of="Product")
class InitializeStock:
    product_id = Identifier(required=True)
    name = String(max_length=255, default="")
    # Quantities are range-checked by ``check_opening_stock`` so a bad value
    # surfaces as an invalid stock operation, not a field error.
    stock = Integer(default=0)
    track_inventory = Boolean(default=True)
    low_stock_threshold = Integer(default=DEFAULT_LOW_STOCK_THRESHOLD)
    backorder_enabled = Boolean(default=False)
    backorder_limit = Integer()
    variants = List(dict)
    warehouse_location = String(max_length=255)
    restock_date = String(max_length=32)
    user_id = Identifier()


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------
@inventory.command_handler(part_of=Product)
class StockInitializationHandler:
    history = InventoryHistoryLog()

    @handle(InitializeStock)
    def initialize_stock(self, command):
        """Create the product, its cached statuses, and one INITIAL ledger
        entry for every tracked scope.

        Raises:
            DuplicateProductError: ``product_id`` already exists.
            InvalidStockOperationError: a negative stock, threshold or limit.
        """
        check_opening_stock(command)

        repo = current_domain.repository_for(Product)
        if repo.get_or_none(command.product_id) is not None:
            raise DuplicateProductError(command.product_id)

        now = datetime.now(UTC)
        product = Product(
            id=command.product_id,
            name=command.name,
            stock=command.stock,
            track_inventory=command.track_inventory,
            low_stock_threshold=command.low_stock_threshold,
            backorder_enabled=command.backorder_enabled,
            backorder_limit=command.backorder_limit,
            variants=[
                Variant.from_payload(command.product_id, data, position)
                for position, data in enumerate(command.variants)
            ],
            warehouse_location=command.warehouse_location,
            restock_date=command.restock_date,
            created_at=now,
            updated_at=now,
        )
        refresh_all_statuses(product)
        repo.add(product)

        scopes = [StockScope(product.id)] + [StockScope(product.id, v.variant_id) for v in product.variant_list()]
        for scope in scopes:
            record = resolve_stock_record(product, scope.variant_id)
            if not record.track_inventory:
                continue
            self.history.append(
                scope,
                previous_stock=0,
                new_stock=record.stock,
                change=record.stock,
                reason=ChangeReason.INITIAL,
                user_id=command.user_id,
                notes="Initial stock",
            )

        logger.info(
            "stock_initialized",
            product_id=product.id,
            stock=product.stock,
            variants=len(scopes) - 1,
            track_inventory=product.track_inventory,
        )
        return product

"""Stock mutation: the only code path that writes ``stock``.

Each command runs in one Unit of Work:

    load product -> skip if untracked -> new = max(0, current + delta)
    -> write stock (product field, or the variant entity)
    -> refresh cached status -> append history entry

The stock write and its ledger entry commit together or not at all. Two
writers on the same product (including two different variants of it)
serialize through the aggregate's version guard; the loser fails with
``ExpectedVersionError`` and is re-run on a fresh read by the caller.

Clamping at zero is intentional. A decrement larger than the stock on hand
under-applies silently; ``StockMutation.shortfall`` reports by how much.
"""

from collections.abc import Callable
from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from inventory.domain import inventory
from inventory.stock.history import ChangeReason, InventoryHistoryEntry, InventoryHistoryLog
from inventory.stock.product import Product
from inventory.stock.reconciliation import refresh_status
from inventory.stock.records import StockRecord, StockScope, resolve_stock_record

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockMutation:
    """Outcome of a stock mutation.

    ``entry`` is None when the scope does not track inventory and nothing
    was written.
    """

    product: Product
    record: StockRecord
    entry: InventoryHistoryEntry | None

    @property
    def applied(self) -> bool:
        return self.entry is not None

    @property
    def previous_stock(self) -> int:
        return self.entry.previous_stock if self.entry else self.record.stock

    @property
    def new_stock(self) -> int:
        return self.record.stock

    @property
    def shortfall(self) -> int:
        return self.entry.shortfall if self.entry else 0


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@inventory.command(part_of="Product")
class MutateStock:
    """Apply a signed delta to the stock of a product or variant."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    change = Integer(required=True)  # Can be negative
    reason = String(max_length=20, required=True, choices=ChangeReason)
    order_id = Identifier()
    user_id = Identifier()
    notes = Text()


@inventory.command(part_of="Product")
class RecordStockCount:
    """Set stock to a counted absolute quantity (stock check, sync)."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    counted = Integer(required=True, min_value=0)
    reason = String(max_length=20, default=ChangeReason.SYNC.value, choices=ChangeReason)
    order_id = Identifier()
    user_id = Identifier()
    notes = Text()


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------
@inventory.command_handler(part_of=Product)
class StockMutationHandler:
    history = InventoryHistoryLog()

    @handle(MutateStock)
    def mutate_stock(self, command):
        return self._apply(command, lambda current: command.change)

    @handle(RecordStockCount)
    def record_stock_count(self, command):
        # The delta is derived from the stock read in this Unit of Work, so a
        # sale committed between the count and this write is not lost.
        return self._apply(command, lambda current: command.counted - current)

    def _apply(self, command, delta_for: Callable[[int], int]) -> StockMutation:
        scope = StockScope(command.product_id, command.variant_id)
        repo = current_domain.repository_for(Product)
        product = repo.get_product(scope.product_id)
        record = resolve_stock_record(product, scope.variant_id)
        if not record.track_inventory:
            logger.debug(
                "stock_mutation_skipped_untracked",
                product_id=scope.product_id,
                variant_id=scope.variant_id,
            )
            return StockMutation(product=product, record=record, entry=None)

        previous_stock = record.stock
        delta = delta_for(previous_stock)
        new_stock = max(0, previous_stock + delta)

        product.set_stock(scope.variant_id, new_stock)
        refresh_status(product, scope.variant_id)
        product.touch()
        repo.add(product)

        entry = self.history.append(
            scope,
            previous_stock=previous_stock,
            new_stock=new_stock,
            change=delta,
            reason=command.reason,
            order_id=command.order_id,
            user_id=command.user_id,
            notes=command.notes,
        )
        mutation = StockMutation(product=product, record=resolve_stock_record(product, scope.variant_id), entry=entry)

        logger.info(
            "stock_mutated",
            product_id=scope.product_id,
            variant_id=scope.variant_id,
            reason=entry.reason,
            change=entry.change,
            previous_stock=entry.previous_stock,
            new_stock=entry.new_stock,
            order_id=entry.order_id,
        )
        if mutation.shortfall:
            logger.warning(
                "stock_decrement_clamped",
                product_id=scope.product_id,
                variant_id=scope.variant_id,
                requested=entry.change,
                shortfall=mutation.shortfall,
            )
        return mutation

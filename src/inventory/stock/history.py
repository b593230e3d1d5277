"""Inventory history ledger, an append-only audit trail of stock changes.

Entries are written only through ``InventoryHistoryLog.append`` inside the
Unit of Work that performs the stock write they document, so a committed
stock change always has exactly one ledger entry and a rolled-back one has
none. The ledger is its own aggregate: it outlives the product it describes
and is read independently of it.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Auto, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from inventory.domain import inventory
from inventory.exceptions import ImmutableHistoryError
from inventory.stock.records import StockScope


class ChangeReason(Enum):
    SALE = "sale"
    RETURN = "return"
    ADJUSTMENT = "adjustment"
    RESTOCK = "restock"
    DAMAGED = "damaged"
    INITIAL = "initial"
    SYNC = "sync"


@inventory.aggregate
class InventoryHistoryEntry:
    """One stock change. ``change`` is the requested delta, which can differ
    from ``new_stock - previous_stock`` when a decrement was clamped at zero."""

    id = Auto(increment=True, identifier=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    date = DateTime(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    change = Integer(required=True)
    reason = String(max_length=20, required=True, choices=ChangeReason)
    order_id = Identifier()
    user_id = Identifier()
    notes = Text()

    @property
    def change_reason(self) -> ChangeReason:
        return ChangeReason(self.reason)

    @property
    def applied_change(self) -> int:
        return self.new_stock - self.previous_stock

    @property
    def shortfall(self) -> int:
        """Units of a decrement that clamping at zero discarded."""
        return self.applied_change - self.change


@inventory.repository(part_of=InventoryHistoryEntry)
class InventoryHistoryRepository:
    def add(self, entry: InventoryHistoryEntry) -> InventoryHistoryEntry:
        if entry.state_.is_persisted:
            raise ImmutableHistoryError(entry.id, "update")
        return super().add(entry)

    def for_scope(self, scope: StockScope, limit: int) -> list[InventoryHistoryEntry]:
        filters = {"product_id": scope.product_id}
        if scope.variant_id is not None:
            filters["variant_id"] = scope.variant_id

        return self._dao.query.filter(**filters).order_by(["-date", "-id"]).limit(limit).all().items


class InventoryHistoryLog:
    """Writes and reads ledger entries for a stock scope."""

    def append(
        self,
        scope: StockScope,
        *,
        previous_stock: int,
        new_stock: int,
        change: int,
        reason: ChangeReason | str,
        order_id: str | None = None,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> InventoryHistoryEntry:
        entry = InventoryHistoryEntry(
            product_id=scope.product_id,
            variant_id=scope.variant_id,
            date=datetime.now(UTC),
            previous_stock=previous_stock,
            new_stock=new_stock,
            change=change,
            reason=ChangeReason(reason).value,
            order_id=order_id,
            user_id=user_id,
            notes=notes,
        )
        return current_domain.repository_for(InventoryHistoryEntry).add(entry)

    def read(self, scope: StockScope, limit: int = 50) -> list[InventoryHistoryEntry]:
        """Entries newest first.

        A product scope covers the product and all of its variants; a
        variant scope only that variant.
        """
        if limit < 1:
            return []
        return current_domain.repository_for(InventoryHistoryEntry).for_scope(scope, limit)

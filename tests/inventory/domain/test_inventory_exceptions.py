"""Tests for the inventory exception hierarchy and history entry arithmetic."""

from datetime import UTC, datetime

import pytest

from inventory.exceptions import (
    DuplicateProductError,
    ImmutableHistoryError,
    InvalidStockOperationError,
    InventoryError,
    NotFoundError,
    TransactionConflictError,
)
from inventory.stock.history import ChangeReason, InventoryHistoryEntry


class TestExceptionCodes:
    @pytest.mark.parametrize(
        "exc, code",
        [
            (NotFoundError("prod-001"), "NOT_FOUND"),
            (DuplicateProductError("prod-001"), "DUPLICATE_PRODUCT"),
            (InvalidStockOperationError("stock", "bad"), "INVALID_STOCK_OPERATION"),
            (TransactionConflictError(5), "TRANSACTION_CONFLICT"),
            (ImmutableHistoryError(1, "update"), "IMMUTABLE_HISTORY"),
        ],
    )
    def test_every_error_is_an_inventory_error_with_a_code(self, exc, code):
        assert isinstance(exc, InventoryError)
        assert exc.code == code

    def test_not_found_messages(self):
        assert str(NotFoundError("prod-001")) == "Product prod-001 not found"
        assert str(NotFoundError("prod-001", "v1")) == "Variant v1 not found in product prod-001"

    def test_conflict_carries_attempts(self):
        assert TransactionConflictError(3).attempts == 3


class TestHistoryEntryShortfall:
    def _entry(self, previous, new, change):
        return InventoryHistoryEntry(
            product_id="prod-001",
            variant_id=None,
            date=datetime.now(UTC),
            previous_stock=previous,
            new_stock=new,
            change=change,
            reason=ChangeReason.SALE.value,
        )

    def test_full_decrement_has_no_shortfall(self):
        entry = self._entry(5, 3, -2)
        assert entry.applied_change == -2
        assert entry.shortfall == 0

    def test_clamped_decrement_reports_shortfall(self):
        entry = self._entry(1, 0, -3)
        assert entry.applied_change == -1
        assert entry.shortfall == 2

    def test_reason_is_exposed_as_an_enum(self):
        assert self._entry(5, 3, -2).change_reason is ChangeReason.SALE

"""Tests for check_item, the per-line stock forecast."""

from inventory.stock.records import StockRecord
from inventory.stock.validation import BackorderedItem, InvalidItem, ValidationResult, check_item


def _record(stock=2, track_inventory=True, backorder_enabled=False, backorder_limit=None, variant_id=None):
    return StockRecord(
        product_id="prod-001",
        variant_id=variant_id,
        stock=stock,
        track_inventory=track_inventory,
        low_stock_threshold=5,
        backorder_enabled=backorder_enabled,
        backorder_limit=backorder_limit,
        inventory_status=None,
    )


class TestCheckItem:
    def test_enough_stock_passes(self):
        assert check_item(_record(stock=5), 5) is None

    def test_untracked_always_passes(self):
        assert check_item(_record(stock=0, track_inventory=False), 100) is None

    def test_short_without_backorders_is_invalid(self):
        assert check_item(_record(stock=2), 3) == InvalidItem("prod-001", None, available=2, requested=3)

    def test_backorder_within_limit(self):
        outcome = check_item(_record(stock=2, backorder_enabled=True, backorder_limit=5), 4)
        assert outcome == BackorderedItem("prod-001", None, available=2, backordered=2)

    def test_backorder_exactly_at_limit(self):
        outcome = check_item(_record(stock=2, backorder_enabled=True, backorder_limit=5), 7)
        assert outcome == BackorderedItem("prod-001", None, available=2, backordered=5)

    def test_backorder_beyond_limit_is_invalid(self):
        outcome = check_item(_record(stock=2, backorder_enabled=True, backorder_limit=5), 10)
        assert outcome == InvalidItem("prod-001", None, available=2, requested=10)

    def test_backorder_without_limit_is_unbounded(self):
        outcome = check_item(_record(stock=0, backorder_enabled=True), 1000)
        assert outcome == BackorderedItem("prod-001", None, available=0, backordered=1000)

    def test_zero_limit_allows_no_backorder(self):
        outcome = check_item(_record(stock=1, backorder_enabled=True, backorder_limit=0), 2)
        assert isinstance(outcome, InvalidItem)

    def test_variant_id_is_carried(self):
        outcome = check_item(_record(stock=0, variant_id="v1"), 1)
        assert outcome.variant_id == "v1"


class TestValidationResult:
    def test_backordered_items_do_not_invalidate(self):
        result = ValidationResult(backordered_items=[BackorderedItem("p", None, 0, 1)])
        assert result.valid

    def test_invalid_items_invalidate(self):
        assert not ValidationResult(invalid_items=[InvalidItem("p", None, 0, 1)]).valid

"""Inventory status classification."""

from enum import Enum


class InventoryStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    BACKORDER = "backorder"
    DISCONTINUED = "discontinued"


def classify(stock: int, threshold: int = 5, backorder_enabled: bool = False) -> InventoryStatus:
    """Map a stock level to its inventory status.

    Pure and total over integers. ``DISCONTINUED`` is never produced here;
    it exists for records whose status is set outside the stock engine.
    """
    if stock <= 0:
        return InventoryStatus.BACKORDER if backorder_enabled else InventoryStatus.OUT_OF_STOCK
    if stock <= threshold:
        return InventoryStatus.LOW_STOCK
    return InventoryStatus.IN_STOCK

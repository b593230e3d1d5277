"""Restock reports: tracked products by cached inventory status.

The reports filter on the stored ``inventory_status`` column, so they are
only as fresh as reconciliation keeps that column. Results can be served
from a ``TTLCache``; whoever mutates stock invalidates it.
"""

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from protean.utils.globals import current_domain

from inventory.stock.product import Product
from inventory.stock.status import InventoryStatus


class TTLCache:
    """Time-bounded memo of loader results, keyed by hashable keys.

    ``clock`` returns seconds and is injectable so expiry is testable.
    A ``ttl`` of zero disables caching.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        now = self.clock()
        cached = self._entries.get(key)
        if cached is not None and now < cached[0]:
            return cached[1]

        value = loader()
        if self.ttl > 0:
            self._entries[key] = (now + self.ttl, value)
        return value

    def invalidate(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class ProductStockSummary:
    product_id: str
    name: str
    stock: int
    low_stock_threshold: int
    inventory_status: InventoryStatus
    updated_at: datetime

    @classmethod
    def from_product(cls, product: Product) -> "ProductStockSummary":
        return cls(
            product_id=product.id,
            name=product.name,
            stock=product.stock,
            low_stock_threshold=product.low_stock_threshold,
            inventory_status=InventoryStatus(product.inventory_status),
            updated_at=product.updated_at,
        )


class RestockReport:
    def __init__(self, cache: TTLCache | None = None):
        self.cache = cache if cache is not None else TTLCache(ttl=0)

    def low_stock_products(self, limit: int = 50) -> list[ProductStockSummary]:
        return self._query(
            "low_stock",
            [InventoryStatus.LOW_STOCK],
            ["stock", "id"],
            limit,
        )

    def out_of_stock_products(self, limit: int = 50) -> list[ProductStockSummary]:
        return self._query(
            "out_of_stock",
            [InventoryStatus.OUT_OF_STOCK],
            ["-updated_at", "id"],
            limit,
        )

    def products_needing_restock(self, limit: int = 50) -> list[ProductStockSummary]:
        return self._query(
            "needs_restock",
            [InventoryStatus.LOW_STOCK, InventoryStatus.OUT_OF_STOCK],
            ["stock", "id"],
            limit,
        )

    def invalidate(self) -> None:
        self.cache.invalidate()

    def _query(self, name, statuses, order_by, limit) -> list[ProductStockSummary]:
        def load():
            products = current_domain.repository_for(Product).find_tracked_by_status(statuses, order_by, limit)
            return [ProductStockSummary.from_product(product) for product in products]

        return list(self.cache.get_or_load((name, limit), load))

"""Stock scopes and resolved stock records.

A variant's inventory settings are optional. When one is unset (``None``)
the parent product's value applies: inheritance by absence, resolved once in
``resolve_stock_record`` so every component sees the same effective values.
"""

from dataclasses import dataclass

from inventory.exceptions import InvalidStockOperationError
from inventory.stock.status import InventoryStatus, classify

DEFAULT_LOW_STOCK_THRESHOLD = 5


@dataclass(frozen=True)
class StockScope:
    """A product, or one variant within it, targeted by a stock operation."""

    product_id: str
    variant_id: str | None = None

    @property
    def is_variant(self) -> bool:
        return self.variant_id is not None

    def __str__(self) -> str:
        if self.variant_id is None:
            return self.product_id
        return f"{self.product_id}/{self.variant_id}"


@dataclass(frozen=True)
class StockRecord:
    """Effective stock state of one scope, with variant settings resolved."""

    product_id: str
    variant_id: str | None
    stock: int
    track_inventory: bool
    low_stock_threshold: int
    backorder_enabled: bool
    backorder_limit: int | None
    inventory_status: InventoryStatus | None

    @property
    def scope(self) -> StockScope:
        return StockScope(self.product_id, self.variant_id)

    @property
    def expected_status(self) -> InventoryStatus:
        return classify(self.stock, self.low_stock_threshold, self.backorder_enabled)

    @property
    def is_stale(self) -> bool:
        return self.track_inventory and self.inventory_status is not self.expected_status


@dataclass(frozen=True)
class OrderItem:
    """A line item of an order, as seen by the stock engine."""

    product_id: str
    quantity: int
    variant_id: str | None = None
    id: str | None = None

    def __post_init__(self):
        if self.quantity <= 0:
            raise InvalidStockOperationError("quantity", f"Quantity must be positive, got {self.quantity}")

    @property
    def scope(self) -> StockScope:
        return StockScope(self.product_id, self.variant_id)


def _status(value: str | None) -> InventoryStatus | None:
    return InventoryStatus(value) if value else None


def _inherit(own, inherited):
    return inherited if own is None else own


def resolve_stock_record(product, variant_id: str | None = None) -> StockRecord:
    """Build the effective ``StockRecord`` for a product or one of its variants.

    Raises ``NotFoundError`` when ``variant_id`` is not in the product.
    """
    threshold = _inherit(product.low_stock_threshold, DEFAULT_LOW_STOCK_THRESHOLD)
    if variant_id is None:
        return StockRecord(
            product_id=product.id,
            variant_id=None,
            stock=product.stock or 0,
            track_inventory=bool(_inherit(product.track_inventory, True)),
            low_stock_threshold=threshold,
            backorder_enabled=bool(product.backorder_enabled),
            backorder_limit=product.backorder_limit,
            inventory_status=_status(product.inventory_status),
        )

    variant = product.find_variant(variant_id)
    return StockRecord(
        product_id=product.id,
        variant_id=variant.variant_id,
        stock=variant.stock or 0,
        track_inventory=bool(_inherit(variant.track_inventory, _inherit(product.track_inventory, True))),
        low_stock_threshold=_inherit(variant.low_stock_threshold, threshold),
        backorder_enabled=bool(_inherit(variant.backorder_enabled, product.backorder_enabled)),
        backorder_limit=_inherit(variant.backorder_limit, product.backorder_limit),
        inventory_status=_status(variant.inventory_status),
    )

"""Pre-flight stock validation for a candidate order.

Read-only: it forecasts whether each line item can be satisfied from stock,
satisfied by backordering, or not at all. Nothing is locked, so a result can
be stale by the time the order's stock is actually decremented.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog
from protean.utils.globals import current_domain

from inventory.exceptions import NotFoundError
from inventory.stock.product import Product
from inventory.stock.records import OrderItem, StockRecord, resolve_stock_record

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InvalidItem:
    product_id: str
    variant_id: str | None
    available: int
    requested: int


@dataclass(frozen=True)
class BackorderedItem:
    product_id: str
    variant_id: str | None
    available: int
    backordered: int


@dataclass
class ValidationResult:
    invalid_items: list[InvalidItem] = field(default_factory=list)
    backordered_items: list[BackorderedItem] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        # Backordered items do not block an order.
        return not self.invalid_items


def check_item(record: StockRecord, quantity: int) -> InvalidItem | BackorderedItem | None:
    """Classify one requested quantity against an effective stock record.

    Returns None when the quantity can be served from stock (or the record
    is untracked).
    """
    if not record.track_inventory or record.stock >= quantity:
        return None

    if record.backorder_enabled:
        needed = quantity - record.stock
        if record.backorder_limit is None or needed <= record.backorder_limit:
            return BackorderedItem(record.product_id, record.variant_id, available=record.stock, backordered=needed)

    return InvalidItem(record.product_id, record.variant_id, available=record.stock, requested=quantity)


class StockValidator:
    def validate(self, items: Iterable[OrderItem]) -> ValidationResult:
        result = ValidationResult()
        for item in items:
            try:
                outcome = self._check(item)
            except NotFoundError:
                outcome = InvalidItem(item.product_id, item.variant_id, available=0, requested=item.quantity)
            except Exception:
                logger.exception(
                    "inventory_validation_item_failed",
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                )
                outcome = InvalidItem(item.product_id, item.variant_id, available=0, requested=item.quantity)

            if isinstance(outcome, InvalidItem):
                result.invalid_items.append(outcome)
            elif isinstance(outcome, BackorderedItem):
                result.backordered_items.append(outcome)

        if not result.valid:
            logger.info(
                "order_inventory_invalid",
                invalid_items=[(i.product_id, i.variant_id) for i in result.invalid_items],
            )
        return result

    def is_in_stock(self, product_id: str, variant_id: str | None = None, quantity: int = 1) -> bool:
        """Whether ``quantity`` units can be sold, counting permitted backorders."""
        return self.validate([OrderItem(product_id=product_id, variant_id=variant_id, quantity=quantity)]).valid

    def _check(self, item: OrderItem) -> InvalidItem | BackorderedItem | None:
        product = current_domain.repository_for(Product).get_product(item.product_id)
        record = resolve_stock_record(product, item.variant_id)
        return check_item(record, item.quantity)

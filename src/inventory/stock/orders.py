"""Order inventory processing: apply an order's line items to stock.

Placing an order decrements each line item (reason SALE); cancelling or
returning it increments them back (reason RETURN unless overridden). Items
are processed one by one with no cross-item atomicity: a failing item is
logged and recorded, and the remaining items are still attempted.

Neither operation is idempotent. Calling ``process_order_inventory`` twice
for one order sells its stock twice; callers gate these calls on the order's
status transitions.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from inventory.exceptions import InventoryError
from inventory.stock.history import ChangeReason
from inventory.stock.mutation import StockMutation
from inventory.stock.records import OrderItem

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LineItemFailure:
    product_id: str
    variant_id: str | None
    quantity: int
    error_code: str
    message: str

    @classmethod
    def from_exception(cls, item: OrderItem, exc: Exception) -> "LineItemFailure":
        code = exc.code if isinstance(exc, InventoryError) else type(exc).__name__
        return cls(item.product_id, item.variant_id, item.quantity, code, str(exc))


@dataclass
class OrderInventoryResult:
    """Aggregate outcome of applying an order to stock.

    Truthy exactly when every line item succeeded.
    """

    order_id: str
    mutations: list[StockMutation] = field(default_factory=list)
    failures: list[LineItemFailure] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failures

    def __bool__(self) -> bool:
        return self.all_succeeded


class OrderInventoryProcessor:
    """Applies line items through a stock service exposing ``mutate_stock``
    and ``reconcile``; each item commits in its own Unit of Work."""

    def __init__(self, stock):
        self.stock = stock

    def process_order_inventory(
        self, items: Iterable[OrderItem], user_id: str | None, order_id: str
    ) -> OrderInventoryResult:
        """Decrement stock for every line item of a placed order."""
        return self._apply(
            items,
            user_id,
            order_id,
            sign=-1,
            reason=ChangeReason.SALE,
            note="units sold",
        )

    def restore_order_inventory(
        self,
        items: Iterable[OrderItem],
        user_id: str | None,
        order_id: str,
        reason: ChangeReason = ChangeReason.RETURN,
    ) -> OrderInventoryResult:
        """Put stock back for a cancelled or returned order."""
        return self._apply(
            items,
            user_id,
            order_id,
            sign=1,
            reason=reason,
            note="units returned to inventory",
        )

    def _apply(self, items, user_id, order_id, sign, reason, note) -> OrderInventoryResult:
        result = OrderInventoryResult(order_id=order_id)

        for item in items:
            try:
                mutation = self.stock.mutate_stock(
                    item.scope,
                    sign * item.quantity,
                    reason,
                    order_id=order_id,
                    user_id=user_id,
                    notes=f"Order {order_id}: {item.quantity} {note}",
                )
                self.stock.reconcile(item.scope)
            except Exception as exc:
                logger.exception(
                    "order_item_inventory_failed",
                    order_id=order_id,
                    item_id=item.id,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    quantity=item.quantity,
                    reason=ChangeReason(reason).value,
                )
                result.failures.append(LineItemFailure.from_exception(item, exc))
            else:
                result.mutations.append(mutation)

        logger.info(
            "order_inventory_applied",
            order_id=order_id,
            reason=ChangeReason(reason).value,
            succeeded=len(result.mutations),
            failed=len(result.failures),
        )
        return result

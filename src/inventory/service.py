"""Inventory service: the in-process entry point of the stock engine.

Writes are dispatched as commands through ``current_domain.process``; each
command handler runs in its own Unit of Work. A write that loses an
optimistic-concurrency race (``ExpectedVersionError``) is re-dispatched on a
fresh read after a jittered exponential backoff, and gives up with
``TransactionConflictError`` once ``transaction_max_attempts`` is spent.

All methods expect an active domain context (``inventory.domain_context()``).
"""

import random
import time
from collections.abc import Iterable

import structlog
from protean.exceptions import ExpectedVersionError, TransactionError
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from inventory.config import InventorySettings
from inventory.domain import inventory
from inventory.exceptions import DuplicateProductError, InvalidStockOperationError, TransactionConflictError
from inventory.projections.restock_report import ProductStockSummary, RestockReport, TTLCache
from inventory.stock.history import ChangeReason, InventoryHistoryEntry, InventoryHistoryLog
from inventory.stock.initialization import InitializeStock
from inventory.stock.mutation import MutateStock, RecordStockCount, StockMutation
from inventory.stock.orders import OrderInventoryProcessor, OrderInventoryResult
from inventory.stock.product import Product
from inventory.stock.reconciliation import ReconcileStatus
from inventory.stock.records import DEFAULT_LOW_STOCK_THRESHOLD, OrderItem, StockRecord, StockScope, resolve_stock_record
from inventory.stock.settings import UNSET, UpdateInventorySettings, collect_changes
from inventory.stock.validation import StockValidator, ValidationResult
from inventory.utils.db import setup_db

logger = structlog.get_logger(__name__)


class InventoryService:
    def __init__(self, settings: InventorySettings | None = None, report_cache: TTLCache | None = None):
        self.settings = settings or InventorySettings()
        self.history = InventoryHistoryLog()
        self.validator = StockValidator()
        self.orders = OrderInventoryProcessor(self)
        self.reports = RestockReport(
            report_cache if report_cache is not None else TTLCache(self.settings.report_cache_ttl_seconds)
        )

    # -----------------------------------------------------------------------
    # Dispatch
    # -----------------------------------------------------------------------
    def backoff_delay(self, attempt: int) -> float:
        """Full-jitter exponential backoff before retry number ``attempt``."""
        ceiling = min(
            self.settings.retry_max_delay_seconds,
            self.settings.retry_base_delay_seconds * 2 ** (attempt - 1),
        )
        return random.uniform(0, ceiling)

    def _process(self, command):
        max_attempts = self.settings.transaction_max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                return current_domain.process(command, asynchronous=False)
            except ExpectedVersionError:
                if attempt == max_attempts:
                    break
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "transaction_conflict_retry",
                    command=command.__class__.__name__,
                    product_id=command.product_id,
                    attempt=attempt,
                    delay=round(delay, 4),
                )
                time.sleep(delay)

        logger.error(
            "transaction_conflict_exhausted",
            command=command.__class__.__name__,
            product_id=command.product_id,
            attempts=max_attempts,
        )
        raise TransactionConflictError(max_attempts)

    def _write(self, command):
        try:
            return self._process(command)
        finally:
            # Cached reports may no longer match what was just committed.
            self.reports.invalidate()

    # -----------------------------------------------------------------------
    # Stock writes
    # -----------------------------------------------------------------------
    def initialize_stock(
        self,
        product_id: str,
        name: str = "",
        stock: int = 0,
        track_inventory: bool = True,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        backorder_enabled: bool = False,
        backorder_limit: int | None = None,
        variants: Iterable[dict] = (),
        warehouse_location: str | None = None,
        restock_date: str | None = None,
        user_id: str | None = None,
    ) -> Product:
        """Create a product with its opening stock.

        Raises:
            DuplicateProductError: ``product_id`` already exists.
            InvalidStockOperationError: a negative stock, threshold or limit,
                or duplicate variant ids.
        """
        command = InitializeStock(
            product_id=product_id,
            name=name,
            stock=stock,
            track_inventory=track_inventory,
            low_stock_threshold=low_stock_threshold,
            backorder_enabled=backorder_enabled,
            backorder_limit=backorder_limit,
            variants=[dict(variant) for variant in variants],
            warehouse_location=warehouse_location,
            restock_date=restock_date,
            user_id=user_id,
        )
        try:
            return self._write(command)
        except IntegrityError as exc:
            # Lost a create race on the primary key.
            raise DuplicateProductError(product_id) from exc
        except TransactionError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise DuplicateProductError(product_id) from exc
            raise

    def mutate_stock(
        self,
        scope: StockScope,
        change: int,
        reason: ChangeReason | str,
        order_id: str | None = None,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> StockMutation:
        """Apply ``change`` to the scope's stock, clamping the result at zero.

        Untracked scopes are left alone and the returned mutation is not
        ``applied``.
        """
        return self._write(
            MutateStock(
                product_id=scope.product_id,
                variant_id=scope.variant_id,
                change=change,
                reason=ChangeReason(reason).value,
                order_id=order_id,
                user_id=user_id,
                notes=notes,
            )
        )

    def set_stock(
        self,
        scope: StockScope,
        counted: int,
        reason: ChangeReason | str = ChangeReason.SYNC,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> StockMutation:
        """Set the scope's stock to a counted quantity."""
        if counted < 0:
            raise InvalidStockOperationError("stock", f"stock cannot be negative, got {counted}")
        return self._write(
            RecordStockCount(
                product_id=scope.product_id,
                variant_id=scope.variant_id,
                counted=counted,
                reason=ChangeReason(reason).value,
                user_id=user_id,
                notes=notes,
            )
        )

    def reconcile(self, scope: StockScope) -> StockRecord:
        """Persist the classified status of ``scope`` if the cached one is stale."""
        reconciliation = self._write(ReconcileStatus(product_id=scope.product_id, variant_id=scope.variant_id))
        return reconciliation.record

    def update_inventory_settings(
        self,
        scope: StockScope,
        *,
        track_inventory: bool | None = UNSET,
        low_stock_threshold: int | None = UNSET,
        backorder_enabled: bool | None = UNSET,
        backorder_limit: int | None = UNSET,
        warehouse_location: str | None = UNSET,
        restock_date: str | None = UNSET,
    ) -> StockRecord:
        """Change the given settings and refresh the cached status.

        Omitted arguments are left unchanged. On a variant scope ``None``
        clears the variant's own value so the product's applies again.
        """
        changes = collect_changes(
            track_inventory=track_inventory,
            low_stock_threshold=low_stock_threshold,
            backorder_enabled=backorder_enabled,
            backorder_limit=backorder_limit,
            warehouse_location=warehouse_location,
            restock_date=restock_date,
        )
        return self._write(
            UpdateInventorySettings(product_id=scope.product_id, variant_id=scope.variant_id, changes=changes)
        )

    # -----------------------------------------------------------------------
    # Orders
    # -----------------------------------------------------------------------
    def validate_order_inventory(self, items: Iterable[OrderItem]) -> ValidationResult:
        return self.validator.validate(items)

    def is_in_stock(self, product_id: str, variant_id: str | None = None, quantity: int = 1) -> bool:
        return self.validator.is_in_stock(product_id, variant_id, quantity)

    def process_order_inventory(
        self, items: Iterable[OrderItem], user_id: str | None, order_id: str
    ) -> OrderInventoryResult:
        return self.orders.process_order_inventory(items, user_id, order_id)

    def restore_order_inventory(
        self,
        items: Iterable[OrderItem],
        user_id: str | None,
        order_id: str,
        reason: ChangeReason = ChangeReason.RETURN,
    ) -> OrderInventoryResult:
        return self.orders.restore_order_inventory(items, user_id, order_id, reason)

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------
    def get_product(self, product_id: str) -> Product:
        return current_domain.repository_for(Product).get_product(product_id)

    def get_stock_record(self, scope: StockScope) -> StockRecord:
        return resolve_stock_record(self.get_product(scope.product_id), scope.variant_id)

    def get_inventory_history(
        self, product_id: str, limit: int | None = None, variant_id: str | None = None
    ) -> list[InventoryHistoryEntry]:
        """Ledger entries newest first. ``limit=0`` returns nothing."""
        if limit is None:
            limit = self.settings.history_default_limit
        return self.history.read(StockScope(product_id, variant_id), limit=limit)

    def get_low_stock_products(self, limit: int = 50) -> list[ProductStockSummary]:
        return self.reports.low_stock_products(limit)

    def get_out_of_stock_products(self, limit: int = 50) -> list[ProductStockSummary]:
        return self.reports.out_of_stock_products(limit)

    def get_products_needing_restock(self, limit: int = 50) -> list[ProductStockSummary]:
        return self.reports.products_needing_restock(limit)


def build_service(settings: InventorySettings | None = None) -> InventoryService:
    """Initialize the domain, create the schema if configured, and return a service."""
    settings = settings or InventorySettings()
    inventory.init()
    if settings.create_schema:
        setup_db(inventory)

    logger.info(
        "inventory_service_ready",
        env=settings.env,
        database=inventory.config["databases"]["default"]["provider"],
    )
    return InventoryService(settings)

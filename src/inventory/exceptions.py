"""Typed exceptions raised by the inventory engine.

Every exception carries a machine-readable ``code`` so API handlers and
callers can branch on type or code rather than on message text.

    InventoryError
    +-- NotFoundError
    +-- DuplicateProductError
    +-- InvalidStockOperationError
    +-- TransactionConflictError
    +-- ImmutableHistoryError

Validation failures and partial order processing failures are *results*
(``ValidationResult``, ``OrderInventoryResult``), not exceptions.
"""


class InventoryError(Exception):
    code: str = "INVENTORY_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(InventoryError):
    """The product, or the variant within it, does not exist."""

    code = "NOT_FOUND"

    def __init__(self, product_id: str, variant_id: str | None = None):
        self.product_id = product_id
        self.variant_id = variant_id
        if variant_id is None:
            message = f"Product {product_id} not found"
        else:
            message = f"Variant {variant_id} not found in product {product_id}"
        super().__init__(message)


class DuplicateProductError(InventoryError):
    code = "DUPLICATE_PRODUCT"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} already exists")


class InvalidStockOperationError(InventoryError):
    """Rejected input, e.g. a negative initial stock or threshold."""

    code = "INVALID_STOCK_OPERATION"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class TransactionConflictError(InventoryError):
    """Concurrent writers kept conflicting on the same product.

    Raised only after the command was re-run ``attempts`` times, each on a
    fresh read.
    """

    code = "TRANSACTION_CONFLICT"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Transaction aborted after {attempts} conflicting attempts")


class ImmutableHistoryError(InventoryError):
    code = "IMMUTABLE_HISTORY"

    def __init__(self, entry_id: int | str, operation: str):
        self.entry_id = entry_id
        self.operation = operation
        super().__init__(f"Inventory history entry {entry_id} is append-only; {operation} refused")

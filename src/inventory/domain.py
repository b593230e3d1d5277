"""Inventory bounded context: product stock, variants and the history ledger.

Products (with their embedded variants) are a standard CQRS aggregate. Every
stock write goes through a command handler, one Unit of Work per command,
and is guarded by the aggregate's ``_version``.
"""

import structlog
from protean.domain import Domain

inventory = Domain(name="inventory")

logger = structlog.get_logger(__name__)

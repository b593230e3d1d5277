"""Pydantic request/response schemas for the Inventory API.

These are external contracts, separate from the internal stock records and
dataclasses they are converted to and from.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from inventory.stock.history import ChangeReason


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(ge=1)
    id: str | None = None


class VariantSchema(BaseModel):
    id: str
    sku: str | None = None
    name: str | None = None
    stock: int = Field(ge=0, default=0)
    track_inventory: bool | None = None
    low_stock_threshold: int | None = Field(ge=0, default=None)
    backorder_enabled: bool | None = None
    backorder_limit: int | None = Field(ge=0, default=None)


# ---------------------------------------------------------------------------
# Stock Request Schemas
# ---------------------------------------------------------------------------
class InitializeStockRequest(BaseModel):
    product_id: str
    name: str = ""
    stock: int = Field(ge=0, default=0)
    track_inventory: bool = True
    low_stock_threshold: int = Field(ge=0, default=5)
    backorder_enabled: bool = False
    backorder_limit: int | None = Field(ge=0, default=None)
    warehouse_location: str | None = None
    restock_date: str | None = None
    variants: list[VariantSchema] = Field(default_factory=list)
    user_id: str | None = None


class MutateStockRequest(BaseModel):
    change: int
    reason: ChangeReason = ChangeReason.ADJUSTMENT
    order_id: str | None = None
    user_id: str | None = None
    notes: str | None = None


class StockCountRequest(BaseModel):
    counted: int = Field(ge=0)
    variant_id: str | None = None
    reason: ChangeReason = ChangeReason.SYNC
    user_id: str | None = None
    notes: str | None = None


class InventorySettingsRequest(BaseModel):
    """Only the fields present in the request body are changed."""

    variant_id: str | None = None
    track_inventory: bool | None = None
    low_stock_threshold: int | None = Field(ge=0, default=None)
    backorder_enabled: bool | None = None
    backorder_limit: int | None = Field(ge=0, default=None)
    warehouse_location: str | None = None
    restock_date: str | None = None


class ValidateInventoryRequest(BaseModel):
    items: list[LineItemSchema]


class OrderInventoryRequest(BaseModel):
    items: list[LineItemSchema]
    user_id: str | None = None


class RestoreInventoryRequest(OrderInventoryRequest):
    reason: ChangeReason = ChangeReason.RETURN


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StockRecordResponse(BaseModel):
    product_id: str
    variant_id: str | None = None
    stock: int
    track_inventory: bool
    low_stock_threshold: int
    backorder_enabled: bool
    backorder_limit: int | None = None
    inventory_status: str | None = None


class ProductStockResponse(BaseModel):
    product_id: str
    name: str
    version: int
    record: StockRecordResponse
    variants: list[StockRecordResponse] = Field(default_factory=list)


class StockMutationResponse(BaseModel):
    applied: bool
    previous_stock: int
    new_stock: int
    shortfall: int
    record: StockRecordResponse
    history_entry_id: int | None = None


class HistoryEntryResponse(BaseModel):
    id: int
    product_id: str
    variant_id: str | None = None
    date: datetime
    previous_stock: int
    new_stock: int
    change: int
    reason: ChangeReason
    order_id: str | None = None
    user_id: str | None = None
    notes: str | None = None


class InvalidItemResponse(BaseModel):
    product_id: str
    variant_id: str | None = None
    available: int
    requested: int


class BackorderedItemResponse(BaseModel):
    product_id: str
    variant_id: str | None = None
    available: int
    backordered: int


class ValidationResponse(BaseModel):
    valid: bool
    invalid_items: list[InvalidItemResponse]
    backordered_items: list[BackorderedItemResponse]


class LineItemFailureResponse(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int
    error_code: str
    message: str


class OrderInventoryResponse(BaseModel):
    order_id: str
    success: bool
    failures: list[LineItemFailureResponse]


class ProductSummaryResponse(BaseModel):
    product_id: str
    name: str
    stock: int
    low_stock_threshold: int
    inventory_status: str
    updated_at: datetime

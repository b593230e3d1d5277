"""FastAPI routes for the Inventory domain: stock, orders and restock reports.

Routes run inside the domain context pushed by the application middleware
and delegate to the ``InventoryService`` on ``app.state.inventory``.
"""

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from inventory.api.schemas import (
    BackorderedItemResponse,
    HistoryEntryResponse,
    InitializeStockRequest,
    InvalidItemResponse,
    InventorySettingsRequest,
    LineItemFailureResponse,
    LineItemSchema,
    MutateStockRequest,
    OrderInventoryRequest,
    OrderInventoryResponse,
    ProductStockResponse,
    ProductSummaryResponse,
    RestoreInventoryRequest,
    StockCountRequest,
    StockMutationResponse,
    StockRecordResponse,
    ValidateInventoryRequest,
    ValidationResponse,
)
from inventory.exceptions import (
    DuplicateProductError,
    InvalidStockOperationError,
    InventoryError,
    NotFoundError,
    TransactionConflictError,
)
from inventory.projections.restock_report import ProductStockSummary
from inventory.service import InventoryService
from inventory.stock.history import InventoryHistoryEntry
from inventory.stock.mutation import StockMutation
from inventory.stock.orders import OrderInventoryResult
from inventory.stock.product import Product
from inventory.stock.records import OrderItem, StockRecord, StockScope, resolve_stock_record


def get_service(request: Request) -> InventoryService:
    return request.app.state.inventory


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------
def _record(record: StockRecord) -> StockRecordResponse:
    return StockRecordResponse(
        product_id=record.product_id,
        variant_id=record.variant_id,
        stock=record.stock,
        track_inventory=record.track_inventory,
        low_stock_threshold=record.low_stock_threshold,
        backorder_enabled=record.backorder_enabled,
        backorder_limit=record.backorder_limit,
        inventory_status=record.inventory_status.value if record.inventory_status else None,
    )


def _product(product: Product) -> ProductStockResponse:
    return ProductStockResponse(
        product_id=product.id,
        name=product.name,
        version=product.version,
        record=_record(resolve_stock_record(product)),
        variants=[_record(resolve_stock_record(product, v.variant_id)) for v in product.variant_list()],
    )


def _mutation(mutation: StockMutation) -> StockMutationResponse:
    return StockMutationResponse(
        applied=mutation.applied,
        previous_stock=mutation.previous_stock,
        new_stock=mutation.new_stock,
        shortfall=mutation.shortfall,
        record=_record(mutation.record),
        history_entry_id=mutation.entry.id if mutation.entry else None,
    )


def _order(result: OrderInventoryResult) -> OrderInventoryResponse:
    return OrderInventoryResponse(
        order_id=result.order_id,
        success=bool(result),
        failures=[LineItemFailureResponse(**vars(failure)) for failure in result.failures],
    )


def _summary(summary: ProductStockSummary) -> ProductSummaryResponse:
    return ProductSummaryResponse(
        product_id=summary.product_id,
        name=summary.name,
        stock=summary.stock,
        low_stock_threshold=summary.low_stock_threshold,
        inventory_status=summary.inventory_status.value,
        updated_at=summary.updated_at,
    )


def _history_entry(entry: InventoryHistoryEntry) -> HistoryEntryResponse:
    return HistoryEntryResponse(
        id=entry.id,
        product_id=entry.product_id,
        variant_id=entry.variant_id,
        date=entry.date,
        previous_stock=entry.previous_stock,
        new_stock=entry.new_stock,
        change=entry.change,
        reason=entry.change_reason,
        order_id=entry.order_id,
        user_id=entry.user_id,
        notes=entry.notes,
    )


def _items(items: list[LineItemSchema]) -> list[OrderItem]:
    return [
        OrderItem(product_id=item.product_id, variant_id=item.variant_id, quantity=item.quantity, id=item.id)
        for item in items
    ]


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.post("/products", status_code=201, response_model=ProductStockResponse)
async def initialize_stock(body: InitializeStockRequest, service: InventoryService = Depends(get_service)):
    product = service.initialize_stock(
        body.product_id,
        name=body.name,
        stock=body.stock,
        track_inventory=body.track_inventory,
        low_stock_threshold=body.low_stock_threshold,
        backorder_enabled=body.backorder_enabled,
        backorder_limit=body.backorder_limit,
        variants=[variant.model_dump() for variant in body.variants],
        warehouse_location=body.warehouse_location,
        restock_date=body.restock_date,
        user_id=body.user_id,
    )
    return _product(product)


@inventory_router.get("/products/{product_id}", response_model=ProductStockResponse)
async def get_product_stock(product_id: str, service: InventoryService = Depends(get_service)):
    return _product(service.get_product(product_id))


@inventory_router.put("/products/{product_id}/stock", response_model=StockMutationResponse)
async def mutate_product_stock(
    product_id: str, body: MutateStockRequest, service: InventoryService = Depends(get_service)
):
    mutation = service.mutate_stock(
        StockScope(product_id),
        body.change,
        body.reason,
        order_id=body.order_id,
        user_id=body.user_id,
        notes=body.notes,
    )
    return _mutation(mutation)


@inventory_router.put("/products/{product_id}/variants/{variant_id}/stock", response_model=StockMutationResponse)
async def mutate_variant_stock(
    product_id: str,
    variant_id: str,
    body: MutateStockRequest,
    service: InventoryService = Depends(get_service),
):
    mutation = service.mutate_stock(
        StockScope(product_id, variant_id),
        body.change,
        body.reason,
        order_id=body.order_id,
        user_id=body.user_id,
        notes=body.notes,
    )
    return _mutation(mutation)


@inventory_router.put("/products/{product_id}/count", response_model=StockMutationResponse)
async def record_stock_count(
    product_id: str, body: StockCountRequest, service: InventoryService = Depends(get_service)
):
    mutation = service.set_stock(
        StockScope(product_id, body.variant_id),
        body.counted,
        body.reason,
        user_id=body.user_id,
        notes=body.notes,
    )
    return _mutation(mutation)


@inventory_router.put("/products/{product_id}/settings", response_model=StockRecordResponse)
async def update_inventory_settings(
    product_id: str,
    body: InventorySettingsRequest,
    service: InventoryService = Depends(get_service),
):
    # Fields left out of the body stay unchanged; an explicit null clears.
    changes = body.model_dump(include=body.model_fields_set - {"variant_id"})
    record = service.update_inventory_settings(StockScope(product_id, body.variant_id), **changes)
    return _record(record)


@inventory_router.get("/products/{product_id}/history", response_model=list[HistoryEntryResponse])
async def get_inventory_history(
    product_id: str,
    limit: int | None = Query(default=None, ge=1, le=500),
    variant_id: str | None = None,
    service: InventoryService = Depends(get_service),
):
    entries = service.get_inventory_history(product_id, limit=limit, variant_id=variant_id)
    return [_history_entry(entry) for entry in entries]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@inventory_router.post("/validate", response_model=ValidationResponse)
async def validate_order_inventory(body: ValidateInventoryRequest, service: InventoryService = Depends(get_service)):
    result = service.validate_order_inventory(_items(body.items))
    return ValidationResponse(
        valid=result.valid,
        invalid_items=[InvalidItemResponse(**vars(item)) for item in result.invalid_items],
        backordered_items=[BackorderedItemResponse(**vars(item)) for item in result.backordered_items],
    )


@inventory_router.post("/orders/{order_id}/process", response_model=OrderInventoryResponse)
async def process_order_inventory(
    order_id: str, body: OrderInventoryRequest, service: InventoryService = Depends(get_service)
):
    return _order(service.process_order_inventory(_items(body.items), body.user_id, order_id))


@inventory_router.post("/orders/{order_id}/restore", response_model=OrderInventoryResponse)
async def restore_order_inventory(
    order_id: str,
    body: RestoreInventoryRequest,
    service: InventoryService = Depends(get_service),
):
    return _order(service.restore_order_inventory(_items(body.items), body.user_id, order_id, body.reason))


# ---------------------------------------------------------------------------
# Restock reports
# ---------------------------------------------------------------------------
@inventory_router.get("/reports/low-stock", response_model=list[ProductSummaryResponse])
async def low_stock_report(
    limit: int = Query(default=50, ge=1, le=500), service: InventoryService = Depends(get_service)
):
    return [_summary(summary) for summary in service.get_low_stock_products(limit)]


@inventory_router.get("/reports/out-of-stock", response_model=list[ProductSummaryResponse])
async def out_of_stock_report(
    limit: int = Query(default=50, ge=1, le=500), service: InventoryService = Depends(get_service)
):
    return [_summary(summary) for summary in service.get_out_of_stock_products(limit)]


@inventory_router.get("/reports/needs-restock", response_model=list[ProductSummaryResponse])
async def needs_restock_report(
    limit: int = Query(default=50, ge=1, le=500), service: InventoryService = Depends(get_service)
):
    return [_summary(summary) for summary in service.get_products_needing_restock(limit)]


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
_STATUS_CODES = {
    NotFoundError: 404,
    DuplicateProductError: 409,
    TransactionConflictError: 409,
    InvalidStockOperationError: 400,
}


async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    status_code = next((code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)), 500)
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": {"code": "VALIDATION_ERROR", "message": "Invalid request", "fields": exc.messages}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)

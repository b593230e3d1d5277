"""Inventory FastAPI application.

Serves the inventory engine over HTTP. Every request runs inside the
inventory domain context, so handlers resolve ``current_domain`` and its
repositories.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inventory.api import inventory_router, register_exception_handlers
from inventory.config import InventorySettings
from inventory.domain import inventory
from inventory.service import InventoryService, build_service
from inventory.utils.logging import add_context, clear_context, configure_logging


def create_app(service: InventoryService | None = None, settings: InventorySettings | None = None) -> FastAPI:
    """Build the application around ``service``, or one built from settings."""
    settings = settings or (service.settings if service is not None else InventorySettings())
    configure_logging(level=settings.effective_log_level, env=settings.env, log_dir=settings.log_dir)

    app = FastAPI(
        title="Inventory API",
        description="Stock mutation, order inventory and restock reports",
    )
    app.state.inventory = service if service is not None else build_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the inventory domain context for each request."""
        with inventory.domain_context():
            response = await call_next(request)
        return response

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Bind a request id to every log event emitted while handling it."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        clear_context()
        add_context(request_id=request_id, path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["X-Request-ID"] = request_id
        return response

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    app.include_router(inventory_router)
    register_exception_handlers(app)

    # -----------------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------------
    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "env": settings.env})

    return app


def __getattr__(name: str):
    # ``app:app`` for uvicorn, built lazily so importing this module has no
    # side effects on the database.
    if name == "app":
        globals()["app"] = application = create_app()
        return application
    raise AttributeError(name)

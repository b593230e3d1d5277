from inventory.api.routes import inventory_router, register_exception_handlers

__all__ = ["inventory_router", "register_exception_handlers"]

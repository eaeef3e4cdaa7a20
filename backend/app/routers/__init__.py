"""API routers."""
from .devices import router as devices_router
from .notifications import router as notifications_router
from .web_push import router as web_push_router

__all__ = ["devices_router", "notifications_router", "web_push_router"]

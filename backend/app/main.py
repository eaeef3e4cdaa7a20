"""Main FastAPI application for the mobile push notification service."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings, get_database_url
from .database import Database
from .errors import ApiError
from .routers import devices_router, notifications_router, web_push_router
from .services import (
    DeviceRegistry,
    HistoryRecorder,
    NotificationLifecycle,
    VapidConfig,
    WebPushBridge,
    WebPushGateway,
)

SERVICE_NAME = "Mobile Push Notification Service"
SERVICE_VERSION = "2.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - open the store at startup, close it at shutdown."""
    logger.info(f"Starting {SERVICE_NAME}")

    await app.state.database.init()

    yield

    await app.state.database.close()
    logger.info("Shutdown complete")


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI):
    """Render every failure as ``{status: "error", message, ...}``."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "status": "error",
                "message": "Validation failed",
                "errors": [
                    {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "")}
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        content = {"status": "error", "message": exc.message}
        if exc.field_errors:
            content["message"] = "Validation failed"
            content["errors"] = exc.field_errors
        elif exc.error is not None:
            content["error"] = exc.error
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code != 404:
            return JSONResponse(
                status_code=exc.status_code,
                content={"status": "error", "message": str(exc.detail)},
                headers=getattr(exc, "headers", None),
            )
        return JSONResponse(
            status_code=404,
            content={
                "status": "error",
                "message": "Endpoint not found",
                "requested_path": request.url.path,
                "available_endpoints": "/api/info",
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "message": "Internal server error",
                "timestamp": datetime.utcnow().isoformat(),
            },
        )


def create_app(database: Optional[Database] = None, config: Settings = settings) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        database: Store handle to use; built from settings when omitted
        config: Settings for VAPID credentials and the database URL
    """
    app = FastAPI(
        title=SERVICE_NAME,
        description="Device registry and poll-based notification delivery for mobile clients",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )

    if database is None:
        database = Database(get_database_url(config))

    history = HistoryRecorder(database)
    app.state.database = database
    app.state.device_registry = DeviceRegistry(database)
    app.state.notification_lifecycle = NotificationLifecycle(database, history)
    app.state.web_push_bridge = WebPushBridge(
        database, WebPushGateway(VapidConfig.from_settings(config))
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else "-"
        logger.info(f"{request.method} {request.url.path} - {client}")
        return await call_next(request)

    register_exception_handlers(app)

    app.include_router(devices_router)
    app.include_router(notifications_router)
    app.include_router(web_push_router)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "timestamp": datetime.utcnow().isoformat(),
        }

    @app.get("/api/info")
    async def service_info():
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Custom push notification service for mobile devices",
            "endpoints": {
                "register_device": "POST /api/usuarios/registrarTokenAlt",
                "pending_notifications": "GET /api/notificaciones/pendientes",
                "send_notification": "POST /api/notificaciones/enviar",
                "notification_history": "GET /api/notificaciones/historial",
                "mark_as_read": "POST /api/notificaciones/marcar-leida",
                "user_devices": "GET /api/usuarios/:userId/dispositivos",
                "deactivate_device": "DELETE /api/usuarios/dispositivos/:deviceToken",
                "statistics": "GET /api/notificaciones/estadisticas",
                "cleanup": "POST /api/notificaciones/limpiar",
                "health": "GET /api/notificaciones/health",
            },
            "timestamp": datetime.utcnow().isoformat(),
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)

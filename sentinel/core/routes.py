# =============================================================================
# File: sentinel/core/routes.py
# Description: Route registration for FastAPI application
# =============================================================================

import logging

from sentinel.api.routers.chat_router import router as chat_router
from sentinel.api.routers.gateway_router import router as gateway_router
from sentinel.api.routers.internal_router import router as internal_router
from sentinel.api.routers.metrics_router import router as metrics_router
from sentinel.api.routers.notification_router import router as notification_router
from sentinel.core.fastapi_types import FastAPI
from sentinel.core.health import register_health_endpoints

logger = logging.getLogger("sentinel.routes")


def setup_routes(app: FastAPI) -> None:
    """Register all routers with the FastAPI application"""

    app.include_router(chat_router)
    app.include_router(notification_router)
    app.include_router(internal_router)
    app.include_router(gateway_router, tags=["Connection Gateway"])
    app.include_router(metrics_router)

    register_health_endpoints(app)

    logger.info("Routers registered")

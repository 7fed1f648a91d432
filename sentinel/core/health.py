# =============================================================================
# File: sentinel/core/health.py
# Description: Health check endpoints for the application
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sentinel.core import __version__
from sentinel.core.app_state import get_start_time
from sentinel.core.fastapi_types import FastAPI
from sentinel.infra.persistence import pg_client

logger = logging.getLogger("sentinel.health")


def register_health_endpoints(app: FastAPI) -> None:
    """Register health check endpoints directly on the app"""

    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, Any]:
        """Health check with gateway, push and storage status"""
        return await get_health_status(app)

    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with API information"""
        return get_root_info(app)


async def get_health_status(app: FastAPI) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    health_data: Dict[str, Any] = {
        "status": "healthy",
        "version": __version__,
        "timestamp": now.isoformat(),
        "uptime_seconds": round((now - get_start_time()).total_seconds(), 1),
        "startup": getattr(app.state, 'startup_info', None),
    }

    gateway = getattr(app.state, 'gateway', None)
    health_data["gateway"] = gateway.get_stats() if gateway else {"status": "unavailable"}

    providers = getattr(app.state, 'push_providers', ()) or ()
    health_data["push"] = {
        p.name: {
            "configured": p.is_configured,
            "circuit": p.breaker.get_metrics() if hasattr(p, 'breaker') else None,
        }
        for p in providers
    }

    if getattr(app.state, 'db_pool_owned', False):
        db_health = await pg_client.health_check()
        health_data["database"] = db_health
        if db_health.get("status") != "healthy":
            health_data["status"] = "degraded"

    return health_data


def get_root_info(app: FastAPI) -> Dict[str, Any]:
    return {
        "name": "Sentinel API",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "websocket": "/ws",
        "metrics": "/metrics",
    }

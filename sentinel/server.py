# =============================================================================
# File: sentinel/server.py
# Description: Main FastAPI application entry point
# =============================================================================

from __future__ import annotations

import functools
import logging
import os
from typing import Optional

from sentinel.config.app_config import get_app_config
from sentinel.config.logging_config import setup_logging
from sentinel.core import __version__
from sentinel.core.app_state import ComponentOverrides, get_start_time
from sentinel.core.exceptions import setup_exception_handlers
from sentinel.core.fastapi_types import FastAPI
from sentinel.core.lifespan import lifespan
from sentinel.core.middleware import setup_middleware
from sentinel.core.routes import setup_routes

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
setup_logging(
    service_name="sentinel",
    log_file=os.getenv("LOG_FILE") or None,
    enable_json=get_app_config().is_production or None,
)

logger = logging.getLogger("sentinel.server")


# =============================================================================
# FASTAPI APP
# =============================================================================
def create_app(overrides: Optional[ComponentOverrides] = None) -> FastAPI:
    """
    Build the application.

    overrides replaces the configured store, directories or push providers
    (embedding and tests); everything else comes from the environment.
    """
    application = FastAPI(
        title=f"Sentinel API v{__version__}",
        version=__version__,
        lifespan=functools.partial(lifespan, overrides=overrides),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    setup_middleware(application)
    setup_routes(application)
    setup_exception_handlers(application)
    return application


app = create_app()

__all__ = ["app", "create_app", "get_start_time", "__version__"]

# =============================================================================
# Development entry point
# =============================================================================
if __name__ == "__main__":
    import subprocess

    config = get_app_config()
    reload = os.getenv("RELOAD", "true").lower() == "true"

    logger.info(f"Starting Sentinel API on {config.host}:{config.port} (reload={reload})")

    cmd = [
        "granian",
        "--interface", "asgi",
        "sentinel.server:app",
        "--host", config.host,
        "--port", str(config.port),
        "--workers", str(config.workers),
    ]

    if reload:
        cmd.extend([
            "--reload",
            "--reload-paths", "sentinel/",
            "--reload-tick", "100",
        ])

    subprocess.run(cmd)

# =============================================================================
# File: sentinel/core/lifespan.py
# Description: Application lifespan management (startup/shutdown)
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from sentinel.core import __version__
from sentinel.core.app_state import AppState, ComponentOverrides
from sentinel.core.fastapi_types import FastAPI
from sentinel.core.shutdown import shutdown_all_services
from sentinel.core.startup.infrastructure import initialize_storage
from sentinel.core.startup.services import (
    initialize_notifications,
    initialize_realtime,
    initialize_security,
    initialize_services,
)

logger = logging.getLogger("sentinel.lifespan")


# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================
@asynccontextmanager
async def lifespan(app_instance: FastAPI, overrides: Optional[ComponentOverrides] = None):
    """Application lifespan manager with structured initialization"""

    logger.info(f"Sentinel v{__version__} starting up...")

    # Initialize app state
    app_instance.state = AppState()

    try:
        # Phase 1: Storage
        logger.info("Phase 1: Initializing storage...")
        await initialize_storage(app_instance, overrides)

        # Phase 2: Identity verification
        logger.info("Phase 2: Initializing identity verification...")
        await initialize_security(app_instance)

        # Phase 3: Presence, room bus and connection gateway
        logger.info("Phase 3: Initializing realtime gateway...")
        await initialize_realtime(app_instance)

        # Phase 4: Push providers and fan-out
        logger.info("Phase 4: Initializing notifications...")
        await initialize_notifications(app_instance, overrides)

        # Phase 5: Application services
        logger.info("Phase 5: Initializing chat service...")
        await initialize_services(app_instance)

        app_instance.state.startup_info = {
            "store": type(app_instance.state.room_store).__name__,
            "push_providers": [p.name for p in app_instance.state.push_providers],
        }

        logger.info("=" * 60)
        logger.info("Application startup complete - all systems operational")
        logger.info(f"Sentinel v{__version__} ready to serve requests")
        logger.info("=" * 60)

        yield

    except Exception as startup_error:
        logger.error(f"Critical error during startup: {startup_error}", exc_info=True)
        raise

    finally:
        logger.info(f"Sentinel v{__version__} shutting down...")
        try:
            async with asyncio.timeout(30.0):
                await shutdown_all_services(app_instance)
            logger.info(f"Sentinel v{__version__} stopped gracefully")
        except TimeoutError:
            logger.error("Shutdown timed out after 30s, forcing exit")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)

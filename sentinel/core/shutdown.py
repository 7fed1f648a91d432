# =============================================================================
# File: sentinel/core/shutdown.py
# Description: Graceful shutdown logic for all services
# =============================================================================

import asyncio
import logging

from sentinel.core.fastapi_types import FastAPI
from sentinel.core.startup.infrastructure import close_storage

logger = logging.getLogger("sentinel.shutdown")

NOTIFICATION_DRAIN_TIMEOUT = 10.0


async def shutdown_all_services(app: FastAPI) -> None:
    """Shutdown all services in the correct order"""

    # Prevent duplicate shutdowns
    if getattr(app, '_shutdown_in_progress', False):
        logger.warning("Shutdown already in progress, skipping")
        return

    app._shutdown_in_progress = True
    try:
        # Phase 1: Close client sockets so no new frames arrive
        gateway = getattr(app.state, 'gateway', None)
        if gateway is not None:
            try:
                async with asyncio.timeout(10.0):
                    await gateway.shutdown()
                logger.info("Connection gateway shut down")
            except TimeoutError:
                logger.error("Gateway shutdown timed out after 10s, continuing...")
            except Exception as e:
                logger.error(f"Error shutting down gateway: {e}")

        # Phase 2: Let in-flight notifications finish, then release providers
        fanout = getattr(app.state, 'fanout_service', None)
        if fanout is not None:
            if fanout.pending:
                logger.info(f"Draining {fanout.pending} pending notifications...")
            await fanout.drain(timeout=NOTIFICATION_DRAIN_TIMEOUT)
            await fanout.close()
            logger.info("Push providers closed")

        # Phase 3: Close database connections
        try:
            await close_storage(app)
        except Exception as e:
            logger.error(f"Error closing storage: {e}")

        logger.info("All services shut down")
    finally:
        app._shutdown_in_progress = False

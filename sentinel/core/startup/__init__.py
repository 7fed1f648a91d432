# =============================================================================
# File: sentinel/core/startup/__init__.py
# Description: Startup module exports
# =============================================================================

from sentinel.core.startup.infrastructure import (
    initialize_storage,
    close_storage,
)
from sentinel.core.startup.services import (
    initialize_security,
    initialize_realtime,
    initialize_notifications,
    initialize_services,
    build_push_providers,
)

__all__ = [
    "initialize_storage",
    "close_storage",
    "initialize_security",
    "initialize_realtime",
    "initialize_notifications",
    "initialize_services",
    "build_push_providers",
]

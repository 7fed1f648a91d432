# =============================================================================
# File: sentinel/realtime/core/__init__.py
# =============================================================================

from sentinel.realtime.core.room_bus import RoomBus
from sentinel.realtime.core.types import ConnectionState, GatewayEvent, make_frame, normalize_frame

__all__ = [
    "RoomBus",
    "ConnectionState",
    "GatewayEvent",
    "make_frame",
    "normalize_frame",
]

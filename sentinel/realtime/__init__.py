# =============================================================================
# File: sentinel/realtime/__init__.py
# Description: Real-time delivery - Connection Gateway, Room Bus, Presence
# =============================================================================

"""
Realtime - Bounded Context

Modules:
- core: frame envelope types, RoomBus (in-process room publish/subscribe)
- presence: PresenceTracker (user -> open connection count)
- websocket: GatewayConnection, frame handlers, ConnectionGateway
"""

from sentinel.realtime.core.room_bus import RoomBus
from sentinel.realtime.presence.presence_tracker import PresenceTracker
from sentinel.realtime.websocket.gateway_manager import ConnectionGateway

__all__ = [
    "RoomBus",
    "PresenceTracker",
    "ConnectionGateway",
]

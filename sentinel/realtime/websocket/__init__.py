# =============================================================================
# File: sentinel/realtime/websocket/__init__.py
# =============================================================================

from sentinel.realtime.websocket.gateway_connection import GatewayConnection
from sentinel.realtime.websocket.gateway_handlers import GatewayHandler
from sentinel.realtime.websocket.gateway_manager import ConnectionGateway

__all__ = [
    "GatewayConnection",
    "GatewayHandler",
    "ConnectionGateway",
]

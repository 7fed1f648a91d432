# =============================================================================
# File: sentinel/realtime/core/types.py
# Description: Gateway frame envelope and connection state definitions
# =============================================================================

"""
Gateway Core Types

Frames travel as {"t": <event type>, "p": <payload>}. Clients may send the
long form {"type": ..., "payload": ...}; it is normalized on receipt.
"""

import json
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Protocol


class ConnectionState(Enum):
    """
    Per-connection lifecycle.

    CONNECTING -> AUTHENTICATING -> AUTHENTICATED | REJECTED -> DISCONNECTED
    REJECTED and DISCONNECTED are terminal.
    """
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"
    DISCONNECTED = "disconnected"


class GatewayEvent(str, Enum):
    """Frame types used by the gateway"""
    # client -> server
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    TYPING = "typing"
    PING = "ping"
    PRESENCE_REQUEST = "presence_request"

    # server -> client
    SERVER_READY = "server_ready"
    ROOM_JOINED = "room_joined"
    ROOM_LEFT = "room_left"
    PONG = "pong"
    PRESENCE_STATE = "presence_state"
    PRESENCE_UPDATE = "presence:update"
    MESSAGE_NEW = "message:new"
    ERROR = "error"


class ErrorCode(str, Enum):
    AUTH_FAILED = "AUTH_FAILED"
    INVALID_JSON = "INVALID_JSON"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"
    FRAME_TOO_LARGE = "FRAME_TOO_LARGE"
    HANDLER_ERROR = "HANDLER_ERROR"


# WebSocket close code for policy violation (RFC 6455)
WS_POLICY_VIOLATION = 1008


class FrameSubscriber(Protocol):
    """Anything the RoomBus can deliver to"""
    conn_id: str

    async def send_frame(self, event: str, payload: Dict[str, Any]) -> bool:
        ...


class FrameJSONEncoder(json.JSONEncoder):
    """JSON encoder for frames that handles UUID, datetime and enums"""

    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, uuid.UUID):
            return str(obj)
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


def make_frame(event: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {'t': event.value if isinstance(event, Enum) else event, 'p': payload or {}}


def encode_frame(frame: Dict[str, Any]) -> str:
    return json.dumps(frame, cls=FrameJSONEncoder)


def normalize_frame(message_data: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize message format to use 't' and 'p' consistently"""
    if 'type' in message_data and 't' not in message_data:
        message_data['t'] = message_data.pop('type')

    if 'payload' in message_data and 'p' not in message_data:
        message_data['p'] = message_data.pop('payload')

    if message_data.get('p') is None:
        message_data['p'] = {}

    return message_data

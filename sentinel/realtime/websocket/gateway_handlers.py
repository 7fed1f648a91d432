# =============================================================================
# File: sentinel/realtime/websocket/gateway_handlers.py
# Description: Client frame handlers for the Connection Gateway
# =============================================================================

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sentinel.infra.metrics.gateway_metrics import gateway_frames_received
from sentinel.realtime.core.types import ErrorCode, GatewayEvent, normalize_frame
from sentinel.realtime.websocket.gateway_connection import GatewayConnection
from sentinel.realtime.websocket.gateway_manager import ConnectionGateway

log = logging.getLogger("sentinel.realtime.handlers")


class InvalidPayload(Exception):
    """Frame payload is missing a field or has the wrong shape"""
    pass


class GatewayHandler:
    """Routes frames from one authenticated connection"""

    def __init__(
            self,
            connection: GatewayConnection,
            gateway: ConnectionGateway,
            max_presence_query: int = 500,
            max_frame_size: int = 64 * 1024,
    ):
        self.connection = connection
        self.gateway = gateway
        self.max_presence_query = max_presence_query
        self.max_frame_size = max_frame_size

        self.handlers = {
            GatewayEvent.JOIN_ROOM.value: self.handle_join_room,
            GatewayEvent.LEAVE_ROOM.value: self.handle_leave_room,
            GatewayEvent.TYPING.value: self.handle_typing,
            GatewayEvent.PING.value: self.handle_ping,
            'PING': self.handle_ping,
            GatewayEvent.PRESENCE_REQUEST.value: self.handle_presence_request,
        }

    async def handle_raw(self, text: str) -> None:
        """Size-check and decode one text frame, then route it"""
        if len(text.encode("utf-8")) > self.max_frame_size:
            await self.send_error(f"Frame exceeds {self.max_frame_size} bytes", ErrorCode.FRAME_TOO_LARGE)
            return

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            await self.send_error("Frame is not valid JSON", ErrorCode.INVALID_JSON, details=str(e))
            return

        await self.handle_message(parsed)

    async def handle_message(self, message_data: Dict[str, Any]) -> None:
        """Route message to appropriate handler"""
        if not self.connection.is_authenticated:
            log.debug(f"Dropped frame from non-authenticated connection {self.connection.conn_id}")
            return

        if not isinstance(message_data, dict):
            await self.send_error("Frame must be a JSON object", ErrorCode.INVALID_PAYLOAD)
            return

        message_data = normalize_frame(message_data)
        msg_type = message_data.get('t')
        self.connection.frames_received += 1

        if not isinstance(msg_type, str):
            await self.send_error("Frame type must be a string", ErrorCode.INVALID_PAYLOAD)
            return

        handler = self.handlers.get(msg_type)
        if handler is None:
            log.warning(f"Unknown message type: {msg_type}")
            await self.send_error(f"Unknown message type: {msg_type}", ErrorCode.UNKNOWN_TYPE)
            return

        gateway_frames_received.labels(event=msg_type).inc()
        payload = message_data['p']
        try:
            if not isinstance(payload, dict):
                raise InvalidPayload("Payload must be an object")
            await handler(payload)
        except InvalidPayload as e:
            await self.send_error(str(e), ErrorCode.INVALID_PAYLOAD)
        except Exception as e:
            log.error(f"Error handling {msg_type}: {e}", exc_info=True)
            await self.send_error(f"Error processing {msg_type}", ErrorCode.HANDLER_ERROR)

    # =========================================================================
    # Rooms
    # =========================================================================

    async def handle_join_room(self, payload: Dict[str, Any]) -> None:
        room_id = self._room_id(payload)
        self.gateway.join_room(self.connection, room_id)
        await self.connection.send_frame(GatewayEvent.ROOM_JOINED, {"room_id": room_id})

    async def handle_leave_room(self, payload: Dict[str, Any]) -> None:
        room_id = self._room_id(payload)
        self.gateway.leave_room(self.connection, room_id)
        await self.connection.send_frame(GatewayEvent.ROOM_LEFT, {"room_id": room_id})

    async def handle_typing(self, payload: Dict[str, Any]) -> None:
        room_id = self._room_id(payload)
        is_typing = payload.get('is_typing', True)
        if not isinstance(is_typing, bool):
            raise InvalidPayload("is_typing must be a boolean")

        identity = self.connection.identity
        await self.gateway.emit_to_room(
            room_id,
            GatewayEvent.TYPING.value,
            {
                "room_id": room_id,
                "user_id": identity.user_id,
                "username": identity.username,
                "is_typing": is_typing,
            },
            exclude_conn_id=self.connection.conn_id,
        )

    # =========================================================================
    # Heartbeat and presence
    # =========================================================================

    async def handle_ping(self, payload: Dict[str, Any]) -> None:
        client_timestamp = payload.get('timestamp') or payload.get('ts')
        await self.connection.send_frame(GatewayEvent.PONG, {
            'client_timestamp': client_timestamp,
            'server_timestamp': int(time.time() * 1000),
            'connection_id': self.connection.conn_id,
        })

    async def handle_presence_request(self, payload: Dict[str, Any]) -> None:
        user_ids = payload.get('user_ids')
        if not isinstance(user_ids, list) or not all(isinstance(u, str) for u in user_ids):
            raise InvalidPayload("user_ids must be a list of strings")
        if len(user_ids) > self.max_presence_query:
            raise InvalidPayload(f"At most {self.max_presence_query} user_ids per request")

        presence = self.gateway.presence
        await self.connection.send_frame(GatewayEvent.PRESENCE_STATE, {
            "users": {uid: presence.is_online(uid) for uid in user_ids},
        })

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _room_id(payload: Dict[str, Any]) -> str:
        room_id = payload.get('room_id')
        if not isinstance(room_id, str) or not room_id.strip():
            raise InvalidPayload("room_id is required")
        return room_id

    async def send_error(self, message: str, code: ErrorCode, details: Optional[str] = None) -> None:
        """Send an error message to client with standard format"""
        log.info(f"Sending error to {self.connection.conn_id}: {code.value} - {message}")
        await self.connection.send_frame(GatewayEvent.ERROR, {
            'code': code.value,
            'message': message,
            'details': details,
            'timestamp': datetime.now(timezone.utc).isoformat(),
        })

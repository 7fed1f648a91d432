# =============================================================================
# File: sentinel/realtime/websocket/gateway_connection.py
# Description: A single client WebSocket and its lifecycle state
# =============================================================================

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from sentinel.infra.metrics.gateway_metrics import gateway_frames_sent, gateway_send_failures
from sentinel.realtime.core.types import ConnectionState, encode_frame, make_frame
from sentinel.security.jwt_auth import Identity
from sentinel.utils.ids import generate_id_str

log = logging.getLogger("sentinel.realtime.connection")


@dataclass
class GatewayConnection:
    """One client socket; joined rooms are tracked by the RoomBus and mirrored here"""

    ws: WebSocket
    conn_id: str = field(default_factory=generate_id_str)
    send_timeout: float = 5.0

    state: ConnectionState = ConnectionState.CONNECTING
    identity: Optional[Identity] = None
    joined_rooms: Set[str] = field(default_factory=set)
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    frames_sent: int = 0
    frames_received: int = 0

    @property
    def user_id(self) -> Optional[str]:
        return self.identity.user_id if self.identity else None

    @property
    def is_authenticated(self) -> bool:
        return self.state == ConnectionState.AUTHENTICATED

    @property
    def is_closed(self) -> bool:
        return self.state in (ConnectionState.REJECTED, ConnectionState.DISCONNECTED)

    async def send_frame(self, event: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        """
        Write one {"t", "p"} frame.

        Returns False instead of raising when the socket is gone or slow;
        a disconnected connection never writes again.
        """
        if self.state == ConnectionState.DISCONNECTED:
            return False

        frame = make_frame(event, payload)
        try:
            await asyncio.wait_for(self.ws.send_text(encode_frame(frame)), timeout=self.send_timeout)
        except Exception as e:
            gateway_send_failures.inc()
            log.warning(f"Send of {frame['t']} to {self.conn_id} failed: {type(e).__name__}: {e}")
            return False

        self.frames_sent += 1
        gateway_frames_sent.labels(event=frame['t']).inc()
        return True

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if WebSocketState.DISCONNECTED in (self.ws.client_state, self.ws.application_state):
            return
        try:
            await self.ws.close(code=code, reason=reason)
        except Exception as e:
            log.debug(f"Close of {self.conn_id} failed: {e}")

# =============================================================================
# File: sentinel/realtime/websocket/gateway_manager.py
# Description: Connection Gateway - authentication, registry, room relay
# =============================================================================

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from sentinel.common.exceptions.exceptions import AuthError
from sentinel.infra.metrics.gateway_metrics import (
    gateway_connections_active,
    gateway_connections_total,
    presence_online_users,
)
from sentinel.realtime.core.room_bus import RoomBus
from sentinel.realtime.core.types import (
    ConnectionState,
    ErrorCode,
    GatewayEvent,
    WS_POLICY_VIOLATION,
)
from sentinel.realtime.presence.presence_tracker import PresenceTracker
from sentinel.realtime.websocket.gateway_connection import GatewayConnection
from sentinel.security.jwt_auth import IdentityVerifier

log = logging.getLogger("sentinel.realtime.gateway")


class ConnectionGateway:
    """
    Owns every live connection on this process.

    - authenticate(): CONNECTING -> AUTHENTICATING -> AUTHENTICATED | REJECTED
    - join/leave: room subscriptions through the RoomBus
    - emit_to_room(): room fan-out used by the chat service
    - disconnect(): DISCONNECTED, subscriptions dropped before any await

    Presence zero crossings are broadcast as presence:update to every
    authenticated connection, the user's own included.
    """

    def __init__(self, verifier: IdentityVerifier, presence: PresenceTracker, bus: Optional[RoomBus] = None):
        self.verifier = verifier
        self.presence = presence
        self.bus = bus or RoomBus()

        self._connections: Dict[str, GatewayConnection] = {}
        self._user_connections: Dict[str, Set[str]] = {}

        self.presence.add_listener(self._on_presence_change)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def authenticate(self, conn: GatewayConnection, token: Optional[str]) -> bool:
        """Verify the handshake token; on failure send AUTH_FAILED and close with 1008."""
        conn.state = ConnectionState.AUTHENTICATING

        try:
            identity = await self.verifier.verify(token)
        except AuthError as e:
            conn.state = ConnectionState.REJECTED
            gateway_connections_total.labels(outcome="rejected").inc()
            log.warning(f"Connection {conn.conn_id} rejected: {e}")
            await conn.send_frame(GatewayEvent.ERROR, {"code": ErrorCode.AUTH_FAILED.value, "message": str(e)})
            await conn.close(code=WS_POLICY_VIOLATION, reason=str(e)[:120])
            return False

        conn.identity = identity
        conn.state = ConnectionState.AUTHENTICATED
        self._connections[conn.conn_id] = conn
        self._user_connections.setdefault(identity.user_id, set()).add(conn.conn_id)
        gateway_connections_total.labels(outcome="authenticated").inc()
        gateway_connections_active.inc()

        log.info(
            f"Connection {conn.conn_id} authenticated for user {identity.user_id}. "
            f"User now has {len(self._user_connections[identity.user_id])} connections."
        )

        await conn.send_frame(GatewayEvent.SERVER_READY, {
            "connection_id": conn.conn_id,
            **identity.to_dict(),
        })

        if self.presence.increment(identity.user_id):
            await self.broadcast_presence(identity.user_id, True)
        return True

    async def disconnect(self, conn: GatewayConnection) -> None:
        """Idempotent. Safe for connections that never authenticated."""
        if conn.state == ConnectionState.DISCONNECTED:
            return

        was_authenticated = conn.state == ConnectionState.AUTHENTICATED
        conn.state = ConnectionState.DISCONNECTED
        self.bus.unsubscribe_all(conn.conn_id)
        conn.joined_rooms.clear()

        if not was_authenticated:
            return

        self._connections.pop(conn.conn_id, None)
        user_id = conn.user_id
        user_conns = self._user_connections.get(user_id)
        if user_conns is not None:
            user_conns.discard(conn.conn_id)
            if not user_conns:
                del self._user_connections[user_id]
        gateway_connections_active.dec()

        log.info(f"Connection {conn.conn_id} for user {user_id} disconnected")

        if self.presence.decrement(user_id):
            await self.broadcast_presence(user_id, False)

    async def shutdown(self) -> None:
        """Close every connection (server shutdown)."""
        for conn in list(self._connections.values()):
            await conn.close(code=1001, reason="Server shutting down")
            await self.disconnect(conn)

    # =========================================================================
    # Rooms
    # =========================================================================

    def join_room(self, conn: GatewayConnection, room_id: str) -> bool:
        if not conn.is_authenticated:
            return False
        conn.joined_rooms.add(room_id)
        return self.bus.subscribe(room_id, conn)

    def leave_room(self, conn: GatewayConnection, room_id: str) -> bool:
        if not conn.is_authenticated:
            return False
        conn.joined_rooms.discard(room_id)
        return self.bus.unsubscribe(room_id, conn.conn_id)

    async def emit_to_room(
            self,
            room_id: str,
            event: str,
            payload: Dict[str, Any],
            exclude_conn_id: Optional[str] = None,
    ) -> int:
        """Deliver to every connection subscribed to room_id now; returns delivered count."""
        event = event.value if isinstance(event, GatewayEvent) else event
        delivered = await self.bus.publish(room_id, event, payload, exclude_conn_id=exclude_conn_id)
        log.debug(f"{event} delivered to {delivered} connections in room {room_id}")
        return delivered

    # =========================================================================
    # Presence
    # =========================================================================

    async def broadcast_presence(self, user_id: str, online: bool) -> int:
        return await self.broadcast_all(GatewayEvent.PRESENCE_UPDATE, {"user_id": user_id, "online": online})

    async def broadcast_all(self, event: str, payload: Dict[str, Any]) -> int:
        targets = [c for c in self._connections.values() if c.is_authenticated]
        if not targets:
            return 0
        results = await asyncio.gather(*(c.send_frame(event, payload) for c in targets))
        return sum(1 for ok in results if ok)

    def _on_presence_change(self, user_id: str, online: bool) -> None:
        presence_online_users.set(len(self.presence.online_user_ids()))

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "connections": len(self._connections),
            "users": len(self._user_connections),
            "online_users": len(self.presence.online_user_ids()),
        }

# =============================================================================
# File: sentinel/realtime/core/room_bus.py
# Description: In-process publish/subscribe keyed by room id
# =============================================================================

"""
RoomBus - room-scoped fan-out to live connections

    ChatService.send_message / typing relay
                    |
          RoomBus.publish(room_id, event, payload)
                    |
     snapshot of subscribers at call time
                    |
    GatewayConnection.send_frame()  (concurrently, failures isolated)

Subscription changes never await, so a connection removed by
unsubscribe_all() is excluded from every publish that starts afterwards.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from sentinel.infra.metrics.gateway_metrics import room_broadcasts
from sentinel.realtime.core.types import FrameSubscriber

log = logging.getLogger("sentinel.realtime.room_bus")


class RoomBus:
    """Room subscription registry and broadcaster"""

    def __init__(self) -> None:
        # room_id -> conn_id -> subscriber
        self._rooms: Dict[str, Dict[str, FrameSubscriber]] = {}
        # conn_id -> room_ids
        self._by_conn: Dict[str, Set[str]] = {}

    def subscribe(self, room_id: str, subscriber: FrameSubscriber) -> bool:
        """Idempotent; returns True when the subscription is new."""
        members = self._rooms.setdefault(room_id, {})
        if subscriber.conn_id in members:
            return False
        members[subscriber.conn_id] = subscriber
        self._by_conn.setdefault(subscriber.conn_id, set()).add(room_id)
        return True

    def unsubscribe(self, room_id: str, conn_id: str) -> bool:
        members = self._rooms.get(room_id)
        if not members or conn_id not in members:
            return False
        del members[conn_id]
        if not members:
            del self._rooms[room_id]
        rooms = self._by_conn.get(conn_id)
        if rooms is not None:
            rooms.discard(room_id)
            if not rooms:
                del self._by_conn[conn_id]
        return True

    def unsubscribe_all(self, conn_id: str) -> Set[str]:
        """Remove a connection from every room; returns the rooms it left."""
        rooms = self._by_conn.pop(conn_id, set())
        for room_id in rooms:
            members = self._rooms.get(room_id)
            if members is not None:
                members.pop(conn_id, None)
                if not members:
                    del self._rooms[room_id]
        return rooms

    def subscriber_count(self, room_id: str) -> int:
        return len(self._rooms.get(room_id, ()))

    async def publish(
            self,
            room_id: str,
            event: str,
            payload: Dict[str, Any],
            exclude_conn_id: Optional[str] = None,
    ) -> int:
        """
        Deliver one frame to every subscriber of room_id at call time.

        Returns the number of connections the frame was written to. A room
        with no subscribers is not an error.
        """
        targets = [
            sub for conn_id, sub in self._rooms.get(room_id, {}).items()
            if conn_id != exclude_conn_id
        ]
        room_broadcasts.labels(event=event).inc()
        if not targets:
            return 0

        results = await asyncio.gather(
            *(sub.send_frame(event, payload) for sub in targets),
            return_exceptions=True,
        )

        delivered = 0
        for sub, result in zip(targets, results):
            if isinstance(result, BaseException):
                log.warning(f"Broadcast of {event} to {sub.conn_id} in room {room_id} failed: {result}")
            elif result:
                delivered += 1
        return delivered

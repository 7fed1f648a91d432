# =============================================================================
# File: sentinel/chat/ports/room_store_port.py
# Description: Port interface for room and message persistence
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from sentinel.chat.enums import MessageType
from sentinel.chat.models import ChatRoom, Message, RoomActivity


@runtime_checkable
class RoomStorePort(Protocol):
    """
    Port: Room & Message Store

    Defined by: Chat Domain
    Implemented by:
    - InMemoryRoomStore (sentinel/infra/persistence/memory_store.py)
    - PostgresRoomStore (sentinel/infra/read_repos/room_pg_repo.py)

    Guarantees every implementation must keep:
    - a room's updated_at strictly increases with every appended message,
      and the message's created_at equals the bumped value
    - at most one room per project_id
    - seen_by only grows
    """

    # =========================================================================
    # Rooms
    # =========================================================================

    async def create_room(
        self,
        name: str,
        member_ids: Sequence[str],
        creator_id: str,
        project_id: Optional[str] = None,
    ) -> ChatRoom:
        """Create a room; creator is always a member. Blank name -> ValidationError."""
        ...

    async def get_or_create_project_room(
        self,
        project_id: str,
        owner_id: str,
        project_name: str,
    ) -> ChatRoom:
        """Return the project's room, creating it with only the owner if absent."""
        ...

    async def get_room(self, room_id: str) -> ChatRoom:
        """Raises RoomNotFoundError if absent."""
        ...

    async def get_project_room(self, project_id: str) -> Optional[ChatRoom]:
        ...

    # =========================================================================
    # Messages
    # =========================================================================

    async def append_message(
        self,
        room_id: str,
        sender_id: str,
        message_type: MessageType,
        text: Optional[str] = None,
        media_url: Optional[str] = None,
    ) -> Message:
        """Persist a message and bump the room's updated_at."""
        ...

    async def mark_seen(
        self,
        room_id: str,
        user_id: str,
        up_to: Optional[datetime] = None,
    ) -> int:
        """Mark others' messages created at or before up_to as seen; returns newly marked count."""
        ...

    async def list_messages(
        self,
        room_id: str,
        limit: int,
        before: Optional[datetime] = None,
    ) -> List[Message]:
        """Newest first."""
        ...

    async def unread_count(self, room_id: str, user_id: str) -> int:
        ...

    async def list_rooms_for_user(self, user_id: str) -> List[RoomActivity]:
        """Every room containing the user, ordered by updated_at descending."""
        ...

    # =========================================================================
    # Membership
    # =========================================================================

    async def add_member(self, room_id: str, user_id: str) -> ChatRoom:
        ...

    async def remove_member(self, room_id: str, user_id: str) -> ChatRoom:
        ...

    async def add_project_member(self, project_id: str, user_id: str) -> Optional[ChatRoom]:
        """No-op returning None if the project has no room."""
        ...

    async def remove_project_member(self, project_id: str, user_id: str) -> Optional[ChatRoom]:
        """No-op returning None if the project has no room."""
        ...

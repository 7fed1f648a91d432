# =============================================================================
# File: sentinel/infra/persistence/memory_store.py
# Description: In-process room and message store
# =============================================================================

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sentinel.chat.enums import MessageType
from sentinel.chat.exceptions import InvalidRoomError, NotRoomMemberError, RoomNotFoundError
from sentinel.chat.models import ChatRoom, Message, RoomActivity
from sentinel.chat.value_objects import MessageContent
from sentinel.utils.ids import ensure_utc, generate_id_str, next_timestamp, utc_now

log = logging.getLogger("sentinel.infra.memory_store")


class InMemoryRoomStore:
    """
    RoomStorePort adapter keeping everything in dictionaries.

    No method awaits between reading and writing shared state, so each call is
    atomic with respect to other coroutines on the same loop. Returned models
    are copies; callers cannot mutate stored state.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, ChatRoom] = {}
        self._project_rooms: Dict[str, str] = {}
        # room_id -> messages in ascending created_at order
        self._messages: Dict[str, List[Message]] = defaultdict(list)

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
        name = (name or "").strip()
        if not name:
            raise InvalidRoomError("Room name is required")

        if project_id is not None and project_id in self._project_rooms:
            raise InvalidRoomError(f"Project {project_id} already has a room")

        room = self._new_room(name, member_ids, creator_id, project_id)
        log.debug(f"Room {room.id} created by {creator_id} with {len(room.member_ids)} members")
        return room.model_copy(deep=True)

    async def get_or_create_project_room(
            self,
            project_id: str,
            owner_id: str,
            project_name: str,
    ) -> ChatRoom:
        room_id = self._project_rooms.get(project_id)
        if room_id is not None:
            return self._rooms[room_id].model_copy(deep=True)

        room = self._new_room(project_name.strip() or project_id, [owner_id], owner_id, project_id)
        log.info(f"Project room {room.id} created for project {project_id}")
        return room.model_copy(deep=True)

    async def get_room(self, room_id: str) -> ChatRoom:
        return self._require_room(room_id).model_copy(deep=True)

    async def get_project_room(self, project_id: str) -> Optional[ChatRoom]:
        room_id = self._project_rooms.get(project_id)
        if room_id is None:
            return None
        return self._rooms[room_id].model_copy(deep=True)

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
        content = MessageContent.create(message_type, text, media_url)
        room = self._require_room(room_id)
        if not room.has_member(sender_id):
            raise NotRoomMemberError(room_id, sender_id)

        room.updated_at = next_timestamp(room.updated_at)
        message = Message(
            id=generate_id_str(),
            room_id=room_id,
            sender_id=sender_id,
            type=content.type,
            text=content.text,
            media_url=content.media_url,
            seen_by=[],
            created_at=room.updated_at,
        )
        self._messages[room_id].append(message)
        return message.model_copy(deep=True)

    async def mark_seen(
            self,
            room_id: str,
            user_id: str,
            up_to: Optional[datetime] = None,
    ) -> int:
        self._require_room(room_id)
        up_to = ensure_utc(up_to) or utc_now()

        marked = 0
        for message in self._messages.get(room_id, ()):
            if message.created_at > up_to:
                break
            if message.sender_id != user_id and user_id not in message.seen_by:
                message.seen_by.append(user_id)
                marked += 1
        return marked

    async def list_messages(
            self,
            room_id: str,
            limit: int,
            before: Optional[datetime] = None,
    ) -> List[Message]:
        self._require_room(room_id)
        before = ensure_utc(before)

        result: List[Message] = []
        for message in reversed(self._messages.get(room_id, ())):
            if before is not None and message.created_at >= before:
                continue
            result.append(message.model_copy(deep=True))
            if len(result) >= limit:
                break
        return result

    async def unread_count(self, room_id: str, user_id: str) -> int:
        self._require_room(room_id)
        return self._unread(room_id, user_id)

    async def list_rooms_for_user(self, user_id: str) -> List[RoomActivity]:
        rooms = [room for room in self._rooms.values() if room.has_member(user_id)]
        rooms.sort(key=lambda r: r.updated_at, reverse=True)

        activities = []
        for room in rooms:
            messages = self._messages.get(room.id)
            activities.append(RoomActivity(
                room=room.model_copy(deep=True),
                last_message=messages[-1].model_copy(deep=True) if messages else None,
                unread_count=self._unread(room.id, user_id),
            ))
        return activities

    # =========================================================================
    # Membership
    # =========================================================================

    async def add_member(self, room_id: str, user_id: str) -> ChatRoom:
        room = self._require_room(room_id)
        if user_id not in room.member_ids:
            room.member_ids.append(user_id)
        return room.model_copy(deep=True)

    async def remove_member(self, room_id: str, user_id: str) -> ChatRoom:
        room = self._require_room(room_id)
        if user_id in room.member_ids:
            room.member_ids.remove(user_id)
        return room.model_copy(deep=True)

    async def add_project_member(self, project_id: str, user_id: str) -> Optional[ChatRoom]:
        room_id = self._project_rooms.get(project_id)
        if room_id is None:
            return None
        return await self.add_member(room_id, user_id)

    async def remove_project_member(self, project_id: str, user_id: str) -> Optional[ChatRoom]:
        room_id = self._project_rooms.get(project_id)
        if room_id is None:
            return None
        return await self.remove_member(room_id, user_id)

    # =========================================================================
    # Internals
    # =========================================================================

    def _new_room(
            self,
            name: str,
            member_ids: Sequence[str],
            creator_id: str,
            project_id: Optional[str],
    ) -> ChatRoom:
        members = list(dict.fromkeys([creator_id, *member_ids]))
        now = utc_now()
        room = ChatRoom(
            id=generate_id_str(),
            name=name,
            project_id=project_id,
            is_project_room=project_id is not None,
            member_ids=members,
            created_by=creator_id,
            created_at=now,
            updated_at=now,
        )
        self._rooms[room.id] = room
        if project_id is not None:
            self._project_rooms[project_id] = room.id
        return room

    def _require_room(self, room_id: str) -> ChatRoom:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    def _unread(self, room_id: str, user_id: str) -> int:
        return sum(
            1 for m in self._messages.get(room_id, ())
            if m.sender_id != user_id and user_id not in m.seen_by
        )

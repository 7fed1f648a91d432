# =============================================================================
# File: sentinel/infra/read_repos/room_pg_repo.py
# Description: PostgreSQL room and message store
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

import asyncpg

from sentinel.chat.enums import MessageType
from sentinel.chat.exceptions import InvalidRoomError, NotRoomMemberError, RoomNotFoundError
from sentinel.chat.models import ChatRoom, Message, RoomActivity
from sentinel.chat.value_objects import MessageContent
from sentinel.infra.persistence import pg_client
from sentinel.utils.ids import ensure_utc, generate_id_str

log = logging.getLogger("sentinel.chat.room_repo")

_ROOM_COLUMNS = "id, name, project_id, is_project_room, member_ids, created_by, created_at, updated_at"
_MESSAGE_COLUMNS = "id, room_id, sender_id, type, text, media_url, seen_by, created_at"


def _room(row: asyncpg.Record) -> ChatRoom:
    return ChatRoom(**dict(row))


def _message(row: asyncpg.Record) -> Message:
    return Message(**dict(row))


class PostgresRoomStore:
    """
    RoomStorePort adapter over asyncpg.

    Members live in chat_rooms.member_ids (TEXT[]); seen_by in
    chat_messages.seen_by. Concurrent appends to one room serialize on the
    room row lock taken by the updated_at bump.
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
        name = (name or "").strip()
        if not name:
            raise InvalidRoomError("Room name is required")

        members = list(dict.fromkeys([creator_id, *member_ids]))
        try:
            row = await pg_client.fetchrow(
                f"""
                INSERT INTO chat_rooms (id, name, project_id, is_project_room, member_ids, created_by)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {_ROOM_COLUMNS}
                """,
                generate_id_str(), name, project_id, project_id is not None, members, creator_id,
            )
        except asyncpg.UniqueViolationError:
            raise InvalidRoomError(f"Project {project_id} already has a room") from None
        return _room(row)

    async def get_or_create_project_room(
            self,
            project_id: str,
            owner_id: str,
            project_name: str,
    ) -> ChatRoom:
        row = await pg_client.fetchrow(
            f"""
            INSERT INTO chat_rooms (id, name, project_id, is_project_room, member_ids, created_by)
            VALUES ($1, $2, $3, TRUE, ARRAY[$4::text], $4)
            ON CONFLICT (project_id) WHERE project_id IS NOT NULL DO NOTHING
            RETURNING {_ROOM_COLUMNS}
            """,
            generate_id_str(), project_name.strip() or project_id, project_id, owner_id,
        )
        if row is not None:
            log.info(f"Project room {row['id']} created for project {project_id}")
            return _room(row)

        existing = await self.get_project_room(project_id)
        if existing is None:
            # Conflicting row was deleted between the insert and the select
            raise RoomNotFoundError(f"project:{project_id}")
        return existing

    async def get_room(self, room_id: str) -> ChatRoom:
        row = await pg_client.fetchrow(
            f"SELECT {_ROOM_COLUMNS} FROM chat_rooms WHERE id = $1", room_id,
        )
        if row is None:
            raise RoomNotFoundError(room_id)
        return _room(row)

    async def get_project_room(self, project_id: str) -> Optional[ChatRoom]:
        row = await pg_client.fetchrow(
            f"SELECT {_ROOM_COLUMNS} FROM chat_rooms WHERE project_id = $1", project_id,
        )
        return _room(row) if row else None

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

        row = await pg_client.fetchrow(
            f"""
            WITH bumped AS (
                UPDATE chat_rooms
                   SET updated_at = GREATEST(clock_timestamp(), updated_at + interval '1 microsecond')
                 WHERE id = $1 AND $2 = ANY(member_ids)
             RETURNING id, updated_at
            )
            INSERT INTO chat_messages (id, room_id, sender_id, type, text, media_url, seen_by, created_at)
            SELECT $3, bumped.id, $2, $4, $5, $6, '{{}}', bumped.updated_at FROM bumped
            RETURNING {_MESSAGE_COLUMNS}
            """,
            room_id, sender_id, generate_id_str(), content.type.value, content.text, content.media_url,
        )
        if row is None:
            # Either the room is missing or the sender is not a member
            await self.get_room(room_id)
            raise NotRoomMemberError(room_id, sender_id)
        return _message(row)

    async def mark_seen(
            self,
            room_id: str,
            user_id: str,
            up_to: Optional[datetime] = None,
    ) -> int:
        status = await pg_client.execute(
            """
            UPDATE chat_messages
               SET seen_by = array_append(seen_by, $2)
             WHERE room_id = $1
               AND sender_id <> $2
               AND NOT ($2 = ANY(seen_by))
               AND created_at <= COALESCE($3, clock_timestamp())
            """,
            room_id, user_id, ensure_utc(up_to),
        )
        # "UPDATE <n>"
        marked = int(status.split()[-1])
        if marked == 0:
            await self.get_room(room_id)
        return marked

    async def list_messages(
            self,
            room_id: str,
            limit: int,
            before: Optional[datetime] = None,
    ) -> List[Message]:
        await self.get_room(room_id)
        rows = await pg_client.fetch(
            f"""
            SELECT {_MESSAGE_COLUMNS}
              FROM chat_messages
             WHERE room_id = $1
               AND ($2::timestamptz IS NULL OR created_at < $2)
             ORDER BY created_at DESC
             LIMIT $3
            """,
            room_id, ensure_utc(before), limit,
        )
        return [_message(r) for r in rows]

    async def unread_count(self, room_id: str, user_id: str) -> int:
        await self.get_room(room_id)
        return await pg_client.fetchval(
            """
            SELECT count(*) FROM chat_messages
             WHERE room_id = $1 AND sender_id <> $2 AND NOT ($2 = ANY(seen_by))
            """,
            room_id, user_id,
        )

    async def list_rooms_for_user(self, user_id: str) -> List[RoomActivity]:
        rows = await pg_client.fetch(
            """
            SELECT r.id, r.name, r.project_id, r.is_project_room, r.member_ids,
                   r.created_by, r.created_at, r.updated_at,
                   lm.id AS lm_id, lm.sender_id AS lm_sender_id, lm.type AS lm_type,
                   lm.text AS lm_text, lm.media_url AS lm_media_url,
                   lm.seen_by AS lm_seen_by, lm.created_at AS lm_created_at,
                   uc.unread
              FROM chat_rooms r
              LEFT JOIN LATERAL (
                    SELECT m.* FROM chat_messages m
                     WHERE m.room_id = r.id
                     ORDER BY m.created_at DESC
                     LIMIT 1
              ) lm ON TRUE
              CROSS JOIN LATERAL (
                    SELECT count(*) AS unread FROM chat_messages m
                     WHERE m.room_id = r.id AND m.sender_id <> $1 AND NOT ($1 = ANY(m.seen_by))
              ) uc
             WHERE $1 = ANY(r.member_ids)
             ORDER BY r.updated_at DESC
            """,
            user_id,
        )

        activities = []
        for row in rows:
            room = ChatRoom(
                id=row["id"], name=row["name"], project_id=row["project_id"],
                is_project_room=row["is_project_room"], member_ids=row["member_ids"],
                created_by=row["created_by"], created_at=row["created_at"], updated_at=row["updated_at"],
            )
            last_message = None
            if row["lm_id"] is not None:
                last_message = Message(
                    id=row["lm_id"], room_id=row["id"], sender_id=row["lm_sender_id"],
                    type=row["lm_type"], text=row["lm_text"], media_url=row["lm_media_url"],
                    seen_by=row["lm_seen_by"], created_at=row["lm_created_at"],
                )
            activities.append(RoomActivity(room=room, last_message=last_message, unread_count=row["unread"]))
        return activities

    # =========================================================================
    # Membership
    # =========================================================================

    async def add_member(self, room_id: str, user_id: str) -> ChatRoom:
        row = await pg_client.fetchrow(
            f"""
            UPDATE chat_rooms
               SET member_ids = CASE WHEN $2 = ANY(member_ids) THEN member_ids
                                     ELSE array_append(member_ids, $2) END
             WHERE id = $1
            RETURNING {_ROOM_COLUMNS}
            """,
            room_id, user_id,
        )
        if row is None:
            raise RoomNotFoundError(room_id)
        return _room(row)

    async def remove_member(self, room_id: str, user_id: str) -> ChatRoom:
        row = await pg_client.fetchrow(
            f"""
            UPDATE chat_rooms SET member_ids = array_remove(member_ids, $2)
             WHERE id = $1
            RETURNING {_ROOM_COLUMNS}
            """,
            room_id, user_id,
        )
        if row is None:
            raise RoomNotFoundError(room_id)
        return _room(row)

    async def add_project_member(self, project_id: str, user_id: str) -> Optional[ChatRoom]:
        row = await pg_client.fetchrow(
            f"""
            UPDATE chat_rooms
               SET member_ids = CASE WHEN $2 = ANY(member_ids) THEN member_ids
                                     ELSE array_append(member_ids, $2) END
             WHERE project_id = $1
            RETURNING {_ROOM_COLUMNS}
            """,
            project_id, user_id,
        )
        return _room(row) if row else None

    async def remove_project_member(self, project_id: str, user_id: str) -> Optional[ChatRoom]:
        row = await pg_client.fetchrow(
            f"""
            UPDATE chat_rooms SET member_ids = array_remove(member_ids, $2)
             WHERE project_id = $1
            RETURNING {_ROOM_COLUMNS}
            """,
            project_id, user_id,
        )
        return _room(row) if row else None

# =============================================================================
# File: sentinel/services/application/chat_service.py
# Description: Room/Message API - composes store, gateway and fan-out
# =============================================================================

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sentinel.chat.enums import MembershipChange, MessageType
from sentinel.chat.events import ProjectMembershipChanged
from sentinel.chat.exceptions import (
    InvalidRoomError,
    NotProjectMemberError,
    NotRoomMemberError,
    ProjectNotFoundError,
)
from sentinel.chat.models import ChatRoom, Message, MessageView, RoomSummary
from sentinel.chat.ports.directory_port import DirectoryUser, ProjectDirectoryPort, UserDirectoryPort
from sentinel.chat.ports.room_store_port import RoomStorePort
from sentinel.chat.room_summaries import build_room_summaries, counterpart_ids
from sentinel.chat.value_objects import notification_body, notification_title
from sentinel.common.exceptions.exceptions import ValidationError
from sentinel.infra.metrics.chat_metrics import messages_persisted
from sentinel.notifications.fanout_service import NotificationFanoutService
from sentinel.notifications.types import PushPayload
from sentinel.realtime.core.types import GatewayEvent
from sentinel.realtime.websocket.gateway_manager import ConnectionGateway
from sentinel.security.jwt_auth import Identity

log = logging.getLogger("sentinel.services.chat")

DEFAULT_HISTORY_LIMIT = 30
MAX_HISTORY_LIMIT = 100


def to_view(message: Message, sender: Optional[DirectoryUser]) -> MessageView:
    return MessageView(
        id=message.id,
        room_id=message.room_id,
        sender_id=message.sender_id,
        sender_username=sender.username if sender else None,
        sender_avatar_url=sender.avatar_url if sender else None,
        type=message.type,
        text=message.text,
        media_url=message.media_url,
        seen_by=list(message.seen_by),
        created_at=message.created_at,
    )


class ChatService:
    """
    Request-level chat operations.

    send_message order is fixed: persist, then broadcast to the room, then
    schedule push notifications. Only a persistence failure reaches the
    caller.
    """

    def __init__(
            self,
            store: RoomStorePort,
            users: UserDirectoryPort,
            projects: ProjectDirectoryPort,
            gateway: ConnectionGateway,
            fanout: NotificationFanoutService,
            default_history_limit: int = DEFAULT_HISTORY_LIMIT,
            max_history_limit: int = MAX_HISTORY_LIMIT,
    ):
        self.store = store
        self.users = users
        self.projects = projects
        self.gateway = gateway
        self.fanout = fanout
        self.default_history_limit = default_history_limit
        self.max_history_limit = max_history_limit

    # =========================================================================
    # Messages
    # =========================================================================

    async def send_message(
            self,
            room_id: str,
            sender: Identity,
            message_type: MessageType,
            text: Optional[str] = None,
            media_url: Optional[str] = None,
            device_id: Optional[str] = None,
    ) -> MessageView:
        message = await self.store.append_message(room_id, sender.user_id, message_type, text, media_url)
        messages_persisted.labels(type=message.type.value).inc()

        sender_user = DirectoryUser(id=sender.user_id, username=sender.username, avatar_url=sender.avatar_url)
        view = to_view(message, sender_user)

        try:
            await self.gateway.emit_to_room(room_id, GatewayEvent.MESSAGE_NEW.value, view.model_dump(mode="json"))
        except Exception as e:
            log.error(f"Broadcast of message {message.id} to room {room_id} failed: {e}", exc_info=True)

        try:
            room = await self.store.get_room(room_id)
            payload = PushPayload(
                title=notification_title(room.is_project_room, room.name, sender.username),
                body=notification_body(message.type, message.text),
                data={"type": "chat", "roomId": room_id},
            )
            self.fanout.notify_async(
                room.member_ids,
                exclude_user_id=sender.user_id,
                payload=payload,
                exclude_identifiers=(device_id,) if device_id else (),
            )
        except Exception as e:
            log.error(f"Scheduling notifications for message {message.id} failed: {e}", exc_info=True)

        return view

    async def fetch_messages(
            self,
            room_id: str,
            requester_id: str,
            limit: Optional[int] = None,
            before=None,
    ) -> List[MessageView]:
        """
        Most recent messages in ascending order; marks them seen up to the
        newest one returned.
        """
        limit = self.default_history_limit if limit is None else limit
        if not 1 <= limit <= self.max_history_limit:
            raise ValidationError(f"limit must be between 1 and {self.max_history_limit}")

        room = await self.store.get_room(room_id)
        if not room.has_member(requester_id):
            raise NotRoomMemberError(room_id, requester_id)

        newest_first = await self.store.list_messages(room_id, limit, before=before)
        messages = list(reversed(newest_first))

        if messages:
            marked = await self.store.mark_seen(room_id, requester_id, up_to=messages[-1].created_at)
            if marked:
                for message in messages:
                    if message.sender_id != requester_id and requester_id not in message.seen_by:
                        message.seen_by.append(requester_id)

        senders = await self.users.find_by_ids({m.sender_id for m in messages})
        return [to_view(m, senders.get(m.sender_id)) for m in messages]

    # =========================================================================
    # Rooms
    # =========================================================================

    async def list_rooms_for_user(self, user_id: str) -> List[RoomSummary]:
        activities = await self.store.list_rooms_for_user(user_id)

        project_ids = {a.room.project_id for a in activities if a.room.is_project_room and a.room.project_id}
        projects = await self.projects.find_projects(project_ids) if project_ids else {}

        other_ids = counterpart_ids(activities, user_id)
        users = await self.users.find_by_ids(other_ids) if other_ids else {}

        return build_room_summaries(user_id, activities, users, projects)

    async def create_room(self, name: str, member_ids: Sequence[str], creator_id: str) -> ChatRoom:
        if not (name or "").strip():
            raise InvalidRoomError("Room name is required")
        room = await self.store.create_room(name, member_ids, creator_id)
        log.info(f"Room {room.id} '{room.name}' created by {creator_id}")
        return room

    async def get_project_room(self, project_id: str, requester_id: str) -> ChatRoom:
        project = await self.projects.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        if not project.has_access(requester_id):
            raise NotProjectMemberError(project_id, requester_id)
        return await self.store.get_or_create_project_room(project.id, project.owner_id, project.name)

    async def add_room_member(self, room_id: str, requester_id: str, user_id: str) -> ChatRoom:
        await self._require_member(room_id, requester_id)
        return await self.store.add_member(room_id, user_id)

    async def remove_room_member(self, room_id: str, requester_id: str, user_id: str) -> ChatRoom:
        await self._require_member(room_id, requester_id)
        return await self.store.remove_member(room_id, user_id)

    # =========================================================================
    # Project membership events
    # =========================================================================

    async def apply_membership_event(self, event: ProjectMembershipChanged) -> Optional[ChatRoom]:
        if event.change == MembershipChange.ADDED:
            if event.owner_id and event.project_name:
                await self.store.get_or_create_project_room(event.project_id, event.owner_id, event.project_name)
            room = await self.store.add_project_member(event.project_id, event.user_id)
        else:
            room = await self.store.remove_project_member(event.project_id, event.user_id)

        if room is None:
            log.debug(f"Project {event.project_id} has no room; {event.change.value} of {event.user_id} ignored")
        else:
            log.info(f"User {event.user_id} {event.change.value} on project room {room.id}")
        return room

    async def _require_member(self, room_id: str, user_id: str) -> ChatRoom:
        room = await self.store.get_room(room_id)
        if not room.has_member(user_id):
            raise NotRoomMemberError(room_id, user_id)
        return room

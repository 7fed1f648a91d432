# =============================================================================
# File: sentinel/chat/models.py
# Description: Chat domain models (rooms, messages, derived summaries)
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from sentinel.chat.enums import MessageType


class ChatRoom(BaseModel):
    """Chat room (PostgreSQL table: chat_rooms)"""
    id: str
    name: str
    project_id: Optional[str] = None
    is_project_room: bool = False
    member_ids: List[str] = Field(default_factory=list)
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def has_member(self, user_id: str) -> bool:
        return user_id in self.member_ids


class Message(BaseModel):
    """Chat message (PostgreSQL table: chat_messages)"""
    id: str
    room_id: str
    sender_id: str
    type: MessageType
    text: Optional[str] = None
    media_url: Optional[str] = None
    seen_by: List[str] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoomActivity(BaseModel):
    """A room as seen by one user: the room, its last message and the user's unread count"""
    room: ChatRoom
    last_message: Optional[Message] = None
    unread_count: int = 0


class RoomSummary(BaseModel):
    """Room list entry with display name resolved for the viewing user"""
    id: str
    name: str
    is_project_room: bool = False
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    is_group: bool = False
    avatar_url: Optional[str] = None
    member_ids: List[str] = Field(default_factory=list)
    unread_count: int = 0
    last_message_text: Optional[str] = None
    last_message_at: Optional[datetime] = None
    updated_at: datetime


class MessageView(BaseModel):
    """Message enriched with sender display fields"""
    id: str
    room_id: str
    sender_id: str
    sender_username: Optional[str] = None
    sender_avatar_url: Optional[str] = None
    type: MessageType
    text: Optional[str] = None
    media_url: Optional[str] = None
    seen_by: List[str] = Field(default_factory=list)
    created_at: datetime

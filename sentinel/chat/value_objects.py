# =============================================================================
# File: sentinel/chat/value_objects.py
# Description: Message content rules and the labels derived from message type
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from sentinel.chat.enums import MessageType
from sentinel.chat.exceptions import InvalidMessageError


PREVIEW_LABELS: Dict[MessageType, str] = {
    MessageType.IMAGE: "📷 Photo",
    MessageType.VIDEO: "🎬 Video",
    MessageType.AUDIO: "🎙 Voice message",
    MessageType.FILE: "📎 File",
}

NOTIFICATION_LABELS: Dict[MessageType, str] = {
    MessageType.IMAGE: "📷 sent a photo",
    MessageType.VIDEO: "🎬 sent a video",
    MessageType.AUDIO: "🎙 sent a voice message",
    MessageType.FILE: "📎 sent a file",
}


@dataclass(frozen=True)
class MessageContent:
    """
    Value Object: validated message payload.

    text messages carry non-empty trimmed text; every other type carries a
    non-empty media_url. Both may be present on a media message (caption).
    """
    type: MessageType
    text: Optional[str] = None
    media_url: Optional[str] = None

    @classmethod
    def create(
            cls,
            message_type: MessageType | str,
            text: Optional[str] = None,
            media_url: Optional[str] = None,
    ) -> 'MessageContent':
        try:
            message_type = MessageType(message_type)
        except ValueError:
            raise InvalidMessageError(f"Unknown message type: {message_type}") from None

        text = text.strip() if text is not None else None
        media_url = media_url.strip() if media_url is not None else None

        if message_type == MessageType.TEXT:
            if not text:
                raise InvalidMessageError("Text message requires non-empty text")
        elif not media_url:
            raise InvalidMessageError(f"{message_type.value} message requires media_url")

        return cls(message_type, text or None, media_url or None)


def preview_text(message_type: MessageType, text: Optional[str]) -> str:
    """Room list preview: the trimmed text if any, else a fixed label by type"""
    trimmed = (text or "").strip()
    if trimmed:
        return trimmed
    return PREVIEW_LABELS.get(MessageType(message_type), "")


def notification_body(message_type: MessageType, text: Optional[str]) -> str:
    message_type = MessageType(message_type)
    if message_type == MessageType.TEXT:
        return (text or "").strip() or "New message"
    return NOTIFICATION_LABELS[message_type]


def notification_title(is_project_room: bool, room_name: str, sender_username: Optional[str]) -> str:
    if is_project_room:
        return f"Project: {room_name}"
    return f"New message from {sender_username or 'someone'}"

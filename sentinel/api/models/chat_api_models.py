# =============================================================================
#  File: sentinel/api/models/chat_api_models.py
#  Sentinel API Models - Chat, Notifications, Internal ingress
# =============================================================================

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from sentinel.chat.enums import MessageType


# =============================================================================
#  CHAT REQUESTS
# =============================================================================

class CreateRoomRequest(BaseModel):
    """Request to create an ad-hoc group room"""
    name: str = Field(..., max_length=255)
    member_ids: List[str] = Field(default_factory=list)


class SendMessageRequest(BaseModel):
    """
    Request to send a message.

    device_id identifies the sender's device so it can be skipped during
    push fan-out (an FCM token or OneSignal player id).
    """
    type: MessageType = MessageType.TEXT
    text: Optional[str] = Field(None, max_length=10000)
    media_url: Optional[str] = Field(None, max_length=2048)
    device_id: Optional[str] = Field(None, max_length=512)


class AddMemberRequest(BaseModel):
    """Request to add a user to a room"""
    user_id: str = Field(..., min_length=1)


# =============================================================================
#  NOTIFICATION REQUESTS / RESPONSES
# =============================================================================

class FcmTokenRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096)


class OneSignalBindRequest(BaseModel):
    player_id: str = Field(..., min_length=1, max_length=256)


class TestNotificationRequest(BaseModel):
    title: str = Field(default="Test notification", max_length=200)
    body: str = Field(default="Push notifications are working", max_length=1000)


class ProviderResultResponse(BaseModel):
    provider: str
    success_count: int
    failure_count: int
    per_identifier_errors: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None


class DeliveryReportResponse(BaseModel):
    recipients: List[str]
    skipped_user_ids: List[str]
    total_success: int
    total_failure: int
    results: List[ProviderResultResponse]


class StatusResponse(BaseModel):
    """Generic acknowledgement"""
    status: str = "ok"
    message: Optional[str] = None

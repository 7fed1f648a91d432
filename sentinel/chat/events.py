# =============================================================================
# File: sentinel/chat/events.py
# Description: Events consumed by the chat domain
# =============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

from sentinel.chat.enums import MembershipChange


class ProjectMembershipChanged(BaseModel):
    """
    Emitted by the project collaborator whenever a user joins or leaves a project.

    project_name/owner_id are optional; when present on an ADDED event the
    project room is created if it does not exist yet.
    """
    event_type: Literal["ProjectMembershipChanged"] = "ProjectMembershipChanged"
    project_id: str
    user_id: str
    change: MembershipChange
    project_name: Optional[str] = None
    owner_id: Optional[str] = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

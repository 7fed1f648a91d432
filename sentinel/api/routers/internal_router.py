# =============================================================================
# File: sentinel/api/routers/internal_router.py
# Description: Collaborator event ingress (project membership changes)
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from sentinel.api.dependencies.deps import get_chat_service, require_internal_key
from sentinel.chat.events import ProjectMembershipChanged
from sentinel.chat.models import ChatRoom
from sentinel.services.application.chat_service import ChatService

log = logging.getLogger("sentinel.api.internal")

router = APIRouter(prefix="/internal", tags=["internal"], dependencies=[Depends(require_internal_key)])


@router.post("/project-membership", response_model=Optional[ChatRoom])
async def project_membership_changed(
        event: ProjectMembershipChanged,
        chat_service: ChatService = Depends(get_chat_service),
) -> Optional[ChatRoom]:
    """Mirror a project membership change onto the project room; null when the project has no room"""
    log.info(f"Membership event: {event.user_id} {event.change.value} project {event.project_id}")
    return await chat_service.apply_membership_event(event)

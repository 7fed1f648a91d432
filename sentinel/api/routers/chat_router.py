# =============================================================================
# File: sentinel/api/routers/chat_router.py
# Description: Chat rooms and messages API endpoints
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from sentinel.api.dependencies.deps import get_chat_service, get_current_user
from sentinel.api.models.chat_api_models import (
    AddMemberRequest,
    CreateRoomRequest,
    SendMessageRequest,
)
from sentinel.chat.models import ChatRoom, MessageView, RoomSummary
from sentinel.security.jwt_auth import Identity
from sentinel.services.application.chat_service import ChatService

log = logging.getLogger("sentinel.api.chat")

router = APIRouter(prefix="/chat", tags=["chat"])


# =============================================================================
# Rooms
# =============================================================================

@router.get("/my-rooms", response_model=List[RoomSummary])
async def list_my_rooms(
        current_user: Identity = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service),
) -> List[RoomSummary]:
    """Rooms of the caller, most recently active first"""
    return await chat_service.list_rooms_for_user(current_user.user_id)


@router.post("/rooms", response_model=ChatRoom, status_code=status.HTTP_201_CREATED)
async def create_room(
        request: CreateRoomRequest,
        current_user: Identity = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service),
) -> ChatRoom:
    return await chat_service.create_room(request.name, request.member_ids, current_user.user_id)


@router.get("/project/{project_id}/room", response_model=ChatRoom)
async def get_project_room(
        project_id: str,
        current_user: Identity = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service),
) -> ChatRoom:
    """Project room, created on first access by a project owner or member"""
    return await chat_service.get_project_room(project_id, current_user.user_id)


@router.post("/rooms/{room_id}/members", response_model=ChatRoom)
async def add_room_member(
        room_id: str,
        request: AddMemberRequest,
        current_user: Identity = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service),
) -> ChatRoom:
    return await chat_service.add_room_member(room_id, current_user.user_id, request.user_id)


@router.delete("/rooms/{room_id}/members/{user_id}", response_model=ChatRoom)
async def remove_room_member(
        room_id: str,
        user_id: str,
        current_user: Identity = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service),
) -> ChatRoom:
    return await chat_service.remove_room_member(room_id, current_user.user_id, user_id)


# =============================================================================
# Messages
# =============================================================================

@router.get("/rooms/{room_id}/messages", response_model=List[MessageView])
async def get_messages(
        room_id: str,
        limit: Optional[int] = Query(None, description="Page size (1-100, default 30)"),
        before: Optional[datetime] = Query(None, description="Only messages created before this instant"),
        current_user: Identity = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service),
) -> List[MessageView]:
    """Most recent messages, oldest first; marks the returned messages as seen"""
    return await chat_service.fetch_messages(room_id, current_user.user_id, limit=limit, before=before)


@router.post("/rooms/{room_id}/messages", response_model=MessageView, status_code=status.HTTP_201_CREATED)
async def send_message(
        room_id: str,
        request: SendMessageRequest,
        current_user: Identity = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service),
) -> MessageView:
    return await chat_service.send_message(
        room_id,
        current_user,
        request.type,
        text=request.text,
        media_url=request.media_url,
        device_id=request.device_id,
    )

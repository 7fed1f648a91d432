# =============================================================================
# File: sentinel/chat/room_summaries.py
# Description: Resolve per-user room list entries from store activity
# =============================================================================

from __future__ import annotations

from typing import Iterable, List, Mapping, Set

from sentinel.chat.models import RoomActivity, RoomSummary
from sentinel.chat.ports.directory_port import DirectoryUser, ProjectInfo
from sentinel.chat.value_objects import preview_text


def counterpart_ids(activities: Iterable[RoomActivity], viewer_id: str) -> Set[str]:
    """User ids whose profile is needed to name the viewer's direct rooms"""
    ids: Set[str] = set()
    for activity in activities:
        room = activity.room
        if not room.is_project_room and len(room.member_ids) == 2:
            ids.update(m for m in room.member_ids if m != viewer_id)
    return ids


def build_room_summaries(
        viewer_id: str,
        activities: Iterable[RoomActivity],
        users: Mapping[str, DirectoryUser],
        projects: Mapping[str, ProjectInfo],
) -> List[RoomSummary]:
    """
    Turn store activity into display entries for one viewer.

    Display name: project rooms use the project's name (falling back to the
    room name); rooms of exactly two members use the other member's username
    and avatar; any other room keeps its own name. Input order is preserved.
    """
    summaries: List[RoomSummary] = []

    for activity in activities:
        room = activity.room
        name = room.name
        avatar_url = None
        project_name = None

        if room.is_project_room:
            project = projects.get(room.project_id) if room.project_id else None
            project_name = project.name if project else room.name
            name = project_name
        elif len(room.member_ids) == 2:
            other_id = next((m for m in room.member_ids if m != viewer_id), None)
            other = users.get(other_id) if other_id else None
            if other is not None:
                name = other.username
                avatar_url = other.avatar_url

        last = activity.last_message
        summaries.append(RoomSummary(
            id=room.id,
            name=name,
            is_project_room=room.is_project_room,
            project_id=room.project_id,
            project_name=project_name,
            is_group=not room.is_project_room and len(room.member_ids) > 2,
            avatar_url=avatar_url,
            member_ids=list(room.member_ids),
            unread_count=activity.unread_count,
            last_message_text=preview_text(last.type, last.text) if last else None,
            last_message_at=last.created_at if last else None,
            updated_at=room.updated_at,
        ))

    return summaries

# =============================================================================
# File: sentinel/infra/persistence/memory_directory.py
# Description: In-process user and project directory
# =============================================================================

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from sentinel.chat.exceptions import UserNotFoundError
from sentinel.chat.ports.directory_port import DirectoryUser, ProjectInfo

log = logging.getLogger("sentinel.infra.memory_directory")


class InMemoryDirectory:
    """
    Implements both UserDirectoryPort and ProjectDirectoryPort.

    Used by the memory backend and tests; users and projects are seeded with
    add_user/add_project since the owning collaborator is not running.
    """

    def __init__(self) -> None:
        self._users: Dict[str, DirectoryUser] = {}
        self._projects: Dict[str, ProjectInfo] = {}

    # =========================================================================
    # Seeding
    # =========================================================================

    def add_user(
            self,
            user_id: str,
            username: str,
            avatar_url: Optional[str] = None,
            fcm_tokens: Optional[List[str]] = None,
            onesignal_ids: Optional[List[str]] = None,
    ) -> DirectoryUser:
        user = DirectoryUser(
            id=user_id,
            username=username,
            avatar_url=avatar_url,
            fcm_tokens=list(fcm_tokens or []),
            onesignal_ids=list(onesignal_ids or []),
        )
        self._users[user_id] = user
        return user

    def add_project(
            self,
            project_id: str,
            name: str,
            owner_id: str,
            member_ids: Optional[List[str]] = None,
    ) -> ProjectInfo:
        project = ProjectInfo(id=project_id, name=name, owner_id=owner_id, member_ids=list(member_ids or []))
        self._projects[project_id] = project
        return project

    def set_project_members(self, project_id: str, member_ids: List[str]) -> None:
        self._projects[project_id].member_ids = list(member_ids)

    # =========================================================================
    # UserDirectoryPort
    # =========================================================================

    async def get_user(self, user_id: str) -> Optional[DirectoryUser]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def find_by_ids(self, user_ids: Iterable[str]) -> Dict[str, DirectoryUser]:
        return {
            uid: self._users[uid].model_copy(deep=True)
            for uid in dict.fromkeys(user_ids)
            if uid in self._users
        }

    async def set_fcm_token(self, user_id: str, token: str) -> None:
        user = self._require_user(user_id)
        if token not in user.fcm_tokens:
            user.fcm_tokens.append(token)

    async def clear_fcm_token(self, user_id: str, token: Optional[str] = None) -> None:
        user = self._require_user(user_id)
        if token is None:
            user.fcm_tokens.clear()
        elif token in user.fcm_tokens:
            user.fcm_tokens.remove(token)

    async def bind_onesignal_id(self, user_id: str, player_id: str) -> None:
        user = self._require_user(user_id)
        for other in self._users.values():
            if other.id != user_id and player_id in other.onesignal_ids:
                other.onesignal_ids.remove(player_id)
                log.info(f"OneSignal id moved from user {other.id} to {user_id}")
        if player_id not in user.onesignal_ids:
            user.onesignal_ids.append(player_id)

    # =========================================================================
    # ProjectDirectoryPort
    # =========================================================================

    async def get_project(self, project_id: str) -> Optional[ProjectInfo]:
        project = self._projects.get(project_id)
        return project.model_copy(deep=True) if project else None

    async def find_projects(self, project_ids: Iterable[str]) -> Dict[str, ProjectInfo]:
        return {
            pid: self._projects[pid].model_copy(deep=True)
            for pid in dict.fromkeys(project_ids)
            if pid in self._projects
        }

    def _require_user(self, user_id: str) -> DirectoryUser:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

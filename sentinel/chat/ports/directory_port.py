# =============================================================================
# File: sentinel/chat/ports/directory_port.py
# Description: Port interfaces for the user and project directories
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class DirectoryUser(BaseModel):
    """User as exposed by the user directory"""
    id: str
    username: str
    avatar_url: Optional[str] = None
    fcm_tokens: List[str] = Field(default_factory=list)
    onesignal_ids: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ProjectInfo(BaseModel):
    """Project as exposed by the project directory"""
    id: str
    name: str
    owner_id: str
    member_ids: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    def has_access(self, user_id: str) -> bool:
        return user_id == self.owner_id or user_id in self.member_ids


@runtime_checkable
class UserDirectoryPort(Protocol):
    """
    Port: User Directory

    Implemented by:
    - InMemoryDirectory (sentinel/infra/persistence/memory_directory.py)
    - PostgresDirectory (sentinel/infra/read_repos/directory_pg_repo.py)
    """

    async def get_user(self, user_id: str) -> Optional[DirectoryUser]:
        ...

    async def find_by_ids(self, user_ids: Iterable[str]) -> Dict[str, DirectoryUser]:
        """Unknown ids are omitted from the result."""
        ...

    async def set_fcm_token(self, user_id: str, token: str) -> None:
        ...

    async def clear_fcm_token(self, user_id: str, token: Optional[str] = None) -> None:
        """Remove one token, or every token when token is None."""
        ...

    async def bind_onesignal_id(self, user_id: str, player_id: str) -> None:
        """Attach player_id to user_id and remove it from every other user."""
        ...


@runtime_checkable
class ProjectDirectoryPort(Protocol):
    """Port: Project Directory (read-only)"""

    async def get_project(self, project_id: str) -> Optional[ProjectInfo]:
        ...

    async def find_projects(self, project_ids: Iterable[str]) -> Dict[str, ProjectInfo]:
        ...

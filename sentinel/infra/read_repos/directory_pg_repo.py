# =============================================================================
# File: sentinel/infra/read_repos/directory_pg_repo.py
# Description: PostgreSQL user and project directory
# =============================================================================

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from sentinel.chat.exceptions import UserNotFoundError
from sentinel.chat.ports.directory_port import DirectoryUser, ProjectInfo
from sentinel.infra.persistence import pg_client

log = logging.getLogger("sentinel.directory.read_repo")

_USER_COLUMNS = "id, username, avatar_url, fcm_tokens, onesignal_ids"

_PROJECT_QUERY = """
    SELECT p.id, p.name, p.owner_id,
           COALESCE(array_agg(pm.user_id) FILTER (WHERE pm.user_id IS NOT NULL), '{}') AS member_ids
      FROM projects p
      LEFT JOIN project_members pm ON pm.project_id = p.id
     WHERE p.id = ANY($1::text[])
     GROUP BY p.id, p.name, p.owner_id
"""


class PostgresDirectory:
    """
    Implements UserDirectoryPort and ProjectDirectoryPort over the tables the
    project collaborator owns (users, projects, project_members).
    """

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user(self, user_id: str) -> Optional[DirectoryUser]:
        row = await pg_client.fetchrow(f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1", user_id)
        return DirectoryUser(**dict(row)) if row else None

    async def find_by_ids(self, user_ids: Iterable[str]) -> Dict[str, DirectoryUser]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        rows = await pg_client.fetch(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ANY($1::text[])", ids)
        return {row["id"]: DirectoryUser(**dict(row)) for row in rows}

    async def set_fcm_token(self, user_id: str, token: str) -> None:
        status = await pg_client.execute(
            """
            UPDATE users
               SET fcm_tokens = CASE WHEN $2 = ANY(fcm_tokens) THEN fcm_tokens
                                     ELSE array_append(fcm_tokens, $2) END
             WHERE id = $1
            """,
            user_id, token,
        )
        if status.endswith(" 0"):
            raise UserNotFoundError(user_id)

    async def clear_fcm_token(self, user_id: str, token: Optional[str] = None) -> None:
        if token is None:
            status = await pg_client.execute("UPDATE users SET fcm_tokens = '{}' WHERE id = $1", user_id)
        else:
            status = await pg_client.execute(
                "UPDATE users SET fcm_tokens = array_remove(fcm_tokens, $2) WHERE id = $1", user_id, token,
            )
        if status.endswith(" 0"):
            raise UserNotFoundError(user_id)

    async def bind_onesignal_id(self, user_id: str, player_id: str) -> None:
        async with pg_client.transaction() as conn:
            status = await conn.execute(
                """
                UPDATE users
                   SET onesignal_ids = CASE WHEN $2 = ANY(onesignal_ids) THEN onesignal_ids
                                            ELSE array_append(onesignal_ids, $2) END
                 WHERE id = $1
                """,
                user_id, player_id,
            )
            if status.endswith(" 0"):
                raise UserNotFoundError(user_id)

            moved = await conn.execute(
                """
                UPDATE users SET onesignal_ids = array_remove(onesignal_ids, $2)
                 WHERE id <> $1 AND $2 = ANY(onesignal_ids)
                """,
                user_id, player_id,
            )
            if not moved.endswith(" 0"):
                log.info(f"OneSignal id moved to user {user_id}")

    # =========================================================================
    # Projects
    # =========================================================================

    async def get_project(self, project_id: str) -> Optional[ProjectInfo]:
        projects = await self.find_projects([project_id])
        return projects.get(project_id)

    async def find_projects(self, project_ids: Iterable[str]) -> Dict[str, ProjectInfo]:
        ids = list(dict.fromkeys(project_ids))
        if not ids:
            return {}
        rows = await pg_client.fetch(_PROJECT_QUERY, ids)
        return {row["id"]: ProjectInfo(**dict(row)) for row in rows}

# =============================================================================
# File: tests/test_room_pg_repo.py
# Description: PostgreSQL room store error mapping over a stubbed pg_client
# =============================================================================

from datetime import datetime, timezone

import pytest

from sentinel.chat.exceptions import RoomNotFoundError
from sentinel.infra.persistence import pg_client
from sentinel.infra.read_repos.room_pg_repo import PostgresRoomStore

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)

ROOM_ROW = {
    "id": "r1",
    "name": "Team",
    "project_id": None,
    "is_project_room": False,
    "member_ids": ["alice", "bob"],
    "created_by": "alice",
    "created_at": NOW,
    "updated_at": NOW,
}


@pytest.fixture
def pg(monkeypatch):
    """Stub pg_client: `rooms` holds the rows fetchrow can return, `updated` the UPDATE count."""
    state = {"rooms": {}, "updated": 0, "queries": []}

    async def execute(query, *args, timeout=None):
        state["queries"].append(query)
        return f"UPDATE {state['updated']}"

    async def fetchrow(query, *args, timeout=None):
        state["queries"].append(query)
        return state["rooms"].get(args[0])

    monkeypatch.setattr(pg_client, "execute", execute)
    monkeypatch.setattr(pg_client, "fetchrow", fetchrow)
    return state


async def test_mark_seen_on_missing_room_raises(pg):
    store = PostgresRoomStore()

    with pytest.raises(RoomNotFoundError):
        await store.mark_seen("missing", "bob")


async def test_mark_seen_with_nothing_new_returns_zero(pg):
    pg["rooms"]["r1"] = ROOM_ROW
    store = PostgresRoomStore()

    assert await store.mark_seen("r1", "bob") == 0


async def test_mark_seen_returns_update_count_without_room_lookup(pg):
    pg["updated"] = 3
    store = PostgresRoomStore()

    assert await store.mark_seen("r1", "bob") == 3
    assert len(pg["queries"]) == 1

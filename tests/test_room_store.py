# =============================================================================
# File: tests/test_room_store.py
# Description: In-memory room store - ordering, unread/seen, project rooms
# =============================================================================

import asyncio
from datetime import timedelta

import pytest

from sentinel.chat.enums import MessageType
from sentinel.chat.exceptions import (
    InvalidMessageError,
    InvalidRoomError,
    NotRoomMemberError,
    RoomNotFoundError,
)
from sentinel.common.exceptions.exceptions import ValidationError


async def _room(store, *members, creator="alice"):
    return await store.create_room("Team", list(members), creator)


async def test_create_room_includes_creator_once(store):
    room = await store.create_room("Team", ["bob", "alice", "bob"], "alice")

    assert room.member_ids == ["alice", "bob"]
    assert room.created_by == "alice"
    assert not room.is_project_room


async def test_create_room_requires_name(store):
    with pytest.raises(InvalidRoomError):
        await store.create_room("   ", ["bob"], "alice")


async def test_append_strictly_increases_updated_at(store):
    room = await _room(store, "bob")
    previous = room.updated_at

    for i in range(20):
        message = await store.append_message(room.id, "alice", MessageType.TEXT, f"m{i}")
        current = await store.get_room(room.id)
        assert current.updated_at > previous
        assert message.created_at == current.updated_at
        previous = current.updated_at


async def test_append_validates_content(store):
    room = await _room(store, "bob")

    with pytest.raises(ValidationError):
        await store.append_message(room.id, "alice", MessageType.IMAGE, media_url="")
    with pytest.raises(InvalidMessageError):
        await store.append_message(room.id, "alice", MessageType.TEXT, text="   ")

    image = await store.append_message(room.id, "alice", MessageType.IMAGE, media_url="x")
    assert image.media_url == "x"
    assert image.text is None


async def test_append_trims_text(store):
    room = await _room(store, "bob")
    message = await store.append_message(room.id, "alice", MessageType.TEXT, "  hello  ")
    assert message.text == "hello"


async def test_append_requires_membership_and_room(store):
    room = await _room(store, "bob")

    with pytest.raises(NotRoomMemberError):
        await store.append_message(room.id, "carol", MessageType.TEXT, "hi")
    with pytest.raises(RoomNotFoundError):
        await store.append_message("missing", "alice", MessageType.TEXT, "hi")


async def test_unread_counts_only_messages_by_others(store):
    room = await _room(store, "bob")
    await store.append_message(room.id, "alice", MessageType.TEXT, "one")
    await store.append_message(room.id, "alice", MessageType.TEXT, "two")
    await store.append_message(room.id, "bob", MessageType.TEXT, "three")

    assert await store.unread_count(room.id, "bob") == 2
    assert await store.unread_count(room.id, "alice") == 1


async def test_mark_seen_is_idempotent_and_bounded(store):
    room = await _room(store, "bob")
    first = await store.append_message(room.id, "alice", MessageType.TEXT, "one")
    await store.append_message(room.id, "alice", MessageType.TEXT, "two")

    assert await store.mark_seen(room.id, "bob", up_to=first.created_at) == 1
    assert await store.unread_count(room.id, "bob") == 1

    assert await store.mark_seen(room.id, "bob") == 1
    assert await store.mark_seen(room.id, "bob") == 0
    assert await store.unread_count(room.id, "bob") == 0

    with pytest.raises(RoomNotFoundError):
        await store.mark_seen("missing", "bob")


async def test_mark_seen_never_marks_own_messages(store):
    room = await _room(store, "bob")
    await store.append_message(room.id, "alice", MessageType.TEXT, "mine")

    assert await store.mark_seen(room.id, "alice") == 0
    [message] = await store.list_messages(room.id, 10)
    assert message.seen_by == []


async def test_list_messages_newest_first_with_cursor(store):
    room = await _room(store, "bob")
    sent = [await store.append_message(room.id, "alice", MessageType.TEXT, f"m{i}") for i in range(5)]

    page = await store.list_messages(room.id, 2)
    assert [m.text for m in page] == ["m4", "m3"]

    older = await store.list_messages(room.id, 10, before=page[-1].created_at)
    assert [m.text for m in older] == ["m2", "m1", "m0"]
    assert older[0].created_at < sent[3].created_at


async def test_returned_models_are_copies(store):
    room = await _room(store, "bob")
    room.member_ids.append("mallory")

    stored = await store.get_room(room.id)
    assert "mallory" not in stored.member_ids


async def test_concurrent_project_room_creation_yields_one_room(store):
    rooms = await asyncio.gather(*(
        store.get_or_create_project_room("p1", "alice", "Apollo") for _ in range(25)
    ))

    assert len({r.id for r in rooms}) == 1
    assert rooms[0].is_project_room
    assert rooms[0].member_ids == ["alice"]
    assert (await store.get_project_room("p1")).id == rooms[0].id


async def test_second_room_for_project_is_rejected(store):
    await store.get_or_create_project_room("p1", "alice", "Apollo")
    with pytest.raises(InvalidRoomError):
        await store.create_room("Other", [], "alice", project_id="p1")


async def test_project_membership_mirrors_onto_room(store):
    assert await store.add_project_member("p1", "bob") is None

    await store.get_or_create_project_room("p1", "alice", "Apollo")
    room = await store.add_project_member("p1", "bob")
    assert room.member_ids == ["alice", "bob"]

    room = await store.add_project_member("p1", "bob")
    assert room.member_ids == ["alice", "bob"]

    room = await store.remove_project_member("p1", "bob")
    assert room.member_ids == ["alice"]


async def test_list_rooms_for_user_orders_by_activity(store):
    quiet = await store.create_room("Quiet", ["bob"], "alice")
    busy = await store.create_room("Busy", ["bob"], "alice")
    await store.create_room("Elsewhere", ["carol"], "alice")

    await store.append_message(busy.id, "alice", MessageType.TEXT, "first")
    await store.append_message(quiet.id, "alice", MessageType.TEXT, "latest")

    activities = await store.list_rooms_for_user("bob")
    assert [a.room.id for a in activities] == [quiet.id, busy.id]
    assert activities[0].last_message.text == "latest"
    assert activities[0].unread_count == 1


async def test_list_messages_before_uses_exclusive_bound(store):
    room = await _room(store, "bob")
    message = await store.append_message(room.id, "alice", MessageType.TEXT, "only")

    assert await store.list_messages(room.id, 10, before=message.created_at) == []
    later = message.created_at + timedelta(seconds=1)
    assert len(await store.list_messages(room.id, 10, before=later)) == 1

# =============================================================================
# File: tests/test_room_summaries.py
# Description: Display names, previews and unread counts for room lists
# =============================================================================

from sentinel.chat.enums import MessageType
from sentinel.chat.room_summaries import build_room_summaries, counterpart_ids
from sentinel.chat.value_objects import notification_body, notification_title, preview_text


async def test_direct_room_is_named_after_the_other_member(store, directory):
    room = await store.create_room("dm", ["bob"], "alice")
    activities = await store.list_rooms_for_user("bob")
    users = await directory.find_by_ids(counterpart_ids(activities, "bob"))

    [summary] = build_room_summaries("bob", activities, users, {})

    assert summary.id == room.id
    assert summary.name == "Alice"
    assert summary.avatar_url == "https://cdn/alice.png"
    assert not summary.is_group


async def test_project_room_is_named_after_the_project(store, directory):
    await store.get_or_create_project_room("p1", "alice", "stale name")
    activities = await store.list_rooms_for_user("alice")
    projects = await directory.find_projects(["p1"])

    [summary] = build_room_summaries("alice", activities, {}, projects)

    assert summary.name == "Apollo"
    assert summary.project_name == "Apollo"
    assert summary.is_project_room


async def test_group_room_keeps_its_name_and_previews_media(store):
    room = await store.create_room("Crew", ["bob", "carol"], "alice")
    await store.append_message(room.id, "bob", MessageType.AUDIO, media_url="https://cdn/a.ogg")

    [summary] = build_room_summaries("alice", await store.list_rooms_for_user("alice"), {}, {})

    assert summary.name == "Crew"
    assert summary.is_group
    assert summary.last_message_text == "🎙 Voice message"
    assert summary.unread_count == 1


def test_preview_prefers_text_over_label():
    assert preview_text(MessageType.IMAGE, "  look  ") == "look"
    assert preview_text(MessageType.IMAGE, None) == "📷 Photo"
    assert preview_text(MessageType.FILE, "") == "📎 File"


def test_notification_wording():
    assert notification_body(MessageType.TEXT, "hi there") == "hi there"
    assert notification_body(MessageType.VIDEO, None) == "🎬 sent a video"
    assert notification_title(True, "Apollo", "Alice") == "Project: Apollo"
    assert notification_title(False, "dm", "Alice") == "New message from Alice"

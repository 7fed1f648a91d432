# =============================================================================
# File: tests/test_presence.py
# Description: PresenceTracker zero-crossing semantics
# =============================================================================

from sentinel.realtime.presence.presence_tracker import PresenceTracker


def test_only_zero_crossings_report_change():
    tracker = PresenceTracker()

    assert tracker.increment("alice") is True
    assert tracker.increment("alice") is False
    assert tracker.connection_count("alice") == 2

    assert tracker.decrement("alice") is False
    assert tracker.is_online("alice")

    assert tracker.decrement("alice") is True
    assert not tracker.is_online("alice")


def test_decrement_never_goes_negative():
    tracker = PresenceTracker()

    assert tracker.decrement("ghost") is False
    assert tracker.connection_count("ghost") == 0

    assert tracker.increment("ghost") is True


def test_listeners_fire_once_per_crossing():
    tracker = PresenceTracker()
    seen = []
    tracker.add_listener(lambda user_id, online: seen.append((user_id, online)))

    tracker.increment("alice")
    tracker.increment("alice")
    tracker.decrement("alice")
    tracker.decrement("alice")
    tracker.increment("bob")

    assert seen == [("alice", True), ("alice", False), ("bob", True)]
    assert tracker.online_user_ids() == {"bob"}


def test_removed_listener_is_not_called():
    tracker = PresenceTracker()
    seen = []

    def listener(user_id, online):
        seen.append(user_id)

    tracker.add_listener(listener)
    tracker.remove_listener(listener)
    tracker.increment("alice")

    assert seen == []

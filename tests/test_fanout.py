# =============================================================================
# File: tests/test_fanout.py
# Description: Notification fan-out - exclusions, skips, provider failures
# =============================================================================

from sentinel.common.exceptions.exceptions import ProviderError
from sentinel.notifications.fanout_service import NotificationFanoutService
from sentinel.notifications.types import PushPayload

PAYLOAD = PushPayload(title="New message from Alice", body="hi", data={"type": "chat", "roomId": "r1"})


async def test_sender_is_never_notified(fanout, fcm, onesignal):
    report = await fanout.notify(["alice", "bob", "alice"], exclude_user_id="alice", payload=PAYLOAD)

    assert report.recipients == ["bob"]
    assert "tok-alice" not in fcm.sent_identifiers()
    assert fcm.sent_identifiers() == ["tok-bob"]
    assert onesignal.sent_identifiers() == ["os-bob"]
    assert report.total_success == 2


async def test_users_without_devices_are_skipped(fanout, fcm):
    report = await fanout.notify(["carol", "bob", "unknown"], exclude_user_id=None, payload=PAYLOAD)

    assert report.skipped_user_ids == ["carol", "unknown"]
    assert fcm.sent_identifiers() == ["tok-bob"]


async def test_sender_device_is_excluded(fanout, fcm, onesignal):
    await fanout.notify(["bob"], exclude_user_id="alice", payload=PAYLOAD, exclude_identifiers=["os-bob"])

    assert fcm.sent_identifiers() == ["tok-bob"]
    assert not onesignal.was_called("send_batch")


async def test_payload_is_passed_through(fanout, fcm):
    await fanout.notify(["bob"], exclude_user_id=None, payload=PAYLOAD)

    call = fcm.get_last_call("send_batch")
    assert call.kwargs == {"title": PAYLOAD.title, "body": "hi", "data": {"type": "chat", "roomId": "r1"}}


async def test_provider_failure_is_recorded_not_raised(fanout, fcm, onesignal):
    fcm.configure_failure(ProviderError("fcm", "circuit open"))

    report = await fanout.notify(["bob"], exclude_user_id=None, payload=PAYLOAD)

    assert report.results["fcm"].error == "circuit open"
    assert report.results["fcm"].success_count == 0
    assert report.results["onesignal"].success_count == 1
    assert report.total_success == 1


async def test_unexpected_provider_exception_is_contained(fanout, onesignal):
    onesignal.configure_failure(RuntimeError("boom"))

    report = await fanout.notify(["bob"], exclude_user_id=None, payload=PAYLOAD)

    assert "RuntimeError" in report.results["onesignal"].error
    assert report.results["fcm"].success_count == 1


async def test_per_identifier_failures_are_aggregated(directory, fcm):
    directory.add_user("dave", "Dave", fcm_tokens=["tok-dave-1", "tok-dave-2"])
    fcm.reject_identifiers("tok-dave-2")
    fanout = NotificationFanoutService(directory, [fcm])

    report = await fanout.notify(["dave", "bob"], exclude_user_id=None, payload=PAYLOAD)

    assert report.total_success == 2
    assert report.total_failure == 1
    assert report.failed_identifiers == {"tok-dave-2": "NotRegistered"}


async def test_only_excluded_recipient_dispatches_nothing(fanout, fcm, onesignal):
    report = await fanout.notify(["alice"], exclude_user_id="alice", payload=PAYLOAD)

    assert report.recipients == []
    assert not fcm.was_called("send_batch")
    assert not onesignal.was_called("send_batch")


async def test_notify_async_is_tracked_until_drained(fanout, fcm):
    task = fanout.notify_async(["bob"], exclude_user_id="alice", payload=PAYLOAD)
    assert fanout.pending == 1

    await fanout.drain(timeout=5)

    assert task.done()
    assert fanout.pending == 0
    assert fcm.sent_identifiers() == ["tok-bob"]


async def test_close_closes_every_provider(fanout, fcm, onesignal):
    await fanout.close()
    assert fcm.closed and onesignal.closed

# =============================================================================
# File: tests/test_push_providers.py
# Description: FCM and OneSignal providers against stubbed transports
# =============================================================================

import json
from types import SimpleNamespace

import httpx
import pytest
from firebase_admin import messaging
from pydantic import SecretStr

from sentinel.chat.ports.directory_port import DirectoryUser
from sentinel.common.exceptions.exceptions import ProviderError
from sentinel.config.push_config import PushConfig
from sentinel.notifications.providers.fcm_provider import FcmPushProvider
from sentinel.notifications.providers.onesignal_provider import OneSignalPushProvider

USER = DirectoryUser(id="bob", username="Bob", fcm_tokens=["t1", "t2"], onesignal_ids=["p1"])


def _push_config(**overrides) -> PushConfig:
    values = dict(
        fcm_enabled=False,
        fcm_batch_size=2,
        onesignal_app_id="app-123",
        onesignal_rest_api_key=SecretStr("rest-key"),
        onesignal_api_url="https://onesignal.test/api/v1/notifications",
        breaker_failure_threshold=2,
        breaker_reset_timeout_seconds=60,
    )
    values.update(overrides)
    return PushConfig(**values)


# =============================================================================
# FCM
# =============================================================================

def _fcm_response(*outcomes: bool):
    responses = [
        SimpleNamespace(success=ok, exception=None if ok else "Requested entity was not found.")
        for ok in outcomes
    ]
    return SimpleNamespace(
        success_count=sum(outcomes),
        failure_count=len(outcomes) - sum(outcomes),
        responses=responses,
    )


@pytest.fixture
def fcm_calls(monkeypatch):
    calls = []

    def fake_send(message, app=None):
        calls.append(message)
        outcomes = [token != "dead" for token in message.tokens]
        return _fcm_response(*outcomes)

    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)
    return calls


async def test_fcm_chunks_tokens_and_stringifies_data(fcm_calls):
    provider = FcmPushProvider(_push_config(), app=object())

    result = await provider.send_batch(["t1", "t2", "dead"], "title", "body", {"roomId": "r1", "n": 3})

    assert [m.tokens for m in fcm_calls] == [["t1", "t2"], ["dead"]]
    assert fcm_calls[0].data == {"roomId": "r1", "n": "3"}
    assert fcm_calls[0].notification.title == "title"
    assert result.success_count == 2
    assert result.failure_count == 1
    assert "dead" in result.per_identifier_errors


async def test_fcm_identifiers_are_user_tokens():
    provider = FcmPushProvider(_push_config(), app=object())
    assert provider.identifiers_for(USER) == ["t1", "t2"]


async def test_fcm_unconfigured_raises_provider_error():
    provider = FcmPushProvider(_push_config())

    assert not provider.is_configured
    with pytest.raises(ProviderError):
        await provider.send_batch(["t1"], "t", "b", {})


async def test_fcm_sdk_failure_trips_breaker(monkeypatch):
    def broken(message, app=None):
        raise ConnectionError("firebase unreachable")

    monkeypatch.setattr(messaging, "send_each_for_multicast", broken)
    provider = FcmPushProvider(_push_config(), app=object())

    for _ in range(2):
        with pytest.raises(ProviderError, match="multicast failed"):
            await provider.send_batch(["t1"], "t", "b", {})

    with pytest.raises(ProviderError, match="OPEN"):
        await provider.send_batch(["t1"], "t", "b", {})


async def test_fcm_later_chunk_failure_keeps_earlier_deliveries(monkeypatch):
    calls = []

    def flaky(message, app=None):
        calls.append(list(message.tokens))
        if len(calls) > 1:
            raise ConnectionError("firebase unreachable")
        return _fcm_response(*[True] * len(message.tokens))

    monkeypatch.setattr(messaging, "send_each_for_multicast", flaky)
    provider = FcmPushProvider(_push_config(fcm_batch_size=1), app=object())

    result = await provider.send_batch(["d1", "d2"], "t", "b", {})

    assert calls == [["d1"], ["d2"]]
    assert result.success_count == 1
    assert result.failure_count == 1
    assert list(result.per_identifier_errors) == ["d2"]
    assert "firebase unreachable" in result.error


# =============================================================================
# OneSignal
# =============================================================================

def _onesignal(handler, **config) -> OneSignalPushProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OneSignalPushProvider(_push_config(**config), client=client)


async def test_onesignal_posts_player_ids():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "n1", "recipients": 2})

    provider = _onesignal(handler)
    result = await provider.send_batch(["p1", "p2"], "title", "body", {"type": "chat"})
    await provider.close()

    assert seen["url"] == "https://onesignal.test/api/v1/notifications"
    assert seen["auth"] == "Basic rest-key"
    assert seen["body"] == {
        "app_id": "app-123",
        "include_player_ids": ["p1", "p2"],
        "headings": {"en": "title"},
        "contents": {"en": "body"},
        "data": {"type": "chat"},
    }
    assert result.success_count == 2


async def test_onesignal_reports_invalid_player_ids():
    def handler(request):
        return httpx.Response(200, json={"id": "n1", "errors": {"invalid_player_ids": ["p2"]}})

    result = await _onesignal(handler).send_batch(["p1", "p2"], "t", "b", {})

    assert result.success_count == 1
    assert result.per_identifier_errors == {"p2": "invalid player id"}


async def test_onesignal_all_unsubscribed_fails_every_id():
    def handler(request):
        return httpx.Response(400, json={"errors": ["All included players are not subscribed"]})

    result = await _onesignal(handler).send_batch(["p1", "p2"], "t", "b", {})

    assert result.success_count == 0
    assert set(result.per_identifier_errors) == {"p1", "p2"}


async def test_onesignal_server_error_becomes_provider_error():
    def handler(request):
        return httpx.Response(503, text="unavailable")

    with pytest.raises(ProviderError):
        await _onesignal(handler).send_batch(["p1"], "t", "b", {})


async def test_onesignal_rejection_becomes_provider_error():
    def handler(request):
        return httpx.Response(403, json={"errors": ["Invalid REST API key"]})

    with pytest.raises(ProviderError, match="403"):
        await _onesignal(handler).send_batch(["p1"], "t", "b", {})


async def test_onesignal_unconfigured():
    provider = _onesignal(lambda r: httpx.Response(200, json={}), onesignal_app_id=None)

    assert not provider.is_configured
    with pytest.raises(ProviderError):
        await provider.send_batch(["p1"], "t", "b", {})

# =============================================================================
# File: tests/conftest.py
# Description: Shared fixtures - in-memory storage, fake providers, tokens
# =============================================================================

import os

# Settings are cached on first use; fix them before sentinel is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("APP_INTERNAL_API_KEY", "internal-test-key")
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("PUSH_FCM_ENABLED", "false")

import pytest

from sentinel.config.jwt_config import get_jwt_config
from sentinel.infra.persistence.memory_directory import InMemoryDirectory
from sentinel.infra.persistence.memory_store import InMemoryRoomStore
from sentinel.notifications.fanout_service import NotificationFanoutService
from sentinel.realtime.core.room_bus import RoomBus
from sentinel.realtime.presence.presence_tracker import PresenceTracker
from sentinel.realtime.websocket.gateway_manager import ConnectionGateway
from sentinel.security.jwt_auth import IdentityVerifier, JwtTokenManager
from sentinel.services.application.chat_service import ChatService

from tests.fakes.fake_push_provider import FakePushProvider

INTERNAL_KEY = os.environ["APP_INTERNAL_API_KEY"]


@pytest.fixture
def directory() -> InMemoryDirectory:
    """alice, bob and carol; project p1 owned by alice with bob as member"""
    d = InMemoryDirectory()
    d.add_user("alice", "Alice", avatar_url="https://cdn/alice.png", fcm_tokens=["tok-alice"])
    d.add_user("bob", "Bob", fcm_tokens=["tok-bob"], onesignal_ids=["os-bob"])
    d.add_user("carol", "Carol")
    d.add_project("p1", "Apollo", owner_id="alice", member_ids=["bob"])
    return d


@pytest.fixture
def store() -> InMemoryRoomStore:
    return InMemoryRoomStore()


@pytest.fixture
def fcm() -> FakePushProvider:
    return FakePushProvider("fcm")


@pytest.fixture
def onesignal() -> FakePushProvider:
    return FakePushProvider("onesignal", source="onesignal")


@pytest.fixture
def token_manager() -> JwtTokenManager:
    return JwtTokenManager(get_jwt_config())


@pytest.fixture
def make_token(token_manager):
    def _make(user_id: str) -> str:
        return token_manager.create_access_token(subject=user_id)
    return _make


@pytest.fixture
def verifier(token_manager, directory) -> IdentityVerifier:
    return IdentityVerifier(token_manager, directory)


@pytest.fixture
def presence() -> PresenceTracker:
    return PresenceTracker()


@pytest.fixture
def gateway(verifier, presence) -> ConnectionGateway:
    return ConnectionGateway(verifier, presence, RoomBus())


@pytest.fixture
def fanout(directory, fcm, onesignal) -> NotificationFanoutService:
    return NotificationFanoutService(directory, [fcm, onesignal])


@pytest.fixture
def chat_service(store, directory, gateway, fanout) -> ChatService:
    return ChatService(store=store, users=directory, projects=directory, gateway=gateway, fanout=fanout)

# =============================================================================
# File: sentinel/core/startup/services.py
# Description: Security, realtime, notification and chat service wiring
# =============================================================================

import logging
from typing import List, Optional

from sentinel.config.gateway_config import get_gateway_config
from sentinel.config.jwt_config import get_jwt_config
from sentinel.config.push_config import PushConfig, get_push_config
from sentinel.core.app_state import ComponentOverrides
from sentinel.core.fastapi_types import FastAPI
from sentinel.notifications.fanout_service import NotificationFanoutService
from sentinel.notifications.ports.push_provider_port import PushProvider
from sentinel.notifications.providers.fcm_provider import FcmPushProvider
from sentinel.notifications.providers.onesignal_provider import OneSignalPushProvider
from sentinel.realtime.core.room_bus import RoomBus
from sentinel.realtime.presence.presence_tracker import PresenceTracker
from sentinel.realtime.websocket.gateway_manager import ConnectionGateway
from sentinel.security.jwt_auth import IdentityVerifier, JwtTokenManager
from sentinel.services.application.chat_service import ChatService

logger = logging.getLogger("sentinel.startup.services")


async def initialize_security(app: FastAPI) -> None:
    config = get_jwt_config()

    app.state.token_manager = JwtTokenManager(config)
    app.state.identity_verifier = IdentityVerifier(app.state.token_manager, app.state.user_directory)
    logger.info(f"Identity verifier ready ({config.algorithm})")


async def initialize_realtime(app: FastAPI) -> None:
    app.state.room_bus = RoomBus()
    app.state.presence = PresenceTracker()
    app.state.gateway = ConnectionGateway(app.state.identity_verifier, app.state.presence, app.state.room_bus)
    logger.info("Connection gateway ready.")


def build_push_providers(config: PushConfig) -> List[PushProvider]:
    """Providers that have credentials; an empty list disables push delivery."""
    providers: List[PushProvider] = []

    if config.fcm_enabled:
        fcm = FcmPushProvider(config)
        if fcm.is_configured:
            providers.append(fcm)

    if config.onesignal_configured:
        providers.append(OneSignalPushProvider(config))

    return providers


async def initialize_notifications(app: FastAPI, overrides: Optional[ComponentOverrides] = None) -> None:
    if overrides is not None and overrides.push_providers is not None:
        providers = list(overrides.push_providers)
    else:
        providers = build_push_providers(get_push_config())

    if not providers:
        logger.warning("No push provider configured - notifications will be skipped")

    app.state.push_providers = providers
    app.state.fanout_service = NotificationFanoutService(app.state.user_directory, providers)
    logger.info(f"Notification fan-out ready: {[p.name for p in providers]}")


async def initialize_services(app: FastAPI) -> None:
    gateway_config = get_gateway_config()
    app.state.chat_service = ChatService(
        store=app.state.room_store,
        users=app.state.user_directory,
        projects=app.state.project_directory,
        gateway=app.state.gateway,
        fanout=app.state.fanout_service,
        default_history_limit=gateway_config.default_history_limit,
        max_history_limit=gateway_config.max_history_limit,
    )
    logger.info("Chat service initialized.")

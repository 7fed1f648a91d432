# =============================================================================
# File: sentinel/core/app_state.py
# Description: Application state definition and global state management
# =============================================================================

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from sentinel.chat.ports.directory_port import ProjectDirectoryPort, UserDirectoryPort
from sentinel.chat.ports.room_store_port import RoomStorePort
from sentinel.notifications.fanout_service import NotificationFanoutService
from sentinel.notifications.ports.push_provider_port import PushProvider
from sentinel.realtime.core.room_bus import RoomBus
from sentinel.realtime.presence.presence_tracker import PresenceTracker
from sentinel.realtime.websocket.gateway_manager import ConnectionGateway
from sentinel.security.jwt_auth import IdentityVerifier, JwtTokenManager
from sentinel.services.application.chat_service import ChatService


# =============================================================================
# APP STATE TYPE DEFINITION
# =============================================================================
class AppState:
    """Type definition for FastAPI app.state with proper type hints"""

    def __init__(self):
        # Storage
        self.room_store: Optional[RoomStorePort] = None
        self.user_directory: Optional[UserDirectoryPort] = None
        self.project_directory: Optional[ProjectDirectoryPort] = None
        self.db_pool_owned: bool = False

        # Security
        self.token_manager: Optional[JwtTokenManager] = None
        self.identity_verifier: Optional[IdentityVerifier] = None

        # Realtime
        self.room_bus: Optional[RoomBus] = None
        self.presence: Optional[PresenceTracker] = None
        self.gateway: Optional[ConnectionGateway] = None

        # Notifications
        self.push_providers: Sequence[PushProvider] = ()
        self.fanout_service: Optional[NotificationFanoutService] = None

        # Services
        self.chat_service: Optional[ChatService] = None

        # Startup summary for /health
        self.startup_info: Optional[Dict[str, Any]] = None


@dataclass
class ComponentOverrides:
    """
    Pre-built components handed to create_app() in place of the configured
    ones. Anything left as None is built from configuration.
    """
    room_store: Optional[RoomStorePort] = None
    user_directory: Optional[UserDirectoryPort] = None
    project_directory: Optional[ProjectDirectoryPort] = None
    push_providers: Optional[Sequence[PushProvider]] = None


# =============================================================================
# GLOBAL STATE
# =============================================================================
_START_TIME = datetime.now(timezone.utc)


def get_start_time() -> datetime:
    """Get application start time"""
    return _START_TIME

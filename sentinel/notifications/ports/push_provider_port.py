# =============================================================================
# File: sentinel/notifications/ports/push_provider_port.py
# Description: Port interface for push delivery providers
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Dict, List, Protocol, Sequence, runtime_checkable

from sentinel.chat.ports.directory_port import DirectoryUser
from sentinel.notifications.types import ProviderResult


@runtime_checkable
class PushProvider(Protocol):
    """
    Port: Push Provider

    Implemented by:
    - FcmPushProvider (sentinel/notifications/providers/fcm_provider.py)
    - OneSignalPushProvider (sentinel/notifications/providers/onesignal_provider.py)

    send_batch raises ProviderError for provider-level failures and reports
    per-identifier failures inside the returned ProviderResult.
    """

    name: str

    @property
    def is_configured(self) -> bool:
        ...

    def identifiers_for(self, user: DirectoryUser) -> List[str]:
        """Device identifiers this provider can deliver to for user"""
        ...

    async def send_batch(
        self,
        identifiers: Sequence[str],
        title: str,
        body: str,
        data: Dict[str, str],
    ) -> ProviderResult:
        ...

    async def close(self) -> None:
        ...

# =============================================================================
# File: sentinel/notifications/providers/onesignal_provider.py
# Description: OneSignal player-id multicast over the REST API
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from sentinel.chat.ports.directory_port import DirectoryUser
from sentinel.common.exceptions.exceptions import ProviderError
from sentinel.config.push_config import PushConfig
from sentinel.config.reliability_config import ReliabilityConfigs
from sentinel.infra.reliability.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from sentinel.notifications.types import ProviderResult

log = logging.getLogger("sentinel.notifications.onesignal")

# OneSignal answers 400 with this when no listed player is subscribed
ALL_PLAYERS_UNSUBSCRIBED = "All included players are not subscribed"


class OneSignalRejected(Exception):
    """Request was understood but rejected (4xx)"""

    def __init__(self, status_code: int, body: Any):
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class OneSignalPushProvider:
    """Delivers to users' onesignal_ids with one POST per batch"""

    name = "onesignal"

    def __init__(self, config: PushConfig, client: Optional[httpx.AsyncClient] = None):
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.onesignal_timeout_seconds)
        self._breaker = CircuitBreaker(ReliabilityConfigs.push_provider_circuit_breaker(
            self.name,
            failure_threshold=config.breaker_failure_threshold,
            success_threshold=config.breaker_success_threshold,
            reset_timeout_seconds=config.breaker_reset_timeout_seconds,
        ))

    @property
    def is_configured(self) -> bool:
        return self._config.onesignal_configured

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    def identifiers_for(self, user: DirectoryUser) -> List[str]:
        return list(user.onesignal_ids)

    async def send_batch(
            self,
            identifiers: Sequence[str],
            title: str,
            body: str,
            data: Dict[str, str],
    ) -> ProviderResult:
        if not self.is_configured:
            raise ProviderError(self.name, "OneSignal is not configured")

        player_ids = list(identifiers)
        result = ProviderResult(provider=self.name, attempted=len(player_ids))

        try:
            response_body = await self._breaker.call(self._post, player_ids, title, body, data)
        except CircuitBreakerOpenError as e:
            raise ProviderError(self.name, str(e)) from e
        except OneSignalRejected as e:
            if ALL_PLAYERS_UNSUBSCRIBED in str(e.body):
                result.failure_count = len(player_ids)
                result.per_identifier_errors = {pid: "not subscribed" for pid in player_ids}
                return result
            raise ProviderError(self.name, str(e)) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"request failed: {type(e).__name__}: {e}") from e

        invalid = self._invalid_player_ids(response_body)
        for pid in player_ids:
            if pid in invalid:
                result.per_identifier_errors[pid] = "invalid player id"
        result.failure_count = len(result.per_identifier_errors)
        result.success_count = len(player_ids) - result.failure_count
        return result

    async def _post(self, player_ids: List[str], title: str, body: str, data: Dict[str, str]) -> Dict[str, Any]:
        api_key = self._config.onesignal_rest_api_key.get_secret_value()
        response = await self._client.post(
            self._config.onesignal_api_url,
            json={
                "app_id": self._config.onesignal_app_id,
                "include_player_ids": player_ids,
                "headings": {"en": title},
                "contents": {"en": body},
                "data": data,
            },
            headers={
                "Authorization": f"Basic {api_key}",
                "Content-Type": "application/json; charset=utf-8",
            },
        )

        if 400 <= response.status_code < 500:
            raise OneSignalRejected(response.status_code, self._json(response))
        response.raise_for_status()
        return self._json(response)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _invalid_player_ids(body: Any) -> set:
        if not isinstance(body, dict):
            return set()
        errors = body.get("errors")
        if isinstance(errors, dict):
            return set(errors.get("invalid_player_ids") or [])
        return set()

    async def close(self) -> None:
        await self._client.aclose()

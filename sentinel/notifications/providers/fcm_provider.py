# =============================================================================
# File: sentinel/notifications/providers/fcm_provider.py
# Description: Firebase Cloud Messaging token multicast
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import firebase_admin
from firebase_admin import credentials, messaging

from sentinel.chat.ports.directory_port import DirectoryUser
from sentinel.common.exceptions.exceptions import ProviderError
from sentinel.config.push_config import PushConfig
from sentinel.config.reliability_config import ReliabilityConfigs
from sentinel.infra.reliability.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from sentinel.notifications.types import ProviderResult

log = logging.getLogger("sentinel.notifications.fcm")

FCM_APP_NAME = "sentinel-fcm"
FCM_MAX_TOKENS_PER_CALL = 500


def _init_firebase_app(config: PushConfig) -> Optional[firebase_admin.App]:
    """Initialize (or reuse) the named firebase app from service-account settings."""
    try:
        return firebase_admin.get_app(FCM_APP_NAME)
    except ValueError:
        pass

    if config.fcm_service_account_json is not None:
        cert = credentials.Certificate(json.loads(config.fcm_service_account_json.get_secret_value()))
    elif config.fcm_service_account_file:
        cert = credentials.Certificate(config.fcm_service_account_file)
    else:
        log.warning("PUSH_FCM_ENABLED is set but no service account was provided; FCM disabled")
        return None

    app = firebase_admin.initialize_app(cert, name=FCM_APP_NAME)
    log.info(f"Firebase app initialized for project {cert.project_id}")
    return app


class FcmPushProvider:
    """
    Delivers to users' fcm_tokens with send_each_for_multicast.

    The firebase-admin SDK is synchronous, so each chunk runs in a worker
    thread. Data values are stringified because FCM only accepts strings.
    """

    name = "fcm"

    def __init__(self, config: PushConfig, app: Optional[Any] = None):
        self._config = config
        self._batch_size = min(config.fcm_batch_size, FCM_MAX_TOKENS_PER_CALL)
        self._app = app if app is not None else (_init_firebase_app(config) if config.fcm_enabled else None)
        self._breaker = CircuitBreaker(ReliabilityConfigs.push_provider_circuit_breaker(
            self.name,
            failure_threshold=config.breaker_failure_threshold,
            success_threshold=config.breaker_success_threshold,
            reset_timeout_seconds=config.breaker_reset_timeout_seconds,
        ))

    @property
    def is_configured(self) -> bool:
        return self._app is not None

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    def identifiers_for(self, user: DirectoryUser) -> List[str]:
        return list(user.fcm_tokens)

    async def send_batch(
            self,
            identifiers: Sequence[str],
            title: str,
            body: str,
            data: Dict[str, str],
    ) -> ProviderResult:
        if not self.is_configured:
            raise ProviderError(self.name, "FCM is not configured")

        tokens = list(identifiers)
        result = ProviderResult(provider=self.name, attempted=len(tokens))
        string_data = {str(k): str(v) for k, v in (data or {}).items()}

        for start in range(0, len(tokens), self._batch_size):
            chunk = tokens[start:start + self._batch_size]
            try:
                response = await self._breaker.call(self._send_chunk, chunk, title, body, string_data)
            except Exception as e:
                reason = str(e) if isinstance(e, CircuitBreakerOpenError) else f"multicast failed: {e}"
                if start == 0:
                    raise ProviderError(self.name, reason) from e
                # Earlier chunks were delivered; only this chunk is lost
                log.warning(f"FCM chunk of {len(chunk)} tokens failed after partial delivery: {reason}")
                result.failure_count += len(chunk)
                for token in chunk:
                    result.per_identifier_errors[token] = reason
                result.error = reason
                continue

            result.success_count += response.success_count
            result.failure_count += response.failure_count
            for token, send_response in zip(chunk, response.responses):
                if not send_response.success:
                    result.per_identifier_errors[token] = str(send_response.exception)

        return result

    async def _send_chunk(self, tokens: List[str], title: str, body: str, data: Dict[str, str]):
        message = messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=title, body=body),
            data=data,
        )
        return await asyncio.to_thread(messaging.send_each_for_multicast, message, app=self._app)

    async def close(self) -> None:
        if isinstance(self._app, firebase_admin.App):
            firebase_admin.delete_app(self._app)
            self._app = None

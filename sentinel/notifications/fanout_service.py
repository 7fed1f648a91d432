# =============================================================================
# File: sentinel/notifications/fanout_service.py
# Description: Notification fan-out across every configured push provider
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, List, Optional, Sequence, Set

from sentinel.chat.ports.directory_port import UserDirectoryPort
from sentinel.common.exceptions.exceptions import ProviderError
from sentinel.infra.metrics.chat_metrics import push_deliveries, push_fanout_duration, push_provider_errors
from sentinel.notifications.ports.push_provider_port import PushProvider
from sentinel.notifications.types import DeliveryReport, ProviderResult, PushPayload

log = logging.getLogger("sentinel.notifications.fanout")


class NotificationFanoutService:
    """
    Sends one notification intent to many users through many providers.

    Pipeline for notify():
        1. drop exclude_user_id, dedupe recipients
        2. resolve users through the directory
        3. collect identifiers per provider, minus exclude_identifiers
        4. dispatch providers concurrently; provider failures never propagate
    """

    def __init__(self, users: UserDirectoryPort, providers: Sequence[PushProvider]):
        self._users = users
        self._providers: List[PushProvider] = list(providers)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def providers(self) -> List[PushProvider]:
        return list(self._providers)

    async def notify(
            self,
            recipient_user_ids: Iterable[str],
            exclude_user_id: Optional[str],
            payload: PushPayload,
            exclude_identifiers: Iterable[str] = (),
    ) -> DeliveryReport:
        started = time.monotonic()
        recipients = [uid for uid in dict.fromkeys(recipient_user_ids) if uid != exclude_user_id]
        report = DeliveryReport(recipients=recipients)
        if not recipients:
            return report

        users = await self._users.find_by_ids(recipients)
        excluded = set(exclude_identifiers)

        batches = {}
        reachable: Set[str] = set()
        for provider in self._providers:
            identifiers: List[str] = []
            for uid in recipients:
                user = users.get(uid)
                if user is None:
                    continue
                ids = [i for i in provider.identifiers_for(user) if i and i not in excluded]
                if ids:
                    reachable.add(uid)
                    identifiers.extend(ids)
            batches[provider.name] = (provider, list(dict.fromkeys(identifiers)))

        report.skipped_user_ids = [uid for uid in recipients if uid not in reachable]

        dispatch = [(p, ids) for p, ids in batches.values() if ids]
        results = await asyncio.gather(*(self._dispatch(p, ids, payload) for p, ids in dispatch))
        for result in results:
            report.results[result.provider] = result

        push_fanout_duration.observe(time.monotonic() - started)
        log.info(
            f"Fan-out to {len(recipients)} users: {report.total_success} delivered, "
            f"{report.total_failure} failed, {len(report.skipped_user_ids)} without devices"
        )
        return report

    async def _dispatch(self, provider: PushProvider, identifiers: List[str], payload: PushPayload) -> ProviderResult:
        try:
            result = await provider.send_batch(identifiers, payload.title, payload.body, payload.data)
        except ProviderError as e:
            push_provider_errors.labels(provider=provider.name).inc()
            log.warning(f"Provider {provider.name} unavailable: {e.message}")
            return ProviderResult(
                provider=provider.name,
                attempted=len(identifiers),
                failure_count=len(identifiers),
                error=e.message,
            )
        except Exception as e:
            push_provider_errors.labels(provider=provider.name).inc()
            log.error(f"Provider {provider.name} failed unexpectedly: {e}", exc_info=True)
            return ProviderResult(
                provider=provider.name,
                attempted=len(identifiers),
                failure_count=len(identifiers),
                error=f"{type(e).__name__}: {e}",
            )

        push_deliveries.labels(provider=provider.name, result="success").inc(result.success_count)
        push_deliveries.labels(provider=provider.name, result="failure").inc(result.failure_count)
        if result.per_identifier_errors:
            log.debug(f"Provider {provider.name} rejected {len(result.per_identifier_errors)} identifiers")
        return result

    # =========================================================================
    # Background dispatch
    # =========================================================================

    def notify_async(
            self,
            recipient_user_ids: Iterable[str],
            exclude_user_id: Optional[str],
            payload: PushPayload,
            exclude_identifiers: Iterable[str] = (),
    ) -> asyncio.Task:
        """Schedule notify() without waiting; the task is tracked until done."""
        task = asyncio.create_task(
            self._notify_logged(list(recipient_user_ids), exclude_user_id, payload, tuple(exclude_identifiers)),
            name="sentinel-notify",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _notify_logged(self, recipients, exclude_user_id, payload, exclude_identifiers) -> Optional[DeliveryReport]:
        try:
            return await self.notify(recipients, exclude_user_id, payload, exclude_identifiers)
        except Exception as e:
            log.error(f"Background notification failed: {e}", exc_info=True)
            return None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for outstanding background notifications (shutdown, tests)."""
        if not self._tasks:
            return
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            log.warning(f"{len(pending)} notification tasks still running after drain timeout")

    async def close(self) -> None:
        for provider in self._providers:
            try:
                await provider.close()
            except Exception as e:
                log.error(f"Error closing provider {provider.name}: {e}")

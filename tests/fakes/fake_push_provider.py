# =============================================================================
# File: tests/fakes/fake_push_provider.py
# Description: Fake implementation of PushProvider for unit testing
# Pattern: Ports & Adapters - Fake/Stub adapter
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set

from sentinel.chat.ports.directory_port import DirectoryUser
from sentinel.common.exceptions.exceptions import ProviderError
from sentinel.notifications.types import ProviderResult


@dataclass
class CallRecord:
    """Record of a method call for verification."""
    method: str
    args: tuple
    kwargs: Dict[str, Any]


class FakePushProvider:
    """
    Fake implementation of PushProvider for unit testing.

    Delivers to the FCM tokens (or OneSignal ids, with source="onesignal")
    of a DirectoryUser and records every send_batch call.

    Usage:
        fake = FakePushProvider("fcm")
        fanout = NotificationFanoutService(directory, [fake])

        await fanout.notify(["u2"], exclude_user_id="u1", payload=payload)

        assert fake.get_call_count("send_batch") == 1
        assert fake.sent_identifiers() == ["token-u2"]
    """

    def __init__(self, name: str = "fcm", source: str = "fcm", configured: bool = True):
        self.name = name
        self._source = source
        self._configured = configured

        self._calls: List[CallRecord] = []
        self._fail_with: Optional[Exception] = None
        self._rejected: Set[str] = set()
        self.closed = False

    # =========================================================================
    # Test Setup Methods
    # =========================================================================

    def configure_failure(self, error: Optional[Exception] = None) -> None:
        """Make every send_batch raise (ProviderError by default)."""
        self._fail_with = error or ProviderError(self.name, "unreachable")

    def reject_identifiers(self, *identifiers: str) -> None:
        """Report these identifiers as failed inside an otherwise successful batch."""
        self._rejected.update(identifiers)

    def clear(self) -> None:
        self._calls.clear()
        self._fail_with = None
        self._rejected.clear()

    # =========================================================================
    # Test Verification Methods
    # =========================================================================

    def was_called(self, method: str) -> bool:
        return any(c.method == method for c in self._calls)

    def get_call_count(self, method: str) -> int:
        return sum(1 for c in self._calls if c.method == method)

    def get_calls(self, method: str) -> List[CallRecord]:
        return [c for c in self._calls if c.method == method]

    def get_last_call(self, method: str) -> Optional[CallRecord]:
        calls = self.get_calls(method)
        return calls[-1] if calls else None

    def sent_identifiers(self) -> List[str]:
        """Every identifier passed to send_batch, in call order."""
        return [i for c in self.get_calls("send_batch") for i in c.args[0]]

    # =========================================================================
    # PushProvider Implementation
    # =========================================================================

    @property
    def is_configured(self) -> bool:
        return self._configured

    def identifiers_for(self, user: DirectoryUser) -> List[str]:
        if self._source == "onesignal":
            return list(user.onesignal_ids)
        return list(user.fcm_tokens)

    async def send_batch(
            self,
            identifiers: Sequence[str],
            title: str,
            body: str,
            data: Dict[str, str],
    ) -> ProviderResult:
        self._calls.append(CallRecord(
            method="send_batch",
            args=(list(identifiers),),
            kwargs={"title": title, "body": body, "data": dict(data)},
        ))
        if self._fail_with is not None:
            raise self._fail_with

        errors = {i: "NotRegistered" for i in identifiers if i in self._rejected}
        return ProviderResult(
            provider=self.name,
            attempted=len(identifiers),
            success_count=len(identifiers) - len(errors),
            failure_count=len(errors),
            per_identifier_errors=errors,
        )

    async def close(self) -> None:
        self.closed = True

# =============================================================================
# File: sentinel/notifications/types.py
# Description: Notification payload and delivery report models
# =============================================================================

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class PushPayload(BaseModel):
    """What a notification says; providers map it onto their own wire format"""
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)


class ProviderResult(BaseModel):
    """Outcome of one provider's multicast"""
    provider: str
    attempted: int = 0
    success_count: int = 0
    failure_count: int = 0
    # identifier -> provider error text
    per_identifier_errors: Dict[str, str] = Field(default_factory=dict)
    # provider-level failure (unconfigured, unreachable, circuit open)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class DeliveryReport(BaseModel):
    """Aggregate of one fan-out across every provider"""
    recipients: List[str] = Field(default_factory=list)
    skipped_user_ids: List[str] = Field(default_factory=list)
    results: Dict[str, ProviderResult] = Field(default_factory=dict)

    @property
    def total_success(self) -> int:
        return sum(r.success_count for r in self.results.values())

    @property
    def total_failure(self) -> int:
        return sum(r.failure_count for r in self.results.values())

    @property
    def failed_identifiers(self) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        for result in self.results.values():
            merged.update(result.per_identifier_errors)
        return merged

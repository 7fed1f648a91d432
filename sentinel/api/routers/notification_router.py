# =============================================================================
# File: sentinel/api/routers/notification_router.py
# Description: Push identifier registration and test notifications
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from sentinel.api.dependencies.deps import get_current_user, get_fanout_service, get_user_directory
from sentinel.api.models.chat_api_models import (
    DeliveryReportResponse,
    FcmTokenRequest,
    OneSignalBindRequest,
    ProviderResultResponse,
    StatusResponse,
    TestNotificationRequest,
)
from sentinel.chat.ports.directory_port import UserDirectoryPort
from sentinel.notifications.fanout_service import NotificationFanoutService
from sentinel.notifications.types import PushPayload
from sentinel.security.jwt_auth import Identity

log = logging.getLogger("sentinel.api.notifications")

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.put("/fcm-token", response_model=StatusResponse)
async def register_fcm_token(
        request: FcmTokenRequest,
        current_user: Identity = Depends(get_current_user),
        users: UserDirectoryPort = Depends(get_user_directory),
) -> StatusResponse:
    await users.set_fcm_token(current_user.user_id, request.token)
    return StatusResponse(message="FCM token saved")


@router.delete("/fcm-token", response_model=StatusResponse)
async def clear_fcm_token(
        token: Optional[str] = Query(None, description="Token to remove; omit to remove all"),
        current_user: Identity = Depends(get_current_user),
        users: UserDirectoryPort = Depends(get_user_directory),
) -> StatusResponse:
    await users.clear_fcm_token(current_user.user_id, token)
    return StatusResponse(message="FCM token cleared")


@router.post("/onesignal", response_model=StatusResponse)
async def bind_onesignal(
        request: OneSignalBindRequest,
        current_user: Identity = Depends(get_current_user),
        users: UserDirectoryPort = Depends(get_user_directory),
) -> StatusResponse:
    """Attach a OneSignal player id to the caller, detaching it from anyone else"""
    await users.bind_onesignal_id(current_user.user_id, request.player_id)
    return StatusResponse(message="OneSignal id bound")


@router.post("/test", response_model=DeliveryReportResponse)
async def send_test_notification(
        request: TestNotificationRequest,
        current_user: Identity = Depends(get_current_user),
        fanout: NotificationFanoutService = Depends(get_fanout_service),
) -> DeliveryReportResponse:
    """Push to the caller's own devices and return the delivery report"""
    report = await fanout.notify(
        [current_user.user_id],
        exclude_user_id=None,
        payload=PushPayload(title=request.title, body=request.body, data={"type": "test"}),
    )
    return DeliveryReportResponse(
        recipients=report.recipients,
        skipped_user_ids=report.skipped_user_ids,
        total_success=report.total_success,
        total_failure=report.total_failure,
        results=[
            ProviderResultResponse(
                provider=r.provider,
                success_count=r.success_count,
                failure_count=r.failure_count,
                per_identifier_errors=r.per_identifier_errors,
                error=r.error,
            )
            for r in report.results.values()
        ],
    )

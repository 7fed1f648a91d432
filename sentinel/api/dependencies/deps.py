# =============================================================================
# File: sentinel/api/dependencies/deps.py
# Description: FastAPI dependencies - app state accessors and authentication
# =============================================================================

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sentinel.common.exceptions.exceptions import AuthError
from sentinel.config.app_config import get_app_config
from sentinel.notifications.fanout_service import NotificationFanoutService
from sentinel.security.jwt_auth import Identity, IdentityVerifier
from sentinel.services.application.chat_service import ChatService

log = logging.getLogger("sentinel.api.deps")

security_scheme = HTTPBearer(auto_error=False)


def _state_attr(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not configured")
    return value


async def get_chat_service(request: Request) -> ChatService:
    return _state_attr(request, "chat_service")


async def get_fanout_service(request: Request) -> NotificationFanoutService:
    return _state_attr(request, "fanout_service")


async def get_user_directory(request: Request):
    return _state_attr(request, "user_directory")


async def get_identity_verifier(request: Request) -> IdentityVerifier:
    return _state_attr(request, "identity_verifier")


async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
        verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Identity:
    """
    FastAPI dependency for HTTP endpoints.
    Expects 'Authorization: Bearer <token>'; raises 401 otherwise.
    """
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth scheme")

    try:
        return await verifier.verify(credentials.credentials)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from None


async def require_internal_key(x_internal_key: Optional[str] = Header(None)) -> None:
    """Shared-key guard for collaborator-to-service calls."""
    expected = get_app_config().internal_api_key.get_secret_value()
    if not expected:
        log.warning("Internal ingress called but APP_INTERNAL_API_KEY is not set")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Internal ingress disabled")
    if not x_internal_key or not hmac.compare_digest(x_internal_key.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid internal key")

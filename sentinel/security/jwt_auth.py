# =============================================================================
# File: sentinel/security/jwt_auth.py - JWT Authentication
# =============================================================================
# Responsibilities:
# - Verify signed identity tokens issued by the identity collaborator
# - Resolve the token subject against the user directory
# - Extract tokens from WebSocket handshakes (query, Bearer header, cookie)
# - Issue tokens for tooling and tests
# =============================================================================

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

from jose import JWTError, jwt

from sentinel.chat.ports.directory_port import UserDirectoryPort
from sentinel.common.exceptions.exceptions import AuthError
from sentinel.config.jwt_config import JWTConfig

log = logging.getLogger("sentinel.security.jwt_auth")

# Claims accepted as the subject, in order of preference
SUBJECT_CLAIMS = ("sub", "id", "user_id")

ACCESS_TOKEN_COOKIE = "access_token"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller"""
    user_id: str
    username: str
    avatar_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "username": self.username, "avatar_url": self.avatar_url}


class JwtTokenManager:
    """JWT creation and validation"""

    def __init__(self, config: JWTConfig):
        self._config = config
        self._secret = config.secret_key.get_secret_value()

    def create_access_token(
            self,
            subject: str,
            expires_delta: Optional[timedelta] = None,
            additional_claims: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Issue a JWT:
        - 'exp' set to now + expires_delta or the configured lifetime.
        - 'iat' set to current UTC time.
        - 'sub' set to subject.
        """
        if not subject:
            raise ValueError("Subject ('sub') claim is required.")

        now_utc = datetime.now(timezone.utc)
        expire_utc = now_utc + (expires_delta or timedelta(minutes=self._config.access_token_expire_minutes))

        claims: Dict[str, Any] = {
            "sub": subject,
            "exp": expire_utc,
            "iat": now_utc,
            "type": "access",
            "jti": secrets.token_urlsafe(16),
        }
        if self._config.issuer:
            claims["iss"] = self._config.issuer
        if self._config.audience:
            claims["aud"] = self._config.audience
        if additional_claims:
            claims.update(additional_claims)

        return jwt.encode(claims, self._secret, algorithm=self._config.algorithm)

    def decode_token_payload(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Decode and validate a JWT string.
        Returns the payload dict if valid, else None.
        """
        if not token or not self._secret:
            return None
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._config.algorithm],
                audience=self._config.audience,
                issuer=self._config.issuer,
                options={
                    "verify_aud": self._config.audience is not None,
                    "verify_iss": self._config.issuer is not None,
                    "leeway": self._config.leeway_seconds,
                },
            )
        except JWTError as exc:
            preview = token[:20] + "..." if len(token) > 20 else token
            log.info(f"JWT decode error ({type(exc).__name__}): {exc}. Token preview: {preview}")
            return None

    @staticmethod
    def subject_of(payload: Mapping[str, Any]) -> Optional[str]:
        for claim in SUBJECT_CLAIMS:
            value = payload.get(claim)
            if value is not None and str(value):
                return str(value)
        return None


class IdentityVerifier:
    """
    Resolves a signed token to an Identity.

    The token must decode, carry a subject, and name a user that still
    exists in the directory; anything else raises AuthError.
    """

    def __init__(self, token_manager: JwtTokenManager, users: UserDirectoryPort):
        self._tokens = token_manager
        self._users = users

    async def verify(self, token: Optional[str]) -> Identity:
        if not token:
            raise AuthError("Token missing")

        payload = self._tokens.decode_token_payload(token)
        if not payload:
            raise AuthError("Invalid or expired token")

        user_id = self._tokens.subject_of(payload)
        if not user_id:
            raise AuthError("Invalid token subject")

        user = await self._users.get_user(user_id)
        if user is None:
            log.warning(f"Token valid but user {user_id} does not exist in directory")
            raise AuthError("User account not found")

        return Identity(user_id=user.id, username=user.username, avatar_url=user.avatar_url)


# =============================================================================
# Token extraction
# =============================================================================

def bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """Pull the token out of an 'Authorization: Bearer <token>' header."""
    if not auth_header:
        return None
    try:
        scheme, token = auth_header.split(maxsplit=1)
    except ValueError:
        log.debug("Malformed Authorization header.")
        return None
    if scheme.lower() != "bearer":
        log.debug(f"Unexpected auth scheme: {scheme}")
        return None
    return token.strip() or None


def extract_handshake_token(
        query_params: Mapping[str, str],
        headers: Mapping[str, str],
        cookies: Mapping[str, str],
) -> Optional[str]:
    """Token from ?token=, then Authorization: Bearer, then the access_token cookie."""
    return (
        query_params.get("token")
        or bearer_token(headers.get("authorization"))
        or cookies.get(ACCESS_TOKEN_COOKIE)
        or None
    )

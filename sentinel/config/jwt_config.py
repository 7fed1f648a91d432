# =============================================================================
# File: sentinel/config/jwt_config.py
# Description: JWT configuration for identity verification
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from sentinel.common.base.base_config import BaseConfig, BASE_CONFIG_DICT
from sentinel.config.logging_config import get_logger

log = get_logger("sentinel.config.jwt")


class JWTConfig(BaseConfig):
    """
    JWT configuration.
    Tokens are issued by the external identity collaborator; this service only verifies them.
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='JWT_',
    )

    secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="JWT secret key (required, min 32 chars)"
    )

    algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )

    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        description="Access token lifetime in minutes (used when issuing tokens for tooling/tests)"
    )

    issuer: Optional[str] = Field(
        default=None,
        description="Expected iss claim; None disables issuer verification"
    )

    audience: Optional[str] = Field(
        default=None,
        description="Expected aud claim; None disables audience verification"
    )

    leeway_seconds: int = Field(
        default=10,
        description="Clock skew tolerance for exp/nbf"
    )

    def validate_secret(self) -> None:
        secret = self.secret_key.get_secret_value()
        if not secret:
            log.warning("JWT_SECRET_KEY is empty; every token will be rejected")
        elif len(secret) < 32:
            log.warning("JWT_SECRET_KEY is shorter than 32 characters")


@lru_cache(maxsize=1)
def get_jwt_config() -> JWTConfig:
    config = JWTConfig()
    config.validate_secret()
    return config

# =============================================================================
# File: sentinel/config/app_config.py
# Description: Application-level settings (environment, CORS, internal ingress)
# =============================================================================

from functools import lru_cache
from typing import List

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from sentinel.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class AppConfig(BaseConfig):
    """Top-level service configuration"""

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='APP_',
    )

    environment: str = Field(
        default="development",
        description="Environment (development, production, testing)"
    )

    service_name: str = Field(
        default="sentinel",
        description="Service name used in logs and health output"
    )

    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    internal_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Shared key expected in X-Internal-Key for internal event ingress"
    )

    host: str = Field(default="0.0.0.0", description="Bind host for the bundled server")
    port: int = Field(default=5001, description="Bind port for the bundled server")
    workers: int = Field(default=1, description="Server worker processes")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    return AppConfig()

# =============================================================================
# File: sentinel/config/push_config.py
# Description: Push provider settings (FCM, OneSignal) and their breakers
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from sentinel.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class PushConfig(BaseConfig):
    """Push notification provider configuration"""

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='PUSH_',
    )

    # =========================================================================
    # Firebase Cloud Messaging
    # =========================================================================

    fcm_enabled: bool = Field(
        default=False,
        description="Enable the FCM provider"
    )

    fcm_service_account_json: Optional[SecretStr] = Field(
        default=None,
        description="Service-account JSON document (inline)"
    )

    fcm_service_account_file: Optional[str] = Field(
        default=None,
        description="Path to a service-account JSON file"
    )

    fcm_batch_size: int = Field(
        default=500,
        ge=1,
        le=500,
        description="Tokens per multicast call (FCM limit is 500)"
    )

    # =========================================================================
    # OneSignal
    # =========================================================================

    onesignal_app_id: Optional[str] = Field(
        default=None,
        description="OneSignal app id"
    )

    onesignal_rest_api_key: Optional[SecretStr] = Field(
        default=None,
        description="OneSignal REST API key"
    )

    onesignal_api_url: str = Field(
        default="https://onesignal.com/api/v1/notifications",
        description="OneSignal notifications endpoint"
    )

    onesignal_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for OneSignal calls"
    )

    # =========================================================================
    # Circuit breaker (per provider)
    # =========================================================================

    breaker_failure_threshold: int = Field(default=5, description="Failures before opening")
    breaker_success_threshold: int = Field(default=2, description="Successes in half-open before closing")
    breaker_reset_timeout_seconds: int = Field(default=30, description="Seconds before half-open probe")

    @property
    def onesignal_configured(self) -> bool:
        return bool(self.onesignal_app_id and self.onesignal_rest_api_key
                    and self.onesignal_rest_api_key.get_secret_value())


@lru_cache(maxsize=1)
def get_push_config() -> PushConfig:
    return PushConfig()

# =============================================================================
# File: sentinel/config/gateway_config.py
# Description: Connection gateway and history paging settings
# =============================================================================

from functools import lru_cache

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from sentinel.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class GatewayConfig(BaseConfig):
    """WebSocket gateway configuration"""

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='GATEWAY_',
    )

    max_frame_size: int = Field(
        default=64 * 1024,
        description="Largest accepted client frame in bytes"
    )

    send_timeout_seconds: float = Field(
        default=5.0,
        description="Per-frame send timeout; slow sockets are skipped"
    )

    default_history_limit: int = Field(
        default=30,
        ge=1,
        le=100,
        description="Default page size for message history"
    )

    max_history_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum page size for message history"
    )

    max_presence_query: int = Field(
        default=500,
        description="Maximum user ids accepted in one presence_request"
    )


@lru_cache(maxsize=1)
def get_gateway_config() -> GatewayConfig:
    return GatewayConfig()

# =============================================================================
# File: sentinel/config/reliability_config.py
# Description: Circuit breaker configuration models
# =============================================================================

from typing import Optional

from pydantic import BaseModel


class CircuitBreakerConfig(BaseModel):
    """Circuit breaker configuration."""
    name: str
    failure_threshold: int = 5
    success_threshold: int = 3
    reset_timeout_seconds: int = 30
    half_open_max_calls: int = 3
    window_size: Optional[int] = None
    failure_rate_threshold: Optional[float] = None
    timeout_seconds: Optional[float] = None


class ReliabilityConfigs:
    """Pre-configured reliability profiles"""

    @staticmethod
    def push_provider_circuit_breaker(
            provider: str,
            failure_threshold: int = 5,
            success_threshold: int = 2,
            reset_timeout_seconds: int = 30,
    ) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            name=f"push_{provider}",
            failure_threshold=failure_threshold,
            success_threshold=success_threshold,
            reset_timeout_seconds=reset_timeout_seconds,
            half_open_max_calls=1,
        )

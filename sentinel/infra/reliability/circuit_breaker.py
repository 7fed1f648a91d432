# =============================================================================
# File: sentinel/infra/reliability/circuit_breaker.py
# Description: Circuit breaker pattern implementation
# =============================================================================

import logging
import time
from collections import deque
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from sentinel.config.reliability_config import CircuitBreakerConfig
from sentinel.infra.metrics.circuit_breaker import (
    circuit_breaker_state,
    circuit_breaker_failures,
    circuit_breaker_trips,
    circuit_breaker_call_duration,
)

logger = logging.getLogger("sentinel.circuit_breaker")

T = TypeVar('T')


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = auto()
    OPEN = auto()
    HALF_OPEN = auto()


class CircuitBreakerOpenError(Exception):
    """Raised when circuit breaker is open."""
    pass


class CircuitBreaker(Generic[T]):
    """
    Circuit Breaker implementation.

    State changes happen synchronously between awaits, so a breaker shared by
    concurrent coroutines on one event loop needs no lock.
    """

    def __init__(self, config: CircuitBreakerConfig):
        self.name = config.name
        self.config = config

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: Optional[datetime] = None
        self._half_open_calls = 0

        self._call_metrics: Optional[deque] = None
        if config.window_size:
            self._call_metrics = deque(maxlen=config.window_size)

        # Support both reset_timeout_seconds and timeout_seconds
        self._reset_timeout = (
            config.timeout_seconds if config.timeout_seconds is not None
            else config.reset_timeout_seconds
        )

        circuit_breaker_state.labels(name=self.name).set(0)

    @property
    def state(self) -> CircuitState:
        return self._state

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Execute function with circuit breaker protection."""
        if not self._can_execute():
            raise CircuitBreakerOpenError(f"Circuit breaker {self.name} is OPEN")

        start_time = time.monotonic()

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self._on_failure(time.monotonic() - start_time, str(e))
            raise

        self._on_success(time.monotonic() - start_time)
        return result

    def can_execute(self) -> bool:
        """Check if operation can be executed."""
        return self._can_execute()

    def _can_execute(self) -> bool:
        if self._state == CircuitState.CLOSED:
            return True

        if self._state == CircuitState.OPEN:
            if self._should_attempt_reset():
                self._state = CircuitState.HALF_OPEN
                self._half_open_calls = 1
                self._success_count = 0
                logger.info(f"circuit_breaker_half_open for {self.name}")
                circuit_breaker_state.labels(name=self.name).set(2)  # 2 = HALF_OPEN
                return True
            return False

        # HALF_OPEN state
        if self._half_open_calls < self.config.half_open_max_calls:
            self._half_open_calls += 1
            return True
        return False

    def _on_success(self, duration: float) -> None:
        if self._call_metrics is not None:
            self._call_metrics.append((True, duration))

        self._failure_count = 0
        self._success_count += 1
        circuit_breaker_call_duration.labels(name=self.name, result='success').observe(duration)

        if self._state == CircuitState.HALF_OPEN:
            if self._success_count >= self.config.success_threshold:
                self._transition_to_closed()
            else:
                # Allow the next probe
                self._half_open_calls = max(0, self._half_open_calls - 1)

    def _on_failure(self, duration: float, error_details: Optional[str] = None) -> None:
        if self._call_metrics is not None:
            self._call_metrics.append((False, duration))

        self._failure_count += 1
        self._last_failure_time = datetime.now(timezone.utc)

        if error_details:
            logger.debug(f"Circuit breaker {self.name} failure: {error_details}")

        circuit_breaker_failures.labels(name=self.name).inc()
        circuit_breaker_call_duration.labels(name=self.name, result='failure').observe(duration)

        if self._state == CircuitState.HALF_OPEN:
            self._transition_to_open()
            return

        if self._state == CircuitState.CLOSED:
            should_open = self._failure_count >= self.config.failure_threshold

            if (not should_open and
                    self.config.failure_rate_threshold is not None and
                    self._call_metrics is not None and
                    len(self._call_metrics) >= self.config.window_size):
                should_open = self._calculate_failure_rate() >= self.config.failure_rate_threshold

            if should_open:
                self._transition_to_open()

    def _calculate_failure_rate(self) -> float:
        if not self._call_metrics:
            return 0.0
        failures = sum(1 for success, _ in self._call_metrics if not success)
        return failures / len(self._call_metrics)

    def _should_attempt_reset(self) -> bool:
        if self._last_failure_time is None:
            return True
        elapsed = (datetime.now(timezone.utc) - self._last_failure_time).total_seconds()
        return elapsed >= self._reset_timeout

    def _transition_to_closed(self) -> None:
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._half_open_calls = 0
        logger.info(f"circuit_breaker_closed for {self.name}")
        circuit_breaker_state.labels(name=self.name).set(0)  # 0 = CLOSED

    def _transition_to_open(self) -> None:
        self._state = CircuitState.OPEN
        self._success_count = 0
        logger.warning(f"circuit_breaker_opened for {self.name}")
        circuit_breaker_state.labels(name=self.name).set(1)  # 1 = OPEN
        circuit_breaker_trips.labels(name=self.name).inc()

    def get_metrics(self) -> Dict[str, Any]:
        metrics = {
            "name": self.name,
            "state": self._state.name,
            "failure_count": self._failure_count,
            "success_count": self._success_count,
            "last_failure_time": self._last_failure_time.isoformat() if self._last_failure_time else None,
        }
        if self._call_metrics is not None:
            metrics["failure_rate"] = self._calculate_failure_rate()
        return metrics

"""Circuit breaker guarding calls to the embedding provider.

After repeated provider failures the breaker opens and calls fail fast with
CircuitBreakerError, which the matching engine treats like any other provider
failure and answers with heuristic scores.
"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from functools import wraps
from threading import Lock
from typing import Callable, Optional, Type

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Calls pass through
    OPEN = "open"          # Calls blocked
    HALF_OPEN = "half_open"  # One trial call allowed


class CircuitBreakerError(Exception):
    """Raised when a call is blocked by an open circuit."""
    pass


class CircuitBreaker:
    """
    Per-client circuit breaker.

    Each provider instance owns its breaker, so separate engines (or tests)
    never share failure counts.

    Usage:
        breaker = CircuitBreaker(name="gemini_embeddings", fail_max=5, reset_timeout=60,
                                 exclude=[ValueError])
        embedding = breaker.call(client.embed, text)
    """

    def __init__(
        self,
        name: str,
        fail_max: int = 5,
        reset_timeout: float = 60,
        exclude: Optional[list[Type[Exception]]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Identifier used in log messages
            fail_max: Consecutive failures before the circuit opens
            reset_timeout: Seconds the circuit stays open before a trial call
            exclude: Exception types that are not counted as failures
            clock: Time source, injectable for tests
        """
        self.name = name
        self.fail_max = fail_max
        self.reset_timeout = reset_timeout
        self.exclude = tuple(exclude or ())
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._last_failure_at: Optional[datetime] = None
        self._lock = Lock()

    @property
    def state(self) -> CircuitState:
        """Current state; an expired OPEN circuit moves to HALF_OPEN."""
        with self._lock:
            if self._state == CircuitState.OPEN and self._opened_at is not None:
                elapsed = self._clock() - self._opened_at
                if elapsed >= self.reset_timeout:
                    logger.info(f"[CircuitBreaker:{self.name}] HALF_OPEN after {elapsed:.0f}s")
                    self._state = CircuitState.HALF_OPEN
            return self._state

    def _record_success(self):
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                logger.info(f"[CircuitBreaker:{self.name}] Trial call succeeded, closing circuit")
                self._state = CircuitState.CLOSED
                self._opened_at = None

    def _record_failure(self, exception: Exception):
        if isinstance(exception, self.exclude):
            logger.debug(f"[CircuitBreaker:{self.name}] Not counting {type(exception).__name__}")
            return

        with self._lock:
            self._failure_count += 1
            self._last_failure_at = datetime.now(timezone.utc)

            if self._state == CircuitState.HALF_OPEN:
                logger.warning(f"[CircuitBreaker:{self.name}] Trial call failed, reopening circuit")
                self._state = CircuitState.OPEN
                self._opened_at = self._clock()
            elif self._state == CircuitState.CLOSED and self._failure_count >= self.fail_max:
                logger.warning(
                    f"[CircuitBreaker:{self.name}] Opening circuit after {self._failure_count} failures"
                )
                self._state = CircuitState.OPEN
                self._opened_at = self._clock()

    def __call__(self, func: Callable) -> Callable:
        """Decorator form of call()."""
        @wraps(func)
        def wrapper(*args, **kwargs):
            if self.state == CircuitState.OPEN:
                remaining = self.reset_timeout - (self._clock() - (self._opened_at or 0))
                raise CircuitBreakerError(
                    f"Circuit breaker '{self.name}' is open. Retry in {max(remaining, 0):.0f}s."
                )

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                self._record_failure(e)
                raise
            self._record_success()
            return result

        return wrapper

    def call(self, func: Callable, *args, **kwargs):
        """Call func under circuit breaker protection."""
        return self(func)(*args, **kwargs)

    def reset(self):
        """Force the circuit closed."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._opened_at = None
        logger.info(f"[CircuitBreaker:{self.name}] Manually reset to CLOSED")

    def get_status(self) -> dict:
        """Breaker status for the health endpoint."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "fail_max": self.fail_max,
            "last_failure": self._last_failure_at.isoformat() if self._last_failure_at else None,
            "reset_timeout": self.reset_timeout,
        }

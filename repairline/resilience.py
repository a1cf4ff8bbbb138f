"""
Failure-counting resilience policy for outbound calls.

Each client that talks to an external service owns its own policy
instance. After ``failure_threshold`` consecutive failures the policy
opens and rejects calls with ServiceUnavailableError until the cooldown
has elapsed; the next call is then let through as a trial, and its
outcome either closes the policy again or re-opens it.

Usage:
    policy = ResiliencePolicy("supabase", failure_threshold=3, cooldown_sec=30)
    rows = await policy.call(client.get, "/rest/v1/faqs")
"""

import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from repairline.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PolicyState(str, Enum):
    """Lifecycle of a resilience policy."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class ResiliencePolicy:
    """Consecutive-failure counter with a time-based cooldown."""

    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        cooldown_sec: float = 30.0,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError(f"failure_threshold must be >= 1, got {failure_threshold}")
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown_sec = cooldown_sec
        self._clock = clock or time.monotonic
        self._state = PolicyState.CLOSED
        self._failure_count = 0
        self._next_attempt = 0.0

    @property
    def state(self) -> PolicyState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def before_call(self) -> None:
        """Raise if the policy is open and the cooldown has not elapsed."""
        if self._state != PolicyState.OPEN:
            return
        now = self._clock()
        if now < self._next_attempt:
            logger.warning("Resilience policy %s is OPEN", self.name)
            raise ServiceUnavailableError(self.name, self._next_attempt - now)
        self._state = PolicyState.HALF_OPEN
        logger.info("Resilience policy %s half-open, allowing trial call", self.name)

    def record_success(self) -> None:
        if self._state != PolicyState.CLOSED:
            logger.info("Resilience policy %s closed", self.name)
        self._failure_count = 0
        self._state = PolicyState.CLOSED

    def record_failure(self) -> None:
        self._failure_count += 1
        if self._state == PolicyState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._state = PolicyState.OPEN
            self._next_attempt = self._clock() + self.cooldown_sec
            logger.error(
                "Resilience policy %s opened for %.0fs after %d failures",
                self.name, self.cooldown_sec, self._failure_count,
            )

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run an async callable under this policy."""
        self.before_call()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

"""Resilient execution of store calls.

Wraps a single store round-trip with a per-attempt timeout ceiling and
bounded retries using exponential backoff:

    delay = min(delay_initial * delay_multiplier ** (attempt - 1), delay_max)

Only transient failures are retried (Redis errors, socket errors, timeouts).
When the retries are exhausted the last error is raised to the caller, which
turns it into a typed failure.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from redis.exceptions import RedisError

from collectioncache.config import settings
from collectioncache.observability.metrics import record_store_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    RedisError,
    OSError,
    TimeoutError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry and timeout settings for one store call."""

    max_attempts: int = 3
    delay_initial: float = 0.2
    delay_multiplier: float = 2.0
    delay_max: float = 2.0
    timeout: float = 10.0

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            max_attempts=settings.retry_max_attempts,
            delay_initial=settings.retry_delay_initial,
            delay_multiplier=settings.retry_delay_multiplier,
            delay_max=settings.retry_delay_max,
            timeout=settings.operation_timeout,
        )

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1-based)."""
        delay = self.delay_initial * self.delay_multiplier ** (attempt - 1)
        return min(delay, self.delay_max)


async def execute_resilient(
    operation: Callable[[], Awaitable[T]],
    name: str,
    policy: RetryPolicy,
) -> T:
    """Run ``operation`` with timeout and retries.

    ``operation`` is a factory so every attempt gets a fresh awaitable.
    ``max_attempts`` counts retries after the first try.
    """
    attempt = 0
    while True:
        try:
            return await asyncio.wait_for(operation(), timeout=policy.timeout)
        except RETRYABLE_EXCEPTIONS as exc:
            attempt += 1
            if attempt > policy.max_attempts:
                logger.error(f"Store call {name} failed after {attempt} attempts: {exc!r}")
                raise
            delay = policy.delay_for(attempt)
            record_store_retry(name)
            logger.warning(
                f"Store call {name} failed (attempt {attempt}/{policy.max_attempts}), "
                f"retrying in {delay:.2f}s: {exc!r}"
            )
            await asyncio.sleep(delay)

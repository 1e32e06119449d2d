# File: utils/retry_utils.py
"""Retry policy for remote store I/O.

No Home Assistant imports. The policy is an explicit object that the sync
manager receives at construction time, so tests can inject a zero-delay
policy instead of patching sleeps. In-process retries run on tenacity; the
same backoff curve sizes the rollover retry timer.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import asyncio
import logging
import random
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff with jitter.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        base_delay: Delay in seconds before the second attempt
        max_delay: Upper bound for any single delay
        jitter: Maximum random seconds added to each delay
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.5

    def delay_for(self, attempt: int) -> float:
        """Return the delay after a failed attempt (0-based attempt index).

        Same curve as wait_exponential_jitter, for timers scheduled outside
        a retry loop.
        """
        delay = self.base_delay * (2**attempt)
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return max(0.0, min(delay, self.max_delay))

    def retrying(self, is_retryable: Callable[[BaseException], bool]) -> AsyncRetrying:
        """Build a tenacity controller for this policy."""
        return AsyncRetrying(
            stop=stop_after_attempt(max(self.max_attempts, 1)),
            wait=wait_exponential_jitter(
                initial=self.base_delay, max=self.max_delay, jitter=self.jitter
            ),
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep_log(_LOGGER, logging.DEBUG),
            sleep=asyncio.sleep,
            reraise=True,
        )

    @classmethod
    def no_delay(cls, max_attempts: int = 1) -> RetryPolicy:
        """Return a policy that never sleeps."""
        return cls(max_attempts=max_attempts, base_delay=0.0, max_delay=0.0, jitter=0.0)


async def async_call_with_retry(
    operation: Callable[[], Awaitable[_T]],
    policy: RetryPolicy,
    is_retryable: Callable[[BaseException], bool],
) -> _T:
    """Run an async operation, retrying retryable failures per the policy.

    Non-retryable errors and the last failure are re-raised unchanged.
    """
    return await policy.retrying(is_retryable)(operation)

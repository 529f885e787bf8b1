"""Bounded retry/fallback policy shared by the pipeline stages."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..errors import RequestFailedError, ResponseParseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Attempt counts, backoff schedule and candidate fan-out.

    Backoff schedule: initial_wait * 2^attempt with +/-jitter, capped at
    max_wait. ``sleep`` is injectable so tests can run without delays.
    """

    max_fallbacks: int = 2
    attempts_per_candidate: int = 1
    persist_attempts: int = 3
    initial_wait: float = 0.5
    max_wait: float = 8.0
    jitter: float = 0.25
    sleep: Callable[[float], Awaitable[Any]] = field(default=asyncio.sleep, repr=False)

    @classmethod
    def from_config(cls, config: Any) -> "RetryPolicy":
        return cls(
            max_fallbacks=max(0, config.max_fallbacks),
            attempts_per_candidate=max(1, config.attempts_per_candidate),
            persist_attempts=max(1, config.persist_attempts),
            initial_wait=max(0.0, config.retry_backoff),
        )

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after the zero-based ``attempt`` failed."""
        if self.initial_wait <= 0:
            return 0.0
        wait = min(self.initial_wait * (2 ** attempt), self.max_wait)
        jitter = wait * self.jitter * (2 * random.random() - 1)
        return max(0.01, wait + jitter)

    @staticmethod
    def is_retryable(error: BaseException) -> bool:
        """RequestFailed (unless flagged otherwise) and parse errors are retryable."""
        if isinstance(error, RequestFailedError):
            return error.retryable
        return isinstance(error, (ResponseParseError, asyncio.TimeoutError))

    def candidate_limit(self) -> int:
        """Total candidates to try: the primary plus the fallbacks."""
        return 1 + self.max_fallbacks

    async def wait(self, attempt: int, total: int, what: str) -> None:
        delay = self.backoff(attempt)
        logger.warning("%s failed. Retry %d/%d in %.1fs", what, attempt + 1, total, delay)
        if delay > 0:
            await self.sleep(delay)

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        attempts: int,
        what: str,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> T:
        """Await ``fn()`` up to ``attempts`` times with backoff between tries.

        Raises:
            The last error once attempts are exhausted.
        """
        attempts = max(1, attempts)
        last_error: Optional[BaseException] = None
        for attempt in range(attempts):
            try:
                return await fn()
            except retry_on as e:
                last_error = e
                if attempt + 1 >= attempts:
                    break
                await self.wait(attempt, attempts, what)
        assert last_error is not None
        raise last_error

"""
Retry policy with exponential backoff.

Used by the content resolver for per-gateway retries.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryStrategy:
    """Bounded retries with geometrically growing delays."""

    def __init__(self, max_retries: int = 2, base_delay: float = 1.0):
        """
        Initialize retry strategy.

        Args:
            max_retries: Retries after the first attempt (0 disables retrying)
            base_delay: Delay before the first retry; doubles on every retry
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_delay = base_delay

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after ``attempt`` failed attempts."""
        return attempt <= self.max_retries

    def get_delay(self, attempt: int) -> float:
        """Get delay before retry number ``attempt`` (1-based)."""
        return self.base_delay * (2 ** (attempt - 1))

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "operation") -> T:
        """
        Await ``operation`` until it succeeds or retries are exhausted.

        The last exception is re-raised when every attempt fails.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                attempt += 1
                if not self.should_retry(attempt):
                    raise
                delay = self.get_delay(attempt)
                logger.warning(
                    f"{label} failed ({e}); retry {attempt}/{self.max_retries} in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

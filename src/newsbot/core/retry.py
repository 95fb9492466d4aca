"""Bounded retry policy with linear backoff."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from newsbot.core.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Run an async operation up to ``max_attempts`` times.

    The wait after failed attempt ``n`` is ``n * delay`` seconds. ``sleep`` is
    injectable so tests can record delays instead of waiting.
    """

    max_attempts: int = 3
    delay: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    def backoff(self, attempt: int) -> float:
        return attempt * self.delay

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = "operation",
    ) -> T:
        """Await ``operation()`` until it succeeds or attempts run out.

        Raises:
            RetryExhaustedError: chained to the last error.
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                last_error = e
                logger.warning(
                    "%s failed (attempt %d/%d): %s",
                    description, attempt, self.max_attempts, e,
                )
                if attempt < self.max_attempts:
                    await self.sleep(self.backoff(attempt))

        raise RetryExhaustedError(
            f"{description} failed after {self.max_attempts} attempts: {last_error}",
            attempts=self.max_attempts,
        ) from last_error

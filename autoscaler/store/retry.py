"""Capped exponential backoff with full jitter."""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Delay before retry n (0-based) is uniform in [0, min(max_delay, base * 2**n)]."""

    max_attempts: int = 5
    base_delay_seconds: float = 0.1
    max_delay_seconds: float = 5.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("delays must be >= 0")

    def backoff_ceiling(self, attempt: int) -> float:
        return min(self.max_delay_seconds, self.base_delay_seconds * (2 ** attempt))

    def delay(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        return rng() * self.backoff_ceiling(attempt)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...],
    *,
    name: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: Callable[[], float] = random.random,
) -> T:
    """Run operation, retrying on `retry_on` errors. The last error is re-raised once attempts run out."""
    attempt = 0
    while True:
        try:
            return await operation()
        except retry_on as e:
            attempt += 1
            if attempt >= policy.max_attempts:
                raise
            delay = policy.delay(attempt - 1, rng)
            logger.warning(
                "store_retry",
                extra={"operation": name, "attempt": attempt, "delay_seconds": round(delay, 3), "error": str(e)},
            )
            await sleep(delay)

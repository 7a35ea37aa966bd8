"""Module to define how rate limited store requests are retried."""

import asyncio
import dataclasses

from collections.abc import Awaitable, Callable


def double(retry_after: float) -> float:
    """Return twice the duration suggested by the store."""
    return retry_after * 2


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    """
    Policy for retrying rate limited store requests.

    Parameters and attributes:
    • max_retries: maximum number of retries after the initial attempt  [10]
    • backoff: function of suggested retry-after duration, returning seconds to wait  [double]
    • max_delay: upper bound of seconds to wait between attempts  [unbounded]
    • sleep: coroutine function to wait a number of seconds  [asyncio.sleep]
    • raise_on_exhaustion: raise RetriesExhaustedError when retries are exhausted  [True]

    If raise_on_exhaustion is false, an operation that remains rate limited after all retries
    returns None instead of raising an exception.
    """

    max_retries: int = 10
    backoff: Callable[[float], float] = double
    max_delay: float | None = None
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    raise_on_exhaustion: bool = True

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")

    def delay(self, retry_after: float | None) -> float:
        """Return seconds to wait before retrying a request the store has rate limited."""
        delay = max(self.backoff(retry_after or 0.0), 0.0)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

"""
Rate limiting for outbound LLM calls
"""
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional


class RateLimiter:
    """
    Enforces a minimum gap between the end of one call and the start of the next.

    Used as a context manager around each call:

        with limiter.slot():
            scorer.calculate_match_score(user, candidate)
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_release: Optional[float] = None

    def acquire(self) -> float:
        """Block until the interval has passed. Returns seconds slept."""
        if self._last_release is None:
            return 0.0
        remaining = self.interval - (self._clock() - self._last_release)
        if remaining <= 0:
            return 0.0
        self._sleep(remaining)
        return remaining

    def release(self) -> None:
        """Record the end of a call"""
        self._last_release = self._clock()

    @contextmanager
    def slot(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()

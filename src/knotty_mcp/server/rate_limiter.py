"""Token bucket rate limiter for tool calls."""

import math
import time
from typing import Callable, Optional


class RateLimiter:
    """Token bucket with continuous refill.

    The bucket holds up to ``max_requests`` tokens and refills at
    ``max_requests / window_seconds`` tokens per second.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the limiter.

        Args:
            max_requests: Bucket capacity, requests allowed per window
            window_seconds: Time to refill an empty bucket
            clock: Monotonic time source in seconds
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._refill_rate = max_requests / window_seconds
        self._tokens = float(max_requests)
        self._last_refill = self._clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(
            float(self.max_requests), self._tokens + elapsed * self._refill_rate
        )
        self._last_refill = now

    def try_acquire(self) -> bool:
        """Take one token if available."""
        self._refill()
        if self._tokens >= 1:
            self._tokens -= 1
            return True
        return False

    @property
    def remaining(self) -> int:
        self._refill()
        return int(math.floor(self._tokens))

    def seconds_until_available(self) -> float:
        self._refill()
        if self._tokens >= 1:
            return 0.0
        return (1 - self._tokens) / self._refill_rate

    def reset(self) -> None:
        self._tokens = float(self.max_requests)
        self._last_refill = self._clock()

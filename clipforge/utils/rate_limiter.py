"""Rate Limiter - throttles synthesis API calls so scene fan-out does not hit provider limits."""

import time
from collections import defaultdict, deque
from threading import Lock
from typing import Optional


class RateLimiter:
    """Thread-safe sliding-window rate limiter.

    Blocking SDK calls run in worker threads, so waiting happens with
    ``time.sleep`` inside those threads and never on the event loop.
    """

    def __init__(self, max_calls: int = 60, time_window: float = 60.0):
        """
        Initialize rate limiter.

        Args:
            max_calls: Maximum number of calls allowed in time_window
            time_window: Time window in seconds (default: 60 seconds)
        """
        self.max_calls = max_calls
        self.time_window = time_window
        self.calls: dict[str, deque] = defaultdict(deque)
        self.lock = Lock()

    def _prune(self, calls: deque, now: float) -> None:
        while calls and now - calls[0] >= self.time_window:
            calls.popleft()

    def wait_if_needed(self, endpoint: str = "default") -> float:
        """
        Block until a call to ``endpoint`` is allowed, then record it.

        Returns:
            Seconds spent waiting.
        """
        waited = 0.0
        while True:
            with self.lock:
                now = time.monotonic()
                calls = self.calls[endpoint]
                self._prune(calls, now)
                if len(calls) < self.max_calls:
                    calls.append(now)
                    return waited
                wait_time = (calls[0] + self.time_window) - now
            # Sleep outside the lock so other endpoints keep flowing
            time.sleep(max(wait_time, 0.0))
            waited += max(wait_time, 0.0)

    def can_proceed(self, endpoint: str = "default") -> bool:
        """Check if a call can proceed without waiting."""
        with self.lock:
            calls = self.calls[endpoint]
            self._prune(calls, time.monotonic())
            return len(calls) < self.max_calls

    def reset(self, endpoint: Optional[str] = None) -> None:
        """Reset rate limiter for an endpoint or all endpoints."""
        with self.lock:
            if endpoint:
                self.calls[endpoint].clear()
            else:
                self.calls.clear()


# Process-wide limiters, one per synthesis provider
_limiters: dict[str, RateLimiter] = {}
_registry_lock = Lock()


def get_limiter(provider: str, max_calls: int, time_window: float = 60.0) -> RateLimiter:
    """Get or create the limiter for a provider ("elevenlabs", "openai")."""
    with _registry_lock:
        limiter = _limiters.get(provider)
        if limiter is None:
            limiter = RateLimiter(max_calls=max_calls, time_window=time_window)
            _limiters[provider] = limiter
        return limiter

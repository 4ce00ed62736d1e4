"""
Simple rate limiter for outbound chat messages.
Thread-safe; delivery runs in worker threads.
"""
import threading
import time
from collections import defaultdict
from collections.abc import Callable

from .constants import RATE_LIMIT_WINDOW, TELEGRAM_RATE_LIMIT
from .logger import logger


class RateLimiter:
    """
    Fixed-window rate limiter with per-key tracking.

    Keys are "<service>" or "<service>:<chat_id>"; the limit is looked up
    by the service part.

    Usage:
        limiter = RateLimiter()
        limiter.wait("telegram:12345")  # Blocks if rate limit exceeded
        # ... send message
    """

    # Default limits per service (requests per window)
    DEFAULT_LIMITS = {
        "telegram": TELEGRAM_RATE_LIMIT,
    }

    def __init__(
        self,
        custom_limits: dict | None = None,
        window: float = RATE_LIMIT_WINDOW,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._limits = {**self.DEFAULT_LIMITS, **(custom_limits or {})}
        self._window = window
        self._clock = clock
        self._sleep = sleep
        self._tokens = defaultdict(lambda: {"count": 0, "last_reset": self._clock()})
        self._lock = threading.Lock()

    def _limit_for(self, key: str) -> int:
        return self._limits.get(key, self._limits.get(key.split(":", 1)[0], 60))

    def wait(self, key: str, cost: int = 1) -> float:
        """
        Wait if necessary to respect rate limit, then consume tokens.

        Args:
            key: Service name, optionally with ":<chat_id>"
            cost: Number of tokens to consume (default: 1)

        Returns:
            Seconds waited (0 if no wait needed)
        """
        limit = self._limit_for(key)

        with self._lock:
            now = self._clock()
            bucket = self._tokens[key]

            elapsed = now - bucket["last_reset"]
            if elapsed >= self._window:
                bucket["count"] = 0
                bucket["last_reset"] = now
                elapsed = 0.0

            if bucket["count"] + cost > limit:
                wait_time = self._window - elapsed
                logger.warning(
                    "rate_limit.waiting",
                    key=key,
                    wait_seconds=round(wait_time, 1),
                    current_count=bucket["count"],
                    limit=limit
                )
                # Release lock while sleeping
                self._lock.release()
                try:
                    self._sleep(wait_time)
                finally:
                    self._lock.acquire()

                bucket["count"] = cost
                bucket["last_reset"] = self._clock()
                return wait_time

            bucket["count"] += cost
            return 0.0

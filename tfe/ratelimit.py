"""Client-side rate limiting.

The API advertises its request budget in the ``X-RateLimit-Limit`` response
header (requests per second).  :class:`TokenBucket` spends two thirds of
that budget as a steady refill rate and one third as burst capacity, so a
client can fire a short burst and is then spread out evenly instead of
running into 429s.

One bucket belongs to one client and is shared by every thread issuing
requests through it.
"""

from __future__ import annotations

import math
import threading
import time

from tfe.core.logging import get_logger

logger = get_logger("tfe.ratelimit")

RATE_SHARE = 0.66
BURST_SHARE = 0.33


class TokenBucket:
    """Thread-safe token bucket.

    Args:
        rate:     Tokens added per second.  ``math.inf`` disables limiting.
        capacity: Maximum number of stored tokens (burst size).
    """

    def __init__(self, rate: float = math.inf, capacity: int = 0) -> None:
        self._lock = threading.Lock()
        self._set(rate, capacity)

    def _set(self, rate: float, capacity: int) -> None:
        self.rate = rate
        self.capacity = capacity
        self.tokens = float(capacity)
        self._updated = time.monotonic()

    @property
    def unlimited(self) -> bool:
        return math.isinf(self.rate)

    def configure(self, raw_limit: str | None) -> None:
        """Resize the bucket from a raw ``X-RateLimit-Limit`` header value.

        Empty, unparsable or non-positive values switch limiting off.
        """
        limit = _parse_limit(raw_limit)
        with self._lock:
            if limit is None:
                self._set(math.inf, 0)
            else:
                self._set(limit * RATE_SHARE, max(1, int(limit * BURST_SHARE)))
        if limit is None:
            logger.debug("Rate limiting disabled (header=%r)", raw_limit)
        else:
            logger.info(
                "Rate limiter configured: %.2f req/s, burst %d (limit=%s)",
                self.rate,
                self.capacity,
                raw_limit,
            )

    def _refill(self, now: float) -> None:
        elapsed = now - self._updated
        if elapsed > 0:
            self.tokens = min(float(self.capacity), self.tokens + elapsed * self.rate)
            self._updated = now

    def try_acquire(self) -> float:
        """Take one token if available.

        Returns:
            ``0.0`` when a token was taken, otherwise the number of seconds
            until the next token becomes available.
        """
        with self._lock:
            if self.unlimited:
                return 0.0
            self._refill(time.monotonic())
            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return 0.0
            return (1.0 - self.tokens) / self.rate

    def acquire(self, cancel: threading.Event | None = None) -> bool:
        """Block until a token is taken.

        Returns False if *cancel* was set while waiting (no token taken).
        """
        while True:
            wait = self.try_acquire()
            if wait == 0.0:
                return True
            if cancel is not None:
                if cancel.wait(wait):
                    return False
            else:
                time.sleep(wait)


def _parse_limit(raw: str | None) -> float | None:
    if not raw:
        return None
    try:
        limit = float(raw)
    except ValueError:
        logger.warning("Ignoring unparsable rate limit header %r", raw)
        return None
    if not math.isfinite(limit) or limit <= 0:
        return None
    return limit

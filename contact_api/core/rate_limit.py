"""
Rate limiting for contact form submissions.

Counters are kept per client key in a fixed window. The store is an explicit
object handed to the app at construction time so tests can drive the clock
and a shared external counter can replace it later without touching the
endpoint.
"""

import logging
import math
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response

from contact_api.core.exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Too many contact form submissions from this IP, please try again after 15 minutes"


class MemoryRateLimitStore:
    """In-process counter table: key -> (window start, count)"""

    def __init__(self, window_seconds: float, clock: Callable[[], float] = time.time):
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    def hit(self, key: str) -> Tuple[int, float]:
        """
        Count one request for `key`.

        Returns:
            tuple: (count in the current window, timestamp the window resets at)
        """
        now = self._clock()
        with self._lock:
            self._prune(now)
            window_start, count = self._hits.get(key, (now, 0))
            if now - window_start >= self.window_seconds:
                # Window expired, start a fresh one
                window_start, count = now, 0
            count += 1
            self._hits[key] = (window_start, count)
        return count, window_start + self.window_seconds

    def reset(self, key: Optional[str] = None):
        """Forget one key, or every key when none is given."""
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)

    def now(self) -> float:
        return self._clock()

    def _prune(self, now: float):
        # Caller holds the lock
        if now - self._last_prune < self.window_seconds:
            return
        expired = [k for k, (start, _) in self._hits.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._hits[k]
        self._last_prune = now
        if expired:
            logger.debug(f"Pruned {len(expired)} expired rate limit entries")


class RateLimiter:
    """FastAPI dependency enforcing `max_requests` per client per window."""

    def __init__(self, store: MemoryRateLimitStore, max_requests: int = 10,
                 trust_proxy: bool = False, message: str = DEFAULT_MESSAGE):
        self.store = store
        self.max_requests = max_requests
        self.trust_proxy = trust_proxy
        self.message = message

    @classmethod
    def from_settings(cls, settings) -> "RateLimiter":
        store = MemoryRateLimitStore(settings.rate_limit_window_seconds)
        return cls(store, max_requests=settings.rate_limit_max, trust_proxy=settings.trust_proxy)

    def client_key(self, request: Request) -> str:
        """
        Resolve the key a request is counted under.

        The socket peer address is used unless the app sits behind a trusted
        reverse proxy, in which case the first X-Forwarded-For hop wins.
        """
        if self.trust_proxy:
            forwarded_for = request.headers.get("x-forwarded-for")
            if forwarded_for:
                first_hop = forwarded_for.split(",")[0].strip()
                if first_hop:
                    return first_hop
        return request.client.host if request.client else "unknown"

    def check(self, key: str) -> Dict[str, str]:
        """
        Count a request and return the rate limit headers for it.

        Raises:
            RateLimitExceeded: once the key has gone over the limit
        """
        count, reset_at = self.store.hit(key)
        remaining = max(self.max_requests - count, 0)
        headers = {
            "X-RateLimit-Limit": str(self.max_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(math.ceil(reset_at)),
        }

        if count > self.max_requests:
            retry_after = max(math.ceil(reset_at - self.store.now()), 0)
            headers["Retry-After"] = str(retry_after)
            logger.warning(f"Rate limit exceeded for {key} ({count}/{self.max_requests})")
            raise RateLimitExceeded(self.message, retry_after=retry_after, headers=headers)

        return headers

    async def __call__(self, request: Request, response: Response):
        headers = self.check(self.client_key(request))
        response.headers.update(headers)


async def enforce_rate_limit(request: Request, response: Response):
    """Route dependency delegating to the limiter owned by the app"""
    limiter: RateLimiter = request.app.state.rate_limiter
    await limiter(request, response)

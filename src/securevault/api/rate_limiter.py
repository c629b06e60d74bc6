"""
Attempt limiting for the login and two-factor endpoints.

Implements:
- Sliding-window counting per key (one key per account and action)
- Graceful 429 responses with Retry-After headers
- Periodic cleanup of idle keys

Every attempt counts, successful or not. The limit is configured through
``Settings.login_attempts_per_minute``.
"""

import logging
import threading
import time
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)


class RateLimitConfig:
    """Rate limiting configuration."""

    MINUTE_WINDOW = 60

    # Cleanup interval (delete idle keys)
    CLEANUP_INTERVAL_SECONDS = 600


class AttemptLimiter:
    """
    In-memory sliding window limiter.

    Tracks attempt timestamps per key. Suitable for a single API process;
    the lock makes it safe under FastAPI's threadpool.
    """

    def __init__(self, limit: int, window_seconds: int = RateLimitConfig.MINUTE_WINDOW):
        self.limit = limit
        self.window_seconds = window_seconds
        self._attempts: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()
        self._last_cleanup = time.monotonic()

    def _cleanup_old_entries(self, now: float) -> None:
        """Remove keys with no attempt inside the window."""
        if now - self._last_cleanup < RateLimitConfig.CLEANUP_INTERVAL_SECONDS:
            return

        cutoff = now - self.window_seconds
        for key in list(self._attempts.keys()):
            self._attempts[key] = [ts for ts in self._attempts[key] if ts > cutoff]
            if not self._attempts[key]:
                del self._attempts[key]

        self._last_cleanup = now
        logger.debug("Attempt limiter cleanup complete")

    def check(self, key: str) -> Tuple[bool, int, int]:
        """
        Record an attempt for ``key`` if it is under the limit.

        Returns:
            Tuple of (allowed: bool, current_count: int, retry_after_seconds: int)
        """
        now = time.monotonic()
        with self._lock:
            self._cleanup_old_entries(now)

            cutoff = now - self.window_seconds
            recent = [ts for ts in self._attempts[key] if ts > cutoff]
            self._attempts[key] = recent

            if len(recent) >= self.limit:
                retry_after = int((min(recent) + self.window_seconds) - now) + 1
                return False, len(recent), retry_after

            recent.append(now)
            return True, len(recent), 0

    def reset(self, key: str) -> None:
        with self._lock:
            self._attempts.pop(key, None)


def get_client_ip(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    """
    Extract client IP from request.

    X-Forwarded-For is honoured only when the direct peer is a trusted
    proxy. The chain is walked right to left and the first hop that is not
    itself a trusted proxy is the client; anything left of it is
    client-supplied and ignored.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = set(trusted_proxies)
    if peer not in trusted:
        return peer

    forwarded_for = request.headers.get("x-forwarded-for")
    if not forwarded_for:
        return peer

    hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return hops[0] if hops else peer


def enforce_limit(
    limiter: AttemptLimiter,
    key: str,
    on_reject: Optional[Callable[[], None]] = None,
) -> None:
    """
    Raise 429 if ``key`` is over its limit.

    ``on_reject`` runs before raising (audit hook).

    Raises:
        HTTPException: 429 with a Retry-After header
    """
    allowed, count, retry_after = limiter.check(key)
    if not allowed:
        logger.warning("Attempt limit exceeded: key=%s count=%d", key, count)
        if on_reject is not None:
            on_reject()
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )

import time
from collections import deque
from collections.abc import Callable
from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request, status

from housing.api.auth import Identity, require_writer

logger = structlog.get_logger(__name__)


class SlidingWindowRateLimiter:
    """
    Counts hits per key over a sliding time window.

    Instances are owned by whoever creates them (the app keeps one on
    ``app.state``); there is no process-wide counter. Keys with no hit left
    inside the window are forgotten, at most one sweep per window.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._next_sweep = clock() + window_seconds

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        return len(self._hits)

    def hit(self, key: str) -> bool:
        """Record a hit for ``key``; return False if it exceeds the limit."""
        now = self._clock()
        if now >= self._next_sweep:
            self._evict_idle(now)
            self._next_sweep = now + self._window

        hits = self._hits.setdefault(key, deque())
        while hits and now - hits[0] >= self._window:
            hits.popleft()
        if len(hits) >= self._limit:
            return False
        hits.append(now)
        return True

    def _evict_idle(self, now: float) -> None:
        idle = [k for k, hits in self._hits.items() if not hits or now - hits[-1] >= self._window]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("rate_limit_keys_evicted", count=len(idle))

    def reset(self) -> None:
        self._hits.clear()


async def enforce_create_rate_limit(
    request: Request,
    identity: Annotated[Identity, Depends(require_writer)],
) -> Identity:
    """Count a create against the client address, after authentication and role checks."""
    limiter: SlidingWindowRateLimiter = request.app.state.create_rate_limiter
    key = request.client.host if request.client else "unknown"
    if not limiter.hit(key):
        logger.warning("create_rate_limited", client=key, user_id=identity.user_id)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"code": "rate_limited", "message": "Too many housing shares created, try later"},
        )
    return identity

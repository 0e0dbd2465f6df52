"""Fixed-window in-memory rate limiting for expensive endpoints (single process only)."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import HTTPException, Request, Response, status

from app.common.schemas import error_detail


@dataclass
class LimitInfo:
    count: int
    limit: int
    reset_at: float


class InMemoryRateLimitStore:
    def __init__(self, limit: int, window_s: float, clock: Callable[[], float] = time.time) -> None:
        self.limit = limit
        self.window_s = window_s
        self._clock = clock
        self._data: Dict[str, LimitInfo] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + window_s

    def __len__(self) -> int:
        return len(self._data)

    def _sweep(self, now: float) -> None:
        expired = [key for key, info in self._data.items() if now >= info.reset_at]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self.window_s

    def increment(self, key: str) -> LimitInfo:
        now = self._clock()
        with self._lock:
            # Expired keys are dropped at most once per window
            if now >= self._next_sweep:
                self._sweep(now)
            info = self._data.get(key)
            if info is None or now >= info.reset_at:
                info = LimitInfo(count=0, limit=self.limit, reset_at=now + self.window_s)
                self._data[key] = info
            info.count += 1
            return LimitInfo(info.count, info.limit, info.reset_at)


def key_by_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def key_by_forwarded_ip(request: Request) -> str:
    """Client IP as reported by a trusted reverse proxy; only safe behind one."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return key_by_ip(request)


def client_key_func(trust_forwarded_for: bool) -> Callable[[Request], str]:
    return key_by_forwarded_ip if trust_forwarded_for else key_by_ip


class RateLimiter:
    """FastAPI dependency enforcing ``store.limit`` requests per window per key."""

    def __init__(self, store: InMemoryRateLimitStore, key_func: Callable[[Request], str] = key_by_ip) -> None:
        self.store = store
        self.key_func = key_func

    async def __call__(self, request: Request, response: Response) -> None:
        info = self.store.increment(self.key_func(request))
        headers = {
            "X-RateLimit-Limit": str(info.limit),
            "X-RateLimit-Remaining": str(max(0, info.limit - info.count)),
            "X-RateLimit-Reset": str(int(info.reset_at)),
        }
        response.headers.update(headers)
        if info.count > info.limit:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=error_detail(
                    "RATE_LIMIT_EXCEEDED",
                    "Rate limit exceeded. Try again later.",
                    {"limit": info.limit, "reset_at": int(info.reset_at)},
                    getattr(request.state, "request_id", None),
                ),
                headers=headers,
            )


__all__ = [
    "LimitInfo",
    "InMemoryRateLimitStore",
    "RateLimiter",
    "key_by_ip",
    "key_by_forwarded_ip",
    "client_key_func",
]

from __future__ import annotations

from collections import defaultdict, deque
from threading import Lock
import time

from fastapi import HTTPException, Request, status

from academy.core.config import get_settings


class SlidingWindowLimiter:
    """Per-key request timestamps kept for one window, in process memory."""

    def __init__(self) -> None:
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def hit(self, key: str, *, limit: int, window_seconds: int) -> int | None:
        """Record a hit. Returns ``None`` if allowed, else seconds to wait."""
        now = time.monotonic()
        with self._lock:
            hits = self._hits[key]
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            if len(hits) >= limit:
                return max(1, int(hits[0] + window_seconds - now))
            hits.append(now)
        return None

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


login_limiter = SlidingWindowLimiter()


def _client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def enforce_login_rate_limit(request: Request, email: str) -> None:
    settings = get_settings()
    key = f"login|{_client_address(request)}|{email.strip().lower()}"
    retry_after = login_limiter.hit(
        key,
        limit=settings.auth_rate_limit_login_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )
    if retry_after is None:
        return
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many login attempts. Try again in {retry_after} second(s).",
        headers={"Retry-After": str(retry_after)},
    )


public_form_limiter = SlidingWindowLimiter()


def enforce_public_form_rate_limit(request: Request, form: str) -> None:
    settings = get_settings()
    retry_after = public_form_limiter.hit(
        f"{form}|{_client_address(request)}",
        limit=settings.public_form_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )
    if retry_after is None:
        return
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many requests. Try again in {retry_after} second(s).",
        headers={"Retry-After": str(retry_after)},
    )

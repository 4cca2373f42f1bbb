"""
API Gateway Rate Limiting - per client IP, fixed windows.

Scopes:
- generation: POST under /plan/generate, /plan/revise, /plan/refine; per hour
  (cancelling is not counted)
- api: every other /api/v1 request; per minute
"""

import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from src.config import Settings, get_settings
from src.logging_config import get_logger

logger = get_logger(__name__)

GENERATION_PATHS = ("/plan/generate", "/plan/revise", "/plan/refine")
CANCEL_PATH = "/plan/generate/cancel"
MINUTE = 60
HOUR = 3600


def _get_client_ip(request: Request) -> str:
    """Get client IP from request (X-Forwarded-For or direct)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class InMemoryRateLimitStore:
    """Fixed-window in-memory store. Key -> (count, window_start, window_seconds)."""

    def __init__(self):
        self._data: Dict[str, Tuple[int, float, int]] = {}

    def check_and_incr(
        self,
        scope: str,
        identifier: str,
        limit: int,
        window_seconds: int,
    ) -> bool:
        """Returns True if under limit (and increments). False if over limit (no increment)."""
        key = f"{scope}:{identifier}"
        now = time.monotonic()
        entry = self._data.get(key)
        if entry is None or now - entry[1] >= entry[2]:
            self._data[key] = (1, now, window_seconds)
            return True
        count, start, window = entry
        if count >= limit:
            return False
        self._data[key] = (count + 1, start, window)
        return True

    def cleanup_old(self) -> None:
        """Drop entries whose window has expired."""
        now = time.monotonic()
        expired = [k for k, (_, start, window) in self._data.items() if now - start >= window]
        for k in expired:
            self._data.pop(k, None)

    def reset(self) -> None:
        self._data.clear()


# Module-level store (single process)
_store: Optional[InMemoryRateLimitStore] = None


def get_store() -> InMemoryRateLimitStore:
    global _store
    if _store is None:
        _store = InMemoryRateLimitStore()
    return _store


def resolve_scope(method: str, path: str, settings: Settings) -> Tuple[str, int, int]:
    """(scope, limit, window_seconds) for a request under the API prefix."""
    relative = path[len(settings.api_v1_prefix):]
    if method == "POST" and relative.startswith(GENERATION_PATHS) and relative != CANCEL_PATH:
        return "generation", settings.rate_limit_generation_per_hour, HOUR
    return "api", settings.rate_limit_api_per_minute, MINUTE


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over the scope limit with 429."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.rate_limit_enabled:
            return await call_next(request)

        path = request.url.path or ""
        if not path.startswith(settings.api_v1_prefix):
            return await call_next(request)

        store = get_store()
        store.cleanup_old()

        scope, limit, window = resolve_scope(request.method, path, settings)
        identifier = _get_client_ip(request)
        if not store.check_and_incr(scope, identifier, limit, window):
            logger.warning("Rate limit exceeded", extra={"scope": scope, "client_ip": identifier})
            return Response(
                content='{"detail":"Zu viele Anfragen. Bitte später erneut versuchen.","code":"rate_limited"}',
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                media_type="application/json",
            )
        return await call_next(request)

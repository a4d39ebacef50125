from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from threading import Lock
from typing import Callable, Deque, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .config import settings

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0
CLEANUP_INTERVAL = 60.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window request limit per client IP for ``/api/`` routes."""

    def __init__(self, app, limit: int | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__(app)
        self._limit = limit
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()
        self._last_cleanup = clock()

    @property
    def limit(self) -> int:
        if self._limit is None:
            return settings.rate_limit_per_minute
        return self._limit

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if not self.limit or not request.url.path.startswith("/api/"):
            return await call_next(request)
        client_ip = self._extract_client_ip(request)
        if not self._allow(client_ip):
            logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            return JSONResponse({"detail": "Too many requests"}, status_code=429)
        return await call_next(request)

    def _allow(self, client_ip: str) -> bool:
        now = self.clock()
        with self._lock:
            self._cleanup(now)
            hits = self._hits[client_ip]
            self._prune(hits, now)
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True

    @staticmethod
    def _prune(hits: Deque[float], now: float) -> None:
        while hits and now - hits[0] >= WINDOW_SECONDS:
            hits.popleft()

    def _cleanup(self, now: float) -> None:
        """Forget clients whose hits have all left the window."""
        if now - self._last_cleanup < CLEANUP_INTERVAL:
            return
        for client_ip in list(self._hits):
            hits = self._hits[client_ip]
            self._prune(hits, now)
            if not hits:
                del self._hits[client_ip]
        self._last_cleanup = now

    def _extract_client_ip(self, request: Request) -> str:
        if settings.behind_proxy:
            forwarded = request.headers.get("X-Forwarded-For")
            if forwarded:
                return forwarded.split(",")[0].strip()
        if request.client and request.client.host:
            host = request.client.host
        else:
            host = "127.0.0.1"
        if host in {"testclient", "localhost", "testserver"}:
            return "127.0.0.1"
        return host

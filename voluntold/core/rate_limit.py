"""
Simple in-memory rate limiting for public endpoints.

One RateLimiter lives on app.state per application instance; endpoints opt in
with a dependency:

    @router.post("/password-reset", dependencies=[Depends(rate_limit("password_reset", 5, 900))])
"""
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, List
import logging
import threading

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from voluntold.core.audit import log_security_event
from voluntold.db.session import get_db
from voluntold.models.audit_log import AuditEventType

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window counter keyed by (scope, client identifier)."""

    def __init__(self, cleanup_interval: timedelta = timedelta(minutes=5)):
        self._store: Dict[str, List[datetime]] = defaultdict(list)
        self._lock = threading.Lock()
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = datetime.utcnow()

    def _cleanup_old_entries(self, now: datetime) -> None:
        """Drop entries older than an hour. Caller holds the lock."""
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        cutoff_time = now - timedelta(hours=1)
        for key in list(self._store.keys()):
            self._store[key] = [ts for ts in self._store[key] if ts > cutoff_time]
            if not self._store[key]:
                del self._store[key]

    def hit(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Record a request. Returns False when the window is already full."""
        now = datetime.utcnow()
        window_start = now - timedelta(seconds=window_seconds)
        with self._lock:
            self._cleanup_old_entries(now)
            recent = [ts for ts in self._store[key] if ts > window_start]
            if len(recent) >= max_requests:
                self._store[key] = recent
                return False
            recent.append(now)
            self._store[key] = recent
            return True


def rate_limit(scope: str, max_requests: int = 5, window_seconds: int = 300) -> Callable:
    """
    Build a dependency enforcing max_requests per window_seconds per client IP.

    Args:
        scope: Name of the limited endpoint; each scope has its own windows
        max_requests: Maximum number of requests allowed in the window
        window_seconds: Window length in seconds
    """
    def dependency(request: Request, db: Session = Depends(get_db)) -> None:
        if not request.app.state.settings.RATE_LIMIT_ENABLED:
            return
        client_ip = request.client.host if request.client else "unknown"
        limiter: RateLimiter = request.app.state.rate_limiter
        if limiter.hit(f"{scope}:{client_ip}", max_requests, window_seconds):
            return

        logger.warning("rate_limit.exceeded", extra={"scope": scope, "client_ip": client_ip})
        log_security_event(
            db,
            event_type=AuditEventType.RATE_LIMIT_EXCEEDED,
            resource_type="api_endpoint",
            resource_id=scope,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
            details={"max_requests": max_requests, "window_seconds": window_seconds},
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded: {max_requests} requests per {window_seconds} seconds. Please try again later.",
        )

    return dependency

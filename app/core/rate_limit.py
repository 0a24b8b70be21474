"""
In-memory per-user request limiter.

Counters live in process memory only and are swept by the background
scheduler; a restart resets every window.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status

from app.core.config import settings
from app.core.security import get_current_user_id

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    def __init__(self, max_requests: Optional[int] = None, window_seconds: Optional[int] = None) -> None:
        self.max_requests = max_requests or settings.RATE_LIMIT_MAX_REQUESTS
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, identifier: str, now: Optional[float] = None) -> Dict[str, int]:
        """Count one request; returns {"allowed": 0|1, "remaining": n}."""
        now = time.time() if now is None else now
        with self._lock:
            window = self._windows.get(identifier)
            if window is None or now > window.reset_at:
                self._windows[identifier] = _Window(count=1, reset_at=now + self.window_seconds)
                return {"allowed": 1, "remaining": self.max_requests - 1}

            if window.count >= self.max_requests:
                return {"allowed": 0, "remaining": 0}

            window.count += 1
            return {"allowed": 1, "remaining": self.max_requests - window.count}

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop expired windows. Returns the number removed."""
        now = time.time() if now is None else now
        with self._lock:
            expired = [key for key, window in self._windows.items() if now > window.reset_at]
            for key in expired:
                del self._windows[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired rate-limit windows")
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


limiter = RateLimiter()


def rate_limited_user(user_id: str = Depends(get_current_user_id)) -> str:
    result = limiter.hit(user_id)
    if not result["allowed"]:
        logger.warning(f"Rate limit exceeded for user {user_id}")
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many requests")
    return user_id

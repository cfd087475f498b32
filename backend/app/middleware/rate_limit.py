"""
Inkpost API: Login Throttle Middleware
========================================

What:  Per-IP sliding window limit on POST /api/login.
How:   Keeps the timestamps of recent login attempts per client IP in memory.
       Every attempt counts, successful or not.
When:  Right after the request ID middleware, before any route work.

Algorithm: Sliding Window Log
    1. Drop timestamps older than the window
    2. If the remaining count >= limit, reject with 429
    3. Otherwise record now and let the request through

    With the defaults (10 attempts / 60 s) the 11th attempt within a minute
    gets 429 with a Retry-After header counting down to when the oldest
    attempt leaves the window.

State lives in the middleware instance, so it is per process and is reset
whenever a new app is created (each test builds its own app).
"""

import logging
import time
from collections import defaultdict
from typing import Dict, FrozenSet, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

# (method, path) pairs the throttle applies to
THROTTLED_ROUTES: FrozenSet[Tuple[str, str]] = frozenset({("POST", "/api/login")})


class LoginThrottleMiddleware(BaseHTTPMiddleware):

    def __init__(
        self, app, max_attempts: Optional[int] = None, window: Optional[int] = None, **kwargs
    ):
        super().__init__(app, **kwargs)
        self.max_attempts = max_attempts or settings.login_rate_limit_attempts
        self.window = window or settings.login_rate_limit_window
        self._attempts: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if (request.method, request.url.path) not in THROTTLED_ROUTES:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        attempts = [ts for ts in self._attempts[client_ip] if ts > window_start]
        self._attempts[client_ip] = attempts

        if len(attempts) >= self.max_attempts:
            retry_after = int(attempts[0] + self.window - now) + 1
            logger.warning(
                "Login throttle hit for IP %s: %d attempts in %ds",
                client_ip,
                len(attempts),
                self.window,
            )
            # Exception handlers do not see errors raised in middleware, so
            # the 429 body is built here in the shared error shape
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={"message": exc.message},
                headers={"Retry-After": str(retry_after)},
            )

        attempts.append(now)
        self._prune(window_start)
        return await call_next(request)

    def _prune(self, window_start: float) -> None:
        """Forgets IPs with no attempt inside the window."""
        stale = [ip for ip, stamps in self._attempts.items() if not stamps or stamps[-1] <= window_start]
        for ip in stale:
            del self._attempts[ip]

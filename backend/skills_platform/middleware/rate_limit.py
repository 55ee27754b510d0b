"""
Skills Platform Backend — Rate Limiting Middleware
====================================================

What:  Per-IP sliding window rate limiter.
Why:   Every AI route spends Gemini quota; one misbehaving client must not
       exhaust it for a whole school.
How:   Keeps each IP's request timestamps for the last RATE_LIMIT_WINDOW
       seconds and rejects with 429 once RATE_LIMIT_REQUESTS is reached.

Algorithm: Sliding Window Log
    1. Drop the IP's timestamps older than the window
    2. If the remaining count >= limit, reject (Retry-After = seconds until
       the oldest timestamp leaves the window)
    3. Otherwise record now and continue

State is in process memory: correct for a single uvicorn worker. Several
workers each enforce their own limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from skills_platform.config import settings
from skills_platform.exceptions import RateLimitExceededError
from skills_platform.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Excluded paths: the health check and the API docs.

    Response on rate limit:
        HTTP 429 with Retry-After and the error envelope
        (code rate_limit_exceeded, details.retry_after)
    """

    EXCLUDED_PATHS = {"/api/health", "/docs", "/openapi.json", "/redoc"}

    # Inactive IPs are purged every this many recorded requests
    CLEANUP_EVERY = 1000

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        now = time.time()
        window_start = now - settings.rate_limit_window

        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= settings.rate_limit_requests:
            retry_after = int(timestamps[0] + settings.rate_limit_window - now) + 1

            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                settings.rate_limit_window,
            )

            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_envelope(
                    request_id_var.get(""),
                    details={"retry_after": retry_after},
                ),
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)

        self._recorded += 1
        if self._recorded % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Removes IPs with no request inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))

"""
Skills Platform Backend — Request Body Size Middleware
========================================================

What:  Rejects requests whose Content-Length exceeds MAX_BODY_SIZE (10MB)
       with 413 payload_too_large, before the body is read.

Bodies are JSON (submission text plus file URLs); files themselves go to
object storage from the frontend, so 10MB is generous.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from skills_platform.config import settings
from skills_platform.exceptions import PayloadTooLargeError, ValidationError
from skills_platform.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        content_length = request.headers.get("content-length")
        if content_length is None:
            return await call_next(request)

        try:
            size = int(content_length)
        except ValueError:
            exc = ValidationError("Invalid Content-Length header")
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_envelope(request_id_var.get("")),
            )

        if size > settings.max_body_size:
            logger.warning(
                "Rejected %s %s: body of %d bytes exceeds %d",
                request.method,
                request.url.path,
                size,
                settings.max_body_size,
            )
            exc = PayloadTooLargeError(limit=settings.max_body_size)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_envelope(
                    request_id_var.get(""),
                    details={"limit_bytes": settings.max_body_size},
                ),
            )

        return await call_next(request)

"""
Skills Platform Backend — Request ID Middleware
=================================================

What:  Assigns an ID to each request and returns it in X-Request-ID.
Why:   The same ID appears in every log line of the request and in the
       error envelope, so a user's error report can be matched to logs.
How:   Uses the client's X-Request-ID when present, else a short UUID.
       Stored in a ContextVar (coroutine-local) and in request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 chars is enough to correlate and stays readable in logs
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response

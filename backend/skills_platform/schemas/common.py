"""
Skills Platform Backend — Shared Response Schemas
===================================================

What:  The error envelope, health and root payloads used by every router.

Envelope:
    Every response carries `success`. On failure `error` is the
    human-readable message the frontend shows as-is, `code` is stable for
    programmatic handling, and `request_id` matches the X-Request-ID header
    and the server logs.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    success: bool = Field(default=False)
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Service and dependency status.
    Who:   Load balancer probes and the hosting platform's health check.

    status is OK when both the database and (if configured) the model are
    reachable, DEGRADED when only the model is not, UNHEALTHY when the
    database is not.
    """
    status: str = Field(description="OK, DEGRADED or UNHEALTHY")
    message: str
    timestamp: datetime
    uptime_seconds: float
    version: str
    database: str = Field(description="connected or disconnected")
    ai: str = Field(description="disabled, available, unavailable or circuit_open")


class RootResponse(BaseModel):
    success: bool = True
    message: str
    version: str
    status: str
    endpoints: Dict[str, str]

"""
Skills Platform Backend — Custom Exception Hierarchy
======================================================

What:  Application-specific exceptions for the error scenarios of the API.
Why:   Services raise domain errors; global handlers in main.py turn them
       into the `{"success": false, "error": ...}` envelope with the right
       HTTP status. Routes never build error responses themselves.
How:   Each exception carries a user-facing message, a machine-readable
       `code`, an HTTP `status_code` and an optional context dict that is
       logged but not returned.

Exception Hierarchy:
    SkillsPlatformError (base)                  → 500
    ├── ValidationError                         → 400 Bad Request
    ├── AuthenticationError                     → 401 Unauthorized
    ├── ForbiddenError                          → 403 Forbidden
    ├── NotFoundError                           → 404 Not Found
    ├── PayloadTooLargeError                    → 413 Payload Too Large
    ├── RateLimitExceededError                  → 429 Too Many Requests
    ├── DatabaseError                           → 500 Internal Server Error
    ├── AIResponseFormatError                   → 502 Bad Gateway
    ├── AIUnavailableError                      → 503 (no API key configured)
    ├── LLMServiceError                         → 503 (failed after retries)
    └── CircuitBreakerOpenError                 → 503 (circuit open)
"""

from typing import Any, Dict, Optional


class SkillsPlatformError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only as `details`
                  by handlers that opt in)
    """

    status_code: int = 500
    code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_envelope(self, request_id: str = "", details: Optional[Dict[str, Any]] = None) -> dict:
        """Error response body. `details` is only included when given."""
        body: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "request_id": request_id,
        }
        if details:
            body["details"] = details
        return body


class ValidationError(SkillsPlatformError):
    """
    Raised when client input fails validation or a business rule.

    When:    Missing required fields, malformed email, invalid status value,
             duplicate school code / email / submission.
    HTTP:    400 Bad Request
    """

    status_code = 400
    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(SkillsPlatformError):
    """Login with an email that has no account. HTTP 401."""

    status_code = 401
    code = "unauthorized"

    def __init__(
        self,
        message: str = "User not found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(SkillsPlatformError):
    """
    Raised when a user exists but their role does not allow the operation.

    When:    A student (or admin) tries to create a task.
    HTTP:    403 Forbidden
    """

    status_code = 403
    code = "forbidden"

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SkillsPlatformError):
    """
    Raised when a referenced row does not exist.

    SQLAlchemy returns None for missing rows; services convert that None
    into this exception so the handler can answer 404.
    """

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class PayloadTooLargeError(SkillsPlatformError):
    """Request body exceeds MAX_BODY_SIZE. HTTP 413."""

    status_code = 413
    code = "payload_too_large"

    def __init__(self, limit: int, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["limit_bytes"] = limit
        super().__init__(
            message=f"Request body is larger than the {limit // (1024 * 1024)}MB limit",
            context=ctx,
        )
        self.limit = limit


class RateLimitExceededError(SkillsPlatformError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header with the seconds until the
    oldest request in the window expires.
    """

    status_code = 429
    code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(SkillsPlatformError):
    """
    Raised when a query against the hosted database fails unexpectedly.

    The message returned to the client is always generic. The SQL error,
    constraint name, etc. go to the server log only.
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AIResponseFormatError(SkillsPlatformError):
    """
    Raised when the model answered but no JSON object could be extracted.

    HTTP:    502 Bad Gateway. The upstream responded, just not usefully.
    Context: a truncated copy of the raw reply, for the log.
    """

    status_code = 502
    code = "ai_response_invalid"

    def __init__(
        self,
        message: str = "The AI service returned a response that could not be understood",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AIUnavailableError(SkillsPlatformError):
    """No Gemini API key is configured, so AI routes are switched off. HTTP 503."""

    status_code = 503
    code = "ai_unavailable"

    def __init__(
        self,
        message: str = "The AI service is not available",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LLMServiceError(SkillsPlatformError):
    """
    Raised when the Gemini service fails after all retries.

    HTTP:    503 Service Unavailable, with Retry-After when known.
    """

    status_code = 503
    code = "llm_service_error"

    def __init__(
        self,
        message: str = "The AI service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(SkillsPlatformError):
    """
    Raised when the circuit breaker around Gemini is OPEN.

    CLOSED → (threshold consecutive failures) → OPEN
    OPEN → (recovery timeout elapsed) → HALF_OPEN → one trial call
    HALF_OPEN → success → CLOSED, failure → OPEN
    """

    status_code = 503
    code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"It will be retried in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time

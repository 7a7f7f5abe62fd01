"""
Harvous Backend - Exception Hierarchy
======================================

What:  Application-specific exceptions, one per failure class the API reports.
How:   Each exception carries a client-safe message and an optional context
       dict. The global handlers registered in main.py translate them into
       structured JSON responses with the matching HTTP status.
Who:   Raised by the scripture core, services, dependencies and middleware.

Exception Hierarchy:
    HarvousError (base)
    ├── ValidationError          → 400 Bad Request
    ├── ParseError               → 400 Bad Request (malformed scripture reference)
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── VerseServiceError        → 503 Service Unavailable
    ├── CircuitBreakerOpenError  → 503 Service Unavailable
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class HarvousError(Exception):
    """
    Base exception for all Harvous application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only as `details`)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(HarvousError):
    """
    Raised when client input fails a business rule.

    When:    Missing note content, empty detect text, unknown auto-tag action,
             duplicate tag name.
    HTTP:    400 Bad Request (schema-level failures stay FastAPI's 422)
    """

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


class ParseError(HarvousError):
    """
    Raised when a scripture reference cannot be turned into structured fields.

    When:    Unknown book, non-positive chapter or verse, reversed verse range,
             text that is not shaped like "Book chapter[:verses]".
    HTTP:    400 Bad Request

    The detector catches this per candidate and drops the candidate, so
    ScriptureDetector.detect() itself never raises it.
    """

    def __init__(
        self,
        message: str = "Could not parse scripture reference",
        reference: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if reference is not None:
            ctx["reference"] = reference
        super().__init__(message=message, context=ctx)
        self.reference = reference


class AuthenticationError(HarvousError):
    """
    Raised when a request arrives without the trusted user header.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(HarvousError):
    """
    Raised when a requested resource does not exist or belongs to another user.

    HTTP:    404 Not Found

    Ownership failures are reported the same way as missing rows so that ids
    belonging to other users are not disclosed.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class VerseServiceError(HarvousError):
    """
    Raised when the Bible verse API fails after all retries.

    When:    After tenacity retries are exhausted, or the upstream returns a
             payload that cannot be read.
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "Bible verse service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(HarvousError):
    """
    Raised when the verse API circuit breaker is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for the recovery timeout)
        → After the timeout → HALF_OPEN (allow one test call)
        → Test succeeds → CLOSED; test fails → OPEN again
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Bible verse service is temporarily unavailable due to repeated failures. "
            f"Calls will resume in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(HarvousError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The client message is always generic. SQL, constraint names and driver
    errors are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(HarvousError):
    """
    Raised when a client exceeds its request rate limit.

    HTTP:    429 Too Many Requests (with a Retry-After header)
    """

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

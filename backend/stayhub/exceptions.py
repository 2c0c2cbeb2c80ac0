"""
StayHub Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for every error class the API returns.
Why:   Services raise domain errors; global handlers (main.py) turn them into
       consistent JSON envelopes with the right HTTP status code.
How:   Each exception carries a user-facing message and an optional context
       dict. Context is logged server-side and only echoed to the client for
       client-correctable errors (validation, auth).

Exception Hierarchy:
    StayHubError (base)
    ├── ValidationError          → 400 Bad Request
    │   └── ConflictError        → 400 Bad Request (duplicate resource)
    ├── AuthenticationError      → 401 Unauthorized
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    ├── IdentityServiceError     → 500 Internal Server Error
    ├── PaymentServiceError      → 500 Internal Server Error
    └── FileStorageError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class StayHubError(Exception):
    """
    Base exception for all StayHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(StayHubError):
    """
    Raised when client input fails a business rule.

    When:  Non-positive amount, empty date range, bad sort column, bad upload.
    HTTP:  400 Bad Request
    """

    status_code = 400
    error_code = "validation_error"

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


class ConflictError(ValidationError):
    """
    Raised when a create would violate a uniqueness rule.

    Example: adding a room that is already in the caller's favorites.
    Reported as 400 like any other correctable client error.
    """

    error_code = "already_exists"


class AuthenticationError(StayHubError):
    """
    Raised when the bearer token is missing, malformed or rejected.

    HTTP:  401 Unauthorized
    """

    status_code = 401
    error_code = "authentication_error"

    def __init__(
        self,
        message: str = "Invalid or expired token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(StayHubError):
    """
    Raised when an authenticated caller acts on a resource they don't own.

    HTTP:  403 Forbidden
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(StayHubError):
    """
    Raised when a requested resource does not exist (or is not visible to
    the caller under row-level permissions, which looks the same).

    HTTP:  404 Not Found
    """

    status_code = 404
    error_code = "not_found"

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


class RateLimitExceededError(StayHubError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:  429 Too Many Requests (with Retry-After)
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

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


class DatabaseError(StayHubError):
    """
    Raised when a query against the hosted database fails unexpectedly.

    Security Note:
        The client always gets a generic message. SQL, constraint names and
        driver messages stay in the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityServiceError(StayHubError):
    """Raised when the identity backend fails for reasons other than a bad token."""

    def __init__(
        self,
        message: str = "Authentication service error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PaymentServiceError(StayHubError):
    """Raised when the payment processor call fails (network, API or config)."""

    def __init__(
        self,
        message: str = "Payment could not be processed. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(StayHubError):
    """Raised when an object storage upload fails."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

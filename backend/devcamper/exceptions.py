"""
DevCamper API: Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions, one per failure class the API reports.
How:   Each exception carries a user-facing message, the HTTP status code it
       maps to, and an optional context dict that is logged but never
       returned to the client. A single handler registered in main.py turns
       any of them into the `{success: false, error}` envelope.
Who:   Raised by services and dependencies; caught by the global handlers.

Exception Hierarchy:
    DevCamperError (base)                → 500
    ├── ValidationError                  → 400 Bad Request
    │   └── DuplicateKeyError            → 400 Bad Request
    ├── UnauthenticatedError             → 401 Unauthorized
    ├── ForbiddenError                   → 403 Forbidden
    ├── NotFoundError                    → 404 Not Found
    ├── RateLimitExceededError           → 429 Too Many Requests
    ├── UpstreamError                    → 500 Internal Server Error
    │   ├── GeocoderError
    │   └── EmailDeliveryError
    └── FileStorageError                 → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class DevCamperError(Exception):
    """
    Base exception for all DevCamper application errors.

    Attributes:
        message:     User-facing error description (safe to return in API response)
        status_code: HTTP status the global handler responds with
        context:     Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "Server Error",
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.context = context or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(DevCamperError):
    """
    Raised when client input fails validation.

    When:    Missing/malformed fields, unknown filter fields or operators,
             wrong upload type, business-rule violations such as a second
             bootcamp for the same publisher.
    """

    status_code = 400

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


class DuplicateKeyError(ValidationError):
    """Unique constraint violation (email, bootcamp name, one review per user)."""

    def __init__(
        self,
        message: str = "Duplicate field value entered",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthenticatedError(DevCamperError):
    """
    Missing, malformed, expired or badly signed bearer token, or bad credentials.

    The cause is never distinguished to the caller.
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(DevCamperError):
    """Role or ownership check failed."""

    status_code = 403

    def __init__(
        self,
        message: str = "Not authorized to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DevCamperError):
    """
    Raised when a requested resource does not exist.

    Malformed identifiers are reported the same way: an id that cannot be
    parsed can never resolve to a record.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"{resource} not found"
            if resource_id:
                message = f"{resource} not found with id of {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(DevCamperError):
    """Client exceeded the per-IP request rate limit."""

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class UpstreamError(DevCamperError):
    """An external provider (geocoder, SMTP server) failed."""

    status_code = 500

    def __init__(
        self,
        message: str = "An upstream service failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GeocoderError(UpstreamError):
    def __init__(
        self,
        message: str = "Geocoding service is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmailDeliveryError(UpstreamError):
    def __init__(
        self,
        message: str = "Email could not be sent",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(DevCamperError):
    """
    Raised when file system operations fail.

    When:    Upload directory not writable, disk full, I/O error.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Problem with file upload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


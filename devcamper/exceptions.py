"""
DevCamper API — Custom Exception Hierarchy
============================================

What:  Application-specific exceptions, one per error kind a handler can raise.
Why:   Services decide WHICH error happened; the exception handlers in
       main.py decide HOW it looks on the wire. No route formats its own
       error response.
How:   Each exception carries a user-facing message and an optional context
       dict. Context is logged server-side and never returned to the client.

Exception Hierarchy:
    DevCamperError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error (upload write failed)
    └── DatabaseError            → 500 Internal Server Error (generic message)

Every one of them is rendered as:
    {"success": false, "error": "<message>", "request_id": "<id>"}
"""

from typing import Any, Dict, Optional


class DevCamperError(Exception):
    """
    Base exception for all DevCamper application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DevCamperError):
    """
    Raised when client input breaks a business rule.

    When: Missing upload, non-image upload, oversized upload, duplicate
          unique field, filter value that does not fit its column type.
    HTTP: 400 Bad Request
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


class NotFoundError(DevCamperError):
    """
    Raised when an identifier-based lookup matches no record.

    SQLAlchemy returns None for a missing row; services convert that None
    into this exception so a lookup never produces a null success response.
    A malformed identifier is reported the same way.

    HTTP: 404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} not found with id of {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class FileStorageError(DevCamperError):
    """
    Raised when writing an uploaded file to the upload directory fails.

    Kept apart from DatabaseError so an upload failure is reported as
    "Problem with file upload" rather than a generic fault. The OS error
    and target path go into context for the server log only.

    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Problem with file upload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(DevCamperError):
    """
    Raised when a store operation fails unexpectedly.

    The message returned to the client is always generic; the driver error
    is logged server-side only.

    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(DevCamperError):
    """
    A client exceeded the per-IP request rate limit.

    Built (not raised) by RateLimitMiddleware, which sits outside the
    exception handlers and renders the 429 itself.

    HTTP: 429 Too Many Requests, with a Retry-After header
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after

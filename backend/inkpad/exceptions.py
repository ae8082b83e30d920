"""
InkPad Backend — Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for API and handwritten-engine errors.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) turn the API-side ones
       into structured JSON responses; the engine-side ones are caught by the
       drawing UI layer and shown as recoverable messages.

Exception Hierarchy:
    InkPadError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    ├── PageCapacityError        (engine: page limit / last-page delete)
    ├── StrokeInProgressError    (engine: switch or save mid-stroke)
    └── StorageError             (engine: storage collaborator I/O failure)
"""

from typing import Any, Dict, Optional


class InkPadError(Exception):
    """
    Base exception for all InkPad errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(InkPadError):
    """
    Raised when client input fails a business rule.

    Schema-level problems are already answered with 422 by FastAPI; this one
    covers checks that need the data itself, such as an uncompilable search
    pattern.
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


class AuthenticationError(InkPadError):
    """Raised when a request arrives without a caller identity."""

    def __init__(
        self,
        message: str = "No user identity, authorization denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(InkPadError):
    """
    Raised when a requested resource does not exist.

    Notes owned by another user are reported the same way, so the response
    never reveals whether an id exists outside the caller's account.
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


class DatabaseError(InkPadError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; SQL and constraint
    details are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(InkPadError):
    """Raised when a client exceeds the per-caller request rate limit."""

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


# ══════════════════════════════════════════════════════════════════════════
# Handwritten engine errors: recoverable, state is left unchanged
# ══════════════════════════════════════════════════════════════════════════


class PageCapacityError(InkPadError):
    """
    Raised when a page operation would break the 1..max_pages bound.

    When:    add_page() on a full note, delete_page() on a single-page note.
    Effect:  The operation is a no-op; the page store is not modified.
    """

    def __init__(
        self,
        message: str = "Page limit reached",
        page_count: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if page_count is not None:
            ctx["page_count"] = page_count
        super().__init__(message=message, context=ctx)
        self.page_count = page_count


class StrokeInProgressError(InkPadError):
    """Raised when a page switch or save is requested before the pointer is released."""

    def __init__(
        self,
        message: str = "Finish the current stroke before switching pages or saving",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(InkPadError):
    """
    Raised when the storage collaborator fails to load or save a note.

    Transient: the editing session keeps its pages so the user can retry.
    `status_code` is set when the failure came back as an HTTP response.
    """

    def __init__(
        self,
        message: str = "Could not reach the notes service",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code

"""
Folio Backend — Custom Exception Hierarchy
============================================

What:  Defines application-specific exceptions for the error taxonomy.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by security policies and services; caught by global handlers.

Exception Hierarchy:
    FolioError (base)
    ├── ValidationError          → 400 Bad Request (malformed / missing input)
    ├── UnauthenticatedError     → 401 Unauthorized (no principal)
    ├── ForbiddenError           → 403 Forbidden (wrong owner)
    ├── NotFoundError            → 404 Not Found (absent or hidden by policy)
    └── UpstreamFailureError     → 400 Bad Request (storage / database call failed)
        ├── StorageError
        ├── StorageCleanupError  (some objects could not be deleted)
        └── DatabaseError

Upstream failures are surfaced as 400 to match the documented HTTP surface;
their internal context is logged, never returned.
"""

from typing import Any, Dict, List, Optional


class FolioError(Exception):
    """
    Base exception for all Folio application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FolioError):
    """
    Raised when client input fails a business rule.

    When:    Unknown tag id, duplicate slug, unsupported image, attempt to
             revert a published reflection to draft.
    HTTP:    400 Bad Request, with `details` carrying the offending field.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthenticatedError(FolioError):
    """Raised when an operation requires a signed-in principal and there is none."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(FolioError):
    """
    Raised when an authenticated principal tries to mutate a resource it does not own.

    The caller already knows the resource exists (it supplied the id), so
    reporting 403 instead of 404 leaks nothing.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"You do not have permission to modify this {resource}"
        ctx = dict(context or {})
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class NotFoundError(FolioError):
    """
    Raised when a requested resource does not exist or is hidden by the visibility policy.

    Drafts requested by anyone but their author raise this same error, so a
    caller cannot tell a private draft from a missing id.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = dict(context or {})
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class UpstreamFailureError(FolioError):
    """Raised when a call to the database or object storage fails."""

    def __init__(
        self,
        message: str = "An upstream service failed. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(UpstreamFailureError):
    """An object storage upload or delete failed."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageCleanupError(UpstreamFailureError):
    """
    Raised when deleting stored objects partially fails.

    Carries one entry per object that could not be removed. Database rows for
    those objects are kept, so nothing in the database points at a missing
    object and the delete can simply be retried.
    """

    def __init__(
        self,
        failures: List[Dict[str, Any]],
        message: str = "Some stored images could not be deleted. Please retry.",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        ctx["failures"] = failures
        super().__init__(message=message, context=ctx)
        self.failures = failures


class DatabaseError(UpstreamFailureError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; details are logged.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

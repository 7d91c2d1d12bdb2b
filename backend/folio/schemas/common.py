"""
Folio Backend — Shared Pydantic Schemas
=========================================

What:  Base model with the wire naming convention, plus response shapes shared
       by several routers (errors, health, delete acknowledgement, author card).
Why:   Schemas are separate from SQLAlchemy models so we control exactly what is
       exposed: e.g. `image.storage_path` and author emails never leave the API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every API schema.

    alias_generator=to_camel: responses serialize as camelCase; request bodies
    accept either camelCase or the Python field name.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AuthorSummary(CamelModel):
    """Public card of the account that owns a resource."""

    id: str
    name: str
    image: Optional[str] = None


class DeleteResponse(CamelModel):
    """Acknowledgement returned by delete endpoints."""

    success: bool = True


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "forbidden")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class FieldError(BaseModel):
    """One entry of a structured validation failure."""

    field: str
    message: str


class ValidationErrorDetails(BaseModel):
    fields: List[FieldError]


class HealthResponse(BaseModel):
    """
    Health check response showing service and dependency status.

    A backend that can't reach its database is effectively down; one that
    can't reach object storage can still serve reflections, so it is degraded.
    """

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Object storage: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")

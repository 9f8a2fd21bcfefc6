"""Common Pydantic schemas used across the API.

This module provides shared schemas for:
- Error responses (consistent failure envelope)
- Health checks
- Simple message responses
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Base Configuration
# =============================================================================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,  # Allow ORM model conversion
        populate_by_name=True,  # Allow both alias and field name
        str_strip_whitespace=True,  # Strip whitespace from strings
    )


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorDetail(BaseModel):
    """Machine-readable part of a failure envelope.

    Attributes:
        code: Machine-readable error code (e.g., "RC_DETAILS_NOT_FOUND")
        request_id: Correlation ID for tracing (optional)
        details: Additional error context (optional)
    """

    code: str = Field(..., description="Machine-readable error code")
    request_id: str | None = Field(
        None, description="Request correlation ID for tracing"
    )
    details: dict[str, Any] | None = Field(
        None, description="Additional error context"
    )


class ErrorResponse(BaseModel):
    """Standard failure envelope.

    Same ``status``/``statuscode``/``message`` shape as the RC envelopes,
    plus an ``error`` object for gateway-side failures.
    """

    status: bool = Field(False, description="Always false for failures")
    statuscode: int = Field(..., description="HTTP-style status code")
    message: str = Field(..., description="Human-readable error description")
    error: ErrorDetail | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": False,
                "statuscode": 401,
                "message": "Missing Authorization header",
                "error": {
                    "code": "MISSING_AUTHORIZATION",
                    "request_id": "abc-123-def-456",
                },
            }
        }
    )


# =============================================================================
# Health Check Schemas
# =============================================================================


class HealthCheckResponse(BaseModel):
    """Health check endpoint response.

    Attributes:
        status: Overall health status
        checks: Individual service health checks
    """

    status: str = Field(..., pattern="^(ok|degraded|error)$")
    checks: dict[str, str] = Field(
        default_factory=dict, description="Individual service checks"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "degraded",
                "checks": {
                    "database": "error",
                    "cache": "in_memory_fallback",
                },
            }
        }
    )


# =============================================================================
# Message Response Schemas
# =============================================================================


class MessageResponse(BaseModel):
    """Simple message response.

    Useful for operations that just need to confirm success.
    """

    message: str = Field(..., description="Response message")

    model_config = ConfigDict(
        json_schema_extra={"example": {"message": "Operation completed successfully"}}
    )

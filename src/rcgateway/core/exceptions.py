"""Custom exception hierarchy for RC Gateway.

This module defines a consistent exception hierarchy that enables:
- Structured error responses with error codes
- Consistent HTTP status code mapping
- Responses in the same ``{status, statuscode, message}`` envelope the
  RC endpoints use for upstream results

Usage:
    from rcgateway.core.exceptions import RCDetailsNotFoundError

    raise RCDetailsNotFoundError(rc_number="MH12AB1234")
"""

from typing import Any


class RCGatewayError(Exception):
    """Base exception for all RC Gateway errors.

    Attributes:
        code: Machine-readable error code (e.g., "RC_DETAILS_NOT_FOUND")
        message: Human-readable error message
        status_code: HTTP status code to return
        details: Additional error details (optional)
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Override default message
            code: Override default error code
            details: Additional error details
        """
        if message:
            self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        """Convert exception to an API failure envelope.

        Args:
            request_id: Request correlation ID

        Returns:
            Failure envelope dictionary
        """
        error: dict[str, Any] = {"code": self.code}
        if request_id:
            error["request_id"] = request_id
        if self.details:
            error["details"] = self.details
        return {
            "status": False,
            "statuscode": self.status_code,
            "message": self.message,
            "error": error,
        }


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class NotFoundError(RCGatewayError):
    """Base class for resource not found errors."""

    status_code: int = 404


class RCDetailsNotFoundError(NotFoundError):
    """Raised when a registration number is not in the cache."""

    code: str = "RC_DETAILS_NOT_FOUND"
    message: str = "RC details not found in cache"

    def __init__(self, rc_number: str | None = None, message: str | None = None) -> None:
        """Initialize with optional registration number."""
        details: dict[str, Any] = {}
        if rc_number:
            details["rc_number"] = rc_number
            if not message:
                message = f"RC details for {rc_number} not found in cache"

        super().__init__(message=message, details=details if details else None)


# =============================================================================
# Authentication & Authorization Errors (401, 403)
# =============================================================================


class AuthenticationError(RCGatewayError):
    """Raised when a request lacks the credentials it needs."""

    code: str = "AUTHENTICATION_FAILED"
    message: str = "Authentication failed"
    status_code: int = 401


class MissingAuthorizationError(AuthenticationError):
    """Raised when the Authorization header to forward upstream is missing."""

    code: str = "MISSING_AUTHORIZATION"
    message: str = "Missing Authorization header"


class InvalidAPIKeyError(AuthenticationError):
    """Raised when the administration API key is missing or wrong."""

    code: str = "INVALID_API_KEY"
    message: str = "Invalid or missing API key"


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(RCGatewayError):
    """Raised when input validation fails."""

    code: str = "VALIDATION_ERROR"
    message: str = "Validation error"
    status_code: int = 400

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with optional field information."""
        if details is None:
            details = {}
        if field:
            details["field"] = field
        super().__init__(message=message, details=details if details else None)


# =============================================================================
# External Service Errors (502, 503)
# =============================================================================


class ExternalServiceError(RCGatewayError):
    """Base class for external service errors."""

    code: str = "EXTERNAL_SERVICE_ERROR"
    message: str = "External service error"
    status_code: int = 502

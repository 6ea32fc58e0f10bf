"""
Centralized error types for the ledger API.

Services raise the APIError subclasses below; the DRF exception handler and
the error middleware turn them into the standard error envelope.
"""

from .errors import (
    APIError,
    AuthenticationError,
    ConflictError,
    ErrorCode,
    ErrorResponse,
    FieldError,
    InvalidStateError,
    NotFoundError,
    PermissionError,
    ServiceUnavailableError,
    ValidationError,
    format_validation_errors,
)

__all__ = [
    "APIError",
    "AuthenticationError",
    "ConflictError",
    "ErrorCode",
    "ErrorResponse",
    "FieldError",
    "InvalidStateError",
    "NotFoundError",
    "PermissionError",
    "ServiceUnavailableError",
    "ValidationError",
    "format_validation_errors",
]

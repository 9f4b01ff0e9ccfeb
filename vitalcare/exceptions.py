"""
Error taxonomy for the evaluation and reporting engine.

Validation and lookup failures raised by the core carry a stable error code and
structured details so request handlers can map them to responses. Failures of
injected repositories or channels are never wrapped: they propagate unchanged.
"""

from typing import Any


class VitalCareError(Exception):
    """Base class for errors raised by the core."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(VitalCareError, ValueError):
    """Input rejected before anything was written.

    `details` maps each offending field to the reason it was rejected.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, error_code="VALIDATION_ERROR", details=details)


class NotFoundError(VitalCareError, LookupError):
    """A referenced record does not exist."""

    def __init__(self, message: str, resource: str | None = None) -> None:
        details = {"resource": resource} if resource else {}
        super().__init__(message=message, error_code="NOT_FOUND", details=details)


class PermissionDeniedError(VitalCareError):
    """The caller's role or identity does not grant access to the record."""

    def __init__(self, message: str = "Caller is not allowed to access this record") -> None:
        super().__init__(message=message, error_code="FORBIDDEN")

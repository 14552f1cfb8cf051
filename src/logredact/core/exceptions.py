"""
Custom exceptions for the logredact service.

The redaction engine itself never raises into a logging call path; these
exceptions cover policy construction (fatal at startup) and the HTTP
surface, where they map to status codes and error payloads.
"""

from typing import Any, Dict, Optional


class LogRedactException(Exception):
    """Base exception for logredact."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ValidationError(LogRedactException):
    """Raised when request validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="validation_error",
            details=details,
        )


class PolicyError(LogRedactException):
    """
    Raised when a redaction policy cannot be built.

    Covers patterns that fail to compile, patterns that match the
    placeholder text and patterns that match the empty string. Startup
    must abort when this is raised.
    """

    def __init__(
        self,
        message: str,
        pattern_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if pattern_name:
            details["pattern"] = pattern_name

        super().__init__(
            message=message,
            status_code=500,
            error_code="policy_error",
            details=details,
        )
        self.pattern_name = pattern_name


class EngineNotReadyError(LogRedactException):
    """Raised by the HTTP layer when no redaction engine has been installed."""

    def __init__(self, message: str = "Redaction engine not initialized") -> None:
        super().__init__(
            message=message,
            status_code=503,
            error_code="engine_not_ready",
        )

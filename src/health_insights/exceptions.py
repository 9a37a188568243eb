"""
Custom exceptions for the Health Insights engine.

Every failure that can reach the route layer maps onto a small set of
causes: invalid request, not found, insufficient data, or an internal
storage problem. Each exception carries:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging

Insufficient history is normally expressed by the analyzers as a sentinel
result; ``InsufficientDataError`` exists for callers that want to turn a
sentinel into a response.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"

    # Report errors
    REPORT_NOT_FOUND = "REPORT_NOT_FOUND"
    SHARE_NOT_FOUND = "SHARE_NOT_FOUND"

    # Data/Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class HealthInsightsError(Exception):
    """
    Base exception for all Health Insights errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors (400)
# ============================================================================

class ValidationError(HealthInsightsError):
    """Raised when a caller violates an input contract."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


# ============================================================================
# Not Found Errors (404)
# ============================================================================

class NotFoundError(HealthInsightsError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"{resource_type} with ID '{resource_id}' not found"
        error_details = details or {}
        error_details["resource_type"] = resource_type
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details=error_details,
        )


class ReportNotFoundError(NotFoundError):
    """Raised when a report snapshot is not found."""

    def __init__(self, report_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Report",
            resource_id=report_id,
            details=details,
        )
        self.code = ErrorCode.REPORT_NOT_FOUND


class ShareGrantNotFoundError(HealthInsightsError):
    """Raised when a share token is unknown or has expired.

    The token itself is never echoed back in the message or details.
    """

    def __init__(self, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message="Report not found or expired",
            code=ErrorCode.SHARE_NOT_FOUND,
            status_code=404,
            details=details,
        )


# ============================================================================
# Insufficient Data (422)
# ============================================================================

class InsufficientDataError(HealthInsightsError):
    """Raised by callers that refuse to serve a sentinel result."""

    def __init__(
        self,
        message: str = "Not enough history to compute this result",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.INSUFFICIENT_DATA,
            status_code=422,
            details=details,
        )


# ============================================================================
# Database Errors (500)
# ============================================================================

class DatabaseError(HealthInsightsError):
    """Raised when the backing store fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=error_details,
        )

"""Estimate Inbox error handling.

Custom exceptions and error codes for the estimate store and its gateways.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_JSON = "INVALID_JSON"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_ACTION = "INVALID_ACTION"

    # Store Errors (2xxx)
    ESTIMATE_NOT_FOUND = "ESTIMATE_NOT_FOUND"
    STORE_READ_FAILED = "STORE_READ_FAILED"
    STORE_WRITE_FAILED = "STORE_WRITE_FAILED"
    STORE_BUSY = "STORE_BUSY"
    STORE_READ_ONLY = "STORE_READ_ONLY"
    ID_COLLISION = "ID_COLLISION"

    # Notification Errors (3xxx)
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"

    # Generic
    INTERNAL_ERROR = "INTERNAL_ERROR"


class EstimateInboxError(Exception):
    """Base exception for Estimate Inbox errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize EstimateInboxError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(EstimateInboxError):
    """Submission failed required-field or contact-method checks."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict] = None,
        code: str = ErrorCode.VALIDATION_ERROR
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class NotFoundError(EstimateInboxError):
    """Mutation targeted an estimate id that is not in the collection."""

    def __init__(self, estimate_id: str, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.ESTIMATE_NOT_FOUND,
            message=f"Estimate not found: {estimate_id}",
            details={**(details or {}), "estimateId": estimate_id}
        )
        self.estimate_id = estimate_id


class PersistenceError(EstimateInboxError):
    """Durable snapshot could not be read or written.

    The store guarantees its in-memory state was left as it was before the
    failed call, so the operation can be retried.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        code: str = ErrorCode.STORE_WRITE_FAILED,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "path": path} if path else details
        )
        self.path = path


class CollisionError(EstimateInboxError):
    """Generated estimate id already exists."""

    def __init__(self, estimate_id: str, attempts: int):
        super().__init__(
            code=ErrorCode.ID_COLLISION,
            message=f"Could not generate a unique estimate id after {attempts} attempts",
            details={"lastId": estimate_id, "attempts": attempts}
        )
        self.estimate_id = estimate_id
        self.attempts = attempts


class NotificationError(EstimateInboxError):
    """Outbound notification could not be delivered."""

    def __init__(self, message: str, channel: str = "sms", details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.NOTIFICATION_FAILED,
            message=message,
            details={**(details or {}), "channel": channel}
        )
        self.channel = channel

"""Custom exceptions for RiskGate.

Provides a hierarchy of exceptions for different error types.
All RiskGate exceptions inherit from RiskGateException.

Policy outcomes (BLOCKED, FORCE_LOGOUT, VERIFICATION_REQUIRED) are not
exceptions; they are returned as Decision values by the engine.
"""

from typing import Any, Dict, Optional


class RiskGateException(Exception):
    """Base exception for all RiskGate errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: str = "RISKGATE_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RiskGateException):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ValidationError(RiskGateException):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class NotFoundError(RiskGateException):
    """Raised when a user id is not known to the account store."""

    def __init__(self, user_id: str, details: Optional[Dict[str, Any]] = None):
        details = details or {}
        details["user_id"] = user_id
        super().__init__("User not found", code="NOT_FOUND", details=details)


class CollaboratorUnavailableError(RiskGateException):
    """Raised when an external collaborator is unreachable, slow, or failing."""

    def __init__(
        self,
        message: str,
        collaborator: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["collaborator"] = collaborator
        super().__init__(message, code="COLLABORATOR_UNAVAILABLE", details=details)


class HistoryUnavailableError(RiskGateException):
    """Raised when an event log partition is missing or unreadable."""

    def __init__(self, message: str, partition: str, details: Optional[Dict[str, Any]] = None):
        details = details or {}
        details["partition"] = partition
        super().__init__(message, code="HISTORY_UNAVAILABLE", details=details)

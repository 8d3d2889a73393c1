"""
Custom exception hierarchy for the AI Companion server.
Provides structured error handling with proper context.
"""

from typing import Optional, Dict, Any


class AICompanionException(Exception):
    """Base exception for all AI Companion errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize exception with message and optional context.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# ==================== Database Exceptions ====================


class DatabaseException(AICompanionException):
    """Base exception for database-related errors."""

    pass


class RecordNotFoundError(DatabaseException):
    """Raised when a database record is not found."""

    def __init__(self, model: str, identifier: Any):
        super().__init__(
            message=f"{model} not found",
            error_code="RECORD_NOT_FOUND",
            context={"model": model, "identifier": identifier},
        )


class CompanionNotFoundError(RecordNotFoundError):
    """Raised when the referenced companion does not exist."""

    def __init__(self, companion_id: int):
        super().__init__(model="Companion", identifier=companion_id)
        self.message = "Companion not found"
        self.error_code = "COMPANION_NOT_FOUND"


class DatabaseConnectionError(DatabaseException):
    """Raised when database connection fails."""

    def __init__(self, details: Optional[str] = None):
        super().__init__(
            message="Failed to connect to database",
            error_code="DATABASE_CONNECTION_ERROR",
            context={"details": details} if details else {},
        )


# ==================== Memory Exceptions ====================


class MemoryException(AICompanionException):
    """Base exception for memory-related errors."""

    pass


# ==================== API/External Service Exceptions ====================


class ExternalServiceException(AICompanionException):
    """Base exception for external service errors."""

    pass


class CompletionError(ExternalServiceException):
    """Raised when the text-completion call fails or times out."""

    def __init__(self, model: str, details: Optional[str] = None):
        super().__init__(
            message="Completion request failed",
            error_code="COMPLETION_ERROR",
            context={"model": model, "details": details},
        )


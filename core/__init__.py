"""
Core utilities and infrastructure for the AI Companion server.
"""

from core.exceptions import (
    AICompanionException,
    DatabaseException,
    RecordNotFoundError,
    CompanionNotFoundError,
    DatabaseConnectionError,
    MemoryException,
    ExternalServiceException,
    CompletionError,
)
from core.logging_config import configure_logging, get_logger

__all__ = [
    "AICompanionException",
    "DatabaseException",
    "RecordNotFoundError",
    "CompanionNotFoundError",
    "DatabaseConnectionError",
    "MemoryException",
    "ExternalServiceException",
    "CompletionError",
    "configure_logging",
    "get_logger",
]

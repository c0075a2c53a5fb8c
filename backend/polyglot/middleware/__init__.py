"""
Middleware Package

Provides the typed service errors of the content core and the FastAPI
middleware that renders them.

Usage:
    from polyglot.middleware import setup_error_handling, NotFoundError
"""

from polyglot.middleware.error_handling import (
    ConflictError,
    ErrorHandlingMiddleware,
    InvalidOrderSetError,
    NotFoundError,
    OutOfBoundsError,
    ReferentialIntegrityError,
    ServiceError,
    ValidationError,
    setup_error_handling,
)

__all__ = [
    "ConflictError",
    "ErrorHandlingMiddleware",
    "InvalidOrderSetError",
    "NotFoundError",
    "OutOfBoundsError",
    "ReferentialIntegrityError",
    "ServiceError",
    "ValidationError",
    "setup_error_handling",
]

"""
Error Handling

Typed service errors for the content core and the middleware that renders
them as consistent JSON error responses.

Features:
- One exception class per error kind, each carrying an HTTP status code,
  a stable error code and structured details (field, entity kind, ids)
- Correlation IDs for log tracking
- Sanitized responses for unexpected errors (internal details only in debug)

Usage:
    from polyglot.middleware.error_handling import NotFoundError, setup_error_handling

    # Add middleware to app
    setup_error_handling(app, debug=settings.DEBUG)

    # Raise typed errors from services
    raise NotFoundError("image", image_id)

Rendering:
    ServiceError  -> ErrorResponse with its status code and details;
                     4xx logged as warning, 5xx as error
    Exception     -> sanitized 500 ErrorResponse
    HTTPException -> re-raised for FastAPI's built-in handler
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Error Response Schema
# =============================================================================


class ErrorResponse(BaseModel):
    """
    JSON body for every error the content core reports.

    details carries the structured fields of the error (field name,
    entity kind and id, reorder id sets) so clients can point at the
    offending input without parsing the message.
    """

    error: str
    message: str
    error_id: str
    details: Optional[dict] = None
    timestamp: datetime


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base class for content service errors.

    Subclasses fix status_code and error_code and fill details with the
    fields their constructor takes.

    Example:
        raise ServiceError("Storage unavailable", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = None,
        error_code: str = None,
        details: dict = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details

    def to_response(self, error_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=self.error_code,
            message=self.message,
            error_id=error_id,
            details=self.details,
            timestamp=datetime.now(timezone.utc),
        )


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Raised when a referenced entity (image, translation, lesson, exercise)
    doesn't exist.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(self, entity_kind: str, entity_id: Any, message: str = None):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        super().__init__(
            message or f"{entity_kind.capitalize()} {entity_id} not found",
            details={"entity_kind": entity_kind, "entity_id": str(entity_id)},
        )


class ValidationError(ServiceError):
    """
    Data validation error.

    Raised when a field fails a shape or content rule.
    """

    status_code = 422
    error_code = "validation_error"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(
            f"{field}: {reason}",
            details={"field": field, "reason": reason},
        )


class ReferentialIntegrityError(ServiceError):
    """
    Referential integrity error.

    Raised when a referenced entity exists but lacks something the
    reference requires (e.g. an image with no text in any language).
    """

    status_code = 422
    error_code = "referential_integrity_error"

    def __init__(self, entity_kind: str, entity_id: Any, reason: str):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"{entity_kind.capitalize()} {entity_id} has {reason}",
            details={
                "entity_kind": entity_kind,
                "entity_id": str(entity_id),
                "reason": reason,
            },
        )


class OutOfBoundsError(ServiceError):
    """
    Index out of bounds error.

    Raised when a positional field points outside its valid range.
    """

    status_code = 422
    error_code = "out_of_bounds"

    def __init__(self, field: str, message: str = None):
        self.field = field
        super().__init__(
            message or f"{field} is out of bounds",
            details={"field": field},
        )


class InvalidOrderSetError(ServiceError):
    """
    Invalid reorder request.

    Raised when the ids submitted for a reorder are not exactly a
    permutation of the lesson's current exercise ids.
    """

    status_code = 422
    error_code = "invalid_order_set"

    def __init__(
        self,
        lesson_id: str,
        missing: list[str] = None,
        extra: list[str] = None,
        duplicates: list[str] = None,
    ):
        self.lesson_id = lesson_id
        self.missing = missing or []
        self.extra = extra or []
        self.duplicates = duplicates or []
        super().__init__(
            f"Exercise ids do not match the exercises of lesson {lesson_id}",
            details={
                "lesson_id": lesson_id,
                "missing": self.missing,
                "extra": self.extra,
                "duplicates": self.duplicates,
            },
        )


class ConflictError(ServiceError):
    """
    Concurrent write conflict.

    Raised when a write collides with another writer, e.g. two versions
    assigned the same number for one translation key.
    """

    status_code = 409
    error_code = "conflict"


# =============================================================================
# Error Handling Middleware
# =============================================================================


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Renders content service errors as ErrorResponse JSON.

    - ServiceError: its own status code and structured details. Client
      errors (4xx) are logged as warnings, server errors (5xx) as errors.
    - Anything else: a sanitized 500; exception details only in debug.
    - HTTPException: left to FastAPI.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        error_id = str(uuid4())[:8]

        try:
            return await call_next(request)

        except HTTPException:
            raise

        except ServiceError as e:
            level = logging.WARNING if e.status_code < 500 else logging.ERROR
            logger.log(
                level,
                f"[{error_id}] {request.method} {request.url.path} -> "
                f"{e.status_code} {e.error_code}: {e.message}",
                extra={"error_id": error_id, "details": e.details},
            )
            body = e.to_response(error_id)
            return JSONResponse(status_code=e.status_code, content=body.model_dump(mode="json"))

        except Exception as e:
            logger.error(
                f"[{error_id}] {request.method} {request.url.path} -> "
                f"unhandled {type(e).__name__}: {e}",
                extra={"error_id": error_id, "traceback": traceback.format_exc()},
            )
            body = ErrorResponse(
                error="internal_server_error",
                message="An unexpected error occurred",
                error_id=error_id,
                details=(
                    {
                        "exception": type(e).__name__,
                        "message": str(e),
                        "traceback": traceback.format_exc(),
                    }
                    if self.debug
                    else None
                ),
                timestamp=datetime.now(timezone.utc),
            )
            return JSONResponse(
                status_code=500,
                content=body.model_dump(mode="json", exclude_none=True),
            )


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Args:
        app: FastAPI application instance
        debug: Whether to include stack traces in responses
    """
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")

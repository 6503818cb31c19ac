"""
Error kinds raised by the scheduling engine and its persistence layer.

Every failure that leaves the engine is an AppError subclass carrying a
stable code and HTTP status. Outside production the underlying store
message is kept for diagnostics; in production it is replaced by a
generic statement per kind.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from postgrest.exceptions import APIError

from app.core import config
from app.core.logging_config import get_logger

logger = get_logger(__name__)

# PostgREST / Postgres error codes
PGRST_NO_ROWS = "PGRST116"
PG_UNIQUE_VIOLATION = "23505"
PG_INSUFFICIENT_PRIVILEGE = "42501"


class AppError(Exception):
    code = "UNKNOWN_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None, is_operational: bool = True):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.is_operational = is_operational
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "timestamp": self.timestamp,
        }
        if self.detail and not config.IS_PRODUCTION:
            data["detail"] = self.detail
        return data

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = 404


class NoCandidateAvailable(AppError):
    code = "NO_CANDIDATE_AVAILABLE"
    status_code = 409


class DuplicateResource(AppError):
    code = "DUPLICATE_RESOURCE"
    status_code = 409


class Forbidden(AppError):
    code = "FORBIDDEN"
    status_code = 403


class Unauthenticated(AppError):
    code = "UNAUTHORIZED"
    status_code = 401


class StoreError(AppError):
    code = "DATABASE_ERROR"
    status_code = 500


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, detail=detail, is_operational=False)


def handle_database_error(error: Exception) -> AppError:
    """
    Map a store failure onto an error kind.

    Args:
        error: A PostgREST APIError, a transport error, or any object
            exposing `code` and `message`

    Returns:
        The classified AppError (never raises)
    """
    if isinstance(error, AppError):
        return error

    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)
    logger.debug(f"Classifying store error code={code!r}: {message}")

    if code == PGRST_NO_ROWS:
        return NotFound("Resource not found", detail=message)

    if code == PG_UNIQUE_VIOLATION:
        return DuplicateResource("Resource already exists", detail=message)

    if code == PG_INSUFFICIENT_PRIVILEGE:
        return Forbidden("Insufficient permissions", detail=message)

    if "JWT" in message:
        return Unauthenticated("Authentication required", detail=message)

    # Generic database error
    return StoreError(
        "Database operation failed" if config.IS_PRODUCTION else message,
        detail=message,
    )


def is_store_exception(error: Exception) -> bool:
    return isinstance(error, (APIError, httpx.HTTPError, ConnectionError, TimeoutError))


def handle_error(error: Exception) -> AppError:
    """Classify any exception into an AppError."""
    if isinstance(error, AppError):
        return error

    if is_store_exception(error):
        return handle_database_error(error)

    logger.error(f"Unexpected error: {type(error).__name__}: {error}")
    return InternalError(
        "An unexpected error occurred" if config.IS_PRODUCTION else str(error),
        detail=f"{type(error).__name__}: {error}",
    )


def get_error_message(error) -> str:
    """User-facing message for an error value."""
    if isinstance(error, AppError):
        return error.message

    if isinstance(error, str):
        return error

    if isinstance(error, Exception) and str(error):
        return "An error occurred" if config.IS_PRODUCTION else str(error)

    return "An unexpected error occurred"

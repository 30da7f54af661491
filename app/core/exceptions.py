"""
Error taxonomy for the data access layer.

Every failure the data layer can surface belongs to one of a small, closed
set of categories. Raw backend errors (SQLAlchemy / DBAPI) never leak to
callers: they are mapped with ``map_backend_error`` first.
"""

import enum
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import (
    ArgumentError,
    CompileError,
    DBAPIError,
    IntegrityError,
    InvalidRequestError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
)

logger = logging.getLogger(__name__)


class ErrorCategory(str, enum.Enum):
    """User-facing error categories."""
    NOT_AUTHENTICATED = "not_authenticated"
    MISSING_TENANT = "missing_tenant"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_QUERY = "invalid_query"
    UNKNOWN = "unknown"


CATEGORY_MESSAGES = {
    ErrorCategory.NOT_AUTHENTICATED: "Please sign in to continue.",
    ErrorCategory.MISSING_TENANT: "Please ensure you have selected a company",
    ErrorCategory.ACCESS_DENIED: "Access denied. Please check your permissions.",
    ErrorCategory.NOT_FOUND: "The requested record does not exist.",
    ErrorCategory.CONFLICT: "The operation conflicts with existing data.",
    ErrorCategory.INVALID_QUERY: "Invalid query configuration",
    ErrorCategory.UNKNOWN: "Error loading data. Please try again.",
}

CATEGORY_STATUS_CODES = {
    ErrorCategory.NOT_AUTHENTICATED: 401,
    ErrorCategory.MISSING_TENANT: 400,
    ErrorCategory.ACCESS_DENIED: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.INVALID_QUERY: 400,
    ErrorCategory.UNKNOWN: 500,
}


class DataAccessError(Exception):
    """Base class for every error raised by the data access layer."""
    category = ErrorCategory.UNKNOWN
    status_code = 500

    def __init__(self, message: str = None):
        self.message = message or CATEGORY_MESSAGES[self.category]
        super().__init__(self.message)


class NotAuthenticatedError(DataAccessError):
    """No user is attached to the tenant context."""
    category = ErrorCategory.NOT_AUTHENTICATED
    status_code = 401


class MissingTenantContextError(DataAccessError):
    """
    A tenant-enforced operation was attempted without a company.

    Callers should prompt for company selection, not for a new login.
    """
    category = ErrorCategory.MISSING_TENANT
    status_code = 400


class AccessDeniedError(DataAccessError):
    """The record belongs to another company or team."""
    category = ErrorCategory.ACCESS_DENIED
    status_code = 403


class RecordNotFoundError(DataAccessError):
    category = ErrorCategory.NOT_FOUND
    status_code = 404


class ConflictError(DataAccessError):
    category = ErrorCategory.CONFLICT
    status_code = 409


class RelationshipExistsError(ConflictError):
    """A candidate is already linked to the job."""

    def __init__(self, candidate_id: str = None, job_id: str = None):
        self.candidate_id = candidate_id
        self.job_id = job_id
        super().__init__("Relationship already exists")


class ArchiveFailedError(ConflictError):
    """The archive batch did not commit. Nothing was changed."""


class InvalidStageError(DataAccessError):
    category = ErrorCategory.INVALID_QUERY
    status_code = 422


class BackendError(DataAccessError):
    """A mapped transport/backend failure."""

    def __init__(self, category: ErrorCategory, message: str = None):
        self.category = category
        self.status_code = CATEGORY_STATUS_CODES[category]
        super().__init__(message)


def map_backend_error(exc: Exception) -> DataAccessError:
    """
    Map any exception raised while talking to the store onto the closed
    category set.

    DataAccessError instances are returned unchanged.
    """
    if isinstance(exc, DataAccessError):
        return exc

    if isinstance(exc, IntegrityError):
        return BackendError(ErrorCategory.CONFLICT)

    if isinstance(exc, DBAPIError):
        text = str(getattr(exc, "orig", exc)).lower()
        if "permission denied" in text or "insufficient privilege" in text:
            return BackendError(ErrorCategory.ACCESS_DENIED)
        if isinstance(exc, ProgrammingError):
            return BackendError(ErrorCategory.INVALID_QUERY)
        if isinstance(exc, OperationalError):
            return BackendError(ErrorCategory.UNKNOWN, "Failed to connect to database")

    if isinstance(exc, (ArgumentError, CompileError, InvalidRequestError)):
        return BackendError(ErrorCategory.INVALID_QUERY)

    if not isinstance(exc, SQLAlchemyError):
        logger.error(f"Unexpected non-database error in data layer: {exc!r}")

    return BackendError(ErrorCategory.UNKNOWN)


async def data_access_error_handler(_: Request, exc: DataAccessError) -> JSONResponse:
    """Render data layer errors as {"detail", "error_code"} responses."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_code": exc.category.value},
    )

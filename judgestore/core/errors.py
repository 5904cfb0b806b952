"""
Error taxonomy for the submission store.

Every failure leaving the store is a ``SubmissionStoreError`` carrying a stable
code, so collaborators (HTTP layers, judging workers, operator scripts) can map
it onto their own transport without inspecting driver exceptions.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional
import logging

from pydantic import BaseModel, Field
from sqlalchemy import exc as sa_exc

logger = logging.getLogger(__name__)


class ErrorCodes:
    # Caller errors
    MALFORMED_IDENTITY = "MALFORMED_IDENTITY"
    SUBMISSION_NOT_FOUND = "SUBMISSION_NOT_FOUND"
    OPERATION_CANCELLED = "OPERATION_CANCELLED"

    # Storage errors
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    STORAGE_ERROR = "STORAGE_ERROR"
    INITIALIZATION_FAILURE = "INITIALIZATION_FAILURE"


class SubmissionStoreError(Exception):
    """Base class for every error raised by the store."""

    code = ErrorCodes.STORAGE_ERROR

    def __init__(self, message: str, operation: Optional[str] = None):
        self.message = message
        self.operation = operation
        super().__init__(message)


class StorageUnavailable(SubmissionStoreError):
    """The database could not be reached or did not answer in time."""

    code = ErrorCodes.STORAGE_UNAVAILABLE


class DeadlineExceeded(StorageUnavailable):
    code = ErrorCodes.DEADLINE_EXCEEDED


class MalformedIdentity(SubmissionStoreError):
    """An identity or cursor token cannot be decoded into a primary key."""

    code = ErrorCodes.MALFORMED_IDENTITY

    def __init__(self, token: object, operation: Optional[str] = None):
        self.token = token
        super().__init__(f"Malformed submission identity: {token!r:.64}", operation)


class InitializationFailure(SubmissionStoreError):
    code = ErrorCodes.INITIALIZATION_FAILURE


class OperationCancelled(SubmissionStoreError):
    code = ErrorCodes.OPERATION_CANCELLED


class SubmissionNotFound(SubmissionStoreError):
    """Only raised when strict updates are enabled."""

    code = ErrorCodes.SUBMISSION_NOT_FOUND

    def __init__(self, identity: str, operation: Optional[str] = None):
        self.identity = identity
        super().__init__(f"Submission not found: {identity}", operation)


class StorageError(SubmissionStoreError):
    code = ErrorCodes.STORAGE_ERROR


_UNAVAILABLE_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
)


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as store errors."""
    try:
        yield
    except SubmissionStoreError:
        raise
    except _UNAVAILABLE_ERRORS as e:
        logger.error(f"Storage unavailable during {operation}: {e}")
        raise StorageUnavailable(str(e), operation) from e
    except sa_exc.DBAPIError as e:
        if e.connection_invalidated:
            logger.error(f"Connection lost during {operation}: {e}")
            raise StorageUnavailable(str(e), operation) from e
        raise StorageError(str(e), operation) from e
    except sa_exc.SQLAlchemyError as e:
        raise StorageError(str(e), operation) from e


class StoreErrorBody(BaseModel):
    """Serializable description of a store failure."""
    error: bool = Field(default=True, description="Always true for error bodies")
    code: str = Field(description="Stable error code")
    message: str = Field(description="Human-readable error message")
    operation: Optional[str] = Field(default=None, description="Store operation that failed")
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def error_payload(exc: SubmissionStoreError) -> StoreErrorBody:
    return StoreErrorBody(code=exc.code, message=exc.message, operation=exc.operation)

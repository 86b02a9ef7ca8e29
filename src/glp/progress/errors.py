"""Progress persistence errors."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = structlog.get_logger()

# serialization_failure, deadlock_detected
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})


class StorageError(Exception):
    """The persistence layer is unreachable or rejected the transaction.

    Callers must surface it, never substitute zero progress. ``retryable``
    is True only when the same request can succeed later (store unreachable,
    transaction conflict); rejected data is not retryable.
    """

    def __init__(self, operation: str, *, retryable: bool = True) -> None:
        super().__init__(f"Storage failure during {operation}")
        self.operation = operation
        self.retryable = retryable


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_retryable(exc: BaseException) -> bool:
    """Whether a persistence failure can succeed when the request is repeated."""
    if isinstance(exc, (OSError, PoolTimeoutError)):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated or isinstance(exc, (OperationalError, InterfaceError)):
            return True
        return _sqlstate(exc) in TRANSIENT_SQLSTATES
    return False


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Translate database driver failures into StorageError."""
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        retryable = is_retryable(exc)
        logger.error("storage_failure", operation=operation, retryable=retryable, error=str(exc))
        raise StorageError(operation, retryable=retryable) from exc

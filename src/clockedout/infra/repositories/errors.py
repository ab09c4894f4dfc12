"""Translate SQLAlchemy failures into the storage error taxonomy."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError

from ...errors import ConnectionFailed, ConstraintViolation, QueryFailed, TransactionFailed


@contextmanager
def storage_errors(operation: str, *, write: bool) -> Iterator[None]:
    """Re-raise SQLAlchemy exceptions as ``StorageError`` subclasses."""

    try:
        yield
    except IntegrityError as exc:
        raise ConstraintViolation(f"{operation}: {exc.orig}") from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise ConnectionFailed(str(exc.orig)) from exc
        if write:
            raise TransactionFailed(operation, str(exc.orig)) from exc
        raise QueryFailed(operation, str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        if write:
            raise TransactionFailed(operation, str(exc)) from exc
        raise QueryFailed(operation, str(exc)) from exc

"""Translate driver-level database errors into a small closed set of kinds.

Callers above the data layer only ever see ``StoreError`` and branch on its
``kind``; the driver's own exception types and codes stay in this module.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from sqlalchemy.exc import DBAPIError, NoResultFound, SQLAlchemyError

# PostgreSQL SQLSTATE codes
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"

# SQLite extended result code names
SQLITE_UNIQUE_VIOLATIONS = {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
SQLITE_FOREIGN_KEY_VIOLATION = "SQLITE_CONSTRAINT_FOREIGNKEY"


class StoreErrorKind(str, Enum):
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class StoreError(Exception):
    """A data store failure classified by ``kind``."""

    def __init__(self, kind: StoreErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


def classify(exc: SQLAlchemyError) -> StoreErrorKind:
    """Map a SQLAlchemy exception onto a ``StoreErrorKind`` using driver codes."""
    if isinstance(exc, NoResultFound):
        return StoreErrorKind.NOT_FOUND
    if not isinstance(exc, DBAPIError) or exc.orig is None:
        return StoreErrorKind.UNKNOWN

    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == PG_UNIQUE_VIOLATION:
        return StoreErrorKind.CONFLICT
    if sqlstate == PG_FOREIGN_KEY_VIOLATION:
        return StoreErrorKind.NOT_FOUND

    sqlite_code = getattr(orig, "sqlite_errorname", None)
    if sqlite_code in SQLITE_UNIQUE_VIOLATIONS:
        return StoreErrorKind.CONFLICT
    if sqlite_code == SQLITE_FOREIGN_KEY_VIOLATION:
        return StoreErrorKind.NOT_FOUND

    return StoreErrorKind.UNKNOWN


def to_store_error(exc: SQLAlchemyError) -> StoreError:
    message = str(exc.orig) if isinstance(exc, DBAPIError) and exc.orig else str(exc)
    return StoreError(classify(exc), message)


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Re-raise any SQLAlchemy error raised in the block as ``StoreError``."""
    try:
        yield
    except SQLAlchemyError as e:
        raise to_store_error(e) from e

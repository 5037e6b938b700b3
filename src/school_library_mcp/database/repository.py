"""
Repository exceptions and shared helpers for the School Library MCP Server.

Repositories keep SQLAlchemy out of the protocol handlers: they take a
session, return Pydantic models (never live ORM rows, so callers cannot
mutate the store through a returned object) and signal business-rule
violations with the exceptions below. The lending service catches them at
the command boundary and turns them into ``CommandResult`` failures.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models.results import ErrorKind


class RepositoryException(Exception):
    """Base exception for repository operations."""

    kind: ErrorKind = ErrorKind.VALIDATION_FAILURE


class NotFoundError(RepositoryException):
    """Raised when a referenced book, student or record is absent."""

    kind = ErrorKind.NOT_FOUND


class UnavailableError(RepositoryException):
    """Raised when a book is already on loan."""

    kind = ErrorKind.UNAVAILABLE


class ConflictError(RepositoryException):
    """Raised when a deletion is blocked by an open borrow record."""

    kind = ErrorKind.CONFLICT


class LimitExceededError(RepositoryException):
    """Raised when a student holds too many overdue books to borrow more."""

    kind = ErrorKind.LIMIT_EXCEEDED


class ValidationFailure(RepositoryException):
    """Raised when command input breaks a field or date rule."""

    kind = ErrorKind.VALIDATION_FAILURE


def front_position(session: Session, model_class) -> int:
    """
    Listing position that sorts before every existing row of ``model_class``.

    Catalog and roster listings are ordered by ascending ``position``, so
    this makes a newly created row appear first.
    """
    lowest = session.execute(select(func.min(model_class.position))).scalar()
    return 0 if lowest is None else lowest - 1

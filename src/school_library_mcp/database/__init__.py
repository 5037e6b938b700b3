"""
Database package for the School Library MCP Server.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- The lending store: engine, sessions, id sequences and writer lock (session.py)
- Repositories for the catalog, the roster and the lending history
- Demo data (seed.py)

The store lives in memory for the lifetime of the process. Every lending
command runs inside ``DatabaseManager.transaction()`` so that its checks and
writes are atomic with respect to other commands.
"""

from .book_repository import BookRepository
from .lending_repository import LendingRepository
from .repository import (
    ConflictError,
    LimitExceededError,
    NotFoundError,
    RepositoryException,
    UnavailableError,
    ValidationFailure,
)
from .schema import Base, Book, BorrowRecord, Student
from .session import DatabaseManager, IdSequence, get_db_manager, reset_db_manager
from .student_repository import StudentRepository

__all__ = [
    "Base",
    "Book",
    "BookRepository",
    "BorrowRecord",
    "ConflictError",
    "DatabaseManager",
    "IdSequence",
    "LendingRepository",
    "LimitExceededError",
    "NotFoundError",
    "RepositoryException",
    "Student",
    "StudentRepository",
    "UnavailableError",
    "ValidationFailure",
    "get_db_manager",
    "reset_db_manager",
]

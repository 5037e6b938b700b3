"""
School Library MCP Server Models.

Pydantic models for the lending domain:
- Book / BookCandidate: catalog items and import candidates
- Student / StudentCandidate: roster entries and import candidates
- BorrowRecord: one loan of a book to a student
- Reports: dashboard aggregates and overdue listings
- CommandResult: structured outcome of every lending command
"""

from .book import Book, BookCandidate
from .borrow_record import BorrowRecord
from .reports import (
    DashboardStats,
    OverdueRecordDetail,
    StudentLoan,
    TopBookEntry,
    TopStudentEntry,
)
from .results import CommandResult, ErrorKind
from .student import Student, StudentCandidate

__all__ = [
    "Book",
    "BookCandidate",
    "BorrowRecord",
    "CommandResult",
    "DashboardStats",
    "ErrorKind",
    "OverdueRecordDetail",
    "Student",
    "StudentCandidate",
    "StudentLoan",
    "TopBookEntry",
    "TopStudentEntry",
]

"""
Lending service for the School Library MCP Server.

This is the single entry point the MCP resources, MCP tools and HTTP routes
use to read and change the library. It holds no state beyond a handle to the
store, the lending policy limits and a clock:

- Queries return Pydantic models (copies, never live rows)
- Commands return ``CommandResult``; business-rule violations never escape
  as exceptions
- Every command runs inside ``DatabaseManager.transaction()``, so its checks
  and writes happen as one step

The clock is injectable so overdue logic depends only on (due date, today)
and tests can pin the date.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..config import ServerConfig
from ..database.book_repository import BookRepository
from ..database.lending_repository import LendingRepository
from ..database.repository import RepositoryException
from ..database.session import DatabaseManager
from ..database.student_repository import StudentRepository
from ..importers.text_import import ParseFailure, TextImportAdapter
from ..models.book import Book, BookCandidate
from ..models.borrow_record import BorrowRecord
from ..models.reports import DashboardStats, OverdueRecordDetail, StudentLoan
from ..models.results import CommandResult, ErrorKind
from ..models.student import Student, StudentCandidate

logger = logging.getLogger(__name__)


def _validation_message(exc: ValidationError, prefix: str = "") -> str:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    detail = f"{field}: {first['msg']}" if field else first["msg"]
    return f"{prefix}{detail}"


class LendingService:
    """
    Queries and commands over the lending store.

    Args:
        db: The store; its schema must already be initialised
        today: Clock returning the evaluation date for overdue checks and
            return dates
        max_overdue_loans: Overdue books that block further borrowing
        max_loan_span_days: Longest allowed borrow-to-due span
    """

    def __init__(
        self,
        db: DatabaseManager,
        today: Callable[[], date] = date.today,
        max_overdue_loans: int = 5,
        max_loan_span_days: int = 730,
    ):
        self.db = db
        self.today = today
        self.max_overdue_loans = max_overdue_loans
        self.max_loan_span_days = max_loan_span_days

    @classmethod
    def from_config(cls, config: ServerConfig, db: DatabaseManager) -> "LendingService":
        return cls(
            db,
            max_overdue_loans=config.max_overdue_loans,
            max_loan_span_days=config.max_loan_span_days,
        )

    def _lending(self, session: Session) -> LendingRepository:
        return LendingRepository(
            session,
            ids=self.db.record_ids,
            max_overdue_loans=self.max_overdue_loans,
            max_loan_span_days=self.max_loan_span_days,
        )

    def _execute(
        self, operation: str, command: Callable[[Session], CommandResult]
    ) -> CommandResult:
        """
        Run ``command`` in a store transaction.

        Repository exceptions roll the transaction back and become failed
        results carrying the exception's error kind.
        """
        try:
            with self.db.transaction() as session:
                result = command(session)
        except RepositoryException as e:
            logger.info("%s rejected (%s): %s", operation, e.kind.value, e)
            return CommandResult.fail(e.kind, str(e))

        logger.info("%s: %s", operation, result.message)
        return result

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list_books(self) -> list[Book]:
        """Every book, newest first."""
        with self.db.session_scope() as session:
            return BookRepository(session).list_all()

    def get_book(self, book_id: int) -> Book | None:
        with self.db.session_scope() as session:
            return BookRepository(session).get_by_id(book_id)

    def list_students(self) -> list[Student]:
        """Every student, newest first."""
        with self.db.session_scope() as session:
            return StudentRepository(session).list_all()

    def get_student(self, student_id: int) -> Student | None:
        with self.db.session_scope() as session:
            return StudentRepository(session).get_by_id(student_id)

    def list_borrow_records(self) -> list[BorrowRecord]:
        """Every borrow record, in the order they were made."""
        with self.db.session_scope() as session:
            return LendingRepository(session).list_all()

    def get_borrow_record(self, record_id: int) -> BorrowRecord | None:
        with self.db.session_scope() as session:
            return LendingRepository(session).get_by_id(record_id)

    def get_student_loans(self, student_id: int) -> tuple[Student, list[StudentLoan]] | None:
        """
        A student and their open loans with overdue flags, read in one session.

        Returns None for an unknown student.
        """
        with self.db.session_scope() as session:
            student = StudentRepository(session).get_by_id(student_id)
            if student is None:
                return None
            return student, LendingRepository(session).student_loans(student_id, self.today())

    def get_dashboard_stats(self) -> DashboardStats:
        with self.db.session_scope() as session:
            return LendingRepository(session).dashboard_stats(self.today())

    def get_overdue_records(self) -> list[OverdueRecordDetail]:
        """Overdue loans with book title and student name, earliest due date first."""
        with self.db.session_scope() as session:
            return LendingRepository(session).overdue_details(self.today())

    # =========================================================================
    # CATALOG COMMANDS
    # =========================================================================

    def add_book(self, title: str, author: str, cover_image: str = "") -> CommandResult:
        """Add one available book. The cover is stored as given, possibly empty."""
        try:
            candidate = BookCandidate(title=title, author=author, cover_image=cover_image)
        except ValidationError as e:
            logger.info("add_book rejected: invalid input")
            return CommandResult.fail(ErrorKind.VALIDATION_FAILURE, _validation_message(e))

        def command(session: Session) -> CommandResult:
            book = BookRepository(session, self.db.book_ids).create(candidate)
            return CommandResult.ok(f"Added '{book.title}' by {book.author} (id {book.id})", book)

        return self._execute("add_book", command)

    def add_multiple_books(
        self, candidates: Iterable[BookCandidate | dict[str, Any]]
    ) -> CommandResult:
        """
        Add several books in one command.

        Each entry is prepended in input order, so the last entry ends up
        first in the listing. Every entry is validated before anything is
        created; a single invalid entry fails the whole command.
        """
        validated = []
        for position, entry in enumerate(candidates, start=1):
            try:
                validated.append(BookCandidate.model_validate(entry))
            except ValidationError as e:
                logger.info("add_multiple_books rejected: entry %d invalid", position)
                return CommandResult.fail(
                    ErrorKind.VALIDATION_FAILURE, _validation_message(e, f"Entry {position}: ")
                )

        if not validated:
            return CommandResult.fail(ErrorKind.VALIDATION_FAILURE, "No books to add")

        def command(session: Session) -> CommandResult:
            repo = BookRepository(session, self.db.book_ids)
            books = [repo.create(candidate) for candidate in validated]
            return CommandResult.ok(f"Added {len(books)} books", books)

        return self._execute("add_multiple_books", command)

    def delete_book(self, book_id: int) -> CommandResult:
        """Remove a book unless it is on loan."""

        def command(session: Session) -> CommandResult:
            book = BookRepository(session).delete(book_id)
            return CommandResult.ok(f"Deleted '{book.title}'", book)

        return self._execute("delete_book", command)

    async def import_books(
        self,
        text: str,
        importer: TextImportAdapter,
        default_cover: Callable[[str], str] | None = None,
    ) -> CommandResult:
        """
        Parse pasted text with ``importer`` and bulk-add the result.

        Args:
            text: Text pasted from a spreadsheet
            importer: Adapter producing the candidates
            default_cover: Maps a title to a cover URL for candidates that
                came without one
        """
        try:
            candidates = await importer.parse_books(text)
        except ParseFailure as e:
            logger.info("import_books rejected: %s", e)
            return CommandResult.fail(ErrorKind.PARSE_FAILURE, str(e))

        if default_cover is not None:
            candidates = [
                c if c.cover_image else c.model_copy(update={"cover_image": default_cover(c.title)})
                for c in candidates
            ]
        return self.add_multiple_books(candidates)

    # =========================================================================
    # ROSTER COMMANDS
    # =========================================================================

    def add_student(self, name: str) -> CommandResult:
        try:
            candidate = StudentCandidate(name=name)
        except ValidationError as e:
            logger.info("add_student rejected: invalid input")
            return CommandResult.fail(ErrorKind.VALIDATION_FAILURE, _validation_message(e))

        def command(session: Session) -> CommandResult:
            student = StudentRepository(session, self.db.student_ids).create(candidate)
            return CommandResult.ok(f"Added student {student.name} (id {student.id})", student)

        return self._execute("add_student", command)

    def add_multiple_students(
        self, candidates: Iterable[StudentCandidate | dict[str, Any]]
    ) -> CommandResult:
        """Add several students; all-or-nothing like ``add_multiple_books``."""
        validated = []
        for position, entry in enumerate(candidates, start=1):
            try:
                validated.append(StudentCandidate.model_validate(entry))
            except ValidationError as e:
                logger.info("add_multiple_students rejected: entry %d invalid", position)
                return CommandResult.fail(
                    ErrorKind.VALIDATION_FAILURE, _validation_message(e, f"Entry {position}: ")
                )

        if not validated:
            return CommandResult.fail(ErrorKind.VALIDATION_FAILURE, "No students to add")

        def command(session: Session) -> CommandResult:
            repo = StudentRepository(session, self.db.student_ids)
            students = [repo.create(candidate) for candidate in validated]
            return CommandResult.ok(f"Added {len(students)} students", students)

        return self._execute("add_multiple_students", command)

    def delete_student(self, student_id: int) -> CommandResult:
        """Remove a student unless they still have books on loan."""

        def command(session: Session) -> CommandResult:
            student = StudentRepository(session).delete(student_id)
            return CommandResult.ok(f"Deleted student {student.name}", student)

        return self._execute("delete_student", command)

    async def import_students(self, text: str, importer: TextImportAdapter) -> CommandResult:
        try:
            candidates = await importer.parse_students(text)
        except ParseFailure as e:
            logger.info("import_students rejected: %s", e)
            return CommandResult.fail(ErrorKind.PARSE_FAILURE, str(e))
        return self.add_multiple_students(candidates)

    # =========================================================================
    # LENDING COMMANDS
    # =========================================================================

    def borrow_book(
        self, book_id: int, student_id: int, borrow_date: date, due_date: date
    ) -> CommandResult:
        """
        Lend a book to a student.

        On success the data is the new open record and the book is
        unavailable. Failures: ``validation_failure`` (dates), ``not_found``
        (book or student), ``unavailable`` (book on loan), ``limit_exceeded``
        (too many overdue books).
        """

        def command(session: Session) -> CommandResult:
            record, book = self._lending(session).borrow(
                book_id, student_id, borrow_date, due_date, today=self.today()
            )
            return CommandResult.ok(
                f"Borrowed '{book.title}'. Due back on {record.due_date.isoformat()}", record
            )

        return self._execute("borrow_book", command)

    def return_book(self, book_id: int, student_id: int) -> CommandResult:
        """
        Close the student's open loan of the book, dated today.

        Fails with ``not_found`` for an unknown student or when the student
        has no open loan of that book.
        """

        def command(session: Session) -> CommandResult:
            record, book = self._lending(session).return_book(
                book_id, student_id, today=self.today()
            )
            what = f"'{book.title}'" if book else f"book {book_id}"
            return CommandResult.ok(f"Returned {what} on {record.return_date.isoformat()}", record)

        return self._execute("return_book", command)

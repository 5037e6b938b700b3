"""
Lending repository for the School Library MCP Server.

This repository owns the borrow/return state machine:

    Available --borrow--> OnLoan --return--> Available

``OnLoan`` splits into current and overdue, but that split is computed from
the due date and the evaluation date on every read and never stored.

Operations coordinate the books table and the borrow records table inside
the caller's transaction, so the book's availability flag and the set of
open records always change together.
"""

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models.book import Book
from ..models.borrow_record import BorrowRecord
from ..models.reports import (
    DashboardStats,
    OverdueRecordDetail,
    StudentLoan,
    TopBookEntry,
    TopStudentEntry,
)
from .book_repository import BookRepository
from .repository import (
    LimitExceededError,
    NotFoundError,
    UnavailableError,
    ValidationFailure,
)
from .schema import BorrowRecord as BorrowRecordDB
from .session import IdSequence
from .student_repository import StudentRepository

logger = logging.getLogger(__name__)

UNKNOWN_BOOK = "Unknown book"
UNKNOWN_STUDENT = "Unknown student"
TOP_ENTRIES = 3


class LendingRepository:
    """
    Repository for borrow records and the lending rules.

    Args:
        session: Active database session
        ids: Borrow record id sequence; only needed for ``borrow``
        max_overdue_loans: Overdue books that block further borrowing
        max_loan_span_days: Longest allowed borrow-to-due span
    """

    def __init__(
        self,
        session: Session,
        ids: IdSequence | None = None,
        max_overdue_loans: int = 5,
        max_loan_span_days: int = 730,
    ):
        self.session = session
        self.ids = ids
        self.max_overdue_loans = max_overdue_loans
        self.max_loan_span_days = max_loan_span_days
        self.book_repo = BookRepository(session)
        self.student_repo = StudentRepository(session)

    def _to_model(self, row: BorrowRecordDB) -> BorrowRecord:
        return BorrowRecord.model_validate(row, from_attributes=True)

    # === Queries ===

    def list_all(self) -> list[BorrowRecord]:
        """Every record in insertion order."""
        rows = self.session.execute(select(BorrowRecordDB).order_by(BorrowRecordDB.id)).scalars()
        return [self._to_model(row) for row in rows]

    def get_by_id(self, record_id: int) -> BorrowRecord | None:
        row = self.session.get(BorrowRecordDB, record_id)
        return self._to_model(row) if row else None

    def count_open(self) -> int:
        stmt = select(func.count(BorrowRecordDB.id)).where(BorrowRecordDB.return_date.is_(None))
        return self.session.execute(stmt).scalar_one()

    def count_overdue(self, today: date, student_id: int | None = None) -> int:
        """Open records due strictly before ``today``, optionally for one student."""
        stmt = select(func.count(BorrowRecordDB.id)).where(
            BorrowRecordDB.return_date.is_(None),
            BorrowRecordDB.due_date < today,
        )
        if student_id is not None:
            stmt = stmt.where(BorrowRecordDB.student_id == student_id)
        return self.session.execute(stmt).scalar_one()

    def find_open_record(self, book_id: int, student_id: int) -> BorrowRecordDB | None:
        """The open record for this exact (book, student) pair, if any."""
        stmt = select(BorrowRecordDB).where(
            BorrowRecordDB.book_id == book_id,
            BorrowRecordDB.student_id == student_id,
            BorrowRecordDB.return_date.is_(None),
        )
        return self.session.execute(stmt.order_by(BorrowRecordDB.id).limit(1)).scalar_one_or_none()

    def overdue_details(self, today: date) -> list[OverdueRecordDetail]:
        """
        Every overdue record joined with book title and student name.

        Sorted by due date; records sharing a due date keep insertion order.
        Records whose book or student no longer exists get a placeholder name.
        """
        stmt = (
            select(BorrowRecordDB)
            .where(BorrowRecordDB.return_date.is_(None), BorrowRecordDB.due_date < today)
            .order_by(BorrowRecordDB.due_date, BorrowRecordDB.id)
        )
        rows = self.session.execute(stmt).scalars().all()
        if not rows:
            return []

        titles = self.book_repo.titles_by_id()
        names = self.student_repo.names_by_id()

        return [
            OverdueRecordDetail(
                record_id=row.id,
                book_title=titles.get(row.book_id, UNKNOWN_BOOK),
                student_name=names.get(row.student_id, UNKNOWN_STUDENT),
                due_date=row.due_date,
            )
            for row in rows
        ]

    def student_loans(self, student_id: int, today: date) -> list[StudentLoan]:
        """
        The student's open loans, oldest first.

        Raises:
            NotFoundError: If the student does not exist
        """
        if not self.student_repo.exists(student_id):
            raise NotFoundError(f"Student {student_id} not found")

        stmt = (
            select(BorrowRecordDB)
            .where(
                BorrowRecordDB.student_id == student_id,
                BorrowRecordDB.return_date.is_(None),
            )
            .order_by(BorrowRecordDB.id)
        )
        titles = self.book_repo.titles_by_id()

        loans = []
        for row in self.session.execute(stmt).scalars():
            record = self._to_model(row)
            loans.append(
                StudentLoan(
                    record_id=record.id,
                    book_id=record.book_id,
                    book_title=titles.get(record.book_id, UNKNOWN_BOOK),
                    borrow_date=record.borrow_date,
                    due_date=record.due_date,
                    is_overdue=record.is_overdue(today),
                    days_overdue=record.days_overdue(today),
                )
            )
        return loans

    def dashboard_stats(self, today: date) -> DashboardStats:
        """
        Aggregate catalog, roster and lending figures.

        Top lists count every record ever made (returned ones included),
        grouped by student name and book title. Ties keep the order in which
        each name or title first appears in the record history; records whose
        book or student was deleted are left out.
        """
        titles = self.book_repo.titles_by_id()
        names = self.student_repo.names_by_id()

        student_counts: dict[str, int] = {}
        book_counts: dict[str, int] = {}
        for book_id, student_id in self.session.execute(
            select(BorrowRecordDB.book_id, BorrowRecordDB.student_id).order_by(BorrowRecordDB.id)
        ):
            name = names.get(student_id)
            if name is not None:
                student_counts[name] = student_counts.get(name, 0) + 1
            title = titles.get(book_id)
            if title is not None:
                book_counts[title] = book_counts.get(title, 0) + 1

        # sorted() is stable, so equal counts stay in first-seen order
        top_students = sorted(student_counts.items(), key=lambda item: -item[1])[:TOP_ENTRIES]
        top_books = sorted(book_counts.items(), key=lambda item: -item[1])[:TOP_ENTRIES]

        return DashboardStats(
            total_books=len(titles),
            total_students=len(names),
            borrowed_count=self.count_open(),
            overdue_count=self.count_overdue(today),
            top_students=[TopStudentEntry(name=n, count=c) for n, c in top_students],
            top_books=[TopBookEntry(title=t, count=c) for t, c in top_books],
        )

    # === Commands ===

    def validate_loan_dates(self, borrow_date: date, due_date: date) -> None:
        """
        Raises:
            ValidationFailure: If the due date is not after the borrow date or
                the loan is longer than ``max_loan_span_days``
        """
        if due_date <= borrow_date:
            raise ValidationFailure("Due date must be after the borrow date")

        span = (due_date - borrow_date).days
        if span > self.max_loan_span_days:
            raise ValidationFailure(
                f"Loan period of {span} days exceeds the maximum of "
                f"{self.max_loan_span_days} days"
            )

    def borrow(
        self,
        book_id: int,
        student_id: int,
        borrow_date: date,
        due_date: date,
        today: date,
    ) -> tuple[BorrowRecord, Book]:
        """
        Lend a book to a student.

        Checks, in order: loan dates, book exists and is on the shelf, student
        exists, student is under the overdue limit. Nothing is written unless
        every check passes.

        Returns:
            The new open record and the book, now unavailable

        Raises:
            ValidationFailure: Bad loan dates
            NotFoundError: Missing book or student
            UnavailableError: Book already on loan
            LimitExceededError: Student holds too many overdue books
        """
        if self.ids is None:
            raise RuntimeError("LendingRepository.borrow requires an id sequence")

        self.validate_loan_dates(borrow_date, due_date)

        book = self.book_repo.get_row(book_id)
        if book is None:
            raise NotFoundError(f"Book {book_id} does not exist")
        if not book.is_available:
            raise UnavailableError(f"'{book.title}' is currently on loan")

        student = self.student_repo.get_by_id(student_id)
        if student is None:
            raise NotFoundError(f"Student {student_id} does not exist")

        overdue = self.count_overdue(today, student_id=student_id)
        if overdue >= self.max_overdue_loans:
            raise LimitExceededError(
                f"{student.name} has {overdue} overdue books and cannot borrow more"
            )

        row = BorrowRecordDB(
            id=self.ids.allocate(),
            book_id=book_id,
            student_id=student_id,
            borrow_date=borrow_date,
            due_date=due_date,
            return_date=None,
        )
        self.session.add(row)
        book.is_available = False
        self.session.flush()

        logger.debug("Record %d: book %d lent to student %d", row.id, book_id, student_id)
        return self._to_model(row), Book.model_validate(book, from_attributes=True)

    def return_book(
        self, book_id: int, student_id: int, today: date
    ) -> tuple[BorrowRecord, Book | None]:
        """
        Close the open record for an exact (book, student) pair.

        Returns:
            The closed record and the book (None if it was deleted meanwhile)

        Raises:
            NotFoundError: Missing student, or no open record for the pair
        """
        if not self.student_repo.exists(student_id):
            raise NotFoundError(f"Student {student_id} does not exist")

        record = self.find_open_record(book_id, student_id)
        if record is None:
            raise NotFoundError(
                f"No open loan of book {book_id} found for student {student_id}"
            )

        book = self.book_repo.get_row(book_id)
        if book is not None:
            book.is_available = True

        record.return_date = today
        self.session.flush()

        returned_book = Book.model_validate(book, from_attributes=True) if book else None
        return self._to_model(record), returned_book

"""
Book repository for the School Library MCP Server.

Catalog reads for the book resources and the create/delete side of the
catalog tools. Availability is only changed by the lending repository.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.book import Book, BookCandidate
from .repository import ConflictError, NotFoundError, front_position
from .schema import Book as BookDB
from .schema import BorrowRecord as BorrowRecordDB
from .session import IdSequence

logger = logging.getLogger(__name__)


class BookRepository:
    """
    Repository for the book catalog.

    Listings are newest-first: each created book is placed in front of the
    existing ones.
    """

    def __init__(self, session: Session, ids: IdSequence | None = None):
        """
        Args:
            session: Active database session
            ids: Book id sequence; only needed for ``create``
        """
        self.session = session
        self.ids = ids

    def _to_model(self, row: BookDB) -> Book:
        return Book.model_validate(row, from_attributes=True)

    def get_row(self, book_id: int) -> BookDB | None:
        """The live ORM row, for repositories that update availability."""
        return self.session.get(BookDB, book_id)

    def get_by_id(self, book_id: int) -> Book | None:
        row = self.get_row(book_id)
        return self._to_model(row) if row else None

    def list_all(self) -> list[Book]:
        rows = self.session.execute(select(BookDB).order_by(BookDB.position, BookDB.id)).scalars()
        return [self._to_model(row) for row in rows]

    def titles_by_id(self) -> dict[int, str]:
        """Map of every book id to its title, for joining against records."""
        return dict(self.session.execute(select(BookDB.id, BookDB.title)).all())

    def create(self, candidate: BookCandidate) -> Book:
        """
        Add a book to the front of the catalog.

        The book starts available and receives the next id from the sequence.
        """
        if self.ids is None:
            raise RuntimeError("BookRepository.create requires an id sequence")

        row = BookDB(
            id=self.ids.allocate(),
            title=candidate.title,
            author=candidate.author,
            cover_image=candidate.cover_image,
            is_available=True,
            position=front_position(self.session, BookDB),
        )
        self.session.add(row)
        # Flush so the next front_position() in this transaction sees the row
        self.session.flush()

        logger.debug("Created book %d: %s", row.id, row.title)
        return self._to_model(row)

    def has_open_record(self, book_id: int) -> bool:
        """True if any unreturned borrow record references the book."""
        stmt = select(BorrowRecordDB.id).where(
            BorrowRecordDB.book_id == book_id,
            BorrowRecordDB.return_date.is_(None),
        )
        return self.session.execute(stmt.limit(1)).first() is not None

    def delete(self, book_id: int) -> Book:
        """
        Remove a book from the catalog.

        Raises:
            NotFoundError: If the book does not exist
            ConflictError: If the book is currently on loan
        """
        row = self.get_row(book_id)
        if row is None:
            raise NotFoundError(f"Book {book_id} not found")

        if self.has_open_record(book_id):
            raise ConflictError(f"Cannot delete '{row.title}': the book is currently on loan")

        deleted = self._to_model(row)
        self.session.delete(row)
        self.session.flush()
        return deleted

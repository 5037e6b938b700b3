"""
SQLAlchemy schema for the School Library MCP Server.

The store is an in-memory SQLite database by default, so these tables hold
the three collections for the life of the process only.

Borrow records reference books and students by plain integer columns rather
than foreign keys: returned records stay in the history after the book or
student they mention has been deleted.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base

# Base class for all SQLAlchemy models
Base = declarative_base()


class Book(Base):
    """
    Books table - the library catalog.

    ``position`` orders the catalog listing. New books take a position in
    front of every existing one, so listings show the newest first.
    """

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(200), nullable=False)
    cover_image = Column(String(1000), nullable=False, default="")
    is_available = Column(Boolean, nullable=False, default=True)
    position = Column(Integer, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', available={self.is_available})>"


class Student(Base):
    """Students table - the borrower roster, ordered like the catalog."""

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(200), nullable=False, index=True)
    position = Column(Integer, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name='{self.name}')>"


class BorrowRecord(Base):
    """
    Borrow records table - every loan ever made, in insertion order.

    A NULL ``return_date`` marks an open loan.
    """

    __tablename__ = "borrow_records"

    id = Column(Integer, primary_key=True, autoincrement=False)
    book_id = Column(Integer, nullable=False)
    student_id = Column(Integer, nullable=False)
    borrow_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=True)

    __table_args__ = (
        Index("idx_record_book_open", "book_id", "return_date"),
        Index("idx_record_student_open", "student_id", "return_date"),
        Index("idx_record_due_date", "due_date"),
        CheckConstraint("due_date > borrow_date", name="check_due_after_borrow"),
    )

    @property
    def is_open(self) -> bool:
        return self.return_date is None

    def __repr__(self) -> str:
        return (
            f"<BorrowRecord(id={self.id}, book_id={self.book_id}, "
            f"student_id={self.student_id}, due={self.due_date}, returned={self.return_date})>"
        )

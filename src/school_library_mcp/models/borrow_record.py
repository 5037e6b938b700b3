"""
Borrow record model for the School Library MCP Server.

A BorrowRecord is created by the borrow_book tool and closed exactly once by
return_book, which stamps ``return_date``. Records are never deleted, so the
record list doubles as the lending history used by the dashboard.

Whether a record is overdue is never stored: it is derived from the due date
and the evaluation date every time it is asked for.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BorrowRecord(BaseModel):
    """
    Represents one loan of a book to a student.

    An open record (``return_date is None``) keeps its book unavailable.
    """

    id: int = Field(
        ...,
        description="Unique identifier for the borrow record",
        ge=1,
    )

    book_id: int = Field(
        ...,
        description="ID of the borrowed book",
        ge=1,
    )

    student_id: int = Field(
        ...,
        description="ID of the borrowing student",
        ge=1,
    )

    borrow_date: date = Field(
        ...,
        description="Date the book was borrowed",
        examples=["2024-06-01"],
    )

    due_date: date = Field(
        ...,
        description="Date the book must be returned by",
        examples=["2024-06-15"],
    )

    return_date: date | None = Field(
        None,
        description="Date the book was returned; null while the loan is open",
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "BorrowRecord":
        """Validate date relationships."""
        if self.due_date <= self.borrow_date:
            raise ValueError("Due date must be after borrow date")
        return self

    @property
    def is_open(self) -> bool:
        """True while the book has not been returned."""
        return self.return_date is None

    def is_overdue(self, today: date) -> bool:
        """Check whether the loan is open and past its due date on ``today``."""
        return self.is_open and self.due_date < today

    def days_overdue(self, today: date) -> int:
        """Number of whole days past due, 0 when not overdue."""
        if not self.is_overdue(today):
            return 0
        return (today - self.due_date).days

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 8,
                "book_id": 2,
                "student_id": 1,
                "borrow_date": "2024-06-01",
                "due_date": "2024-06-15",
                "return_date": None,
            }
        },
    )

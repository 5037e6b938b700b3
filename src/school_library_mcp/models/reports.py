"""
Report models for the School Library MCP Server.

These are read-side aggregates computed on demand from the three
collections. None of them are stored.
"""

from datetime import date

from pydantic import BaseModel, Field


class TopStudentEntry(BaseModel):
    """A student ranked by total number of borrows."""

    name: str = Field(..., description="Student name")
    count: int = Field(..., description="Borrows including returned ones", ge=1)


class TopBookEntry(BaseModel):
    """A book ranked by total number of borrows."""

    title: str = Field(..., description="Book title")
    count: int = Field(..., description="Borrows including returned ones", ge=1)


class DashboardStats(BaseModel):
    """Aggregate figures shown on the admin dashboard."""

    total_books: int = Field(..., description="Books in the catalog")
    total_students: int = Field(..., description="Students on the roster")
    borrowed_count: int = Field(..., description="Open borrow records")
    overdue_count: int = Field(..., description="Open records past their due date")
    top_students: list[TopStudentEntry] = Field(
        default_factory=list, description="Up to three most active borrowers"
    )
    top_books: list[TopBookEntry] = Field(
        default_factory=list, description="Up to three most borrowed books"
    )


class OverdueRecordDetail(BaseModel):
    """An overdue loan joined with the names of its book and student."""

    record_id: int = Field(..., description="Borrow record ID")
    book_title: str = Field(..., description="Title of the overdue book")
    student_name: str = Field(..., description="Name of the borrower")
    due_date: date = Field(..., description="Date the book was due")


class StudentLoan(BaseModel):
    """An open loan as seen from the student portal."""

    record_id: int
    book_id: int
    book_title: str
    borrow_date: date
    due_date: date
    is_overdue: bool
    days_overdue: int = 0

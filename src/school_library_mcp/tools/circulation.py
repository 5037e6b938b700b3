"""
Circulation tools for the School Library MCP Server.

1. borrow_book: Lend an available book to a student
2. return_book: Close a student's open loan of a book

Each book moves between two states:

    Available --borrow_book--> OnLoan --return_book--> Available

Whether a loan is overdue is derived from its due date whenever it is read,
so no tool ever marks a loan overdue.
"""

import logging
from datetime import date, timedelta
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from ..config import get_config
from ..observability import trace_tool
from ..services import get_lending_service
from .responses import command_response, error_response, invalid_arguments

logger = logging.getLogger(__name__)


# =============================================================================
# BORROW TOOL IMPLEMENTATION
# =============================================================================


class BorrowBookInput(BaseModel):
    """
    Input schema for the borrow_book tool.

    Only the book and the student are required. The borrow date defaults to
    today and the due date to the standard loan period after it.
    Field names are also accepted in camelCase (``bookId``, ``dueDate``), the
    way JSON front ends send them.
    """

    book_id: int = Field(
        ...,
        description="ID of the book to borrow",
        ge=1,
        examples=[2],
        validation_alias=AliasChoices("book_id", "bookId"),
    )

    student_id: int = Field(
        ...,
        description="ID of the borrowing student",
        ge=1,
        examples=[1],
        validation_alias=AliasChoices("student_id", "studentId"),
    )

    borrow_date: date | None = Field(
        default=None,
        validation_alias=AliasChoices("borrow_date", "borrowDate"),
        description="Date of the loan. Defaults to today",
        examples=["2024-06-01"],
    )

    due_date: date | None = Field(
        default=None,
        validation_alias=AliasChoices("due_date", "dueDate"),
        description=(
            "Date the book must be returned by, after the borrow date. "
            "Defaults to the standard loan period"
        ),
        examples=["2024-06-15"],
    )


@trace_tool("borrow_book")
async def borrow_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the borrow_book tool.

    The lending service rejects the loan when the dates are invalid, the
    book or student does not exist, the book is already on loan, or the
    student holds too many overdue books.
    """
    try:
        try:
            params = BorrowBookInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid borrow_book parameters: %s", e)
            return invalid_arguments("borrow_book", e)

        service = get_lending_service()
        borrow_date = params.borrow_date or service.today()
        due_date = params.due_date or borrow_date + timedelta(days=get_config().default_loan_days)

        result = service.borrow_book(params.book_id, params.student_id, borrow_date, due_date)
        return command_response(
            result, {"record": result.data.model_dump(mode="json")} if result.success else None
        )

    except Exception as e:
        logger.exception("Unexpected error in borrow_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# RETURN TOOL IMPLEMENTATION
# =============================================================================


class ReturnBookInput(BaseModel):
    """Input schema for the return_book tool."""

    book_id: int = Field(
        ...,
        description="ID of the book being returned",
        ge=1,
        examples=[4],
        validation_alias=AliasChoices("book_id", "bookId"),
    )

    student_id: int = Field(
        ...,
        description="ID of the student returning the book",
        ge=1,
        examples=[2],
        validation_alias=AliasChoices("student_id", "studentId"),
    )


@trace_tool("return_book")
async def return_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the return_book tool.

    Only the student who holds the loan can return it; the return is dated
    today.
    """
    try:
        try:
            params = ReturnBookInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid return_book parameters: %s", e)
            return invalid_arguments("return_book", e)

        result = get_lending_service().return_book(params.book_id, params.student_id)
        return command_response(
            result, {"record": result.data.model_dump(mode="json")} if result.success else None
        )

    except Exception as e:
        logger.exception("Unexpected error in return_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# TOOL REGISTRATION
# =============================================================================

borrow_book = {
    "name": "borrow_book",
    "description": (
        "Lend a book to a student. Creates a borrow record and marks the book as on "
        "loan. Fails if the book is already on loan, the due date is not after the "
        "borrow date, or the student has too many overdue books."
    ),
    "inputSchema": BorrowBookInput.model_json_schema(),
    "handler": borrow_book_handler,
}

return_book = {
    "name": "return_book",
    "description": (
        "Return a borrowed book. Closes the student's open loan of the book, dated "
        "today, and puts the book back on the shelf."
    ),
    "inputSchema": ReturnBookInput.model_json_schema(),
    "handler": return_book_handler,
}

"""
Catalog tools for the School Library MCP Server.

1. add_book: Add one book to the catalog
2. import_books: Bulk-add books from text pasted out of a spreadsheet
3. delete_book: Remove a book that is not on loan

Books added without a cover get a placeholder image derived from the title.
The import tool asks the client's LLM to read the pasted text (MCP
sampling) and falls back to a line-based parser for clients that cannot
sample.
"""

import logging
from typing import Any

from fastmcp import Context
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from ..config import get_config
from ..importers import build_importer
from ..observability import trace_tool
from ..services import get_lending_service
from .responses import (
    command_response,
    error_response,
    invalid_arguments,
    placeholder_cover_url,
)

logger = logging.getLogger(__name__)


# =============================================================================
# ADD BOOK TOOL
# =============================================================================


class AddBookInput(BaseModel):
    """Input schema for the add_book tool."""

    title: str = Field(
        ...,
        description="Title of the book",
        min_length=1,
        max_length=500,
        examples=["The Hobbit", "Charlotte's Web"],
    )

    author: str = Field(
        ...,
        description="Author of the book",
        min_length=1,
        max_length=200,
        examples=["J.R.R. Tolkien", "E.B. White"],
    )

    cover_image: str = Field(
        default="",
        validation_alias=AliasChoices("cover_image", "coverImage"),
        description="Cover image URL. Leave empty to generate a placeholder",
        max_length=1000,
    )


@trace_tool("add_book")
async def add_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the add_book tool."""
    try:
        try:
            params = AddBookInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid add_book parameters: %s", e)
            return invalid_arguments("add_book", e)

        cover = params.cover_image.strip() or placeholder_cover_url(params.title)
        result = get_lending_service().add_book(params.title, params.author, cover)

        return command_response(
            result, {"book": result.data.model_dump(mode="json")} if result.success else None
        )

    except Exception as e:
        logger.exception("Unexpected error in add_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# IMPORT BOOKS TOOL
# =============================================================================


class ImportBooksInput(BaseModel):
    """Input schema for the import_books tool."""

    text: str = Field(
        ...,
        description=(
            "Rows copied from a spreadsheet, one book per line with title and author "
            "columns (tab, semicolon or comma separated)"
        ),
        min_length=1,
        examples=["The Hobbit\tJ.R.R. Tolkien\nMatilda\tRoald Dahl"],
    )


@trace_tool("import_books")
async def import_books_handler(arguments: dict[str, Any], ctx: Context) -> dict[str, Any]:
    """
    Handler for the import_books tool.

    All rows are added or none: one unreadable or invalid row rejects the
    whole import.
    """
    try:
        try:
            params = ImportBooksInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid import_books parameters: %s", e)
            return invalid_arguments("import_books", e)

        config = get_config()
        importer = build_importer(ctx, config.enable_sampling, config.import_max_chars)
        result = await get_lending_service().import_books(
            params.text, importer, default_cover=placeholder_cover_url
        )

        data = None
        if result.success:
            data = {
                "created": len(result.data),
                "books": [book.model_dump(mode="json") for book in result.data],
            }
        return command_response(result, data)

    except Exception as e:
        logger.exception("Unexpected error in import_books tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# DELETE BOOK TOOL
# =============================================================================


class DeleteBookInput(BaseModel):
    """Input schema for the delete_book tool."""

    book_id: int = Field(..., description="ID of the book to delete", ge=1, examples=[5])


@trace_tool("delete_book")
async def delete_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the delete_book tool. Books on loan cannot be deleted."""
    try:
        try:
            params = DeleteBookInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid delete_book parameters: %s", e)
            return invalid_arguments("delete_book", e)

        result = get_lending_service().delete_book(params.book_id)
        return command_response(
            result, {"book": result.data.model_dump(mode="json")} if result.success else None
        )

    except Exception as e:
        logger.exception("Unexpected error in delete_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# TOOL REGISTRATION
# =============================================================================

add_book = {
    "name": "add_book",
    "description": (
        "Add a book to the catalog. The book starts available. "
        "A placeholder cover is generated when no cover image URL is given."
    ),
    "inputSchema": AddBookInput.model_json_schema(),
    "handler": add_book_handler,
}

import_books = {
    "name": "import_books",
    "description": (
        "Add several books from text pasted out of a spreadsheet. Uses the client's "
        "LLM to read the text when available. Either every row is added or none."
    ),
    "inputSchema": ImportBooksInput.model_json_schema(),
    "handler": import_books_handler,
}

delete_book = {
    "name": "delete_book",
    "description": "Remove a book from the catalog. Fails while the book is on loan.",
    "inputSchema": DeleteBookInput.model_json_schema(),
    "handler": delete_book_handler,
}

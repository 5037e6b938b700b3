"""Book Resources - Library Catalog Access

Exposes the catalog as read-only resources. Clients use these to browse
books and check availability before borrowing.

Resources:
- library://books/list - Every book, newest first
- library://books/{book_id} - One book by id
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError
from pydantic import BaseModel, Field

from ..models.book import Book
from ..services import get_lending_service
from .uri_utils import parse_entity_id

logger = logging.getLogger(__name__)


class BookListResponse(BaseModel):
    """Response schema for the catalog listing."""

    books: list[Book] = Field(..., description="Every book, newest first")
    total: int = Field(..., description="Number of books in the catalog")
    available: int = Field(..., description="Books currently on the shelf")


async def list_books_handler() -> dict[str, Any]:
    """Returns the whole catalog.

    Client requests library://books/list to browse books. There is no
    pagination; a school catalog fits in one response.
    """
    try:
        logger.debug("MCP Resource Request - books/list")

        books = get_lending_service().list_books()
        response = BookListResponse(
            books=books,
            total=len(books),
            available=sum(1 for book in books if book.is_available),
        )
        return response.model_dump(mode="json")

    except Exception as e:
        logger.exception("Error in books/list resource")
        raise ResourceError(f"Failed to retrieve book list: {e!s}") from e


async def get_book_handler(book_id: str) -> dict[str, Any]:
    """Returns details for a specific book.

    Client requests library://books/{book_id} to check one book's
    availability.
    """
    try:
        logger.debug("MCP Resource Request - books/%s", book_id)

        book = get_lending_service().get_book(parse_entity_id(book_id, "book"))
        if book is None:
            raise ResourceError(f"Book not found: {book_id}")

        return book.model_dump(mode="json")

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in books/{book_id} resource")
        raise ResourceError(f"Failed to retrieve book details: {e!s}") from e


book_resources: list[dict[str, Any]] = [
    {
        "uri": "library://books/list",
        "name": "Book Catalog",
        "description": "Every book in the library, newest first, with availability.",
        "mime_type": "application/json",
        "handler": list_books_handler,
    },
    {
        "uri_template": "library://books/{book_id}",
        "name": "Book Details",
        "description": "Get one book by id, including whether it is on loan",
        "mime_type": "application/json",
        "handler": get_book_handler,
    },
]

"""
Plain HTTP/JSON API for the School Library MCP Server.

The same lending commands and queries the MCP tools and resources expose,
for clients that do not speak MCP (a web front end, curl). The routes are
mounted on the FastMCP server with ``custom_route`` and are served when the
server runs on the ``streamable_http`` transport; ``create_http_app`` builds
a standalone Starlette app with the same routes.

Request bodies are validated with the tools' input schemas. Lending failures
map to HTTP status codes by error kind:

    not_found                            -> 404
    unavailable, conflict, limit_exceeded -> 409
    validation_failure, parse_failure    -> 422

A body that is not a JSON object, or does not match the schema, is a 400.
"""

import functools
import json
import logging
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .config import get_config
from .importers import TabularTextImporter
from .models.results import CommandResult, ErrorKind
from .services import get_lending_service
from .tools.catalog import AddBookInput, ImportBooksInput
from .tools.circulation import BorrowBookInput, ReturnBookInput
from .tools.responses import placeholder_cover_url
from .tools.roster import AddStudentInput, ImportStudentsInput

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAVAILABLE: 409,
    ErrorKind.CONFLICT: 409,
    ErrorKind.LIMIT_EXCEEDED: 409,
    ErrorKind.VALIDATION_FAILURE: 422,
    ErrorKind.PARSE_FAILURE: 422,
}


class BadRequest(Exception):
    """Raised when a request body cannot be used."""


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse({"error": error, "message": message}, status_code=status_code)


async def _parse_body(request: Request, schema: type[BaseModel]) -> Any:
    """Decode and validate a JSON object body."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BadRequest(f"Request body is not valid JSON: {e}") from e

    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")

    try:
        return schema.model_validate(body)
    except ValidationError as e:
        raise BadRequest(str(e)) from e


def _result_response(result: CommandResult, success_status: int = 200) -> JSONResponse:
    if not result.success:
        kind = result.error or ErrorKind.VALIDATION_FAILURE
        return _error(ERROR_STATUS[kind], kind.value, result.message)
    return JSONResponse(
        {"message": result.message, "data": _dump(result.data)}, status_code=success_status
    )


def _json_route(func):
    """Turn ``BadRequest`` into 400 and unexpected errors into 500."""

    @functools.wraps(func)
    async def wrapper(request: Request) -> JSONResponse:
        try:
            return await func(request)
        except BadRequest as e:
            logger.warning("Bad request to %s %s: %s", request.method, request.url.path, e)
            return _error(400, "bad_request", str(e))
        except Exception as e:
            logger.exception("Unexpected error in %s %s", request.method, request.url.path)
            return _error(500, "internal_error", f"An unexpected error occurred: {e!s}")

    return wrapper


# =============================================================================
# QUERIES
# =============================================================================


@_json_route
async def list_books(request: Request) -> JSONResponse:
    """GET /books - every book, newest first."""
    return JSONResponse(_dump(get_lending_service().list_books()))


@_json_route
async def list_students(request: Request) -> JSONResponse:
    """GET /students - every student, newest first."""
    return JSONResponse(_dump(get_lending_service().list_students()))


@_json_route
async def list_records(request: Request) -> JSONResponse:
    """GET /records - every borrow record, oldest first."""
    return JSONResponse(_dump(get_lending_service().list_borrow_records()))


@_json_route
async def dashboard(request: Request) -> JSONResponse:
    """GET /dashboard - admin dashboard figures."""
    return JSONResponse(_dump(get_lending_service().get_dashboard_stats()))


@_json_route
async def overdue_loans(request: Request) -> JSONResponse:
    """GET /loans/overdue - overdue loans, earliest due date first."""
    return JSONResponse(_dump(get_lending_service().get_overdue_records()))


# =============================================================================
# COMMANDS
# =============================================================================


def _importer() -> TabularTextImporter:
    return TabularTextImporter(get_config().import_max_chars)


@_json_route
async def add_book(request: Request) -> JSONResponse:
    """POST /books {title, author, cover_image?}"""
    params = await _parse_body(request, AddBookInput)
    cover = params.cover_image.strip() or placeholder_cover_url(params.title)
    result = get_lending_service().add_book(params.title, params.author, cover)
    return _result_response(result, 201)


@_json_route
async def import_books(request: Request) -> JSONResponse:
    """POST /books/import {text} - tabular parse, all-or-nothing."""
    params = await _parse_body(request, ImportBooksInput)
    result = await get_lending_service().import_books(
        params.text, _importer(), default_cover=placeholder_cover_url
    )
    return _result_response(result, 201)


@_json_route
async def delete_book(request: Request) -> JSONResponse:
    """DELETE /books/{book_id}"""
    result = get_lending_service().delete_book(request.path_params["book_id"])
    return _result_response(result)


@_json_route
async def add_student(request: Request) -> JSONResponse:
    """POST /students {name}"""
    params = await _parse_body(request, AddStudentInput)
    return _result_response(get_lending_service().add_student(params.name), 201)


@_json_route
async def import_students(request: Request) -> JSONResponse:
    """POST /students/import {text}"""
    params = await _parse_body(request, ImportStudentsInput)
    result = await get_lending_service().import_students(params.text, _importer())
    return _result_response(result, 201)


@_json_route
async def delete_student(request: Request) -> JSONResponse:
    """DELETE /students/{student_id}"""
    result = get_lending_service().delete_student(request.path_params["student_id"])
    return _result_response(result)


@_json_route
async def borrow_book(request: Request) -> JSONResponse:
    """POST /loans/borrow {book_id, student_id, borrow_date?, due_date?}"""
    params = await _parse_body(request, BorrowBookInput)
    service = get_lending_service()
    borrow_date = params.borrow_date or service.today()
    due_date = params.due_date or borrow_date + timedelta(days=get_config().default_loan_days)
    result = service.borrow_book(params.book_id, params.student_id, borrow_date, due_date)
    return _result_response(result, 201)


@_json_route
async def return_book(request: Request) -> JSONResponse:
    """POST /loans/return {book_id, student_id}"""
    params = await _parse_body(request, ReturnBookInput)
    result = get_lending_service().return_book(params.book_id, params.student_id)
    return _result_response(result)


# =============================================================================
# REGISTRATION
# =============================================================================

# (path, methods, endpoint)
http_routes = [
    ("/books", ["GET"], list_books),
    ("/books", ["POST"], add_book),
    ("/books/import", ["POST"], import_books),
    ("/books/{book_id:int}", ["DELETE"], delete_book),
    ("/students", ["GET"], list_students),
    ("/students", ["POST"], add_student),
    ("/students/import", ["POST"], import_students),
    ("/students/{student_id:int}", ["DELETE"], delete_student),
    ("/records", ["GET"], list_records),
    ("/loans/borrow", ["POST"], borrow_book),
    ("/loans/return", ["POST"], return_book),
    ("/loans/overdue", ["GET"], overdue_loans),
    ("/dashboard", ["GET"], dashboard),
]


def register_http_routes(mcp) -> None:
    """Mount every route on a FastMCP server."""
    for path, methods, endpoint in http_routes:
        mcp.custom_route(path, methods=methods)(endpoint)
    logger.info("Registered %d HTTP routes", len(http_routes))


def create_http_app() -> Starlette:
    """A standalone Starlette app serving the same routes."""
    return Starlette(
        routes=[
            Route(path, endpoint, methods=methods) for path, methods, endpoint in http_routes
        ]
    )

"""
Roster tools for the School Library MCP Server.

1. add_student: Add one student
2. import_students: Bulk-add students from a pasted list of names
3. delete_student: Remove a student who has no books on loan
"""

import logging
from typing import Any

from fastmcp import Context
from pydantic import BaseModel, Field, ValidationError

from ..config import get_config
from ..importers import build_importer
from ..observability import trace_tool
from ..services import get_lending_service
from .responses import command_response, error_response, invalid_arguments

logger = logging.getLogger(__name__)


class AddStudentInput(BaseModel):
    """Input schema for the add_student tool."""

    name: str = Field(
        ...,
        description="Full name of the student",
        min_length=1,
        max_length=200,
        examples=["Emma Tran", "Liam O'Brien"],
    )


@trace_tool("add_student")
async def add_student_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the add_student tool."""
    try:
        try:
            params = AddStudentInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid add_student parameters: %s", e)
            return invalid_arguments("add_student", e)

        result = get_lending_service().add_student(params.name)
        return command_response(
            result, {"student": result.data.model_dump(mode="json")} if result.success else None
        )

    except Exception as e:
        logger.exception("Unexpected error in add_student tool")
        return error_response(f"An unexpected error occurred: {e!s}")


class ImportStudentsInput(BaseModel):
    """Input schema for the import_students tool."""

    text: str = Field(
        ...,
        description="Student names copied from a spreadsheet, one per line",
        min_length=1,
        examples=["Emma Tran\nLiam O'Brien\nNoah Kim"],
    )


@trace_tool("import_students")
async def import_students_handler(arguments: dict[str, Any], ctx: Context) -> dict[str, Any]:
    """Handler for the import_students tool. All-or-nothing like import_books."""
    try:
        try:
            params = ImportStudentsInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid import_students parameters: %s", e)
            return invalid_arguments("import_students", e)

        config = get_config()
        importer = build_importer(ctx, config.enable_sampling, config.import_max_chars)
        result = await get_lending_service().import_students(params.text, importer)

        data = None
        if result.success:
            data = {
                "created": len(result.data),
                "students": [student.model_dump(mode="json") for student in result.data],
            }
        return command_response(result, data)

    except Exception as e:
        logger.exception("Unexpected error in import_students tool")
        return error_response(f"An unexpected error occurred: {e!s}")


class DeleteStudentInput(BaseModel):
    """Input schema for the delete_student tool."""

    student_id: int = Field(..., description="ID of the student to remove", ge=1, examples=[4])


@trace_tool("delete_student")
async def delete_student_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the delete_student tool."""
    try:
        try:
            params = DeleteStudentInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid delete_student parameters: %s", e)
            return invalid_arguments("delete_student", e)

        result = get_lending_service().delete_student(params.student_id)
        return command_response(
            result, {"student": result.data.model_dump(mode="json")} if result.success else None
        )

    except Exception as e:
        logger.exception("Unexpected error in delete_student tool")
        return error_response(f"An unexpected error occurred: {e!s}")


add_student = {
    "name": "add_student",
    "description": "Add a student to the library roster.",
    "inputSchema": AddStudentInput.model_json_schema(),
    "handler": add_student_handler,
}

import_students = {
    "name": "import_students",
    "description": (
        "Add several students from a pasted list of names. Uses the client's LLM to "
        "read the text when available. Either every name is added or none."
    ),
    "inputSchema": ImportStudentsInput.model_json_schema(),
    "handler": import_students_handler,
}

delete_student = {
    "name": "delete_student",
    "description": "Remove a student from the roster. Fails while they have books on loan.",
    "inputSchema": DeleteStudentInput.model_json_schema(),
    "handler": delete_student_handler,
}

"""Student Resources - Roster and Student Portal

Resources:
- library://students/list - Every student, newest first
- library://students/{student_id} - One student by id
- library://students/{student_id}/loans - The student's open loans, with
  overdue flags (what a student sees in their portal)
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError
from pydantic import BaseModel, Field

from ..models.reports import StudentLoan
from ..models.student import Student
from ..services import get_lending_service
from .uri_utils import parse_entity_id

logger = logging.getLogger(__name__)


class StudentListResponse(BaseModel):
    students: list[Student] = Field(..., description="Every student, newest first")
    total: int = Field(..., description="Number of students on the roster")


class StudentLoansResponse(BaseModel):
    """A student's current loans."""

    student: Student
    loans: list[StudentLoan] = Field(..., description="Open loans, oldest first")
    overdue_count: int = Field(..., description="How many of the loans are overdue")


async def list_students_handler() -> dict[str, Any]:
    """Returns the whole roster."""
    try:
        logger.debug("MCP Resource Request - students/list")

        students = get_lending_service().list_students()
        return StudentListResponse(students=students, total=len(students)).model_dump(mode="json")

    except Exception as e:
        logger.exception("Error in students/list resource")
        raise ResourceError(f"Failed to retrieve student list: {e!s}") from e


async def get_student_handler(student_id: str) -> dict[str, Any]:
    """Returns one student."""
    try:
        logger.debug("MCP Resource Request - students/%s", student_id)

        student = get_lending_service().get_student(parse_entity_id(student_id, "student"))
        if student is None:
            raise ResourceError(f"Student not found: {student_id}")

        return student.model_dump(mode="json")

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in students/{student_id} resource")
        raise ResourceError(f"Failed to retrieve student details: {e!s}") from e


async def get_student_loans_handler(student_id: str) -> dict[str, Any]:
    """Returns the books a student currently has out.

    Each loan carries ``is_overdue`` and ``days_overdue`` computed against
    today's date, so a client can flag late books without date arithmetic.
    """
    try:
        logger.debug("MCP Resource Request - students/%s/loans", student_id)

        found = get_lending_service().get_student_loans(parse_entity_id(student_id, "student"))
        if found is None:
            raise ResourceError(f"Student not found: {student_id}")

        student, loans = found

        response = StudentLoansResponse(
            student=student,
            loans=loans,
            overdue_count=sum(1 for loan in loans if loan.is_overdue),
        )
        return response.model_dump(mode="json")

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in students/{student_id}/loans resource")
        raise ResourceError(f"Failed to retrieve student loans: {e!s}") from e


student_resources: list[dict[str, Any]] = [
    {
        "uri": "library://students/list",
        "name": "Student Roster",
        "description": "Every student on the roster, newest first.",
        "mime_type": "application/json",
        "handler": list_students_handler,
    },
    {
        "uri_template": "library://students/{student_id}",
        "name": "Student Details",
        "description": "Get one student by id",
        "mime_type": "application/json",
        "handler": get_student_handler,
    },
    {
        "uri_template": "library://students/{student_id}/loans",
        "name": "Student Loans",
        "description": (
            "Books a student currently has on loan, with due dates and overdue flags"
        ),
        "mime_type": "application/json",
        "handler": get_student_loans_handler,
    },
]

"""
Student repository for the School Library MCP Server.

Roster reads for the student resources and the create/delete side of the
roster tools.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.student import Student, StudentCandidate
from .repository import ConflictError, NotFoundError, front_position
from .schema import BorrowRecord as BorrowRecordDB
from .schema import Student as StudentDB
from .session import IdSequence

logger = logging.getLogger(__name__)


class StudentRepository:
    """Repository for the student roster, listed newest-first."""

    def __init__(self, session: Session, ids: IdSequence | None = None):
        self.session = session
        self.ids = ids

    def _to_model(self, row: StudentDB) -> Student:
        return Student.model_validate(row, from_attributes=True)

    def get_by_id(self, student_id: int) -> Student | None:
        row = self.session.get(StudentDB, student_id)
        return self._to_model(row) if row else None

    def exists(self, student_id: int) -> bool:
        return self.session.get(StudentDB, student_id) is not None

    def list_all(self) -> list[Student]:
        rows = self.session.execute(
            select(StudentDB).order_by(StudentDB.position, StudentDB.id)
        ).scalars()
        return [self._to_model(row) for row in rows]

    def names_by_id(self) -> dict[int, str]:
        """Map of every student id to their name, for joining against records."""
        return dict(self.session.execute(select(StudentDB.id, StudentDB.name)).all())

    def create(self, candidate: StudentCandidate) -> Student:
        """Add a student to the front of the roster with the next id."""
        if self.ids is None:
            raise RuntimeError("StudentRepository.create requires an id sequence")

        row = StudentDB(
            id=self.ids.allocate(),
            name=candidate.name,
            position=front_position(self.session, StudentDB),
        )
        self.session.add(row)
        self.session.flush()

        logger.debug("Created student %d: %s", row.id, row.name)
        return self._to_model(row)

    def has_open_record(self, student_id: int) -> bool:
        """True if the student has any unreturned book."""
        stmt = select(BorrowRecordDB.id).where(
            BorrowRecordDB.student_id == student_id,
            BorrowRecordDB.return_date.is_(None),
        )
        return self.session.execute(stmt.limit(1)).first() is not None

    def delete(self, student_id: int) -> Student:
        """
        Remove a student from the roster.

        Raises:
            NotFoundError: If the student does not exist
            ConflictError: If the student still has books on loan
        """
        row = self.session.get(StudentDB, student_id)
        if row is None:
            raise NotFoundError(f"Student {student_id} not found")

        if self.has_open_record(student_id):
            raise ConflictError(f"Cannot delete '{row.name}': the student has active loans")

        deleted = self._to_model(row)
        self.session.delete(row)
        self.session.flush()
        return deleted

"""
Student model for the School Library MCP Server.

Students are the borrowers. They are exposed via:
- library://students/list
- library://students/{student_id}
- library://students/{student_id}/loans
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Student(BaseModel):
    """Represents a student on the library roster."""

    id: int = Field(
        ...,
        description="Unique identifier allocated when the student is added",
        ge=1,
        examples=[1, 7],
    )

    name: str = Field(
        ...,
        description="Full name of the student",
        min_length=1,
        max_length=200,
        examples=["Alice", "Bob Nguyen"],
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank names."""
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": {"id": 1, "name": "Alice"}},
    )


class StudentCandidate(BaseModel):
    """A student proposed for creation, typically by a text importer."""

    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

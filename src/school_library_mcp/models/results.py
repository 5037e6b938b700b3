"""
Command results for the School Library MCP Server.

Lending commands never raise for business-rule violations. They return a
``CommandResult`` carrying a success flag, a human-readable message and, on
failure, the kind of error so protocol layers can map it (an MCP ``isError``
response, an HTTP status code).
"""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataType = TypeVar("DataType")


class ErrorKind(str, Enum):
    """Failure categories of the lending domain."""

    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    CONFLICT = "conflict"
    LIMIT_EXCEEDED = "limit_exceeded"
    VALIDATION_FAILURE = "validation_failure"
    PARSE_FAILURE = "parse_failure"


class CommandResult(BaseModel, Generic[DataType]):
    """Outcome of a lending command."""

    success: bool = Field(..., description="Whether the command took effect")
    message: str = Field(..., description="Human-readable outcome")
    error: ErrorKind | None = Field(
        default=None, description="Failure category when success is false"
    )
    data: DataType | None = Field(
        default=None, description="Created or updated entity on success"
    )

    @classmethod
    def ok(cls, message: str, data: DataType | None = None) -> "CommandResult[DataType]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "CommandResult[DataType]":
        return cls(success=False, message=message, error=error)

"""
Shared response helpers for the School Library MCP tools.

MCP RESPONSE FORMAT:
Every tool returns a dict with human-readable ``content`` for the LLM and,
on success, structured ``data`` for follow-up actions. Failures set
``isError`` so clients can tell a rejected command from a successful one.
"""

import re
from typing import Any

from pydantic import ValidationError

from ..config import get_config
from ..models.results import CommandResult

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def text_content(text: str) -> list[dict[str, str]]:
    return [{"type": "text", "text": text}]


def error_response(text: str, error: str | None = None) -> dict[str, Any]:
    """An ``isError`` response, optionally tagged with the error kind."""
    response: dict[str, Any] = {"isError": True, "content": text_content(text)}
    if error is not None:
        response["data"] = {"error": error}
    return response


def invalid_arguments(tool_name: str, exc: ValidationError) -> dict[str, Any]:
    """Response for arguments that fail the tool's input schema."""
    return error_response(f"Invalid {tool_name} parameters: {exc}", "invalid_arguments")


def command_response(result: CommandResult, data: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Turn a lending command result into a tool response.

    Args:
        result: Outcome of the lending command
        data: Structured payload for a successful result
    """
    if not result.success:
        return error_response(result.message, result.error.value if result.error else None)
    return {"content": text_content(result.message), "data": data or {}}


def title_slug(title: str) -> str:
    """Lowercase, dash-separated form of a title; ``book`` if nothing is left."""
    return _NON_SLUG.sub("-", title.lower()).strip("-") or "book"


def placeholder_cover_url(title: str) -> str:
    """Placeholder cover for a book added without one."""
    return get_config().placeholder_cover_url.format(seed=title_slug(title))

"""
Text importers: turn pasted spreadsheet text into book or student candidates.

Two implementations of ``TextImportAdapter``:

- ``SamplingTextImporter`` asks the connected MCP client's LLM to extract a
  JSON array. Clients without the sampling capability are served by its
  fallback importer instead.
- ``TabularTextImporter`` is deterministic: one record per line, columns split
  on tabs, semicolons, `` - `` or commas. Used as the sampling fallback and by
  the HTTP API, which has no client LLM to ask.

Both raise ``ParseFailure`` when the text cannot be interpreted. Candidates
are only proposals; the lending service validates and creates them.
"""

import json
import logging
import re
from typing import Protocol

from fastmcp import Context
from pydantic import TypeAdapter, ValidationError

from ..models.book import BookCandidate
from ..models.student import StudentCandidate
from ..sampling import client_supports_sampling, request_ai_generation

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 20000

_BOOK_LIST = TypeAdapter(list[BookCandidate])
_STUDENT_LIST = TypeAdapter(list[StudentCandidate])


class ParseFailure(Exception):
    """Raised when import text cannot be turned into candidates."""


class TextImportAdapter(Protocol):
    """Anything that can parse pasted text into candidates."""

    async def parse_books(self, text: str) -> list[BookCandidate]: ...

    async def parse_students(self, text: str) -> list[StudentCandidate]: ...


def check_import_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """
    Reject empty or oversized import text.

    Returns:
        The text with surrounding whitespace removed

    Raises:
        ParseFailure: If nothing is left after stripping, or the text is
            longer than ``max_chars``
    """
    stripped = (text or "").strip()
    if not stripped:
        raise ParseFailure("Import text is empty")
    if len(stripped) > max_chars:
        raise ParseFailure(
            f"Import text is {len(stripped)} characters long; the limit is {max_chars}"
        )
    return stripped


def _describe_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


# =============================================================================
# DETERMINISTIC IMPORTER
# =============================================================================

_BOOK_SEPARATORS = ("\t", ";", " - ", ",")
_STUDENT_SEPARATORS = ("\t", ";", ",")
_BY_PATTERN = re.compile(r"^(?P<title>.+)\s+by\s+(?P<author>.+)$", re.IGNORECASE)
_STUDENT_HEADERS = {"name", "names", "student", "students", "student name", "full name"}


def _split_columns(line: str, separators: tuple[str, ...]) -> list[str]:
    """Split on the first separator present in the line."""
    for separator in separators:
        if separator in line:
            return [cell.strip() for cell in line.split(separator)]
    return [line.strip()]


class TabularTextImporter:
    """
    Line-based importer for text copied out of a spreadsheet.

    Books: ``title<sep>author[<sep>cover url]`` or ``Title by Author``.
    Students: one name per line; in multi-column rows the first cell that is
    not a bare number is the name, so an id column is ignored.
    A header row (containing ``title``/``author`` or ``name``) is skipped.
    """

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS):
        self.max_chars = max_chars

    def _lines(self, text: str) -> list[tuple[int, str]]:
        stripped = check_import_text(text, self.max_chars)
        return [
            (number, line.strip())
            for number, line in enumerate(stripped.splitlines(), start=1)
            if line.strip()
        ]

    async def parse_books(self, text: str) -> list[BookCandidate]:
        candidates = []
        for index, (number, line) in enumerate(self._lines(text)):
            cells = [cell for cell in _split_columns(line, _BOOK_SEPARATORS) if cell]
            lowered = [cell.lower() for cell in cells]
            if index == 0 and "title" in lowered and "author" in lowered:
                continue

            if len(cells) >= 2:
                title, author = cells[0], cells[1]
                cover = cells[2] if len(cells) > 2 and cells[2].startswith("http") else ""
            else:
                match = _BY_PATTERN.match(line)
                if match is None:
                    raise ParseFailure(f"Line {number}: expected a title and an author: {line!r}")
                title, author, cover = match["title"], match["author"], ""

            try:
                candidates.append(BookCandidate(title=title, author=author, cover_image=cover))
            except ValidationError as e:
                raise ParseFailure(f"Line {number}: {_describe_error(e)}") from e

        if not candidates:
            raise ParseFailure("No books found in the import text")

        logger.debug("Parsed %d book candidates from text", len(candidates))
        return candidates

    async def parse_students(self, text: str) -> list[StudentCandidate]:
        candidates = []
        for index, (number, line) in enumerate(self._lines(text)):
            cells = [cell for cell in _split_columns(line, _STUDENT_SEPARATORS) if cell]
            if index == 0 and any(cell.lower() in _STUDENT_HEADERS for cell in cells):
                continue

            names = [cell for cell in cells if not cell.isdigit()]
            if not names:
                raise ParseFailure(f"Line {number}: no student name found: {line!r}")

            try:
                candidates.append(StudentCandidate(name=names[0]))
            except ValidationError as e:
                raise ParseFailure(f"Line {number}: {_describe_error(e)}") from e

        if not candidates:
            raise ParseFailure("No students found in the import text")

        logger.debug("Parsed %d student candidates from text", len(candidates))
        return candidates


# =============================================================================
# SAMPLING IMPORTER
# =============================================================================

IMPORT_SYSTEM_PROMPT = """You convert text copied from a spreadsheet into JSON.
Reply with a single JSON array and nothing else: no prose, no markdown."""

BOOKS_PROMPT = """Parse the following text, copied from a spreadsheet, into a JSON array of
book objects.
Each object must have the properties "title" (string) and "author" (string).
Based on the title, also produce a plausible "coverImage" URL from picsum.photos.

Text:

{text}"""

STUDENTS_PROMPT = """Parse the following text into a JSON array of student objects.
Each object must have the property "name" (string).

Text:

{text}"""

_FENCE_PATTERN = re.compile(r"^```[a-zA-Z]*\s*(?P<body>.*?)\s*```$", re.DOTALL)


def extract_json_array(response: str) -> list:
    """
    Decode the JSON array in an LLM response, tolerating a code fence.

    Raises:
        ParseFailure: If the response is not a JSON array
    """
    body = response.strip()
    fenced = _FENCE_PATTERN.match(body)
    if fenced:
        body = fenced["body"]

    try:
        decoded = json.loads(body)
    except json.JSONDecodeError as e:
        raise ParseFailure(f"The model did not return valid JSON: {e.msg}") from e

    if not isinstance(decoded, list):
        raise ParseFailure("The model returned JSON that is not an array")
    return decoded


class SamplingTextImporter:
    """
    Importer that delegates extraction to the client's LLM via MCP sampling.

    Args:
        context: FastMCP context of the current tool call
        fallback: Importer used when the client cannot sample; without one
            such clients get a ``ParseFailure``
        max_chars: Longest accepted import text
    """

    def __init__(
        self,
        context: Context,
        fallback: TextImportAdapter | None = None,
        max_chars: int = DEFAULT_MAX_CHARS,
    ):
        self.context = context
        self.fallback = fallback if fallback is not None else TabularTextImporter(max_chars)
        self.max_chars = max_chars

    async def _sample(self, prompt: str) -> list:
        response = await request_ai_generation(
            context=self.context,
            prompt=prompt,
            system_prompt=IMPORT_SYSTEM_PROMPT,
        )
        if response is None:
            raise ParseFailure("The client did not return a sampling response")
        return extract_json_array(response)

    async def parse_books(self, text: str) -> list[BookCandidate]:
        stripped = check_import_text(text, self.max_chars)
        if not client_supports_sampling(self.context):
            logger.info("Client cannot sample; parsing books with %s", type(self.fallback).__name__)
            return await self.fallback.parse_books(stripped)

        items = await self._sample(BOOKS_PROMPT.format(text=stripped))
        try:
            candidates = _BOOK_LIST.validate_python(items)
        except ValidationError as e:
            raise ParseFailure(f"Unexpected book data from the model: {_describe_error(e)}") from e

        if not candidates:
            raise ParseFailure("No books found in the import text")
        return candidates

    async def parse_students(self, text: str) -> list[StudentCandidate]:
        stripped = check_import_text(text, self.max_chars)
        if not client_supports_sampling(self.context):
            logger.info(
                "Client cannot sample; parsing students with %s", type(self.fallback).__name__
            )
            return await self.fallback.parse_students(stripped)

        items = await self._sample(STUDENTS_PROMPT.format(text=stripped))
        try:
            candidates = _STUDENT_LIST.validate_python(items)
        except ValidationError as e:
            raise ParseFailure(
                f"Unexpected student data from the model: {_describe_error(e)}"
            ) from e

        if not candidates:
            raise ParseFailure("No students found in the import text")
        return candidates


def build_importer(
    context: Context | None, enable_sampling: bool = True, max_chars: int = DEFAULT_MAX_CHARS
) -> TextImportAdapter:
    """The sampling importer when enabled and a context exists, else the tabular one."""
    tabular = TabularTextImporter(max_chars)
    if enable_sampling and context is not None:
        return SamplingTextImporter(context, fallback=tabular, max_chars=max_chars)
    return tabular

"""URI helpers for the library:// resource templates.

Template parameters arrive as strings (``library://books/{book_id}`` gives
``book_id="2"``); entity ids must be positive integers.
"""

from fastmcp.exceptions import ResourceError


def parse_entity_id(value: str | int, kind: str) -> int:
    """
    Convert a URI path segment to an entity id.

    Args:
        value: The raw path parameter
        kind: Entity name for the error message, e.g. "book"

    Raises:
        ResourceError: If the value is not a positive integer
    """
    try:
        entity_id = int(str(value).strip())
    except ValueError:
        raise ResourceError(f"Invalid {kind} id: {value!r}") from None

    if entity_id < 1:
        raise ResourceError(f"Invalid {kind} id: {value!r}")
    return entity_id

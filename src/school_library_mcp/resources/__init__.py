"""School Library MCP Resources Package

Resources are the read side of the library: catalog, roster, lending
history and the dashboard. Every change goes through a tool instead.

Each resource is a dict with a ``uri`` (or ``uri_template`` for
parameterised URIs), a name, a description, a MIME type and an async
handler returning JSON-ready data.
"""

from .books import book_resources
from .records import record_resources
from .stats import stats_resources
from .students import student_resources

# Combine all resources
all_resources = book_resources + student_resources + record_resources + stats_resources

__all__ = [
    "all_resources",
    "book_resources",
    "record_resources",
    "stats_resources",
    "student_resources",
]

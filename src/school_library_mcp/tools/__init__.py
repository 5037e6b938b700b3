"""
MCP Tools for the School Library Server.

Tools are the commands of the library: they add and delete books and
students and move books on and off loan. Reads go through resources.

Each tool is a dict with its name, description, JSON input schema and
async handler. Handlers validate their ``arguments`` with Pydantic, delegate
to the lending service and return ``content``/``data``, or ``isError`` when
the command was rejected.
"""

from .catalog import add_book, delete_book, import_books
from .circulation import borrow_book, return_book
from .roster import add_student, delete_student, import_students

# Export all tools for server registration
all_tools = [
    add_book,
    import_books,
    delete_book,
    add_student,
    import_students,
    delete_student,
    borrow_book,
    return_book,
]

__all__ = [
    "add_book",
    "add_student",
    "all_tools",
    "borrow_book",
    "delete_book",
    "delete_student",
    "import_books",
    "import_students",
    "return_book",
]

"""
School Library MCP Server Package.

An MCP (Model Context Protocol) server for a school library's lending desk.

Key Components:
- models: Pydantic models for books, students, borrow records and reports
- database: the in-memory SQLAlchemy store and repositories
- services: the lending service enforcing the borrow/return rules
- importers: text importers for bulk-adding books and students
- resources: MCP resources (read-only endpoints)
- tools: MCP tools (commands)
- http_api: the same operations as plain HTTP/JSON
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]

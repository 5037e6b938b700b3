"""Test configuration and fixtures for the School Library MCP Server.

Each test gets its own in-memory store, so tests never see each other's
books, students or loans. The lending service runs with a pinned clock
(2024-06-01) so overdue checks against the demo data are deterministic:
on that date all four open demo loans are overdue.
"""

import os
from collections.abc import Generator
from datetime import date
from unittest.mock import AsyncMock, Mock

import logfire
import pytest
from mcp.types import CreateMessageResult, TextContent

from school_library_mcp.config import ServerConfig, reset_config
from school_library_mcp.database.session import DatabaseManager
from school_library_mcp.importers import ParseFailure
from school_library_mcp.models import BookCandidate, StudentCandidate
from school_library_mcp.services import (
    LendingService,
    reset_lending_service,
    set_lending_service,
)

TODAY = date(2024, 6, 1)


# === Pytest Configuration ===


def pytest_configure(config):
    """Keep logfire spans local and quiet during tests."""
    logfire.configure(send_to_logfire=False, console=False)


# === Store Fixtures ===


@pytest.fixture
def db_manager() -> Generator[DatabaseManager, None, None]:
    """An empty in-memory store."""
    manager = DatabaseManager("sqlite://")
    manager.init_database(seed_demo_data=False)
    yield manager
    manager.close()


@pytest.fixture
def seeded_db_manager() -> Generator[DatabaseManager, None, None]:
    """An in-memory store holding the demo books, students and loans."""
    manager = DatabaseManager("sqlite://")
    manager.init_database(seed_demo_data=True)
    yield manager
    manager.close()


# === Service Fixtures ===


@pytest.fixture
def service(db_manager: DatabaseManager) -> LendingService:
    """Lending service over an empty store with the clock pinned to TODAY."""
    return LendingService(db_manager, today=lambda: TODAY)


@pytest.fixture
def seeded_service(seeded_db_manager: DatabaseManager) -> LendingService:
    """Lending service over the demo data with the clock pinned to TODAY."""
    return LendingService(seeded_db_manager, today=lambda: TODAY)


@pytest.fixture
def installed_service(seeded_service: LendingService) -> Generator[LendingService, None, None]:
    """Install the seeded service as the one tools, resources and routes use."""
    set_lending_service(seeded_service)
    yield seeded_service
    reset_lending_service()


# === Configuration Fixtures ===


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Provide an environment without SCHOOL_LIBRARY_* variables."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("SCHOOL_LIBRARY_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def test_config(clean_env) -> Generator[ServerConfig, None, None]:
    """A configuration that ignores any .env file in the working directory."""
    reset_config()
    config = ServerConfig(_env_file=None, server_name="test-school-library", debug=True)
    yield config
    reset_config()


# === Importer Fixtures ===


class StubImporter:
    """Importer returning canned candidates, or raising ParseFailure."""

    def __init__(self, books=None, students=None, error: str | None = None):
        self.books = books or []
        self.students = students or []
        self.error = error
        self.calls: list[str] = []

    async def parse_books(self, text: str) -> list[BookCandidate]:
        self.calls.append(text)
        if self.error:
            raise ParseFailure(self.error)
        return list(self.books)

    async def parse_students(self, text: str) -> list[StudentCandidate]:
        self.calls.append(text)
        if self.error:
            raise ParseFailure(self.error)
        return list(self.students)


@pytest.fixture
def stub_importer_factory():
    return StubImporter


def make_sampling_context(sampling: bool = True, response_text: str | None = None) -> Mock:
    """A mock FastMCP context whose client may or may not support sampling."""
    context = Mock()
    context.request_context.session.client_capabilities.sampling = sampling
    if response_text is not None:
        context.request_context.session.create_message = AsyncMock(
            return_value=CreateMessageResult(
                role="assistant",
                content=TextContent(type="text", text=response_text),
                model="test-model",
                stopReason="endTurn",
            )
        )
    else:
        context.request_context.session.create_message = AsyncMock(
            side_effect=AssertionError("sampling should not be requested")
        )
    return context


@pytest.fixture
def sampling_context_factory():
    return make_sampling_context


# === Cleanup Fixtures ===


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Reset the process-wide configuration and service after each test."""
    yield
    reset_config()
    reset_lending_service()

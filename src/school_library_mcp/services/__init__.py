"""
Services package for the School Library MCP Server.

The MCP handlers and HTTP routes share one process-wide ``LendingService``.
It is built lazily from ``get_config()`` on first use; tests install their
own with ``set_lending_service``.
"""

from ..config import get_config
from ..database.session import get_db_manager
from .lending_service import LendingService

_lending_service: LendingService | None = None


def get_lending_service() -> LendingService:
    """Get the process-wide lending service, initialising the store on first call."""
    global _lending_service  # noqa: PLW0603 - Singleton pattern for the service

    if _lending_service is None:
        config = get_config()
        db = get_db_manager(config.database_url)
        db.init_database(seed_demo_data=config.seed_demo_data)
        _lending_service = LendingService.from_config(config, db)

    return _lending_service


def set_lending_service(service: LendingService) -> None:
    """Install a specific service (useful for testing)."""
    global _lending_service  # noqa: PLW0603
    _lending_service = service


def reset_lending_service() -> None:
    """Forget the process-wide service."""
    global _lending_service  # noqa: PLW0603
    _lending_service = None


__all__ = [
    "LendingService",
    "get_lending_service",
    "reset_lending_service",
    "set_lending_service",
]

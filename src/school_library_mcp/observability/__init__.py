"""Logfire observability for the School Library MCP Server."""

import logging

import logfire

from ..config import ServerConfig
from .decorators import trace_tool
from .middleware import MCPInstrumentationMiddleware

logger = logging.getLogger(__name__)


def initialize_observability(config: ServerConfig) -> None:
    """
    Configure logfire from the server configuration.

    Spans are only exported when a logfire token is configured; without one
    they are created and dropped, so the decorators cost next to nothing.
    """
    logfire.configure(
        token=config.logfire_token,
        service_name=config.server_name,
        service_version=config.server_version,
        environment=config.environment,
        send_to_logfire="if-token-present",
        console=None if config.logfire_console else False,
    )

    if config.environment == "production":
        logfire.instrument_system_metrics()

    logger.debug(
        "Observability configured (environment=%s, export=%s)",
        config.environment,
        bool(config.logfire_token),
    )


__all__ = [
    "MCPInstrumentationMiddleware",
    "initialize_observability",
    "trace_tool",
]

"""School Library MCP Server - FastMCP Implementation

A lending server for a school library: a catalog of books, a roster of
students, and borrow/return transactions with an admin dashboard.

Features exposed:
- Resources: catalog, roster, lending history, dashboard, overdue loans,
  each student's current loans
- Tools: add/import/delete books and students, borrow and return books
- HTTP routes: the same operations as plain JSON, on the streamable HTTP
  transport

Clients connect over stdio by default; set SCHOOL_LIBRARY_TRANSPORT to
``streamable_http`` to serve MCP and the HTTP routes on one port.
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import ServerConfig, get_config
from .http_api import register_http_routes
from .observability import MCPInstrumentationMiddleware, initialize_observability
from .resources import all_resources
from .tools import all_tools

# Initialize logging - stderr for logs, stdout for MCP protocol
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "School Library MCP Server - manages a school library's books, students and "
    "loans. Read library://books/list and library://students/list to find ids, "
    "library://stats/dashboard for an overview and library://loans/overdue for late "
    "books. Use the borrow_book and return_book tools to lend books, and the "
    "add/import/delete tools to maintain the catalog and roster."
)


def create_server(config: ServerConfig) -> FastMCP:
    """
    Build the FastMCP server with every resource, tool and HTTP route.

    The lending store is created lazily by the first handler that needs it.
    """
    mcp = FastMCP(
        name=config.server_name,
        version=config.server_version,
        instructions=INSTRUCTIONS,
    )

    mcp.add_middleware(MCPInstrumentationMiddleware())

    for resource in all_resources:
        uri = resource.get("uri_template", resource.get("uri"))
        if not uri:
            logger.error("Resource missing URI: %s", resource)
            continue

        logger.debug("Registering resource: %s with URI: %s", resource["name"], uri)
        try:
            mcp.resource(
                uri=uri,
                name=resource["name"],
                description=resource["description"],
                mime_type=resource["mime_type"],
            )(resource["handler"])
        except Exception:
            logger.exception("Failed to register resource %s", resource["name"])
            raise

    logger.info("Registered %d resources", len(all_resources))

    for tool in all_tools:
        logger.debug("Registering tool: %s", tool["name"])
        try:
            mcp.tool(
                name=tool["name"],
                description=tool["description"],
            )(tool["handler"])
        except Exception:
            logger.exception("Failed to register tool %s", tool["name"])
            raise

    logger.info("Registered %d tools", len(all_tools))

    register_http_routes(mcp)

    return mcp


# Load configuration
config = get_config()

# Create the FastMCP server instance
mcp = create_server(config)


def _configure_logging() -> None:
    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose protocol logging active")
    else:
        logging.getLogger().setLevel(config.log_level)
        logging.getLogger("fastmcp").setLevel(logging.WARNING)


def run_server() -> None:
    """Run the MCP server on the configured transport.

    stdio: stdin receives JSON-RPC requests, stdout sends responses.
    streamable_http: MCP at /mcp plus the JSON routes on the same port.
    """

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        if config.transport == "stdio":
            logger.info("Starting %s v%s on stdio", config.server_name, config.server_version)
            mcp.run(transport="stdio")
        else:
            logger.info(
                "Starting %s v%s on http://%s:%d",
                config.server_name,
                config.server_version,
                config.http_host,
                config.http_port,
            )
            mcp.run(transport="streamable-http", host=config.http_host, port=config.http_port)
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)


def main() -> None:
    """Main entry point for the MCP server."""
    try:
        _configure_logging()
        initialize_observability(config)

        logger.info("=" * 60)
        logger.info("School Library MCP Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Demo data: %s", config.seed_demo_data)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        run_server()

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()

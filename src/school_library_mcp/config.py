"""Configuration management for the School Library MCP Server.

Settings are read from the environment (prefix ``SCHOOL_LIBRARY_``) and an
optional ``.env`` file, validated with Pydantic v2. The lending policy
limits live here too so deployments can tune them without code changes.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """MCP server configuration.

    Groups server metadata for the protocol handshake, transport settings,
    the in-memory store, lending policy and observability.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHOOL_LIBRARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata (Required by MCP Protocol) ===

    server_name: str = Field(
        default="school-library",
        description="MCP server name used in protocol handshake",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Server version for capability negotiation",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    # === Transport Configuration ===

    transport: str = Field(
        default="stdio",
        description="Primary transport mechanism",
        pattern=r"^(stdio|streamable_http)$",
    )

    http_host: str = Field(
        default="127.0.0.1",
        description="HTTP server host for Streamable HTTP transport",
    )

    http_port: int = Field(
        default=8080,
        description="HTTP server port for Streamable HTTP transport",
        ge=1024,
        le=65535,
    )

    # === Store Configuration ===

    database_url: str = Field(
        default="sqlite://",
        description="SQLAlchemy URL of the lending store (in-memory by default)",
    )

    seed_demo_data: bool = Field(
        default=True,
        description="Load the sample catalog, roster and loans at startup",
    )

    # === Lending Policy ===

    max_overdue_loans: int = Field(
        default=5,
        description="Students holding this many overdue books cannot borrow",
        ge=1,
    )

    max_loan_span_days: int = Field(
        default=730,
        description="Longest allowed span between borrow date and due date",
        ge=1,
    )

    default_loan_days: int = Field(
        default=14,
        description="Loan period used when a borrow request omits the due date",
        ge=1,
    )

    placeholder_cover_url: str = Field(
        default="https://picsum.photos/seed/{seed}/300/400",
        description="Cover image used when a book is added without one",
    )

    # === Text Import ===

    enable_sampling: bool = Field(
        default=True,
        description="Use the client's LLM (MCP sampling) to parse pasted text",
    )

    import_max_chars: int = Field(
        default=20000,
        description="Largest block of pasted text accepted by the importers",
        ge=100,
    )

    # === Development / Observability ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging for protocol messages",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    environment: str = Field(
        default="development",
        description="Deployment environment reported to logfire",
    )

    logfire_token: str | None = Field(
        default=None,
        description="Logfire write token; spans stay local when unset",
        repr=False,
    )

    logfire_console: bool = Field(
        default=False,
        description="Print logfire spans to the console",
    )

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        """Validate server name length for client identification."""
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    @field_validator("placeholder_cover_url")
    @classmethod
    def validate_placeholder_cover_url(cls, v: str) -> str:
        """The placeholder must be an http(s) URL with a ``{seed}`` slot."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Placeholder cover URL must be an http(s) URL")
        if "{seed}" not in v:
            raise ValueError("Placeholder cover URL must contain a {seed} placeholder")
        return v

    @field_validator("http_port")
    @classmethod
    def validate_http_port(cls, v: int) -> int:
        reserved_ports = {3306, 5432}
        if v in reserved_ports:
            raise ValueError(f"Port {v} is commonly reserved, choose another")
        return v

    # === Computed Properties ===

    @property
    def server_info(self) -> dict[str, str]:
        """Server information sent during the MCP handshake."""
        return {
            "name": self.server_name,
            "version": self.server_version,
            "transport": self.transport,
        }


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = ServerConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]

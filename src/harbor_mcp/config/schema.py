"""Settings model for the Harbor MCP server.

Sections:
- Registry connection (url, credentials, TLS, timeout, page size) at the top level
- [server]: MCP transport and listen address
- [logging]: log level, format, file output and the tool audit log

Every field can be set from the environment as HARBOR_<FIELD>, nested
fields as HARBOR_<SECTION>__<FIELD>. New settings belong in
harbor-mcp.example.toml as well.
"""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class TransportType(str, Enum):
    """Supported MCP transports."""

    STDIO = "stdio"
    SSE = "sse"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    enable_file: bool = False
    log_dir: Path = Field(default=Path.home() / ".harbor-mcp" / "logs")
    max_days: int = Field(default=30, gt=0, description="Days to retain rotated log files")
    audit: bool = Field(default=False, description="Append every tool call to an audit log")

    def model_post_init(self, __context: Any) -> None:
        """Expand ~ in paths."""
        self.log_dir = self.log_dir.expanduser()


class ServerConfig(BaseModel):
    """MCP server configuration."""

    name: str = "harbor-mcp"
    transport: TransportType = TransportType.STDIO
    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)


class AppConfig(BaseSettings):
    """Main application configuration.

    Loads from:
    1. Explicit keyword arguments (CLI flags, config file values)
    2. Environment variables (prefixed with HARBOR_)
    3. Defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="HARBOR_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # Registry connection
    url: str = Field(..., description="Harbor base URL, e.g. https://harbor.example.com")
    username: str = Field(..., description="Harbor username")
    password: str = Field(..., description="Harbor password")
    insecure: bool = Field(
        default=False,
        description="Skip TLS certificate verification for registry requests",
    )
    timeout: float = Field(default=30.0, gt=0)
    page_size: int = Field(default=100, gt=0, le=100)

    # Component configurations
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("url", "username", "password")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

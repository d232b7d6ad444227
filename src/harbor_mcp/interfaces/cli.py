"""Command-line interface for the Harbor MCP server.

Commands:
- serve: Run the MCP server over stdio or SSE
- tools: List the tools the server exposes
- call: Invoke one tool directly and print its output
- check: Verify registry connectivity and credentials
- info: Show the effective configuration
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from mcp.shared.exceptions import McpError
from rich.console import Console
from rich.table import Table

from harbor_mcp.client import RegistryClient, create_registry_client
from harbor_mcp.config.loader import ConfigError, get_default_config_path, load_config
from harbor_mcp.config.schema import AppConfig, TransportType
from harbor_mcp.interfaces.tools import TOOL_SPECS, ToolDispatcher
from harbor_mcp.observability.logging import (
    configure_from_config,
    configure_logging,
    get_audit_logger,
    get_logger,
)
from harbor_mcp.service import HarborService, HarborServiceError

app = typer.Typer(
    name="harbor-mcp",
    help="Model Context Protocol server for Harbor registry management",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


def _build_dispatcher(config: AppConfig) -> tuple[ToolDispatcher, RegistryClient]:
    """Create the registry client, service and dispatcher for a config."""
    client = create_registry_client(config)
    service = HarborService(client)

    audit_logger = None
    if config.logging.audit:
        audit_logger = get_audit_logger(config.logging.log_dir, config.logging.max_days)

    return ToolDispatcher(service, audit_logger), client


@app.command()
def serve(
    transport: Optional[TransportType] = typer.Option(None, "--transport", "-t", help="Transport: stdio or sse"),
    host: Optional[str] = typer.Option(None, "--host", help="Bind address for the SSE transport"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port for the SSE transport"),
    url: Optional[str] = typer.Option(None, "--url", help="Harbor URL (overrides HARBOR_URL)"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Harbor username (overrides HARBOR_USERNAME)"),
    password: Optional[str] = typer.Option(None, "--password", help="Harbor password (overrides HARBOR_PASSWORD)"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification for Harbor requests"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Config file profile"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help=".env file path"),
):
    """Run the MCP server."""
    overrides = _connection_overrides(url, username, password, insecure)
    server_overrides = {
        key: value
        for key, value in {"transport": transport, "host": host, "port": port}.items()
        if value is not None
    }
    if server_overrides:
        overrides["server"] = server_overrides

    config = _load_config(config_file, profile, env_file, overrides)
    asyncio.run(_serve_async(config))


async def _serve_async(config: AppConfig):
    """Async implementation of serve command."""
    from harbor_mcp.interfaces.server import create_server, run_sse, run_stdio

    dispatcher, client = _build_dispatcher(config)
    server = create_server(dispatcher, name=config.server.name)

    try:
        if config.server.transport == TransportType.SSE:
            await run_sse(server, config.server.host, config.server.port)
        else:
            await run_stdio(server)
    finally:
        await client.close()


@app.command()
def tools():
    """List the tools exposed by the server."""
    table = Table(title="Harbor MCP Tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Required arguments", style="yellow")
    table.add_column("Description", style="green")

    for spec in TOOL_SPECS.values():
        table.add_row(spec.name.value, ", ".join(spec.required) or "-", spec.description)

    console.print(table)


@app.command()
def call(
    name: str = typer.Argument(..., help="Tool name, e.g. list_projects"),
    args: Optional[list[str]] = typer.Option(None, "--arg", "-a", help="Tool argument as key=value (repeatable)"),
    metadata: Optional[str] = typer.Option(None, "--metadata", help="Project metadata as a JSON object"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Config file profile"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help=".env file path"),
):
    """Invoke a single tool and print its output."""
    arguments = _parse_arguments(args or [], metadata)
    config = _load_config(config_file, profile, env_file)
    asyncio.run(_call_async(config, name, arguments))


async def _call_async(config: AppConfig, name: str, arguments: dict[str, Any]):
    """Async implementation of call command."""
    dispatcher, client = _build_dispatcher(config)

    try:
        content = await dispatcher.dispatch(name, arguments)
        for block in content:
            console.print(block.text, highlight=False, markup=False, soft_wrap=True)
    except McpError as e:
        err_console.print(f"[red]Error ({e.error.code}): {e.error.message}[/red]")
        raise typer.Exit(1)
    finally:
        await client.close()


@app.command()
def check(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Config file profile"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help=".env file path"),
):
    """Check that the registry is reachable with the configured credentials."""
    config = _load_config(config_file, profile, env_file)
    asyncio.run(_check_async(config))


async def _check_async(config: AppConfig):
    """Async implementation of check command."""
    client = create_registry_client(config)
    service = HarborService(client)

    try:
        with console.status(f"Connecting to {config.url}..."):
            projects = await service.list_projects()
    except HarborServiceError as e:
        console.print(f"[red]✗ Connection failed: {e.message}[/red]")
        raise typer.Exit(1)
    finally:
        await client.close()

    console.print(f"[green]✓[/green] Connected to {config.url} as {config.username}")
    console.print(f"  {len(projects)} project(s) visible")


@app.command()
def info(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Config file profile"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help=".env file path"),
):
    """Show the effective configuration."""
    config = _load_config(config_file, profile, env_file)

    table = Table(title="Harbor MCP Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Harbor URL", config.url)
    table.add_row("Username", config.username)
    table.add_row("Password", "********")
    table.add_row("TLS Verification", "disabled" if config.insecure else "enabled")
    table.add_row("Timeout", f"{config.timeout}s")
    table.add_row("Transport", config.server.transport.value)
    table.add_row("Listen", f"{config.server.host}:{config.server.port}")
    table.add_row("Log Level", config.logging.level.value)
    table.add_row("Audit Log", str(config.logging.log_dir) if config.logging.audit else "disabled")

    console.print(table)


def _connection_overrides(
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
    insecure: bool,
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if url:
        overrides["url"] = url
    if username:
        overrides["username"] = username
    if password:
        overrides["password"] = password
    if insecure:
        overrides["insecure"] = True
    return overrides


def _parse_arguments(pairs: list[str], metadata: Optional[str]) -> dict[str, Any]:
    """Turn ``key=value`` pairs and a metadata JSON string into tool arguments."""
    arguments: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            err_console.print(f"[red]Invalid argument '{pair}', expected key=value[/red]")
            raise typer.Exit(2)
        arguments[key] = value

    if metadata:
        try:
            arguments["metadata"] = json.loads(metadata)
        except json.JSONDecodeError as e:
            err_console.print(f"[red]Invalid --metadata JSON: {e}[/red]")
            raise typer.Exit(2)

    return arguments


def _load_config(
    config_file: Optional[Path],
    profile: Optional[str] = None,
    env_file: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> AppConfig:
    """Load configuration and setup logging."""
    # Logs must never reach stdout before the real configuration is known
    configure_logging(level="WARNING")

    if config_file is None:
        config_file = get_default_config_path()

    try:
        config = load_config(config_file, profile=profile, env_file=env_file, overrides=overrides)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)

    configure_from_config(config.logging)

    return config


if __name__ == "__main__":
    app()

"""MCP server wiring and transports.

Binds a ToolDispatcher to a low-level MCP Server and runs it over either:
- stdio (default): the client spawns the process and talks over stdin/stdout
- SSE: a Starlette app with ``GET /sse`` for the event stream and
  ``POST /messages/`` for inbound messages, served by uvicorn

Dispatch is identical for both transports.
"""

import uvicorn
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from harbor_mcp import __version__
from harbor_mcp.interfaces.tools import ToolDispatcher, list_tools
from harbor_mcp.observability.logging import get_logger

logger = get_logger(__name__)

SSE_PATH = "/sse"
MESSAGES_PATH = "/messages/"


def create_server(dispatcher: ToolDispatcher, name: str = "harbor-mcp") -> Server:
    """Create an MCP server exposing the registry tools.

    Args:
        dispatcher: Dispatcher handling every tool call
        name: Server name announced during initialization

    Returns:
        Configured low-level MCP server
    """
    server = Server(name, version=__version__)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return list_tools()

    # Registered directly rather than via @server.call_tool(): McpError raised
    # by the dispatcher must reach the session and go out as a JSON-RPC error
    async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
        content = await dispatcher.dispatch(request.params.name, request.params.arguments)
        return types.ServerResult(types.CallToolResult(content=content))

    server.request_handlers[types.CallToolRequest] = handle_call_tool

    return server


async def run_stdio(server: Server) -> None:
    """Serve over stdin/stdout until the client disconnects."""
    logger.info("mcp_server_starting", transport="stdio")
    async with stdio_server() as (read_stream, write_stream):
        logger.info("mcp_server_connected", transport="stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("mcp_server_stopped", transport="stdio")


def create_sse_app(server: Server) -> Starlette:
    """Build the Starlette application for the SSE transport."""
    sse = SseServerTransport(MESSAGES_PATH)

    async def handle_sse(request: Request) -> Response:
        async with sse.connect_sse(request.scope, request.receive, request._send) as (
            read_stream,
            write_stream,
        ):
            await server.run(read_stream, write_stream, server.create_initialization_options())
        return Response()

    async def handle_health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "server": server.name, "version": __version__})

    return Starlette(
        routes=[
            Route(SSE_PATH, endpoint=handle_sse, methods=["GET"]),
            Route("/healthz", endpoint=handle_health, methods=["GET"]),
            Mount(MESSAGES_PATH, app=sse.handle_post_message),
        ],
    )


async def run_sse(server: Server, host: str, port: int) -> None:
    """Serve over HTTP with server-sent events."""
    logger.info("mcp_server_starting", transport="sse", host=host, port=port)
    app = create_sse_app(server)
    config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    await uvicorn.Server(config).serve()
    logger.info("mcp_server_stopped", transport="sse")

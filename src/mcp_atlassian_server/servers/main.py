"""Main MCP server: tool registry wiring and transport front-ends."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import anyio
import mcp.types as types
from mcp.server.lowlevel import Server
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route
from starlette.types import ASGIApp, Receive, Scope, Send

from mcp_atlassian_server.exceptions import MCPAtlassianError
from mcp_atlassian_server.logging_config import log_operation
from mcp_atlassian_server.servers.confluence import confluence_tools
from mcp_atlassian_server.servers.context import InvocationContext, MainAppContext
from mcp_atlassian_server.servers.jira import jira_tools
from mcp_atlassian_server.tools.registry import ToolRegistry
from mcp_atlassian_server.utils.logging import mask_sensitive

logger = logging.getLogger("mcp-atlassian-server.server.main")

SERVER_NAME = "mcp-atlassian-server"
JIRA_TOKEN_HEADER = "x-jira-personal-token"
CONFLUENCE_TOKEN_HEADER = "x-confluence-personal-token"
STREAMABLE_HTTP_PATH = "/mcp"
SSE_PATH = "/sse"
SSE_MESSAGES_PATH = "/messages/"


def build_registry(mode: str = "all") -> ToolRegistry:
    """Register the Jira and/or Confluence tool sets selected by ``mode``."""
    registry = ToolRegistry()
    if mode in ("all", "jira"):
        registry.register_toolset(jira_tools)
    if mode in ("all", "confluence"):
        registry.register_toolset(confluence_tools)
    logger.info(f"Registered {len(registry)} tools (mode={mode})")
    return registry


def invocation_context_from_request(
    app_context: MainAppContext, request: Any | None
) -> InvocationContext:
    """Build the per-call context, picking up header tokens for HTTP calls."""
    state = getattr(request, "state", None) if request is not None else None
    return InvocationContext(
        app=app_context,
        jira_token=getattr(state, "jira_token", None) if state is not None else None,
        confluence_token=(
            getattr(state, "confluence_token", None) if state is not None else None
        ),
    )


def create_server(app_context: MainAppContext, registry: ToolRegistry) -> Server:
    """Create the low-level MCP server serving ``registry``."""
    server: Server = Server(
        SERVER_NAME,
        instructions="Tools for searching, reading and updating Jira issues and "
        "Confluence pages.",
    )

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        ctx = InvocationContext(app=app_context)
        return [
            types.Tool(
                name=descriptor.name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema(),
            )
            for descriptor in registry.list(ctx)
        ]

    @server.call_tool(validate_input=False)
    async def call_tool(
        name: str, arguments: dict[str, Any]
    ) -> list[types.TextContent]:
        try:
            request = server.request_context.request
        except LookupError:
            request = None
        ctx = invocation_context_from_request(app_context, request)

        with log_operation(logger, "call_tool", tool=name):
            result = await anyio.to_thread.run_sync(
                registry.dispatch, name, arguments, ctx
            )
        if result.is_error:
            # The SDK turns a raised exception into an isError result
            raise MCPAtlassianError(result.text)
        return [types.TextContent(type="text", text=result.text)]

    return server


class AtlassianTokenMiddleware:
    """ASGI middleware copying per-request token headers into request state.

    ``X-Jira-Personal-Token`` and ``X-Confluence-Personal-Token`` become
    ``request.state.jira_token`` / ``request.state.confluence_token``.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = {
                key.decode("latin-1").lower(): value.decode("latin-1")
                for key, value in scope.get("headers", [])
            }
            state = scope.setdefault("state", {})
            jira_token = headers.get(JIRA_TOKEN_HEADER, "").strip()
            confluence_token = headers.get(CONFLUENCE_TOKEN_HEADER, "").strip()
            state["jira_token"] = jira_token or None
            state["confluence_token"] = confluence_token or None
            if jira_token or confluence_token:
                logger.debug(
                    f"Per-request tokens for {scope.get('path')}: "
                    f"jira={mask_sensitive(jira_token)}, "
                    f"confluence={mask_sensitive(confluence_token)}"
                )
        await self.app(scope, receive, send)


async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


class StreamableHTTPASGIApp:
    """Route endpoint forwarding requests to the session manager."""

    def __init__(self, session_manager: Any) -> None:
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


def create_streamable_http_app(server: Server, stateless: bool = False) -> Starlette:
    """Starlette app serving the MCP streamable HTTP transport at ``/mcp``."""
    from mcp.server.streamable_http_manager import StreamableHTTPSessionManager

    session_manager = StreamableHTTPSessionManager(
        app=server,
        json_response=False,
        stateless=stateless,
    )

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with session_manager.run():
            logger.info("Streamable HTTP session manager started")
            yield
        logger.info("Streamable HTTP session manager stopped")

    return Starlette(
        routes=[
            Route("/healthz", endpoint=health_check, methods=["GET"]),
            Route(
                STREAMABLE_HTTP_PATH, endpoint=StreamableHTTPASGIApp(session_manager)
            ),
        ],
        middleware=[Middleware(AtlassianTokenMiddleware)],
        lifespan=lifespan,
    )


def create_sse_app(server: Server) -> Starlette:
    """Starlette app serving the SSE transport at ``/sse`` and ``/messages/``."""
    from mcp.server.sse import SseServerTransport

    sse = SseServerTransport(SSE_MESSAGES_PATH)

    async def handle_sse(request: Request) -> Response:
        async with sse.connect_sse(
            request.scope, request.receive, request._send
        ) as streams:
            await server.run(
                streams[0], streams[1], server.create_initialization_options()
            )
        return Response()

    return Starlette(
        routes=[
            Route("/healthz", endpoint=health_check, methods=["GET"]),
            Route(SSE_PATH, endpoint=handle_sse, methods=["GET"]),
            Mount(SSE_MESSAGES_PATH, app=sse.handle_post_message),
        ],
        middleware=[Middleware(AtlassianTokenMiddleware)],
    )


async def run_server(
    app_context: MainAppContext,
    transport: str = "stdio",
    host: str = "0.0.0.0",  # noqa: S104
    port: int = 8000,
    stateless: bool = False,
) -> None:
    """Run the MCP server with the specified transport."""
    registry = build_registry(app_context.mode)
    server = create_server(app_context, registry)

    if transport == "stdio":
        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream, write_stream, server.create_initialization_options()
            )
        return

    if transport == "sse":
        starlette_app = create_sse_app(server)
        logger.info(f"Serving SSE on http://{host}:{port}{SSE_PATH}")
    elif transport in ("streamable-http", "http"):
        starlette_app = create_streamable_http_app(server, stateless=stateless)
        logger.info(
            f"Serving streamable HTTP on http://{host}:{port}{STREAMABLE_HTTP_PATH}"
        )
    else:
        raise ValueError(f"Unsupported transport: {transport}")

    import uvicorn

    config = uvicorn.Config(starlette_app, host=host, port=port, log_level="warning")
    await uvicorn.Server(config).serve()

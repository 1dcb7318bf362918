"""MCP server, tool definitions and transport front-ends."""

from .main import build_registry, create_server, run_server

__all__ = ["build_registry", "create_server", "run_server"]

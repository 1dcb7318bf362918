"""Tool registry: descriptors, visibility filtering and dispatch."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..exceptions import MCPAtlassianError, ToolHiddenError
from .params import ParameterSpec, coerce_arguments

if TYPE_CHECKING:
    from ..servers.context import InvocationContext

logger = logging.getLogger("mcp-atlassian-server.tools.registry")

ToolHandler = Callable[[dict[str, Any], "InvocationContext"], str]


@dataclass(frozen=True)
class ToolDescriptor:
    """Static metadata for one tool."""

    name: str
    description: str
    params: tuple[ParameterSpec, ...] = ()
    service: str = ""
    write: bool = False

    def __post_init__(self) -> None:
        names = [p.name for p in self.params]
        if len(names) != len(set(names)):
            raise ValueError(f"Tool '{self.name}' declares a parameter twice")

    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {p.name: p.to_schema() for p in self.params},
            "required": [p.name for p in self.params if p.required],
        }


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one invocation: a success payload or an error message."""

    text: str
    is_error: bool = False

    @classmethod
    def success(cls, text: str) -> ToolResult:
        return cls(text=text, is_error=False)

    @classmethod
    def failure(cls, text: str) -> ToolResult:
        return cls(text=text, is_error=True)


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    handler: ToolHandler


class ToolSet:
    """Collects tool descriptors and handlers declared with :meth:`tool`."""

    def __init__(self, service: str) -> None:
        self.service = service
        self.tools: list[RegisteredTool] = []

    def tool(
        self, name: str, description: str, *params: ParameterSpec, write: bool = False
    ) -> Callable[[ToolHandler], ToolHandler]:
        def decorator(func: ToolHandler) -> ToolHandler:
            descriptor = ToolDescriptor(
                name=name,
                description=description,
                params=tuple(params),
                service=self.service,
                write=write,
            )
            self.tools.append(RegisteredTool(descriptor, func))
            return func

        return decorator


class ToolRegistry:
    """Maps tool names to descriptors and handlers.

    Registration happens once at startup; afterwards the registry is only
    read, so concurrent ``list`` and ``dispatch`` calls need no locking.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        if descriptor.name in self._tools:
            raise ValueError(f"Tool '{descriptor.name}' is already registered")
        self._tools[descriptor.name] = RegisteredTool(descriptor, handler)

    def register_toolset(self, toolset: ToolSet) -> None:
        for tool in toolset.tools:
            self.register(tool.descriptor, tool.handler)

    def get(self, name: str) -> ToolDescriptor | None:
        tool = self._tools.get(name)
        return tool.descriptor if tool else None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def _hidden_reason(
        self, descriptor: ToolDescriptor, ctx: InvocationContext
    ) -> str | None:
        if not ctx.app.tool_filter.is_visible(descriptor.name):
            return f"Tool '{descriptor.name}' is not enabled"
        if ctx.app.read_only and descriptor.write:
            return f"Tool '{descriptor.name}' is disabled in read-only mode"
        return None

    def list(self, ctx: InvocationContext) -> list[ToolDescriptor]:
        """Return the descriptors visible under the context's filter."""
        return [
            tool.descriptor
            for tool in self._tools.values()
            if self._hidden_reason(tool.descriptor, ctx) is None
        ]

    def dispatch(
        self, name: str, raw_params: Mapping[str, Any] | None, ctx: InvocationContext
    ) -> ToolResult:
        """Coerce arguments and run a tool, converting every failure to a result.

        Hidden tools are rejected with the same message a caller would see for
        a disabled tool.
        """
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.failure(f"Unknown tool: {name}")

        try:
            reason = self._hidden_reason(tool.descriptor, ctx)
            if reason:
                raise ToolHiddenError(reason)
            arguments = coerce_arguments(tool.descriptor.params, raw_params)
            return ToolResult.success(tool.handler(arguments, ctx))
        except MCPAtlassianError as e:
            logger.info(f"Tool '{name}' failed: {e}")
            return ToolResult.failure(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error in tool '{name}'")
            return ToolResult.failure(f"Unexpected error in {name}: {e}")

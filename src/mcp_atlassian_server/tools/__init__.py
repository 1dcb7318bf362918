"""Tool parameter model, registry and shared remote-call helpers."""

from .params import ParameterSpec, ParamKind, coerce_arguments
from .registry import ToolDescriptor, ToolRegistry, ToolResult, ToolSet

__all__ = [
    "ParamKind",
    "ParameterSpec",
    "ToolDescriptor",
    "ToolRegistry",
    "ToolResult",
    "ToolSet",
    "coerce_arguments",
]

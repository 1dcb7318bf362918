"""Tool visibility filtering driven by ENABLED_TOOLS / DISABLED_TOOLS."""

import logging
import os
from dataclasses import dataclass

from .text import split_and_trim

logger = logging.getLogger("mcp-atlassian-server.utils.toolsets")

VALID_MODES = ("jira", "confluence", "all")


@dataclass(frozen=True)
class ToolFilter:
    """Allow-list / deny-list over tool names.

    An allow-list, when present, wins: only the listed tools are visible and
    the deny-list is ignored. Otherwise every tool not in the deny-list is
    visible.
    """

    enabled: frozenset[str] | None = None
    disabled: frozenset[str] | None = None

    def is_visible(self, tool_name: str) -> bool:
        if self.enabled:
            return tool_name in self.enabled
        if self.disabled:
            return tool_name not in self.disabled
        return True

    @classmethod
    def from_strings(
        cls, enabled: str | None = None, disabled: str | None = None
    ) -> "ToolFilter":
        enabled_names = split_and_trim(enabled)
        disabled_names = split_and_trim(disabled)
        return cls(
            enabled=frozenset(enabled_names) if enabled_names else None,
            disabled=frozenset(disabled_names) if disabled_names else None,
        )

    @classmethod
    def from_env(cls) -> "ToolFilter":
        tool_filter = cls.from_strings(
            os.getenv("ENABLED_TOOLS"), os.getenv("DISABLED_TOOLS")
        )
        if tool_filter.enabled:
            logger.info(
                f"ENABLED_TOOLS: only {sorted(tool_filter.enabled)} are visible"
            )
            if tool_filter.disabled:
                logger.warning("DISABLED_TOOLS is ignored because ENABLED_TOOLS is set")
        elif tool_filter.disabled:
            logger.info(f"DISABLED_TOOLS: hiding {sorted(tool_filter.disabled)}")
        return tool_filter


def get_mode_from_env() -> str:
    """Read MCP_MODE (jira, confluence or all); unknown values fall back to all."""
    mode = os.getenv("MCP_MODE", "all").strip().lower() or "all"
    if mode not in VALID_MODES:
        logger.warning(f"MCP_MODE: unknown mode '{mode}', registering all tools.")
        return "all"
    return mode

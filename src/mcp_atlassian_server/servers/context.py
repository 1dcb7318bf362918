from __future__ import annotations

from dataclasses import dataclass, field

from mcp_atlassian_server.confluence.config import ConfluenceConfig
from mcp_atlassian_server.jira.config import JiraConfig
from mcp_atlassian_server.utils.env import is_env_extended_truthy
from mcp_atlassian_server.utils.toolsets import ToolFilter, get_mode_from_env


@dataclass(frozen=True)
class MainAppContext:
    """Process-wide configuration, built once at startup and never mutated."""

    jira_config: JiraConfig = field(default_factory=lambda: JiraConfig(url=""))
    confluence_config: ConfluenceConfig = field(
        default_factory=lambda: ConfluenceConfig(url="")
    )
    mode: str = "all"
    read_only: bool = False
    tool_filter: ToolFilter = field(default_factory=ToolFilter)

    @classmethod
    def from_env(cls) -> MainAppContext:
        return cls(
            jira_config=JiraConfig.from_env(),
            confluence_config=ConfluenceConfig.from_env(),
            mode=get_mode_from_env(),
            read_only=is_env_extended_truthy("READ_ONLY_MODE", "false"),
            tool_filter=ToolFilter.from_env(),
        )


@dataclass(frozen=True)
class InvocationContext:
    """Per-call execution context.

    Token overrides come from inbound HTTP headers and take precedence over
    the tokens in the app configuration. Base URLs always come from the app
    configuration.
    """

    app: MainAppContext
    jira_token: str | None = None
    confluence_token: str | None = None

"""Configuration module for Jira API interactions."""

import os
from dataclasses import dataclass

from ..utils import is_env_ssl_verify


@dataclass
class JiraConfig:
    """Jira API configuration.

    Jira is reached with a personal access token sent as a bearer token.
    The token configured here is the process-wide fallback; HTTP callers
    may supply their own per request.
    """

    url: str  # Base URL for Jira
    personal_token: str | None = None  # Fallback personal access token
    ssl_verify: bool = True  # Whether to verify SSL certificates

    @classmethod
    def from_env(cls) -> "JiraConfig":
        """Create configuration from environment variables.

        Missing values are not an error here: they are reported by the
        credential resolver when a Jira tool is invoked.
        """
        return cls(
            url=os.getenv("JIRA_URL", "").strip(),
            personal_token=os.getenv("JIRA_PERSONAL_TOKEN") or None,
            ssl_verify=is_env_ssl_verify("JIRA_SSL_VERIFY"),
        )

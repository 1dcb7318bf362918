"""Configuration module for the Confluence client."""

import os
from dataclasses import dataclass

from ..utils import is_env_ssl_verify


@dataclass
class ConfluenceConfig:
    """Confluence API configuration."""

    url: str  # Base URL for Confluence
    personal_token: str | None = None  # Fallback personal access token
    ssl_verify: bool = True  # Whether to verify SSL certificates

    @classmethod
    def from_env(cls) -> "ConfluenceConfig":
        """Create configuration from CONFLUENCE_URL, CONFLUENCE_PERSONAL_TOKEN
        and CONFLUENCE_SSL_VERIFY."""
        return cls(
            url=os.getenv("CONFLUENCE_URL", "").strip(),
            personal_token=os.getenv("CONFLUENCE_PERSONAL_TOKEN") or None,
            ssl_verify=is_env_ssl_verify("CONFLUENCE_SSL_VERIFY"),
        )

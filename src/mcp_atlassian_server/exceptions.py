class MCPAtlassianError(Exception):
    """Base exception for MCP Atlassian server errors."""

    pass


class ValidationError(MCPAtlassianError):
    """Raised when a tool parameter is missing, malformed or inconsistent."""

    pass


class CredentialsError(MCPAtlassianError):
    """Raised when a base URL or personal token cannot be resolved."""

    pass


class RemoteError(MCPAtlassianError):
    """Raised when the Atlassian API fails or answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MCPAtlassianAuthenticationError(RemoteError):
    """Raised when Atlassian API authentication fails (401/403)."""

    pass


class UnsupportedOperationError(MCPAtlassianError):
    """Raised by tools that cannot be served by the available REST API."""

    pass


class ConversionError(MCPAtlassianError):
    """Raised when converting content (e.g. HTML to Markdown) fails."""

    pass


class ToolHiddenError(MCPAtlassianError):
    """Raised when dispatching a tool that the active filter hides."""

    pass

"""Entry point for ``python -m mcp_atlassian_server``."""

from mcp_atlassian_server import main

if __name__ == "__main__":
    main()

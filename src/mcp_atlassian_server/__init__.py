import asyncio
import os

import click
from dotenv import load_dotenv

__version__ = "0.1.0"

from .logging_config import log_operation, setup_logger
from .utils.env import is_env_extended_truthy, is_env_truthy

logger = setup_logger()

TRANSPORTS = ["stdio", "sse", "streamable-http", "http"]


def _log_level(verbose: int) -> str:
    if verbose >= 2 or is_env_truthy("MCP_VERBOSE") or is_env_truthy("DEBUG"):
        return "DEBUG"
    return os.getenv("LOG_LEVEL", "INFO").upper()


@click.command()
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (can be used multiple times)",
)
@click.option(
    "--env-file", type=click.Path(exists=True, dir_okay=False), help="Path to .env file"
)
@click.option(
    "--transport",
    type=click.Choice(TRANSPORTS),
    help="Transport type (default: TRANSPORT env var or stdio)",
)
@click.option("--host", help="Host to bind for HTTP transports (default: 0.0.0.0)")
@click.option("--port", type=int, help="Port to listen on for HTTP transports")
@click.option(
    "--stateless/--no-stateless",
    default=None,
    help="Run streamable HTTP without per-client sessions",
)
@click.option("--log-dir", help="Directory to store log files")
@click.option(
    "--log-to-file/--no-log-to-file",
    default=False,
    help="Enable/disable file logging",
)
@click.option(
    "--mode",
    type=click.Choice(["jira", "confluence", "all"]),
    help="Which tool set to register (default: MCP_MODE env var or all)",
)
@click.option("--enabled-tools", help="Comma-separated list of tools to expose")
@click.option("--disabled-tools", help="Comma-separated list of tools to hide")
@click.option(
    "--read-only/--no-read-only",
    default=None,
    help="Hide and reject tools that modify Jira or Confluence",
)
@click.option("--jira-url", help="Jira URL (e.g., https://jira.your-company.com)")
@click.option("--jira-personal-token", help="Jira Personal Access Token")
@click.option(
    "--jira-ssl-verify/--no-jira-ssl-verify",
    default=None,
    help="Verify SSL certificates for Jira (default: verify)",
)
@click.option(
    "--confluence-url",
    help="Confluence URL (e.g., https://confluence.your-company.com)",
)
@click.option("--confluence-personal-token", help="Confluence Personal Access Token")
@click.option(
    "--confluence-ssl-verify/--no-confluence-ssl-verify",
    default=None,
    help="Verify SSL certificates for Confluence (default: verify)",
)
def main(
    verbose: int,
    env_file: str | None,
    transport: str | None,
    host: str | None,
    port: int | None,
    stateless: bool | None,
    log_dir: str | None,
    log_to_file: bool,
    mode: str | None,
    enabled_tools: str | None,
    disabled_tools: str | None,
    read_only: bool | None,
    jira_url: str | None,
    jira_personal_token: str | None,
    jira_ssl_verify: bool | None,
    confluence_url: str | None,
    confluence_personal_token: str | None,
    confluence_ssl_verify: bool | None,
) -> None:
    """MCP Atlassian Server - Jira and Confluence tools for MCP clients.

    Command line options override the matching environment variables.
    """
    if env_file:
        load_dotenv(env_file, override=True)
    else:
        load_dotenv()

    overrides = {
        "JIRA_URL": jira_url,
        "JIRA_PERSONAL_TOKEN": jira_personal_token,
        "CONFLUENCE_URL": confluence_url,
        "CONFLUENCE_PERSONAL_TOKEN": confluence_personal_token,
        "MCP_MODE": mode,
        "ENABLED_TOOLS": enabled_tools,
        "DISABLED_TOOLS": disabled_tools,
        "LOG_DIR": log_dir,
    }
    for name, value in overrides.items():
        if value:
            os.environ[name] = value
    for name, flag in (
        ("JIRA_SSL_VERIFY", jira_ssl_verify),
        ("CONFLUENCE_SSL_VERIFY", confluence_ssl_verify),
        ("READ_ONLY_MODE", read_only),
        ("STATELESS", stateless),
    ):
        if flag is not None:
            os.environ[name] = str(flag).lower()

    setup_logger(level=_log_level(verbose), log_to_file=log_to_file, log_dir=log_dir)

    transport = transport or os.getenv("TRANSPORT", "stdio").lower()
    if transport not in TRANSPORTS:
        raise click.BadParameter(
            f"Unsupported transport '{transport}'", param_hint="TRANSPORT"
        )
    host = host or os.getenv("HOST", "0.0.0.0")  # noqa: S104
    if port is None:
        raw_port = (os.getenv("PORT") or "8000").strip()
        try:
            port = int(raw_port)
        except ValueError:
            raise click.BadParameter(
                f"Invalid port '{raw_port}'", param_hint="PORT"
            ) from None
    if not 0 < port < 65536:
        raise click.BadParameter(f"Invalid port '{port}'", param_hint="PORT")

    from .servers.context import MainAppContext
    from .servers.main import run_server

    with log_operation(logger, "application_startup", app_version=__version__):
        app_context = MainAppContext.from_env()
        logger.info(
            f"Starting MCP Atlassian server v{__version__} with {transport} transport"
        )

    asyncio.run(
        run_server(
            app_context,
            transport=transport,
            host=host,
            port=port,
            stateless=is_env_extended_truthy("STATELESS", "false"),
        )
    )


__all__ = ["main", "__version__", "setup_logger", "log_operation"]

if __name__ == "__main__":
    main()

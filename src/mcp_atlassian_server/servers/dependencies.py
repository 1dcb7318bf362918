"""Credential resolution and per-invocation client construction.

Tool handlers call :func:`get_jira_client` / :func:`get_confluence_client`
as context managers with their :class:`InvocationContext`; a fresh client
and HTTP session are built for every call and the session is closed when
the handler leaves the block.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Literal

from atlassian import Confluence, Jira
from requests import Session

from mcp_atlassian_server.confluence.client import build_confluence_client
from mcp_atlassian_server.exceptions import CredentialsError
from mcp_atlassian_server.jira.client import build_jira_client
from mcp_atlassian_server.servers.context import InvocationContext
from mcp_atlassian_server.utils.logging import mask_sensitive

logger = logging.getLogger("mcp-atlassian-server.servers.dependencies")

Service = Literal["jira", "confluence"]


@dataclass(frozen=True)
class Credentials:
    base_url: str
    token: str
    ssl_verify: bool = True


def resolve_credentials(service: Service, ctx: InvocationContext) -> Credentials:
    """Resolve base URL and token for a service.

    A token carried by the invocation context wins over the configured one.

    Raises:
        CredentialsError: If the base URL or the resolved token is empty.
    """
    if service == "jira":
        config = ctx.app.jira_config
        override = ctx.jira_token
        label, url_var, token_var = "Jira", "JIRA_URL", "JIRA_PERSONAL_TOKEN"
    else:
        config = ctx.app.confluence_config
        override = ctx.confluence_token
        label, url_var, token_var = (
            "Confluence",
            "CONFLUENCE_URL",
            "CONFLUENCE_PERSONAL_TOKEN",
        )

    token = override or config.personal_token
    if not config.url or not token:
        raise CredentialsError(
            f"{label} client error: missing {label} credentials "
            f"({url_var} / {token_var})"
        )

    logger.debug(
        f"Resolved {label} credentials for {config.url} "
        f"(source={'request' if override else 'environment'}, "
        f"token={mask_sensitive(token)})"
    )
    return Credentials(base_url=config.url, token=token, ssl_verify=config.ssl_verify)


@contextmanager
def get_jira_client(ctx: InvocationContext) -> Iterator[Jira]:
    """Yield a Jira client whose HTTP session is closed on exit."""
    credentials = resolve_credentials("jira", ctx)
    with Session() as session:
        yield build_jira_client(
            credentials.base_url,
            credentials.token,
            ssl_verify=credentials.ssl_verify,
            session=session,
        )


@contextmanager
def get_confluence_client(ctx: InvocationContext) -> Iterator[Confluence]:
    """Yield a Confluence client whose HTTP session is closed on exit."""
    credentials = resolve_credentials("confluence", ctx)
    with Session() as session:
        yield build_confluence_client(
            credentials.base_url,
            credentials.token,
            ssl_verify=credentials.ssl_verify,
            session=session,
        )

"""Confluence client construction with Server/Data Center compatibility."""

import logging
from typing import Any
from urllib.parse import urlsplit

from atlassian import Confluence
from requests import Session

from ..utils.adapters import RewritingAdapter
from ..utils.urls import is_atlassian_cloud_url

logger = logging.getLogger("mcp-atlassian-server.confluence")

WIKI_PREFIX = "/wiki"


class ConfluencePathAdapter(RewritingAdapter):
    """Drop the ``/wiki`` segment that tool paths add after the site base path.

    Tool handlers address ``wiki/rest/api/...`` relative to the configured
    site URL. Exactly one ``/wiki`` directly after ``base_path`` is removed,
    so a site that is itself served under ``/wiki`` keeps its context path.
    """

    def __init__(self, base_path: str = "", verify_ssl: bool = True, **kwargs: Any):
        self.base_path = base_path.rstrip("/")
        super().__init__(verify_ssl=verify_ssl, **kwargs)

    def rewrite(self, path: str, query: str) -> tuple[str, str]:
        prefix = self.base_path + WIKI_PREFIX
        if path == prefix or path.startswith(prefix + "/"):
            return (self.base_path + path[len(prefix) :]) or "/", query
        return path, query


def site_url(url: str) -> str:
    """Return the Confluence site URL requests are resolved against.

    Cloud sites live under ``/wiki``; the segment is added when the configured
    URL lacks it. Server/Data Center URLs are used as configured.
    """
    url = url.rstrip("/")
    if is_atlassian_cloud_url(url) and WIKI_PREFIX not in urlsplit(url).path:
        return url + WIKI_PREFIX
    return url


def build_confluence_client(
    url: str, token: str, ssl_verify: bool = True, session: Session | None = None
) -> Confluence:
    """Create a Confluence client authenticated with a bearer personal access token.

    The session carries :class:`ConfluencePathAdapter` bound to the site's
    base path.
    """
    url = site_url(url)
    session = session if session is not None else Session()
    adapter = ConfluencePathAdapter(urlsplit(url).path, verify_ssl=ssl_verify)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    if not ssl_verify:
        logger.warning(
            "SSL verification is disabled for Confluence. This may be insecure."
        )
    return Confluence(
        url=url,
        token=token,
        verify_ssl=ssl_verify,
        session=session,
        cloud=is_atlassian_cloud_url(url),
    )

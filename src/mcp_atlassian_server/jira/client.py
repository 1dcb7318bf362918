"""Jira client construction with Server/Data Center compatibility."""

import logging
from urllib.parse import parse_qsl, urlencode

from atlassian import Jira
from requests import Session

from ..utils.adapters import RewritingAdapter

logger = logging.getLogger("mcp-atlassian-server.jira")

USER_LOOKUP_PATH = "/rest/api/2/user"


class JiraUserLookupAdapter(RewritingAdapter):
    """Rewrite ``accountId`` to ``username`` on user lookups.

    Cloud identifies users by account id while Server/Data Center expects a
    username, so user lookups always go out with ``username=<value>``.
    """

    def rewrite(self, path: str, query: str) -> tuple[str, str]:
        if not path.startswith(USER_LOOKUP_PATH) or not query:
            return path, query
        pairs = parse_qsl(query, keep_blank_values=True)
        account_id = next((v for k, v in pairs if k == "accountId"), "")
        if not account_id:
            return path, query
        pairs = [(k, v) for k, v in pairs if k not in ("accountId", "username")]
        pairs.append(("username", account_id))
        return path, urlencode(pairs)


def build_jira_client(
    url: str, token: str, ssl_verify: bool = True, session: Session | None = None
) -> Jira:
    """Create a Jira client authenticated with a bearer personal access token.

    Args:
        url: Jira base URL
        token: Personal access token
        ssl_verify: Whether to verify SSL certificates
        session: Session to carry the adapter, a new one when omitted

    Returns:
        A Jira client whose session carries :class:`JiraUserLookupAdapter`
    """
    session = session if session is not None else Session()
    adapter = JiraUserLookupAdapter(verify_ssl=ssl_verify)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    if not ssl_verify:
        logger.warning("SSL verification is disabled for Jira. This may be insecure.")
    return Jira(url=url, token=token, verify_ssl=ssl_verify, session=session)

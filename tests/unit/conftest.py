"""
Shared fixtures for unit tests.

Provides app/invocation contexts, a factory for fake ``requests.Response``
objects and patched Jira/Confluence client factories, so tool handlers can
be exercised without network access.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from mcp_atlassian_server.confluence.config import ConfluenceConfig
from mcp_atlassian_server.jira.config import JiraConfig
from mcp_atlassian_server.servers.context import InvocationContext, MainAppContext
from mcp_atlassian_server.servers.main import build_registry


def make_response(status_code=200, payload=None, text=None):
    """Build a fake ``requests.Response`` with an optional JSON payload."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    if payload is not None:
        body = json.dumps(payload)
        response.content = body.encode()
        response.text = body
        response.json.return_value = payload
    else:
        response.content = (text or "").encode()
        response.text = text or ""
        response.json.side_effect = ValueError("No JSON body")
    return response


@pytest.fixture
def response_factory():
    """Expose :func:`make_response` as a fixture."""
    return make_response


@pytest.fixture
def app_context():
    """App context with Server/DC URLs and fallback tokens configured."""
    return MainAppContext(
        jira_config=JiraConfig(
            url="https://jira.example.com", personal_token="jira-env-token"
        ),
        confluence_config=ConfluenceConfig(
            url="https://confluence.example.com", personal_token="conf-env-token"
        ),
    )


@pytest.fixture
def ctx(app_context):
    """Invocation context without per-request token overrides."""
    return InvocationContext(app=app_context)


@pytest.fixture
def registry():
    """Registry holding every Jira and Confluence tool."""
    return build_registry("all")


@pytest.fixture
def jira_client():
    """Mock Jira client yielded by the patched client factory."""
    client = MagicMock(name="jira_client")
    client.__enter__.return_value = client
    with patch(
        "mcp_atlassian_server.servers.jira.get_jira_client", return_value=client
    ) as factory:
        client.factory = factory
        yield client


@pytest.fixture
def confluence_client():
    """Mock Confluence client yielded by the patched client factory."""
    client = MagicMock(name="confluence_client")
    client.__enter__.return_value = client
    with patch(
        "mcp_atlassian_server.servers.confluence.get_confluence_client",
        return_value=client,
    ) as factory:
        client.factory = factory
        yield client

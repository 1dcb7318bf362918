"""Shared helper for issuing a REST call and mapping its status to an outcome."""

import json
import logging
from typing import Any

import requests
from atlassian.rest_client import AtlassianRestAPI

from ..exceptions import MCPAtlassianAuthenticationError, RemoteError

logger = logging.getLogger("mcp-atlassian-server.tools.remote")

MAX_ERROR_TEXT = 500


def to_json(payload: Any) -> str:
    """Serialize a tool payload the same way for every tool."""
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    cleaned = {k: v for k, v in params.items() if v is not None and v != ""}
    return cleaned or None


def _error_text(response: requests.Response) -> str:
    """Extract a readable message from an Atlassian error response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        parts: list[str] = []
        # Jira: {"errorMessages": [...], "errors": {"field": "message"}}
        parts.extend(str(m) for m in body.get("errorMessages") or [])
        errors = body.get("errors")
        if isinstance(errors, dict):
            parts.extend(f"{field}: {message}" for field, message in errors.items())
        # Confluence: {"statusCode": 404, "message": "..."}
        if body.get("message"):
            parts.append(str(body["message"]))
        if parts:
            return f"HTTP {response.status_code}: {'; '.join(parts)}"

    text = (response.text or "").strip()
    if text:
        return f"HTTP {response.status_code}: {text[:MAX_ERROR_TEXT]}"
    return f"HTTP {response.status_code} {response.reason or ''}".strip()


def invoke(
    client: AtlassianRestAPI,
    method: str,
    path: str,
    failure: str,
    params: dict[str, Any] | None = None,
    data: Any = None,
) -> requests.Response:
    """Issue one REST call and return the response if its status is 2xx.

    Args:
        client: Jira or Confluence client built for this invocation
        method: HTTP method
        path: Path relative to the client base URL
        failure: Context label prefixed to error messages
            (e.g. "Failed to get issue")
        params: Query parameters; empty values are dropped
        data: JSON-serializable request body

    Raises:
        MCPAtlassianAuthenticationError: On 401/403
        RemoteError: On transport errors or any other non-2xx status
    """
    logger.debug(f"{method} {path} params={params}")
    try:
        response = client.request(
            method=method,
            path=path,
            params=_clean_params(params),
            data=data,
            advanced_mode=True,
        )
    except requests.RequestException as e:
        raise RemoteError(f"{failure}: {e}") from e

    if 200 <= response.status_code < 300:
        return response

    detail = _error_text(response)
    logger.warning(f"{method} {path} failed: {detail}")
    if response.status_code in (401, 403):
        raise MCPAtlassianAuthenticationError(
            f"{failure}: {detail}", status_code=response.status_code
        )
    raise RemoteError(f"{failure}: {detail}", status_code=response.status_code)


def invoke_json(
    client: AtlassianRestAPI,
    method: str,
    path: str,
    failure: str,
    params: dict[str, Any] | None = None,
    data: Any = None,
) -> Any:
    """Like :func:`invoke` but return the decoded JSON body (None when empty)."""
    response = invoke(client, method, path, failure, params=params, data=data)
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise RemoteError(f"{failure}: invalid JSON in response ({e})") from e

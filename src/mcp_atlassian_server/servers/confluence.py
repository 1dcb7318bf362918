"""Confluence tool definitions."""

import logging
from typing import Any

from mcp_atlassian_server.confluence.utils import (
    build_space_cql,
    build_title_cql,
    storage_to_markdown,
)
from mcp_atlassian_server.exceptions import RemoteError, ValidationError
from mcp_atlassian_server.servers.context import InvocationContext
from mcp_atlassian_server.servers.dependencies import get_confluence_client
from mcp_atlassian_server.tools.params import boolean, number, string
from mcp_atlassian_server.tools.registry import ToolSet
from mcp_atlassian_server.tools.remote import invoke, invoke_json, to_json

logger = logging.getLogger("mcp-atlassian-server.servers.confluence")

CONTENT_PATH = "wiki/rest/api/content"
SEARCH_PATH = "wiki/rest/api/content/search"
PAGE_EXPAND = "body.storage,version,metadata.labels"

confluence_tools = ToolSet("confluence")


def _storage_value(content: dict[str, Any]) -> str | None:
    storage = (content.get("body") or {}).get("storage") or {}
    return storage.get("value")


def _storage_body(content: str) -> dict[str, Any]:
    return {"storage": {"value": content, "representation": "wiki"}}


@confluence_tools.tool("confluence_ping", "Ping Confluence API")
def ping(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_confluence_client(ctx) as client:
        invoke(
            client,
            "GET",
            SEARCH_PATH,
            "Confluence ping failed",
            params={"cql": "type=page", "limit": 1},
        )
    return "Confluence OK"


@confluence_tools.tool(
    "confluence_search",
    "Search Confluence content using simple terms or CQL",
    string(
        "query",
        "Search query - can be either a simple text or a CQL query string.",
        required=True,
    ),
    number("limit", "Maximum number of results (1-50)", default=10),
    string(
        "spaces_filter",
        "(Optional) Comma-separated list of space keys to filter results by.",
        default="",
    ),
)
def search(params: dict[str, Any], ctx: InvocationContext) -> str:
    limit = params["limit"]
    if not 1 <= limit <= 50:
        limit = 10
    cql = build_space_cql(params["query"], params["spaces_filter"])
    with get_confluence_client(ctx) as client:
        results = invoke_json(
            client,
            "GET",
            SEARCH_PATH,
            "Confluence search failed",
            params={"cql": cql, "limit": int(limit)},
        )
    return to_json(results)


@confluence_tools.tool(
    "confluence_get_page",
    "Get content of a specific Confluence page by its ID, or by its title and space key.",
    string(
        "page_id",
        "Confluence page ID (numeric ID, can be found in the page URL). Provide this OR "
        "both 'title' and 'space_key'. If page_id is provided, title and space_key will "
        "be ignored.",
        default="",
    ),
    string(
        "title",
        "The exact title of the Confluence page. Use this with 'space_key' if 'page_id' "
        "is not known.",
        default="",
    ),
    string(
        "space_key",
        "The key of the Confluence space where the page resides (e.g., 'DEV', 'TEAM'). "
        "Required if using 'title'.",
        default="",
    ),
    boolean(
        "include_metadata",
        "Whether to include page metadata such as creation date, last update, version, "
        "and labels.",
        default=True,
    ),
    boolean(
        "convert_to_markdown",
        "Whether to convert page to markdown (true) or keep it in raw HTML format (false).",
        default=True,
    ),
)
def get_page(params: dict[str, Any], ctx: InvocationContext) -> str:
    """Fetch a page by id, or by title within a space.

    With ``include_metadata=false`` only the body is returned, as a JSON
    string, converted to Markdown unless ``convert_to_markdown=false``.
    """
    page_id = params["page_id"].strip()
    title = params["title"].strip()
    space_key = params["space_key"].strip()

    if page_id:
        with get_confluence_client(ctx) as client:
            page = invoke_json(
                client,
                "GET",
                f"{CONTENT_PATH}/{page_id}",
                "Failed to retrieve page by ID",
                params={"expand": PAGE_EXPAND},
            )
            body = _storage_value(page or {})
            if not params["include_metadata"] and body is not None:
                if params["convert_to_markdown"]:
                    body = storage_to_markdown(body)
                return to_json(body)
        return to_json(page)

    if title and space_key:
        with get_confluence_client(ctx) as client:
            results = invoke_json(
                client,
                "GET",
                SEARCH_PATH,
                "Failed to search page by title",
                params={"cql": build_title_cql(title, space_key), "limit": 1},
            )
            pages = (results or {}).get("results") or []
            if not pages:
                raise RemoteError(
                    f"Page with title '{title}' not found in space '{space_key}'"
                )
        return to_json(pages[0])

    raise ValidationError(
        "Either 'page_id' OR both 'title' and 'space_key' must be provided."
    )


@confluence_tools.tool(
    "confluence_get_page_children",
    "Get child pages of a specific Confluence page.",
    string(
        "parent_id",
        "The ID of the parent page whose children you want to retrieve",
        required=True,
    ),
    string(
        "expand",
        "Fields to expand in the response (e.g., 'version', 'body.storage')",
        default="version",
    ),
    number("limit", "Maximum number of child pages to return (1-50)", default=25),
    boolean(
        "include_content",
        "Whether to include the page content in the response",
        default=False,
    ),
    boolean(
        "convert_to_markdown",
        "Whether to convert page content to markdown (true) or keep it in raw HTML "
        "format (false). Only relevant if include_content is true.",
        default=True,
    ),
    number("start", "Starting index for pagination (0-based)", default=0),
)
def get_page_children(params: dict[str, Any], ctx: InvocationContext) -> str:
    parent_id = params["parent_id"]
    expand = params["expand"]
    if params["include_content"] and "body.storage" not in expand:
        expand = f"{expand},body.storage" if expand else "body.storage"

    with get_confluence_client(ctx) as client:
        response = invoke_json(
            client,
            "GET",
            f"{CONTENT_PATH}/{parent_id}/child/page",
            "Failed to get child pages",
            params={
                "expand": expand,
                "start": int(params["start"]),
                "limit": int(params["limit"]),
            },
        )
        children = (response or {}).get("results") or []

        if params["include_content"]:
            for child in children:
                html = _storage_value(child)
                if html is None:
                    continue
                child["content"] = (
                    storage_to_markdown(html) if params["convert_to_markdown"] else html
                )

    return to_json(
        {
            "parent_id": parent_id,
            "count": len(children),
            "limit_requested": params["limit"],
            "start_requested": params["start"],
            "results": children,
        }
    )


@confluence_tools.tool(
    "confluence_get_page_ancestors",
    "Get the ancestor (parent) pages of a specific Confluence page.",
    string(
        "page_id",
        "The ID of the page whose ancestors you want to retrieve",
        required=True,
    ),
)
def get_page_ancestors(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_confluence_client(ctx) as client:
        page = invoke_json(
            client,
            "GET",
            f"{CONTENT_PATH}/{params['page_id']}",
            "Failed to get page ancestors",
            params={"expand": "ancestors"},
        )
    return to_json((page or {}).get("ancestors") or [])


@confluence_tools.tool(
    "confluence_get_comments",
    "Get comments for a specific Confluence page.",
    string(
        "page_id",
        "Confluence page ID (numeric ID, can be parsed from URL)",
        required=True,
    ),
)
def get_comments(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_confluence_client(ctx) as client:
        comments = invoke_json(
            client,
            "GET",
            f"{CONTENT_PATH}/{params['page_id']}/child/comment",
            "Failed to get comments",
            params={"start": 0, "limit": 50, "expand": "body.storage"},
        )
    return to_json(comments)


@confluence_tools.tool(
    "confluence_get_labels",
    "Get labels for a specific Confluence page.",
    string(
        "page_id",
        "Confluence page ID (numeric ID, can be parsed from URL)",
        required=True,
    ),
)
def get_labels(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_confluence_client(ctx) as client:
        labels = invoke_json(
            client,
            "GET",
            f"{CONTENT_PATH}/{params['page_id']}/label",
            "Failed to get labels",
            params={"start": 0, "limit": 50},
        )
    return to_json(labels)


@confluence_tools.tool(
    "confluence_add_label",
    "Add label to an existing Confluence page.",
    string("page_id", "The ID of the page to update", required=True),
    string("name", "The name of the label", required=True),
    write=True,
)
def add_label(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_confluence_client(ctx) as client:
        labels = invoke_json(
            client,
            "POST",
            f"{CONTENT_PATH}/{params['page_id']}/label",
            "Failed to add label",
            data=[{"prefix": "global", "name": params["name"]}],
        )
    return to_json(labels)


@confluence_tools.tool(
    "confluence_create_page",
    "Create a new Confluence page.",
    string(
        "space_key",
        "The key of the space to create the page in (usually a short uppercase code "
        "like 'DEV', 'TEAM', or 'DOC')",
        required=True,
    ),
    string("title", "The title of the page", required=True),
    string(
        "content",
        "The content of the page in Markdown format. Supports headings, lists, tables, "
        "code blocks, and other Markdown syntax",
        required=True,
    ),
    string(
        "parent_id",
        "(Optional) parent page ID. If provided, this page will be created as a child "
        "of the specified page",
        default="",
    ),
    write=True,
)
def create_page(params: dict[str, Any], ctx: InvocationContext) -> str:
    payload: dict[str, Any] = {
        "type": "page",
        "title": params["title"],
        "space": {"key": params["space_key"]},
        "body": _storage_body(params["content"]),
    }
    if params["parent_id"]:
        payload["ancestors"] = [{"id": params["parent_id"]}]

    with get_confluence_client(ctx) as client:
        page = invoke_json(
            client, "POST", CONTENT_PATH, "Failed to create page", data=payload
        )
    return to_json(page)


@confluence_tools.tool(
    "confluence_update_page",
    "Update an existing Confluence page.",
    string("page_id", "The ID of the page to update", required=True),
    string("title", "The new title of the page", required=True),
    string("content", "The new content of the page in Markdown format", required=True),
    boolean("is_minor_edit", "Whether this is a minor edit", default=False),
    string("version_comment", "Optional comment for this version", default=""),
    string("parent_id", "Optional new parent page ID", default=""),
    write=True,
)
def update_page(params: dict[str, Any], ctx: InvocationContext) -> str:
    """Update a page, submitting the fetched version number plus one."""
    page_id = params["page_id"]
    with get_confluence_client(ctx) as client:
        current = invoke_json(
            client,
            "GET",
            f"{CONTENT_PATH}/{page_id}",
            "Failed to get current page",
            params={"expand": "version"},
        )
        current_version = ((current or {}).get("version") or {}).get("number") or 0
        new_version = current_version + 1 if current_version > 0 else 1

        payload: dict[str, Any] = {
            "id": page_id,
            "type": "page",
            "title": params["title"],
            "version": {
                "number": new_version,
                "minorEdit": params["is_minor_edit"],
                "message": params["version_comment"],
            },
            "body": _storage_body(params["content"]),
        }
        if params["parent_id"]:
            payload["ancestors"] = [{"id": params["parent_id"]}]

        page = invoke_json(
            client,
            "PUT",
            f"{CONTENT_PATH}/{page_id}",
            "Failed to update page",
            data=payload,
        )
    return to_json(page)


@confluence_tools.tool(
    "confluence_delete_page",
    "Delete an existing Confluence page.",
    string("page_id", "The ID of the page to delete", required=True),
    write=True,
)
def delete_page(params: dict[str, Any], ctx: InvocationContext) -> str:
    page_id = params["page_id"]
    with get_confluence_client(ctx) as client:
        invoke(
            client,
            "DELETE",
            f"{CONTENT_PATH}/{page_id}",
            "Failed to delete page",
            params={"status": "current"},
        )
    return f"Page {page_id} deleted successfully"


@confluence_tools.tool(
    "confluence_add_comment",
    "Add a comment to a Confluence page.",
    string("page_id", "The ID of the page to add a comment to", required=True),
    string("content", "The comment content in Markdown format", required=True),
    write=True,
)
def add_comment(params: dict[str, Any], ctx: InvocationContext) -> str:
    payload = {
        "type": "comment",
        "container": {"id": params["page_id"], "type": "page"},
        "body": _storage_body(params["content"]),
    }
    with get_confluence_client(ctx) as client:
        comment = invoke_json(
            client, "POST", CONTENT_PATH, "Failed to add comment", data=payload
        )
    return to_json(comment)

"""Jira tool definitions."""

import logging
from typing import Any

from mcp_atlassian_server.exceptions import UnsupportedOperationError
from mcp_atlassian_server.jira.utils import (
    build_project_jql,
    merge_fields,
    parse_json_object,
    truncate_comments,
)
from mcp_atlassian_server.servers.context import InvocationContext
from mcp_atlassian_server.servers.dependencies import get_jira_client
from mcp_atlassian_server.tools.params import boolean, number, string
from mcp_atlassian_server.tools.registry import ToolSet
from mcp_atlassian_server.tools.remote import invoke, invoke_json, to_json
from mcp_atlassian_server.utils.date import parse_jira_time
from mcp_atlassian_server.utils.text import split_and_trim

logger = logging.getLogger("mcp-atlassian-server.servers.jira")

API = "rest/api/2"
AGILE = "rest/agile/1.0"

FIELDS_DESCRIPTION = (
    "Comma-separated fields to return in the results. Use '*all' for all fields."
)
EXPAND_DESCRIPTION = (
    "Fields to expand (e.g., 'renderedFields', 'transitions', 'changelog')"
)
START_AT_DESCRIPTION = "Starting index for pagination (0-based)"
LIMIT_DESCRIPTION = "Maximum number of results (1-50)"

jira_tools = ToolSet("jira")


def _csv(value: str) -> list[str]:
    return split_and_trim(value)


def _search(
    client: Any,
    jql: str,
    fields: str,
    expand: str,
    start_at: int,
    limit: int,
    failure: str,
) -> Any:
    payload: dict[str, Any] = {
        "jql": jql,
        "startAt": start_at,
        "maxResults": limit,
    }
    if fields:
        payload["fields"] = _csv(fields)
    if expand:
        payload["expand"] = _csv(expand)
    return invoke_json(client, "POST", f"{API}/search", failure, data=payload)


@jira_tools.tool("jira_ping", "Ping Jira API")
def ping(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        invoke(client, "GET", f"{API}/myself", "Jira ping failed")
    return "Jira OK"


@jira_tools.tool(
    "jira_get_user_profile",
    "Retrieve profile information for a specific Jira user.",
    string(
        "user_identifier",
        "Identifier for the user (e.g., email address, username, account ID, or key "
        "for Server/DC).",
        required=True,
    ),
)
def get_user_profile(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        # The session adapter turns accountId into username for Server/DC
        user = invoke_json(
            client,
            "GET",
            f"{API}/user",
            "Failed to get user profile",
            params={"accountId": params["user_identifier"]},
        )
    return to_json(user)


@jira_tools.tool(
    "jira_get_issue",
    "Get details of a specific Jira issue.",
    string("issue_key", "Jira issue key (e.g., 'PROJ-123')", required=True),
    string(
        "fields",
        "Comma-separated list of fields to return (e.g., 'summary,status'). Use '*all' "
        "for all fields.",
        default="",
    ),
    string("expand", EXPAND_DESCRIPTION, default=""),
    number(
        "comment_limit",
        "Maximum number of comments to include (0 or less for all)",
        default=10,
    ),
    string(
        "properties",
        "Comma-separated list of issue properties to return",
        default="",
    ),
    boolean(
        "update_history",
        "Whether to update the issue view history for the requesting user",
        default=True,
    ),
)
def get_issue(params: dict[str, Any], ctx: InvocationContext) -> str:
    """Fetch an issue, truncating its embedded comments to ``comment_limit``.

    A ``comment_limit`` of zero or less returns every comment.
    """
    with get_jira_client(ctx) as client:
        issue = invoke_json(
            client,
            "GET",
            f"{API}/issue/{params['issue_key']}",
            "Failed to get issue",
            params={
                "fields": params["fields"],
                "expand": params["expand"],
                "properties": params["properties"],
                "updateHistory": "true" if params["update_history"] else "false",
            },
        )
        if isinstance(issue, dict):
            issue = truncate_comments(issue, int(params["comment_limit"]))
    return to_json(issue)


@jira_tools.tool(
    "jira_search",
    "Search Jira issues using JQL (Jira Query Language).",
    string(
        "jql",
        "JQL query string (e.g., 'project = PROJ AND status = \"In Progress\"')",
        required=True,
    ),
    string("fields", FIELDS_DESCRIPTION, default=""),
    number("limit", LIMIT_DESCRIPTION, default=10),
    number("start_at", START_AT_DESCRIPTION, default=0),
    string(
        "projects_filter",
        "Comma-separated list of project keys to filter results by.",
        default="",
    ),
    string("expand", EXPAND_DESCRIPTION, default=""),
)
def search(params: dict[str, Any], ctx: InvocationContext) -> str:
    jql = build_project_jql(params["jql"], params["projects_filter"])
    with get_jira_client(ctx) as client:
        results = _search(
            client,
            jql,
            params["fields"],
            params["expand"],
            int(params["start_at"]),
            int(params["limit"]),
            "Failed to search issues",
        )
    return to_json(results)


@jira_tools.tool(
    "jira_search_fields",
    "Search Jira fields by keyword with fuzzy match.",
    string(
        "keyword",
        "Keyword for fuzzy search. If left empty, lists the first 'limit' available "
        "fields in their default order.",
        default="",
    ),
    number("limit", "Maximum number of results", default=10),
    boolean("refresh", "Whether to force refresh the field list", default=False),
)
def search_fields(params: dict[str, Any], ctx: InvocationContext) -> str:
    # Nothing is cached, so every call is already a refresh
    with get_jira_client(ctx) as client:
        page = invoke_json(
            client,
            "GET",
            f"{API}/field/search",
            "Failed to search fields",
            params={
                "query": params["keyword"],
                "startAt": 0,
                "maxResults": int(params["limit"]),
            },
        )
    return to_json((page or {}).get("values") or [])


@jira_tools.tool(
    "jira_get_all_projects",
    "Get all Jira projects accessible to the current user.",
    boolean("include_archived", "Whether to include archived projects", default=False),
)
def get_all_projects(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        projects = invoke_json(
            client,
            "GET",
            f"{API}/project",
            "Failed to get projects",
            params={"includeArchived": "true" if params["include_archived"] else None},
        )
    return to_json(projects)


@jira_tools.tool(
    "jira_get_project_issues",
    "Get all issues for a specific Jira project.",
    string("project_key", "The project key", required=True),
    number("limit", LIMIT_DESCRIPTION, default=10),
    number("start_at", START_AT_DESCRIPTION, default=0),
)
def get_project_issues(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        results = _search(
            client,
            f"project = '{params['project_key']}'",
            "",
            "",
            int(params["start_at"]),
            int(params["limit"]),
            "Failed to get project issues",
        )
    return to_json(results)


@jira_tools.tool(
    "jira_get_transitions",
    "Get available status transitions for a Jira issue.",
    string("issue_key", "Jira issue key (e.g., 'PROJ-123')", required=True),
)
def get_transitions(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        transitions = invoke_json(
            client,
            "GET",
            f"{API}/issue/{params['issue_key']}/transitions",
            "Failed to get transitions",
        )
    return to_json(transitions)


@jira_tools.tool(
    "jira_get_worklog",
    "Get worklog entries for a Jira issue.",
    string("issue_key", "Jira issue key (e.g., 'PROJ-123')", required=True),
)
def get_worklog(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        worklogs = invoke_json(
            client,
            "GET",
            f"{API}/issue/{params['issue_key']}/worklog",
            "Failed to get worklogs",
            params={"startAt": 0, "maxResults": 100},
        )
    return to_json(worklogs)


@jira_tools.tool(
    "jira_get_agile_boards",
    "Get Jira agile boards by name, project key, or type.",
    string(
        "board_name",
        "(Optional) The name of board, support fuzzy search",
        default="",
    ),
    string("project_key", "(Optional) Jira project key (e.g., 'PROJ-123')", default=""),
    string(
        "board_type",
        "(Optional) The type of jira board (e.g., 'scrum', 'kanban')",
        default="",
    ),
    number("start_at", START_AT_DESCRIPTION, default=0),
    number("limit", LIMIT_DESCRIPTION, default=10),
)
def get_agile_boards(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        boards = invoke_json(
            client,
            "GET",
            f"{AGILE}/board",
            "Failed to get agile boards",
            params={
                "name": params["board_name"],
                "type": params["board_type"],
                "projectKeyOrId": params["project_key"],
                "startAt": int(params["start_at"]),
                "maxResults": int(params["limit"]),
            },
        )
    return to_json(boards)


@jira_tools.tool(
    "jira_get_board_issues",
    "Get all issues linked to a specific board filtered by JQL.",
    number("board_id", "The id of the board (e.g., '1001')", required=True),
    string("jql", "JQL query string to filter issues.", required=True),
    string("fields", FIELDS_DESCRIPTION, default=""),
    number("start_at", START_AT_DESCRIPTION, default=0),
    number("limit", LIMIT_DESCRIPTION, default=10),
    string(
        "expand",
        "Optional fields to expand in the response (e.g., 'changelog').",
        default="version",
    ),
)
def get_board_issues(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        issues = invoke_json(
            client,
            "GET",
            f"{AGILE}/board/{int(params['board_id'])}/issue",
            "Failed to get board issues",
            params={
                "jql": params["jql"],
                "fields": params["fields"],
                "expand": params["expand"],
                "startAt": int(params["start_at"]),
                "maxResults": int(params["limit"]),
            },
        )
    return to_json(issues)


@jira_tools.tool(
    "jira_get_sprints_from_board",
    "Get Jira sprints from board by state.",
    number("board_id", "The id of board (e.g., '1000')", required=True),
    string("state", "Sprint state (e.g., 'active', 'future', 'closed')", default=""),
    number("start_at", START_AT_DESCRIPTION, default=0),
    number("limit", LIMIT_DESCRIPTION, default=10),
)
def get_sprints_from_board(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        sprints = invoke_json(
            client,
            "GET",
            f"{AGILE}/board/{int(params['board_id'])}/sprint",
            "Failed to get sprints from board",
            params={
                "state": params["state"],
                "startAt": int(params["start_at"]),
                "maxResults": int(params["limit"]),
            },
        )
    return to_json(sprints)


@jira_tools.tool(
    "jira_get_sprint_issues",
    "Get Jira issues from sprint.",
    number("sprint_id", "The id of sprint (e.g., '10001')", required=True),
    string("fields", FIELDS_DESCRIPTION, default=""),
    number("start_at", START_AT_DESCRIPTION, default=0),
    number("limit", LIMIT_DESCRIPTION, default=10),
)
def get_sprint_issues(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        issues = invoke_json(
            client,
            "GET",
            f"{AGILE}/sprint/{int(params['sprint_id'])}/issue",
            "Failed to get sprint issues",
            params={
                "fields": params["fields"],
                "startAt": int(params["start_at"]),
                "maxResults": int(params["limit"]),
            },
        )
    return to_json(issues)


@jira_tools.tool(
    "jira_download_attachments",
    "Download attachments from a Jira issue.",
    string("issue_key", "Jira issue key", required=True),
    string("target_dir", "Directory to save attachments", required=True),
)
def download_attachments(params: dict[str, Any], ctx: InvocationContext) -> str:
    raise UnsupportedOperationError(
        "Unsupported: downloading attachments to disk is not supported by this server"
    )


@jira_tools.tool("jira_get_link_types", "Get all available issue link types.")
def get_link_types(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        link_types = invoke_json(
            client, "GET", f"{API}/issueLinkType", "Failed to get link types"
        )
    return to_json(link_types)


@jira_tools.tool(
    "jira_create_issue",
    "Create a new Jira issue with optional Epic link or parent for subtasks.",
    string("project_key", "The JIRA project key", required=True),
    string("summary", "Summary/title of the issue", required=True),
    string(
        "issue_type",
        "Issue type (e.g., 'Task', 'Bug', 'Story', 'Epic', 'Subtask')",
        required=True,
    ),
    string(
        "assignee",
        "Assignee's user identifier (email, display name, or account ID)",
        default="",
    ),
    string("description", "Issue description", default=""),
    string("components", "Comma-separated list of component names", default=""),
    string("additional_fields", "JSON string of additional fields", default=""),
    write=True,
)
def create_issue(params: dict[str, Any], ctx: InvocationContext) -> str:
    fields: dict[str, Any] = {
        "project": {"key": params["project_key"]},
        "summary": params["summary"],
        "issuetype": {"name": params["issue_type"]},
    }
    if params["description"]:
        fields["description"] = params["description"]
    if params["assignee"]:
        fields["assignee"] = {"name": params["assignee"]}
    components = _csv(params["components"])
    if components:
        fields["components"] = [{"name": name} for name in components]

    additional = None
    if params["additional_fields"]:
        additional = parse_json_object(
            params["additional_fields"], "Failed to parse additional_fields"
        )
    fields = merge_fields(fields, additional)

    with get_jira_client(ctx) as client:
        issue = invoke_json(
            client,
            "POST",
            f"{API}/issue",
            "Failed to create issue",
            data={"fields": fields},
        )
    return to_json(issue)


@jira_tools.tool(
    "jira_batch_create_issues",
    "Create multiple Jira issues in a batch.",
    string("issues", "JSON array string of issue objects", required=True),
    boolean("validate_only", "If true, only validates without creating", default=False),
    write=True,
)
def batch_create_issues(params: dict[str, Any], ctx: InvocationContext) -> str:
    raise UnsupportedOperationError(
        "Unsupported: batch issue creation is not supported by this server"
    )


@jira_tools.tool(
    "jira_batch_get_changelogs",
    "Get changelogs for multiple Jira issues (Cloud only).",
    string(
        "issue_ids_or_keys",
        "Comma-separated list of issue IDs or keys",
        required=True,
    ),
    string(
        "fields",
        "Comma-separated list of fields to filter changelogs by. None for all fields.",
        default="",
    ),
    number("limit", "Maximum changelogs per issue (-1 for all)", default=-1),
)
def batch_get_changelogs(params: dict[str, Any], ctx: InvocationContext) -> str:
    raise UnsupportedOperationError(
        "Unsupported: batch changelog retrieval is not supported by this server"
    )


@jira_tools.tool(
    "jira_update_issue",
    "Update an existing Jira issue including changing status, adding Epic links, "
    "updating fields, etc.",
    string("issue_key", "Jira issue key", required=True),
    string("fields", "JSON string of fields to update", required=True),
    string(
        "additional_fields",
        "Optional JSON string of additional fields",
        default="",
    ),
    string(
        "attachments",
        "Optional JSON array string or comma-separated list of file paths",
        default="",
    ),
    write=True,
)
def update_issue(params: dict[str, Any], ctx: InvocationContext) -> str:
    """Update issue fields; ``additional_fields`` keys override ``fields`` keys."""
    fields = parse_json_object(params["fields"], "Invalid fields JSON")
    additional = None
    if params["additional_fields"]:
        additional = parse_json_object(
            params["additional_fields"], "Invalid additional_fields JSON"
        )
    if params["attachments"].strip():
        raise UnsupportedOperationError(
            "Unsupported: uploading attachments is not supported by this server"
        )

    with get_jira_client(ctx) as client:
        invoke(
            client,
            "PUT",
            f"{API}/issue/{params['issue_key']}",
            "Failed to update issue",
            data={"fields": merge_fields(fields, additional)},
        )
    return "Issue updated successfully"


@jira_tools.tool(
    "jira_delete_issue",
    "Delete an existing Jira issue.",
    string("issue_key", "Jira issue key", required=True),
    write=True,
)
def delete_issue(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        invoke(
            client,
            "DELETE",
            f"{API}/issue/{params['issue_key']}",
            "Failed to delete issue",
        )
    return "Issue deleted successfully"


@jira_tools.tool(
    "jira_add_comment",
    "Add a comment to a Jira issue.",
    string("issue_key", "Jira issue key", required=True),
    string("comment", "Comment text in Markdown", required=True),
    write=True,
)
def add_comment(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        comment = invoke_json(
            client,
            "POST",
            f"{API}/issue/{params['issue_key']}/comment",
            "Failed to add comment",
            data={"body": params["comment"]},
        )
    return to_json(comment)


@jira_tools.tool(
    "jira_add_worklog",
    "Add a worklog entry to a Jira issue.",
    string("issue_key", "Jira issue key", required=True),
    string("time_spent", "Time spent in Jira format (e.g., '2h 30m')", required=True),
    string("comment", "Optional comment in Markdown", default=""),
    string("started", "Optional start time in ISO format", default=""),
    string("original_estimate", "Optional new original estimate", default=""),
    string("remaining_estimate", "Optional new remaining estimate", default=""),
    write=True,
)
def add_worklog(params: dict[str, Any], ctx: InvocationContext) -> str:
    """Log work on an issue.

    ``original_estimate`` sets a new estimate (``adjustEstimate=new``);
    otherwise ``remaining_estimate`` reduces it (``adjustEstimate=manual``).
    """
    payload: dict[str, Any] = {"timeSpent": params["time_spent"]}
    if params["comment"]:
        payload["comment"] = params["comment"]
    if params["started"]:
        payload["started"] = parse_jira_time(params["started"])

    query: dict[str, Any] = {}
    if params["original_estimate"]:
        query = {"adjustEstimate": "new", "newEstimate": params["original_estimate"]}
    elif params["remaining_estimate"]:
        query = {"adjustEstimate": "manual", "reduceBy": params["remaining_estimate"]}

    with get_jira_client(ctx) as client:
        worklog = invoke_json(
            client,
            "POST",
            f"{API}/issue/{params['issue_key']}/worklog",
            "Failed to add worklog",
            params=query,
            data=payload,
        )
    return to_json(worklog)


@jira_tools.tool(
    "jira_link_to_epic",
    "Link an existing issue to an epic.",
    string("issue_key", "The key of the issue to link", required=True),
    string("epic_key", "The key of the epic to link to", required=True),
    write=True,
)
def link_to_epic(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        invoke(
            client,
            "POST",
            f"{AGILE}/epic/{params['epic_key']}/issue",
            "Failed to link to epic",
            data={"issues": [params["issue_key"]]},
        )
    return "Issue linked to epic successfully"


@jira_tools.tool(
    "jira_create_issue_link",
    "Create a link between two Jira issues.",
    string("link_type", "The type of link (e.g., 'Blocks')", required=True),
    string("inward_issue_key", "The key of the source issue", required=True),
    string("outward_issue_key", "The key of the target issue", required=True),
    string("comment", "Optional comment text", default=""),
    string(
        "comment_visibility",
        "Optional JSON string for comment visibility",
        default="",
    ),
    write=True,
)
def create_issue_link(params: dict[str, Any], ctx: InvocationContext) -> str:
    payload: dict[str, Any] = {
        "type": {"name": params["link_type"]},
        "inwardIssue": {"key": params["inward_issue_key"]},
        "outwardIssue": {"key": params["outward_issue_key"]},
    }
    if params["comment"]:
        comment: dict[str, Any] = {"body": params["comment"]}
        if params["comment_visibility"]:
            comment["visibility"] = parse_json_object(
                params["comment_visibility"], "Invalid comment_visibility JSON"
            )
        payload["comment"] = comment

    with get_jira_client(ctx) as client:
        invoke(
            client,
            "POST",
            f"{API}/issueLink",
            "Failed to create issue link",
            data=payload,
        )
    return "Issue link created successfully"


@jira_tools.tool(
    "jira_remove_issue_link",
    "Remove a link between two Jira issues.",
    string("link_id", "The ID of the link to remove", required=True),
    write=True,
)
def remove_issue_link(params: dict[str, Any], ctx: InvocationContext) -> str:
    with get_jira_client(ctx) as client:
        invoke(
            client,
            "DELETE",
            f"{API}/issueLink/{params['link_id']}",
            "Failed to remove issue link",
        )
    return "Issue link removed successfully"


@jira_tools.tool(
    "jira_transition_issue",
    "Transition a Jira issue to a new status.",
    string("issue_key", "Jira issue key", required=True),
    string("transition_id", "ID of the transition", required=True),
    string(
        "fields",
        "Optional JSON string of fields to update during transition",
        default="",
    ),
    string("comment", "Optional comment for the transition", default=""),
    write=True,
)
def transition_issue(params: dict[str, Any], ctx: InvocationContext) -> str:
    payload: dict[str, Any] = {"transition": {"id": params["transition_id"]}}
    if params["fields"]:
        payload["fields"] = parse_json_object(params["fields"], "Invalid fields JSON")
    if params["comment"]:
        payload["update"] = {"comment": [{"add": {"body": params["comment"]}}]}

    with get_jira_client(ctx) as client:
        invoke(
            client,
            "POST",
            f"{API}/issue/{params['issue_key']}/transitions",
            "Failed to transition issue",
            data=payload,
        )
    return "Issue transitioned successfully"


@jira_tools.tool(
    "jira_create_sprint",
    "Create Jira sprint for a board.",
    number("board_id", "Board ID", required=True),
    string("sprint_name", "Sprint name", required=True),
    string("start_date", "Start date (ISO format)", default=""),
    string("end_date", "End date (ISO format)", default=""),
    string("goal", "Optional sprint goal", default=""),
    write=True,
)
def create_sprint(params: dict[str, Any], ctx: InvocationContext) -> str:
    payload: dict[str, Any] = {
        "name": params["sprint_name"],
        "originBoardId": int(params["board_id"]),
    }
    for key, name in (
        ("startDate", "start_date"),
        ("endDate", "end_date"),
        ("goal", "goal"),
    ):
        if params[name]:
            payload[key] = params[name]

    with get_jira_client(ctx) as client:
        sprint = invoke_json(
            client, "POST", f"{AGILE}/sprint", "Failed to create sprint", data=payload
        )
    return to_json(sprint)


@jira_tools.tool(
    "jira_update_sprint",
    "Update jira sprint.",
    number("sprint_id", "The ID of the sprint", required=True),
    string("sprint_name", "Optional new name", default=""),
    string("state", "Optional new state (future|active|closed)", default=""),
    string("start_date", "Optional new start date", default=""),
    string("end_date", "Optional new end date", default=""),
    string("goal", "Optional new goal", default=""),
    write=True,
)
def update_sprint(params: dict[str, Any], ctx: InvocationContext) -> str:
    """Partially update a sprint; only non-empty values are sent."""
    payload = {
        key: params[name]
        for key, name in (
            ("name", "sprint_name"),
            ("state", "state"),
            ("startDate", "start_date"),
            ("endDate", "end_date"),
            ("goal", "goal"),
        )
        if params[name]
    }
    with get_jira_client(ctx) as client:
        sprint = invoke_json(
            client,
            "POST",
            f"{AGILE}/sprint/{int(params['sprint_id'])}",
            "Failed to update sprint",
            data=payload,
        )
    return to_json(sprint)

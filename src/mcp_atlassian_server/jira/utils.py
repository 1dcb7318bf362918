"""Query building and payload helpers for Jira tools."""

import json
from typing import Any

from ..exceptions import ValidationError
from ..utils.text import split_and_trim


def build_project_jql(jql: str, projects_filter: str | None) -> str:
    """Prefix a JQL query with a project restriction.

    >>> build_project_jql("status = Open", "A,B")
    "project in ('A','B') AND (status = Open)"
    """
    projects = split_and_trim(projects_filter)
    if not projects:
        return jql
    clause = "project in (" + ",".join(f"'{key}'" for key in projects) + ")"
    if jql and jql.strip():
        return f"{clause} AND ({jql})"
    return clause


def truncate_comments(issue: dict[str, Any], comment_limit: int) -> dict[str, Any]:
    """Keep at most ``comment_limit`` comments in ``fields.comment.comments``.

    A limit of zero or less leaves the issue untouched.
    """
    if comment_limit <= 0:
        return issue
    comment = (issue.get("fields") or {}).get("comment")
    if not isinstance(comment, dict):
        return issue
    comments = comment.get("comments")
    if isinstance(comments, list) and len(comments) > comment_limit:
        comment["comments"] = comments[:comment_limit]
    return issue


def parse_json_object(raw: str, label: str) -> dict[str, Any]:
    """Parse a JSON object passed as a string parameter.

    Raises:
        ValidationError: ``"<label>: <reason>"`` when the text is not a JSON
            object.
    """
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{label}: {e}") from e
    if not isinstance(value, dict):
        raise ValidationError(f"{label}: expected a JSON object")
    return value


def merge_fields(
    fields: dict[str, Any], additional: dict[str, Any] | None
) -> dict[str, Any]:
    """Shallow merge where keys from ``additional`` win."""
    merged = dict(fields)
    if additional:
        merged.update(additional)
    return merged

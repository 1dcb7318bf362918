"""Utility functions for date operations."""

import logging
from datetime import timezone

import dateutil.parser

from ..exceptions import ValidationError

logger = logging.getLogger("mcp-atlassian-server.utils.date")

JIRA_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.000%z"


def parse_jira_time(value: str) -> str:
    """
    Normalize a timestamp to the format Jira expects for worklogs.

    Accepts anything `dateutil.parser` understands (ISO 8601, RFC 3339,
    RFC 1123, plain dates). Values without an offset are treated as UTC.

    Args:
        value: Timestamp string supplied by the caller

    Returns:
        The timestamp formatted as ``2024-01-31T09:30:00.000+0000``

    Raises:
        ValidationError: If the value cannot be parsed
    """
    try:
        parsed = dateutil.parser.parse(value)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse time '{value}': {e}")
        raise ValidationError(f"could not parse time: {value}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.strftime(JIRA_DATETIME_FORMAT)

"""Utility functions specific to Confluence operations."""

import logging

from markdownify import markdownify as md

from ..exceptions import ConversionError
from ..utils.text import split_and_trim

logger = logging.getLogger("mcp-atlassian-server.confluence.utils")


def build_space_cql(query: str, spaces_filter: str | None) -> str:
    """AND a query with an OR of space constraints.

    >>> build_space_cql("foo", "DEV, TEAM")
    '(foo) AND (space="DEV" OR space="TEAM")'
    """
    spaces = split_and_trim(spaces_filter)
    if not spaces:
        return query
    space_clause = " OR ".join(f'space="{key}"' for key in spaces)
    return f"({query}) AND ({space_clause})"


def build_title_cql(title: str, space_key: str) -> str:
    return f'title="{title}" AND space="{space_key}"'


def storage_to_markdown(html: str) -> str:
    """Convert Confluence storage-format HTML to Markdown.

    Raises:
        ConversionError: If the converter fails on the input.
    """
    try:
        return md(html, heading_style="ATX")
    except Exception as e:
        logger.warning(f"HTML to Markdown conversion failed: {e}")
        raise ConversionError(f"Failed to convert HTML to Markdown: {e}") from e

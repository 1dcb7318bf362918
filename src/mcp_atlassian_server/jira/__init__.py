"""Jira integration: configuration, client construction and query helpers."""

from .client import JiraUserLookupAdapter, build_jira_client
from .config import JiraConfig

__all__ = ["JiraConfig", "JiraUserLookupAdapter", "build_jira_client"]

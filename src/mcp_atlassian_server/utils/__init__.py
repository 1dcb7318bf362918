"""
Utility functions shared by the Jira and Confluence tool sets.
"""

from .date import parse_jira_time
from .env import is_env_extended_truthy, is_env_ssl_verify, is_env_truthy
from .logging import mask_sensitive
from .text import split_and_trim
from .urls import is_atlassian_cloud_url

__all__ = [
    "is_atlassian_cloud_url",
    "is_env_extended_truthy",
    "is_env_ssl_verify",
    "is_env_truthy",
    "mask_sensitive",
    "parse_jira_time",
    "split_and_trim",
]

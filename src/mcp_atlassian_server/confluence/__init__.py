"""Confluence integration: configuration, client construction and content helpers."""

from .client import ConfluencePathAdapter, build_confluence_client
from .config import ConfluenceConfig

__all__ = ["ConfluenceConfig", "ConfluencePathAdapter", "build_confluence_client"]

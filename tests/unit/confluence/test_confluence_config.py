"""Tests for the Confluence config module."""

from mcp_atlassian_server.confluence.config import ConfluenceConfig


def test_from_env(monkeypatch):
    monkeypatch.setenv("CONFLUENCE_URL", "https://example.atlassian.net/wiki")
    monkeypatch.setenv("CONFLUENCE_PERSONAL_TOKEN", "pat")
    monkeypatch.delenv("CONFLUENCE_SSL_VERIFY", raising=False)
    config = ConfluenceConfig.from_env()
    assert config.url == "https://example.atlassian.net/wiki"
    assert config.personal_token == "pat"
    assert config.ssl_verify is True


def test_from_env_empty_token(monkeypatch):
    monkeypatch.setenv("CONFLUENCE_URL", "https://confluence.example.com")
    monkeypatch.setenv("CONFLUENCE_PERSONAL_TOKEN", "")
    config = ConfluenceConfig.from_env()
    assert config.personal_token is None

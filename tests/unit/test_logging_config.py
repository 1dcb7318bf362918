"""Tests for logger setup and operation context."""

import logging

import pytest

from mcp_atlassian_server.logging_config import log_operation, setup_logger


@pytest.fixture
def logger_name(request):
    name = f"mcp-atlassian-server-test.{request.node.name}"
    yield name
    for handler in list(logging.getLogger(name).handlers):
        logging.getLogger(name).removeHandler(handler)
        handler.close()


def test_console_output_goes_to_stderr(logger_name, capsys):
    logger = setup_logger(logger_name, level="INFO")
    logger.info("hello")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "hello" in captured.err
    assert "[no-context]" in captured.err


def test_setup_twice_does_not_duplicate_handlers(logger_name):
    setup_logger(logger_name)
    logger = setup_logger(logger_name, level="DEBUG")
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_operation_context_is_attached(logger_name, capsys):
    logger = setup_logger(logger_name, level="DEBUG")
    with log_operation(logger, "call_tool", tool="jira_ping"):
        logger.info("inside")
    logger.info("outside")
    err = capsys.readouterr().err
    inside = next(line for line in err.splitlines() if line.endswith("inside"))
    outside = next(line for line in err.splitlines() if line.endswith("outside"))
    assert "tool=jira_ping" in inside
    assert "operation=call_tool" in inside
    assert "[no-context]" in outside


def test_nested_operation_restores_outer_context(logger_name, capsys):
    logger = setup_logger(logger_name, level="INFO")
    with log_operation(logger, "call_tool", tool="jira_search"):
        with log_operation(logger, "remote_call", path="rest/api/2/search"):
            logger.info("inner")
        logger.info("outer")
    lines = capsys.readouterr().err.splitlines()
    inner = next(line for line in lines if line.endswith("inner"))
    outer = next(line for line in lines if line.endswith("outer"))
    assert "operation=remote_call" in inner
    assert "tool=jira_search" in inner
    assert "operation=call_tool" in outer
    assert "path=" not in outer


def test_failed_operation_is_logged(logger_name, capsys):
    logger = setup_logger(logger_name, level="INFO")
    with pytest.raises(RuntimeError):
        with log_operation(logger, "call_tool", tool="jira_ping"):
            raise RuntimeError("boom")
    assert "Operation failed: call_tool" in capsys.readouterr().err


def test_log_to_file(logger_name, tmp_path):
    logger = setup_logger(logger_name, log_to_file=True, log_dir=str(tmp_path))
    logger.warning("to disk")
    for handler in logger.handlers:
        handler.flush()
    assert "to disk" in (tmp_path / f"{logger_name}.log").read_text()

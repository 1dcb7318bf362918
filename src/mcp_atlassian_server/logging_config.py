"""Logging configuration for the MCP Atlassian server."""

import logging
import os
import sys
import time
import types
import uuid
from collections.abc import Mapping
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, cast

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] [%(context)s] %(message)s"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIRECTORY = "logs"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5

# Shared across threads spawned with anyio.to_thread, which copies the context
_log_context: ContextVar[dict[str, Any]] = ContextVar(
    "mcp_atlassian_log_context", default={}
)


def _context_str() -> str:
    data = _log_context.get()
    if not data:
        return "no-context"
    return ",".join(f"{k}={v}" for k, v in data.items())


class ContextFilter(logging.Filter):
    """Fill in the ``context`` attribute for records from plain loggers."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "context"):
            record.context = _context_str()
        return True


class ContextualLogger(logging.Logger):
    """Logger that attaches the current operation context to each record."""

    def _log(
        self,
        level: int,
        msg: object,
        args: tuple[object, ...] | Mapping[str, object],
        exc_info: Any = None,
        extra: Mapping[str, object] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
    ) -> None:
        if extra is None or "context" not in extra:
            extra = dict(extra or {})
            extra["context"] = _context_str()
        super()._log(level, msg, args, exc_info, extra, stack_info, stacklevel + 1)


class LoggingContextManager:
    """Context manager that logs the start, end and duration of an operation."""

    def __init__(self, logger: logging.Logger, operation: str, **context: Any) -> None:
        self.logger = logger
        self.operation = operation
        self.context = context.copy()
        self.trace_id = context.get("trace_id", str(uuid.uuid4())[:8])
        self.start_time = time.time()
        self._token = None

    def __enter__(self) -> "LoggingContextManager":
        self.context["operation"] = self.operation
        self.context["trace_id"] = self.trace_id
        self._token = _log_context.set({**_log_context.get(), **self.context})
        self.logger.debug(f"Operation started: {self.operation}")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        duration = time.time() - self.start_time
        if exc_type:
            self.logger.error(
                f"Operation failed: {self.operation} after {duration:.3f}s - {exc_val}"
            )
        else:
            self.logger.debug(
                f"Operation completed: {self.operation} in {duration:.3f}s"
            )
        if self._token is not None:
            _log_context.reset(self._token)


def setup_logger(
    name: str = "mcp-atlassian-server",
    level: str | None = None,
    log_to_file: bool = False,
    log_dir: str | None = None,
    log_format: str | None = None,
) -> ContextualLogger:
    """
    Configures and returns a contextual logger.

    Console output goes to stderr so that the stdio transport keeps stdout
    for protocol messages. Calling this again replaces the handlers instead
    of stacking them.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, etc.); defaults to LOG_LEVEL or INFO
        log_to_file: If True, also logs to a rotating file
        log_dir: Directory to store log files; defaults to LOG_DIR or ./logs
        log_format: Log format; defaults to LOG_FORMAT or DEFAULT_FORMAT

    Returns:
        Configured contextual logger
    """
    logging.setLoggerClass(ContextualLogger)
    logger = logging.getLogger(name)

    log_level = level or os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    formatter = logging.Formatter(log_format or os.getenv("LOG_FORMAT", DEFAULT_FORMAT))
    context_filter = ContextFilter()

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    logger.addHandler(console_handler)

    if log_to_file:
        log_directory = Path(log_dir or os.getenv("LOG_DIR", DEFAULT_LOG_DIRECTORY))
        log_directory.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_directory / f"{name}.log",
            maxBytes=MAX_LOG_SIZE,
            backupCount=LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return cast(ContextualLogger, logger)


def log_operation(
    logger: logging.Logger, operation: str, **context: Any
) -> LoggingContextManager:
    """
    Creates a context manager for operation logging.

    Args:
        logger: Logger receiving the start/end records
        operation: Name of the operation
        **context: Additional context data (e.g. tool name)

    Returns:
        Context manager configured for operation logging
    """
    return LoggingContextManager(logger, operation, **context)

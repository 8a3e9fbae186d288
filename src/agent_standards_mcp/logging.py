"""
Application logging for the Agent Standards MCP Server.

Records are written one JSON object per line. stdout belongs to the MCP
stream, so the console handler writes to stderr; an optional log file under
the standards folder rotates by size. The "none" level silences the package.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_standards_mcp.config import AppConfig

ROOT_LOGGER_NAME = "agent_standards_mcp"

# Default log format for fallback
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JSONFormatter(logging.Formatter):
    """
    Render a record as one JSON line.

    The fixed keys are timestamp (UTC, ISO 8601, taken from the record),
    level, logger and message; every non-None `extra` field follows them.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in set(record.__dict__.keys()) - _RESERVED_RECORD_ATTRS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def _build_file_handler(
    path: Path, max_bytes: int, backup_count: int
) -> logging.Handler:
    """
    Create a rotating file handler, creating the parent directory if needed.

    Args:
        path: Log file path.
        max_bytes: Size that triggers rotation.
        backup_count: Number of rotated files to keep.

    Returns:
        Configured RotatingFileHandler.
    """
    path.parent.mkdir(mode=0o750, parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def setup_logging(
    config: AppConfig | None = None,
    *,
    level: str = "INFO",
    json_format: bool = True,
    log_to_stderr: bool = True,
) -> logging.Logger:
    """
    Configure the logging system for the MCP server.

    Args:
        config: Optional AppConfig. If provided, its server log level and
            logging section override the keyword parameters.
        level: Default log level if no config is provided.
        json_format: Whether to use JSON formatting (default: True).
        log_to_stderr: Whether to log to stderr (default: True).

    Returns:
        The root logger configured for the agent_standards_mcp package.

    Example:
        >>> from agent_standards_mcp.logging import setup_logging
        >>> logger = setup_logging(level="DEBUG")
        >>> logger.info("Server started", extra={"tools_count": 2})
    """
    file_path: Path | None = None
    max_bytes = 0
    backup_count = 0

    if config is not None:
        log_level = config.server.log_level.upper()
        json_format = True
        log_to_stderr = config.logging.log_to_stderr
        if config.logging.log_to_file and config.server.logging_enabled:
            file_path = config.resolved_log_file_path()
            max_bytes = config.logging.max_bytes
            backup_count = config.logging.backup_count
    else:
        log_level = level.upper()

    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # setup_logging runs twice at startup: bootstrap, then configured
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    logger.propagate = False

    if log_level == "NONE":
        logger.setLevel(logging.CRITICAL + 1)
        logger.addHandler(logging.NullHandler())
        return logger

    numeric_level = getattr(logging, log_level, logging.INFO)
    logger.setLevel(numeric_level)

    formatter: logging.Formatter = (
        JSONFormatter() if json_format else logging.Formatter(DEFAULT_LOG_FORMAT)
    )

    handlers: list[logging.Handler] = []
    if log_to_stderr:
        handlers.append(logging.StreamHandler(sys.stderr))
    if file_path is not None:
        handlers.append(_build_file_handler(file_path, max_bytes, backup_count))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger; bare names get the package prefix."""
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)

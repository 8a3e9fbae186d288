"""
Audit logging of client requests for the Agent Standards MCP Server.

Every tool call produces two audit records:
- client_request: client id, tool name and raw arguments
- client_response: client id and either the result text or the error

Records go to the application log through the `agent_standards_mcp.audit`
logger and, when configured, to a dedicated JSON-lines audit file.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from agent_standards_mcp.errors import ToolError
from agent_standards_mcp.logging import get_logger

if TYPE_CHECKING:
    from agent_standards_mcp.config import LoggingConfig

logger = get_logger(__name__)

AUDIT_FILE_LOGGER_NAME = "agent_standards_mcp.audit.file"


class AuditLogger:
    """
    Structured audit logger for client requests and responses.

    Audit log format (JSON):
    {
        "timestamp": "2025-01-15T14:30:00+00:00",
        "event_type": "client_request",
        "client_id": "mcp-client",
        "method": "get_standards",
        "params": {"standard_names": ["python"]}
    }

    Example:
        >>> audit_logger = AuditLogger.from_config(config.logging)
        >>> audit_logger.log_client_request("mcp-client", "list_standards", {})
    """

    def __init__(
        self,
        audit_log_path: str | None = None,
        log_to_app_log: bool = True,
    ) -> None:
        """
        Initialize the audit logger.

        Args:
            audit_log_path: Optional path of a dedicated audit log file.
            log_to_app_log: Whether to also emit records on the application log.
        """
        self._audit_log_path = audit_log_path
        self._log_to_app_log = log_to_app_log
        self._file_logger: logging.Logger | None = None

        if audit_log_path:
            self._setup_file_logger(audit_log_path)

    @classmethod
    def from_config(cls, config: LoggingConfig) -> AuditLogger:
        """
        Create an AuditLogger from configuration.

        Args:
            config: LoggingConfig with audit log settings.

        Returns:
            Configured AuditLogger instance.
        """
        return cls(audit_log_path=config.audit_log_path, log_to_app_log=True)

    def _setup_file_logger(self, path: str) -> None:
        """
        Set up file logging for audit logs.

        Args:
            path: Path to the audit log file.
        """
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)

            self._file_logger = logging.getLogger(AUDIT_FILE_LOGGER_NAME)
            self._file_logger.setLevel(logging.INFO)
            self._file_logger.propagate = False

            for existing in list(self._file_logger.handlers):
                self._file_logger.removeHandler(existing)
                existing.close()

            handler = logging.FileHandler(path, mode="a", encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._file_logger.addHandler(handler)

            logger.info("Audit logging initialized", extra={"audit_log_path": path})
        except OSError as e:
            logger.error(
                "Failed to setup audit file logging",
                extra={"audit_log_path": path, "error": str(e)},
            )
            self._file_logger = None

    def log_client_request(self, client_id: str, method: str, params: Any) -> None:
        """
        Record an incoming client request.

        Args:
            client_id: Identifier of the calling client.
            method: Tool (or operation) name.
            params: Raw request arguments.
        """
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "event_type": "client_request",
            "client_id": client_id,
            "method": method,
            "params": params,
        }
        self._write_entry(entry, logging.INFO)

    def log_client_response(
        self,
        client_id: str,
        result: Any,
        error: BaseException | None,
    ) -> None:
        """
        Record the outcome of a client request.

        Args:
            client_id: Identifier of the calling client.
            result: Result sent to the client (ignored when error is set).
            error: The error the request failed with, if any.
        """
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "event_type": "client_response",
            "client_id": client_id,
        }

        if error is not None:
            entry["result"] = "error"
            entry["error"] = str(error)
            if isinstance(error, ToolError):
                entry["error_code"] = error.error_code
            self._write_entry(entry, logging.ERROR)
            return

        entry["result"] = "success"
        entry["response"] = result
        self._write_entry(entry, logging.INFO)

    def _write_entry(self, entry: dict[str, Any], level: int) -> None:
        """
        Write an audit log entry.

        Args:
            entry: The audit log entry to write.
            level: Level used on the application log.
        """
        if self._file_logger:
            self._file_logger.info(json.dumps(entry, default=str))

        if self._log_to_app_log:
            fields = {key: value for key, value in entry.items() if key != "timestamp"}
            logger.log(level, entry["event_type"], extra={"audit": fields})


# Global audit logger instance (initialized during app startup)
_audit_logger: AuditLogger | None = None


def get_audit_logger() -> AuditLogger:
    """
    Get the global audit logger instance.

    Returns:
        The configured AuditLogger, or a default one that only writes to the
        application log if none has been set.
    """
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def set_audit_logger(audit_logger: AuditLogger | None) -> None:
    """
    Set the global audit logger instance.

    Args:
        audit_logger: The AuditLogger to use globally, or None to reset.
    """
    global _audit_logger
    _audit_logger = audit_logger

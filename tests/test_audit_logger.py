"""
Tests for the audit logger module.

Tests cover:
- Audit logger initialization
- Client request and response records
- Error records with error codes
- File logging
- The global audit logger accessors
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import pytest

from agent_standards_mcp.audit import (
    AUDIT_FILE_LOGGER_NAME,
    AuditLogger,
    get_audit_logger,
    set_audit_logger,
)
from agent_standards_mcp.config import LoggingConfig
from agent_standards_mcp.errors import PathTraversalError

# =============================================================================
# Fixtures
# =============================================================================


class ListHandler(logging.Handler):
    """Handler that keeps every record it receives."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def app_records() -> Iterator[list[logging.LogRecord]]:
    """Capture records written to the application audit logger."""
    logger = logging.getLogger("agent_standards_mcp.audit")
    handler = ListHandler()
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler.records
    logger.removeHandler(handler)
    logger.setLevel(previous_level)


@pytest.fixture(autouse=True)
def _close_audit_file_handlers() -> Iterator[None]:
    """Close audit file handlers after each test (autouse fixture)."""
    yield
    file_logger = logging.getLogger(AUDIT_FILE_LOGGER_NAME)
    for handler in list(file_logger.handlers):
        file_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def audit_path(tmp_path: Path) -> Path:
    """Path of a dedicated audit log file."""
    return tmp_path / "audit" / "audit.log"


def _read_entries(path: Path) -> list[dict[str, object]]:
    for handler in logging.getLogger(AUDIT_FILE_LOGGER_NAME).handlers:
        handler.flush()
    return [json.loads(line) for line in path.read_text().splitlines()]


# =============================================================================
# Tests for AuditLogger Initialization
# =============================================================================


class TestAuditLoggerInit:
    """Tests for AuditLogger initialization."""

    def test_init_without_file(self, tmp_path: Path) -> None:
        """Test that no file is written without a path."""
        audit_logger = AuditLogger()
        audit_logger.log_client_request("mcp-client", "list_standards", {})

        assert audit_logger._file_logger is None
        assert list(tmp_path.iterdir()) == []

    def test_init_creates_directory(self, audit_path: Path) -> None:
        """Test that the audit file's directory is created."""
        AuditLogger(audit_log_path=str(audit_path))

        assert audit_path.parent.is_dir()

    def test_from_config(self, audit_path: Path) -> None:
        """Test creating an audit logger from configuration."""
        audit_logger = AuditLogger.from_config(
            LoggingConfig(audit_log_path=str(audit_path))
        )
        audit_logger.log_client_request("mcp-client", "list_standards", {})

        assert len(_read_entries(audit_path)) == 1

    def test_unwritable_path(self, tmp_path: Path) -> None:
        """Test that an unusable audit path falls back to the app log only."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        audit_logger = AuditLogger(audit_log_path=str(blocker / "audit.log"))

        assert audit_logger._file_logger is None


# =============================================================================
# Tests for Request and Response Records
# =============================================================================


class TestClientRecords:
    """Tests for client request and response records."""

    def test_request_record(self, app_records: list[logging.LogRecord]) -> None:
        """Test a client request is logged with its parameters."""
        AuditLogger().log_client_request(
            "mcp-client", "get_standards", {"standard_names": ["python"]}
        )

        record = app_records[0]
        assert record.levelno == logging.INFO
        assert record.getMessage() == "client_request"
        assert record.audit == {  # type: ignore[attr-defined]
            "event_type": "client_request",
            "client_id": "mcp-client",
            "method": "get_standards",
            "params": {"standard_names": ["python"]},
        }

    def test_success_response_record(
        self, app_records: list[logging.LogRecord]
    ) -> None:
        """Test a successful response carries the result text."""
        AuditLogger().log_client_response("mcp-client", "No standards found.", None)

        record = app_records[0]
        assert record.levelno == logging.INFO
        assert record.audit["result"] == "success"  # type: ignore[attr-defined]
        assert record.audit["response"] == "No standards found."  # type: ignore[attr-defined]

    def test_error_response_record(
        self, app_records: list[logging.LogRecord]
    ) -> None:
        """Test a failed response is logged at error level with its code."""
        error = PathTraversalError("path traversal detected: ../x.md")

        AuditLogger().log_client_response("mcp-client", None, error)

        record = app_records[0]
        assert record.levelno == logging.ERROR
        assert record.audit["result"] == "error"  # type: ignore[attr-defined]
        assert record.audit["error"] == "path traversal detected: ../x.md"  # type: ignore[attr-defined]
        assert record.audit["error_code"] == "validation_failed"  # type: ignore[attr-defined]

    def test_error_response_plain_exception(
        self, app_records: list[logging.LogRecord]
    ) -> None:
        """Test a non-ToolError error has no error code."""
        AuditLogger().log_client_response("mcp-client", None, RuntimeError("boom"))

        assert "error_code" not in app_records[0].audit  # type: ignore[attr-defined]

    def test_app_log_disabled(self, app_records: list[logging.LogRecord]) -> None:
        """Test nothing reaches the app log when disabled."""
        AuditLogger(log_to_app_log=False).log_client_request("mcp-client", "x", {})

        assert app_records == []


# =============================================================================
# Tests for File Logging
# =============================================================================


class TestFileLogging:
    """Tests for writing audit records to a file."""

    def test_request_and_response(self, audit_path: Path) -> None:
        """Test both records are written as JSON lines."""
        audit_logger = AuditLogger(audit_log_path=str(audit_path))

        audit_logger.log_client_request("mcp-client", "list_standards", {"limit": 5})
        audit_logger.log_client_response("mcp-client", "text", None)

        request_entry, response_entry = _read_entries(audit_path)
        assert request_entry["event_type"] == "client_request"
        assert request_entry["params"] == {"limit": 5}
        assert response_entry["event_type"] == "client_response"
        assert response_entry["response"] == "text"

    def test_timestamp_format(self, audit_path: Path) -> None:
        """Test the timestamp is an ISO 8601 UTC time."""
        AuditLogger(audit_log_path=str(audit_path)).log_client_request("c", "m", None)

        timestamp = _read_entries(audit_path)[0]["timestamp"]
        assert isinstance(timestamp, str)
        parsed = datetime.fromisoformat(timestamp)
        assert parsed.utcoffset() is not None
        assert parsed.utcoffset().total_seconds() == 0  # type: ignore[union-attr]

    def test_non_serializable_params(self, audit_path: Path) -> None:
        """Test parameters JSON cannot encode are stringified."""
        AuditLogger(audit_log_path=str(audit_path)).log_client_request(
            "c", "m", {"path": Path("/x")}
        )

        assert _read_entries(audit_path)[0]["params"] == {"path": "/x"}


# =============================================================================
# Tests for the Global Audit Logger
# =============================================================================


class TestGlobalAuditLogger:
    """Tests for the global audit logger accessors."""

    def test_get_audit_logger_default(self) -> None:
        """Test a default audit logger is created on first use."""
        audit_logger = get_audit_logger()

        assert isinstance(audit_logger, AuditLogger)
        assert get_audit_logger() is audit_logger

    def test_set_and_get_audit_logger(self) -> None:
        """Test a configured audit logger is returned."""
        audit_logger = AuditLogger(log_to_app_log=False)
        set_audit_logger(audit_logger)

        assert get_audit_logger() is audit_logger

    def test_reset(self) -> None:
        """Test resetting creates a fresh default."""
        first = get_audit_logger()
        set_audit_logger(None)

        assert get_audit_logger() is not first

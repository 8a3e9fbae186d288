"""
Pytest configuration for the Agent Standards MCP Server tests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from agent_standards_mcp.audit import set_audit_logger
from agent_standards_mcp.config import StandardsConfig

# Configure pytest-asyncio mode
pytest_plugins = ["pytest_asyncio"]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (deselect with '-m \"not integration\"')",
    )


class RecordingAudit:
    """In-memory audit collaborator that records every call."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, Any]] = []
        self.responses: list[tuple[str, Any, BaseException | None]] = []

    def log_client_request(self, client_id: str, method: str, params: Any) -> None:
        self.requests.append((client_id, method, params))

    def log_client_response(
        self, client_id: str, result: Any, error: BaseException | None
    ) -> None:
        self.responses.append((client_id, result, error))


@pytest.fixture(autouse=True)
def _cleanup_loggers() -> Iterator[None]:
    """Restore the package logger after each test (autouse fixture)."""
    yield
    logger = logging.getLogger("agent_standards_mcp")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture(autouse=True)
def reset_global_audit_logger() -> Iterator[None]:
    """Make sure no test leaks its audit logger into the next one."""
    yield
    set_audit_logger(None)


@pytest.fixture
def standards_dir(tmp_path: Path) -> Path:
    """Create an empty standards folder."""
    folder = tmp_path / "standards"
    folder.mkdir()
    return folder


@pytest.fixture
def write_standard(standards_dir: Path) -> Callable[..., Path]:
    """Return a helper that writes a standard file into the standards folder."""

    def _write(
        name: str,
        description: str | None = "A standard",
        content: str = "Follow the rules.",
    ) -> Path:
        path = standards_dir / f"{name}.md"
        if description is None:
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(
                f"---\ndescription: {description}\n---\n{content}\n",
                encoding="utf-8",
            )
        return path

    return _write


@pytest.fixture
def standards_config(standards_dir: Path) -> StandardsConfig:
    """Standards configuration pointing at the test folder."""
    return StandardsConfig(folder=str(standards_dir))


@pytest.fixture
def recording_audit() -> RecordingAudit:
    """Create an in-memory audit collaborator."""
    return RecordingAudit()

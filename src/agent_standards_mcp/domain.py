"""
Domain entities and collaborator contracts for the Agent Standards MCP Server.

StandardInfo and Standard are transient values built from the filesystem on
every call. StandardLoader and AuditSink describe the two collaborators the
tool handlers depend on, so tests can substitute in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class StandardInfo:
    """
    Summary of a standard, as returned by list operations.

    Attributes:
        name: Standard name (file base name without the .md extension).
        description: Description from the frontmatter, may be empty.
    """

    name: str
    description: str = ""


@dataclass(frozen=True)
class Standard:
    """
    Full standard, as returned by get operations.

    Attributes:
        name: Standard name as requested by the caller.
        description: Description from the frontmatter, may be empty.
        content: Markdown body following the frontmatter.
    """

    name: str
    description: str
    content: str


class StandardLoader(Protocol):
    """Read-only source of standards."""

    async def list_standards(self) -> list[StandardInfo]:
        """Return name and description of every available standard."""
        ...

    async def get_standards(self, standard_names: Sequence[str]) -> list[Standard]:
        """Return the full standards for the given names, skipping missing ones."""
        ...


class AuditSink(Protocol):
    """Receiver of client request/response audit records."""

    def log_client_request(self, client_id: str, method: str, params: Any) -> None:
        """Record an incoming client request."""
        ...

    def log_client_response(
        self, client_id: str, result: Any, error: BaseException | None
    ) -> None:
        """Record the outcome of a client request."""
        ...

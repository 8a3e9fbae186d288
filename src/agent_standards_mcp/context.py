"""
Per-call context handed to the standards tool handlers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_standards_mcp.protocol import JSONRPCRequest

# Client id written to audit records; stdio serves exactly one client
DEFAULT_CLIENT_ID = "mcp-client"


@dataclass
class ToolContext:
    """
    Who called which tool, in reply to which request.

    Attributes:
        tool_name: "list_standards" or "get_standards".
        client_id: Name the audit log records the caller under.
        request_id: JSON-RPC id of the tools/call request.
        timestamp: Time the call was received, in UTC.
        metadata: The request's _meta object, if it sent one.
    """

    tool_name: str
    client_id: str = DEFAULT_CLIENT_ID
    request_id: str | int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_request(
        cls,
        request: JSONRPCRequest,
        tool_name: str,
        client_id: str = DEFAULT_CLIENT_ID,
        metadata: dict[str, Any] | None = None,
    ) -> ToolContext:
        return cls(
            tool_name=tool_name,
            client_id=client_id,
            request_id=request.id,
            metadata=dict(metadata or {}),
        )

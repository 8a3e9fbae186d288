"""
Wire format of the Agent Standards MCP Server.

Every line on stdin is one JSON-RPC 2.0 message. This module turns a line into
a JSONRPCRequest, builds the response envelope written back to stdout, and
translates domain errors into JSON-RPC error objects.

Only protocol failures become JSON-RPC errors:

=========  ============================================================
Code       Raised for
=========  ============================================================
-32700     the line is not valid JSON
-32600     the message is not a JSON-RPC 2.0 request object
-32601     the MCP method is not implemented by this server
-32602     params are not an object, or tools/call names an unknown tool
-32603     the server itself failed while handling the message
-32003..   a ToolError escaped to the protocol layer (see ERROR_CODE_MAP)
=========  ============================================================

Failures of list_standards and get_standards are reported inside a
successful tools/call result instead (see ToolCallResult).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from agent_standards_mcp.errors import ToolError

JSONRPC_VERSION = "2.0"

# MCP revisions accepted in initialize, newest first
SUPPORTED_PROTOCOL_VERSIONS = (
    "2025-06-18",
    "2025-03-26",
    "2024-11-05",
)
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# ToolError.error_code -> JSON-RPC code
ERROR_CODE_MAP: dict[str, int] = {
    "invalid_argument": INVALID_PARAMS,
    "not_found": -32003,
    "validation_failed": -32004,
    "parse_error": -32005,
    "io_error": -32006,
    "internal": -32099,
}

DEFAULT_SERVER_ERROR = -32000

RequestId = str | int | None


class JSONRPCError(Exception):
    """
    A JSON-RPC error object that can be raised.

    Attributes:
        code: JSON-RPC error code.
        message: Message sent to the client.
        data: Optional payload with error_code, message and details.
    """

    def __init__(
        self,
        code: int,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        """Return the error member of a response; data is omitted when unset."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}, {self.message!r}, data={self.data!r})"


@dataclass
class JSONRPCRequest:
    """
    An incoming MCP message.

    A message without an id is a notification (for example
    notifications/initialized or notifications/cancelled) and gets no reply.
    """

    jsonrpc: str
    id: RequestId
    method: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return self.id is None


@dataclass
class JSONRPCResponse:
    """The reply to a request; carries either result or error."""

    jsonrpc: str
    id: RequestId
    result: Any | None = None
    error: JSONRPCError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.is_error:
            body["error"] = self.error.to_dict()  # type: ignore[union-attr]
        else:
            body["result"] = self.result
        return body

    def to_json(self) -> str:
        """Serialize to a single compact line; standard text is kept as UTF-8."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


@dataclass
class ToolCallResult:
    """
    The result member of a tools/call response.

    A tool that fails still produces a successful JSON-RPC response: the
    result has isError set and the error message as its only text, so the
    agent can read why its call was refused.
    """

    text: str
    is_error: bool = False
    structured: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def text_result(cls, text: str) -> ToolCallResult:
        return cls(text=text, structured={"result": text})

    @classmethod
    def error_result(cls, error: BaseException) -> ToolCallResult:
        message = error.message if isinstance(error, ToolError) else str(error)
        return cls(text=message, is_error=True, structured={"error": message})

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": [{"type": "text", "text": self.text}],
            "structuredContent": self.structured,
            "isError": self.is_error,
        }


def _invalid_request(reason: str) -> JSONRPCError:
    return JSONRPCError(code=INVALID_REQUEST, message=f"Invalid Request: {reason}")


def parse_request(line: str) -> JSONRPCRequest:
    """
    Decode one line read from stdin.

    Args:
        line: The raw message text, without the trailing newline.

    Returns:
        The decoded request. Missing or null params become an empty dict.

    Raises:
        JSONRPCError: PARSE_ERROR for bad JSON, INVALID_REQUEST for a message
            that is not a 2.0 request, INVALID_PARAMS for non-object params.
    """
    try:
        message = json.loads(line)
    except json.JSONDecodeError as e:
        raise JSONRPCError(
            code=PARSE_ERROR, message=f"Parse error: {e.msg} at column {e.colno}"
        ) from e

    if not isinstance(message, dict):
        raise _invalid_request("expected a JSON object")

    version = message.get("jsonrpc")
    if version != JSONRPC_VERSION:
        raise _invalid_request(f"unsupported jsonrpc version {version!r}")

    method = message.get("method")
    if not isinstance(method, str) or not method:
        raise _invalid_request("'method' must be a non-empty string")

    params = message.get("params")
    if params is None:
        params = {}
    elif not isinstance(params, dict):
        raise JSONRPCError(
            code=INVALID_PARAMS,
            message=f"Invalid params: expected an object for {method}",
        )

    return JSONRPCRequest(
        jsonrpc=JSONRPC_VERSION,
        id=message.get("id"),
        method=method,
        params=params,
    )


def format_success_response(request_id: RequestId, result: Any) -> JSONRPCResponse:
    return JSONRPCResponse(jsonrpc=JSONRPC_VERSION, id=request_id, result=result)


def format_error_response(
    request_id: RequestId, error: JSONRPCError
) -> JSONRPCResponse:
    """Build an error reply; request_id is None when the line could not be parsed."""
    return JSONRPCResponse(jsonrpc=JSONRPC_VERSION, id=request_id, error=error)


def _error_data(error_code: str, message: str, details: dict[str, Any]) -> dict[str, Any]:
    return {"error_code": error_code, "message": message, "details": details}


def tool_error_to_jsonrpc_error(tool_error: ToolError) -> JSONRPCError:
    """
    Translate a domain error into a JSON-RPC error.

    Codes missing from ERROR_CODE_MAP fall back to DEFAULT_SERVER_ERROR.
    """
    return JSONRPCError(
        code=ERROR_CODE_MAP.get(tool_error.error_code, DEFAULT_SERVER_ERROR),
        message=tool_error.message,
        data=tool_error.to_dict(),
    )


def create_method_not_found_error(method: str) -> JSONRPCError:
    return JSONRPCError(
        code=METHOD_NOT_FOUND,
        message=f"Method not found: {method}",
        data=_error_data(
            "not_found",
            f"This server does not implement {method}",
            {"method": method},
        ),
    )


def create_internal_error(
    message: str, details: dict[str, Any] | None = None
) -> JSONRPCError:
    return JSONRPCError(
        code=INTERNAL_ERROR,
        message=message,
        data=_error_data("internal", message, details or {}),
    )


def negotiate_protocol_version(requested: Any) -> str:
    """Echo the client's protocolVersion when supported, else offer the latest."""
    if requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return LATEST_PROTOCOL_VERSION

"""
MCP Server implementation for the Agent Standards MCP Server.

This module implements the MCPServer class that communicates via JSON-RPC 2.0
over stdio (stdin/stdout), answers the MCP lifecycle methods, and dispatches
tools/call requests to the registered tools.

Supported methods:
- initialize: protocol version negotiation, server info, capabilities
- ping
- tools/list: advertise the registered tools and their schemas
- tools/call: invoke a tool; tool failures are returned in-band (isError)
- notifications/*: accepted without a response; notifications/cancelled
  cancels the matching in-flight request
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TextIO

from agent_standards_mcp import __version__
from agent_standards_mcp.context import DEFAULT_CLIENT_ID, ToolContext
from agent_standards_mcp.errors import InvalidArgumentError, ToolError
from agent_standards_mcp.logging import get_logger
from agent_standards_mcp.protocol import (
    INVALID_PARAMS,
    JSONRPCError,
    JSONRPCRequest,
    ToolCallResult,
    create_internal_error,
    create_method_not_found_error,
    format_error_response,
    format_success_response,
    negotiate_protocol_version,
    parse_request,
    tool_error_to_jsonrpc_error,
)
from agent_standards_mcp.prompts import SYSTEM_PROMPT
from agent_standards_mcp.routing import ToolRegistry
from agent_standards_mcp.standards.loader import FileStandardLoader
from agent_standards_mcp.tools.standards import StandardsTools

if TYPE_CHECKING:
    from agent_standards_mcp.config import AppConfig
    from agent_standards_mcp.domain import AuditSink, StandardLoader

logger = get_logger(__name__)

RequestId = str | int
CancelCallback = Callable[[RequestId], bool]


@dataclass(frozen=True)
class ServerInfo:
    """
    Identity reported to clients in the initialize response.

    Attributes:
        name: Machine-readable server name.
        version: Server version.
        title: Human-readable server title.
        instructions: Usage instructions for the client model.
    """

    name: str = "agent-standards-mcp"
    version: str = __version__
    title: str | None = None
    instructions: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the MCP Implementation shape."""
        result: dict[str, Any] = {"name": self.name, "version": self.version}
        if self.title is not None:
            result["title"] = self.title
        return result


# =============================================================================
# Method Handlers
# =============================================================================


def _handle_initialize(request: JSONRPCRequest, server_info: ServerInfo) -> dict[str, Any]:
    result: dict[str, Any] = {
        "protocolVersion": negotiate_protocol_version(
            request.params.get("protocolVersion")
        ),
        "capabilities": {"tools": {"listChanged": False}},
        "serverInfo": server_info.to_dict(),
    }
    if server_info.instructions:
        result["instructions"] = server_info.instructions

    client_info = request.params.get("clientInfo")
    logger.info(
        "Client initialized session",
        extra={
            "client_info": client_info if isinstance(client_info, dict) else None,
            "protocol_version": result["protocolVersion"],
        },
    )
    return result


def _handle_tools_list(registry: ToolRegistry) -> dict[str, Any]:
    return {"tools": [spec.to_dict() for spec in registry.list_tools()]}


async def _handle_tools_call(
    request: JSONRPCRequest,
    registry: ToolRegistry,
    client_id: str,
) -> dict[str, Any]:
    """
    Invoke a tool and convert its outcome into a CallToolResult.

    Raises:
        JSONRPCError: If the tool name or arguments are malformed, or the
            tool is not registered.
    """
    name = request.params.get("name")
    if not isinstance(name, str) or not name:
        raise JSONRPCError(
            code=INVALID_PARAMS,
            message="Invalid params: 'name' must be a non-empty string",
        )

    arguments = request.params.get("arguments")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise JSONRPCError(
            code=INVALID_PARAMS,
            message="Invalid params: 'arguments' must be an object",
        )

    if not registry.has_tool(name):
        raise tool_error_to_jsonrpc_error(
            InvalidArgumentError(f"Unknown tool: {name}", details={"tool": name})
        )

    meta = request.params.get("_meta")
    ctx = ToolContext.from_request(
        request,
        tool_name=name,
        client_id=client_id,
        metadata=meta if isinstance(meta, dict) else None,
    )

    try:
        text = await registry.invoke(name, ctx, arguments)
    except ToolError as e:
        logger.warning(
            "Tool call failed",
            extra={
                "call": ctx.to_dict(),
                "error_code": e.error_code,
                "error": e.message,
            },
        )
        return ToolCallResult.error_result(e).to_dict()

    return ToolCallResult.text_result(text).to_dict()


def _handle_notification(
    request: JSONRPCRequest,
    cancel_request: CancelCallback | None,
) -> None:
    if request.method == "notifications/cancelled":
        target = request.params.get("requestId")
        if cancel_request is not None and isinstance(target, (str, int)):
            cancelled = cancel_request(target)
            logger.info(
                "Cancellation requested",
                extra={
                    "request_id": target,
                    "cancelled": cancelled,
                    "reason": request.params.get("reason"),
                },
            )
        return

    logger.debug("Notification received", extra={"method": request.method})


async def process_request(
    request_json: str,
    registry: ToolRegistry,
    server_info: ServerInfo | None = None,
    client_id: str = DEFAULT_CLIENT_ID,
    cancel_request: CancelCallback | None = None,
) -> str | None:
    """
    Process a single JSON-RPC request and return the response.

    This function handles the complete request lifecycle:
    1. Parse the JSON-RPC request
    2. Dispatch on the MCP method
    3. Format the response (success or error)

    Args:
        request_json: Raw JSON string containing the request.
        registry: ToolRegistry with registered tools.
        server_info: Identity reported by initialize.
        client_id: Identifier recorded for tool calls on this channel.
        cancel_request: Callback used by notifications/cancelled.

    Returns:
        JSON string containing the response, or None for notifications.
    """
    request_id: RequestId | None = None
    server_info = server_info if server_info is not None else ServerInfo()

    try:
        request = parse_request(request_json)
        request_id = request.id

        if request.is_notification:
            _handle_notification(request, cancel_request)
            return None

        if request.method == "initialize":
            result: Any = _handle_initialize(request, server_info)
        elif request.method == "ping":
            result = {}
        elif request.method == "tools/list":
            result = _handle_tools_list(registry)
        elif request.method == "tools/call":
            result = await _handle_tools_call(request, registry, client_id)
        else:
            raise create_method_not_found_error(request.method)

        return format_success_response(request_id, result).to_json()

    except JSONRPCError as e:
        return format_error_response(request_id, e).to_json()

    except ToolError as e:
        jsonrpc_error = tool_error_to_jsonrpc_error(e)
        return format_error_response(request_id, jsonrpc_error).to_json()

    except Exception as e:
        logger.exception(
            "Unexpected error processing request",
            extra={"request_id": request_id, "error": str(e)},
        )
        jsonrpc_error = create_internal_error(
            message=f"Internal server error: {type(e).__name__}",
            details={"exception": str(e)},
        )
        return format_error_response(request_id, jsonrpc_error).to_json()


def _peek_request_id(request_json: str) -> RequestId | None:
    """Return the id of a request without validating it, if there is one."""
    try:
        data = json.loads(request_json)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or "method" not in data:
        return None
    request_id = data.get("id")
    return request_id if isinstance(request_id, (str, int)) else None


class MCPServer:
    """
    MCP Server that communicates via JSON-RPC 2.0 over stdio.

    The server reads one JSON-RPC message per line from stdin, handles each
    request in its own task, and writes responses to stdout.

    Example:
        >>> server = MCPServer(registry=registry, server_info=ServerInfo(name="x"))
        >>> await server.run()

    Attributes:
        registry: ToolRegistry with registered tools.
        server_info: Identity reported by initialize.
        running: Whether the server is currently running.
    """

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        server_info: ServerInfo | None = None,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        client_id: str = DEFAULT_CLIENT_ID,
    ) -> None:
        """
        Initialize the MCP Server.

        Args:
            registry: Optional ToolRegistry. An empty registry if not provided.
            server_info: Optional identity for the initialize response.
            stdin: Optional stdin stream. Uses sys.stdin if not provided.
            stdout: Optional stdout stream. Uses sys.stdout if not provided.
            client_id: Identifier recorded for tool calls on this channel.
        """
        self.registry = registry if registry is not None else ToolRegistry()
        self.server_info = server_info if server_info is not None else ServerInfo()
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._client_id = client_id
        self._in_flight: dict[RequestId, asyncio.Task[None]] = {}
        self.running = False

    async def handle_request(self, request_json: str) -> str | None:
        """
        Handle a single JSON-RPC request.

        Args:
            request_json: Raw JSON string containing the request.

        Returns:
            JSON string containing the response, or None for notifications.
        """
        return await process_request(
            request_json,
            self.registry,
            server_info=self.server_info,
            client_id=self._client_id,
            cancel_request=self.cancel_request,
        )

    def cancel_request(self, request_id: RequestId) -> bool:
        """
        Cancel an in-flight request.

        Reads already in progress finish, but no further files are read and
        no response is sent for the cancelled request.

        Args:
            request_id: Id of the request to cancel.

        Returns:
            True if a running request was found and cancelled.
        """
        task = self._in_flight.get(request_id)
        if task is None or task.done():
            return False
        return task.cancel()

    async def _serve_line(self, request_json: str) -> None:
        """Handle one line and write its response, if any."""
        response = await self.handle_request(request_json)
        if response:
            self._write_response(response)

    def _dispatch(self, request_json: str) -> asyncio.Task[None]:
        """Start handling a line in its own task and track it by request id."""
        task = asyncio.create_task(self._serve_line(request_json))
        request_id = _peek_request_id(request_json)
        if request_id is not None:
            self._in_flight[request_id] = task

            def _forget(_task: asyncio.Task[None]) -> None:
                if self._in_flight.get(request_id) is _task:
                    del self._in_flight[request_id]

            task.add_done_callback(_forget)
        return task

    async def run(self) -> None:
        """
        Run the server, reading from stdin and writing to stdout.

        The server runs until stdin is closed or stop() is called. Requests
        still being handled when input ends are allowed to finish.
        """
        self.running = True
        logger.info("MCP Server starting", extra={"tools_count": len(self.registry)})

        pending: set[asyncio.Task[None]] = set()

        try:
            loop = asyncio.get_event_loop()
            reader = asyncio.StreamReader()
            protocol = asyncio.StreamReaderProtocol(reader)

            await loop.connect_read_pipe(lambda: protocol, self._stdin)

            while self.running:
                line = await reader.readline()
                if not line:
                    # EOF reached
                    break

                try:
                    request_json = line.decode("utf-8").strip()
                except UnicodeDecodeError as e:
                    logger.warning(
                        "Invalid UTF-8 encoding in request",
                        extra={"error": str(e)},
                    )
                    error = create_internal_error(
                        "Invalid request encoding: UTF-8 required"
                    )
                    self._write_response(format_error_response(None, error).to_json())
                    continue

                if not request_json:
                    continue

                task = self._dispatch(request_json)
                pending.add(task)
                task.add_done_callback(pending.discard)

            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        finally:
            self.running = False
            logger.info("MCP Server stopped")

    def stop(self) -> None:
        """Stop the server gracefully."""
        self.running = False

    def _write_response(self, response_json: str) -> None:
        """Write a response to stdout."""
        self._stdout.write(response_json + "\n")
        self._stdout.flush()


def create_server(
    config: AppConfig,
    loader: StandardLoader | None = None,
    audit: AuditSink | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> MCPServer:
    """
    Create an MCP Server with the standards tools registered.

    Args:
        config: Application configuration.
        loader: Optional standards loader. A FileStandardLoader over the
            configured folder if not provided.
        audit: Optional audit collaborator. The global audit logger if not
            provided.
        stdin: Optional stdin stream.
        stdout: Optional stdout stream.

    Returns:
        Configured MCPServer instance.

    Example:
        >>> server = create_server(load_config())
        >>> asyncio.run(server.run())
    """
    if loader is None:
        loader = FileStandardLoader(config.standards)

    registry = ToolRegistry()
    StandardsTools(loader, audit=audit).register(registry)

    server_info = ServerInfo(
        name=config.server.name,
        version=__version__,
        title=config.server.title,
        instructions=SYSTEM_PROMPT,
    )
    return MCPServer(
        registry=registry,
        server_info=server_info,
        stdin=stdin,
        stdout=stdout,
    )

"""
Tool routing and registration for the Agent Standards MCP Server.

This module provides:
- ToolSpec: a tool's name, description, JSON schemas and handler
- ToolRegistry: a registry mapping tool names to their specs
- Handler dispatch with error handling
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agent_standards_mcp.errors import InternalError, InvalidArgumentError, ToolError

if TYPE_CHECKING:
    from agent_standards_mcp.context import ToolContext

# A tool handler receives the call context and the tool arguments and returns
# the text to send back to the client
ToolHandler = Callable[["ToolContext", dict[str, Any]], Awaitable[str]]


@dataclass
class ToolSpec:
    """
    Description of a tool as advertised by tools/list.

    Attributes:
        name: Tool name (e.g., "list_standards").
        description: Description shown to the model.
        handler: Async function that handles the tool call.
        title: Human-readable title.
        input_schema: JSON schema of the tool arguments.
        output_schema: JSON schema of the structured result.
    """

    name: str
    description: str
    handler: ToolHandler
    title: str | None = None
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    output_schema: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the MCP Tool shape.

        Returns:
            Dictionary with name, title, description and schemas.
        """
        result: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
        if self.title is not None:
            result["title"] = self.title
        if self.output_schema is not None:
            result["outputSchema"] = self.output_schema
        return result


class ToolRegistry:
    """
    Registry for mapping tool names to tool specs.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(ToolSpec(name="list_standards", description="...", handler=h))
        >>> text = await registry.invoke("list_standards", ctx, {})
    """

    def __init__(self) -> None:
        """Initialize an empty tool registry."""
        self._tools: dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        """
        Register a tool.

        Args:
            spec: The tool to register.

        Raises:
            ValueError: If a tool is already registered under the same name.
        """
        if spec.name in self._tools:
            raise ValueError(f"Tool '{spec.name}' is already registered")
        self._tools[spec.name] = spec

    def has_tool(self, name: str) -> bool:
        """
        Check if a tool is registered.

        Args:
            name: Tool name to check.

        Returns:
            True if the tool is registered, False otherwise.
        """
        return name in self._tools

    def get_tool(self, name: str) -> ToolSpec | None:
        """
        Get a tool by name.

        Args:
            name: Tool name to look up.

        Returns:
            The ToolSpec, or None if not found.
        """
        return self._tools.get(name)

    def list_tools(self) -> list[ToolSpec]:
        """
        List all registered tools in registration order.

        Returns:
            List of registered ToolSpecs.
        """
        return list(self._tools.values())

    async def invoke(
        self,
        name: str,
        ctx: ToolContext,
        arguments: dict[str, Any],
    ) -> str:
        """
        Invoke a tool by name.

        Args:
            name: Tool name to invoke.
            ctx: ToolContext for the request.
            arguments: Tool arguments to pass to the handler.

        Returns:
            The handler's text result.

        Raises:
            ToolError: If the tool is not found or the handler raises
                ToolError; other exceptions are wrapped in InternalError.
        """
        spec = self.get_tool(name)
        if spec is None:
            raise InvalidArgumentError(
                f"Unknown tool: {name}",
                details={"tool": name},
            )

        try:
            return await spec.handler(ctx, arguments)
        except ToolError:
            raise
        except Exception as e:
            raise InternalError(
                message=f"Internal error in tool '{name}': {e!s}",
                details={"tool": name, "exception_type": type(e).__name__},
            ) from e

    def __contains__(self, name: str) -> bool:
        """Check if a tool is registered (for 'in' operator)."""
        return name in self._tools

    def __len__(self) -> int:
        """Return the number of registered tools."""
        return len(self._tools)

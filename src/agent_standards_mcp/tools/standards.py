"""
Standards tools for the Agent Standards MCP Server.

This module implements the two tools exposed to clients:
- list_standards: list every standard as "<name>: <description>"
- get_standards: return the full text of the requested standards

Both tools audit the raw request before touching the repository and audit
the formatted text (or the error) before returning. A call cancelled by the
client is audited as a "cancelled" error before the cancellation propagates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

from agent_standards_mcp.audit import get_audit_logger
from agent_standards_mcp.context import ToolContext
from agent_standards_mcp.domain import AuditSink, Standard, StandardInfo, StandardLoader
from agent_standards_mcp.errors import InvalidArgumentError, RequestCancelledError
from agent_standards_mcp.logging import get_logger
from agent_standards_mcp.prompts import (
    FOLLOW_STANDARDS_PREAMBLE,
    GET_STANDARDS_DESCRIPTION,
    LIST_STANDARDS_DESCRIPTION,
    LIST_STANDARDS_PREAMBLE,
    NO_STANDARDS_FOUND,
)
from agent_standards_mcp.routing import ToolRegistry, ToolSpec

logger = get_logger(__name__)

LIST_STANDARDS_TOOL = "list_standards"
GET_STANDARDS_TOOL = "get_standards"

STANDARD_SEPARATOR = "\n\n------\n\n"

CANCELLED_MESSAGE = "request cancelled by client"

LIST_STANDARDS_INPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "limit": {
            "type": "integer",
            "description": "Maximum number of standards to return",
        },
    },
}

GET_STANDARDS_INPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "standard_names": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of standard names to retrieve",
        },
    },
    "required": ["standard_names"],
}

LIST_STANDARDS_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "result": {
            "type": "string",
            "description": "Plain text formatted list of standards with names and descriptions",
        },
    },
}

GET_STANDARDS_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "result": {
            "type": "string",
            "description": "Plain text formatted standards with names, descriptions, and content",
        },
    },
}


# =============================================================================
# Input Coercion
# =============================================================================


def coerce_standard_names(arguments: dict[str, Any]) -> list[str]:
    """
    Extract and validate the standard_names argument.

    JSON arrays arrive as lists of arbitrary values, so every element is
    checked individually.

    Args:
        arguments: Raw tool arguments.

    Returns:
        The standard names as a list of strings.

    Raises:
        InvalidArgumentError: If the argument is missing, is not a list,
            or contains a non-string element.
    """
    if "standard_names" not in arguments:
        raise InvalidArgumentError(
            "standard_names parameter is required",
            details={"parameter": "standard_names"},
        )

    raw = arguments["standard_names"]
    if not isinstance(raw, (list, tuple)):
        raise InvalidArgumentError(
            "standard_names must be an array of strings",
            details={"parameter": "standard_names", "type": type(raw).__name__},
        )

    for index, value in enumerate(raw):
        if not isinstance(value, str):
            raise InvalidArgumentError(
                "standard_names must be an array of strings",
                details={
                    "parameter": "standard_names",
                    "index": index,
                    "type": type(value).__name__,
                },
            )

    return list(raw)


# =============================================================================
# Output Formatting
# =============================================================================


def format_standard_info(info: StandardInfo) -> str:
    """Format a single StandardInfo as "<name>: <description>"."""
    return f"{info.name}: {info.description}"


def format_standard(standard: Standard) -> str:
    """Format a single Standard as a heading followed by a fenced block."""
    return f"## {standard.name}: {standard.description}\n```md\n{standard.content}\n```"


def format_standard_infos(infos: Sequence[StandardInfo]) -> str:
    """
    Format the list_standards output.

    Args:
        infos: Standards in repository order.

    Returns:
        The preamble followed by one line per standard, or the
        no-standards message.
    """
    if not infos:
        return NO_STANDARDS_FOUND

    lines = "\n".join(format_standard_info(info) for info in infos)
    return f"{LIST_STANDARDS_PREAMBLE}\n{lines}"


def format_standards(standards: Sequence[Standard]) -> str:
    """
    Format the get_standards output.

    Args:
        standards: Standards in request order.

    Returns:
        The preamble followed by each standard, separated by a "------"
        line, or the no-standards message.
    """
    if not standards:
        return NO_STANDARDS_FOUND

    blocks = STANDARD_SEPARATOR.join(format_standard(s) for s in standards)
    return f"{FOLLOW_STANDARDS_PREAMBLE}\n\n{blocks}"


# =============================================================================
# Tool Handlers
# =============================================================================


class StandardsTools:
    """
    Tool handlers backed by a standards loader.

    Example:
        >>> tools = StandardsTools(FileStandardLoader(config.standards))
        >>> tools.register(registry)
    """

    def __init__(self, loader: StandardLoader, audit: AuditSink | None = None) -> None:
        """
        Initialize the tools.

        Args:
            loader: Source of standards.
            audit: Audit collaborator; the global audit logger if omitted.
        """
        self._loader = loader
        self._audit = audit if audit is not None else get_audit_logger()

    async def handle_list_standards(
        self,
        ctx: ToolContext,
        arguments: dict[str, Any],
    ) -> str:
        """
        Handle the list_standards tool call.

        The optional `limit` argument is accepted but not applied.

        Args:
            ctx: The ToolContext for this request.
            arguments: Tool arguments.

        Returns:
            Formatted list of standards.
        """
        self._audit.log_client_request(ctx.client_id, ctx.tool_name, arguments)

        try:
            infos = await self._loader.list_standards()
        except asyncio.CancelledError:
            self._audit.log_client_response(
                ctx.client_id, None, RequestCancelledError(CANCELLED_MESSAGE)
            )
            raise
        except Exception as e:
            self._audit.log_client_response(ctx.client_id, None, e)
            raise

        result = format_standard_infos(infos)
        self._audit.log_client_response(ctx.client_id, result, None)

        logger.info(
            "Listed standards",
            extra={"request_id": ctx.request_id, "count": len(infos)},
        )
        return result

    async def handle_get_standards(
        self,
        ctx: ToolContext,
        arguments: dict[str, Any],
    ) -> str:
        """
        Handle the get_standards tool call.

        Args:
            ctx: The ToolContext for this request.
            arguments: Tool arguments with a `standard_names` array.

        Returns:
            Formatted standards.

        Raises:
            InvalidArgumentError: If standard_names is missing or mistyped.
        """
        self._audit.log_client_request(ctx.client_id, ctx.tool_name, arguments)

        try:
            standard_names = coerce_standard_names(arguments)
            standards = await self._loader.get_standards(standard_names)
        except asyncio.CancelledError:
            self._audit.log_client_response(
                ctx.client_id, None, RequestCancelledError(CANCELLED_MESSAGE)
            )
            raise
        except Exception as e:
            self._audit.log_client_response(ctx.client_id, None, e)
            raise

        result = format_standards(standards)
        self._audit.log_client_response(ctx.client_id, result, None)

        logger.info(
            "Retrieved standards",
            extra={
                "request_id": ctx.request_id,
                "requested": len(standard_names),
                "returned": len(standards),
            },
        )
        return result

    def tool_specs(self) -> list[ToolSpec]:
        """Return the specs of the list_standards and get_standards tools."""
        return [
            ToolSpec(
                name=LIST_STANDARDS_TOOL,
                title="List Standards",
                description=LIST_STANDARDS_DESCRIPTION,
                handler=self.handle_list_standards,
                input_schema=LIST_STANDARDS_INPUT_SCHEMA,
                output_schema=LIST_STANDARDS_OUTPUT_SCHEMA,
            ),
            ToolSpec(
                name=GET_STANDARDS_TOOL,
                title="Get Standards",
                description=GET_STANDARDS_DESCRIPTION,
                handler=self.handle_get_standards,
                input_schema=GET_STANDARDS_INPUT_SCHEMA,
                output_schema=GET_STANDARDS_OUTPUT_SCHEMA,
            ),
        ]

    def register(self, registry: ToolRegistry) -> None:
        """
        Register both tools with a registry.

        Args:
            registry: Registry to add the tools to.
        """
        for spec in self.tool_specs():
            registry.register(spec)

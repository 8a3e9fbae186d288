"""
MCP tools for the Agent Standards MCP Server.

Modules:
- standards: list_standards and get_standards
"""

from agent_standards_mcp.tools.standards import (
    GET_STANDARDS_TOOL,
    LIST_STANDARDS_TOOL,
    StandardsTools,
    coerce_standard_names,
    format_standard_infos,
    format_standards,
)

__all__ = [
    "GET_STANDARDS_TOOL",
    "LIST_STANDARDS_TOOL",
    "StandardsTools",
    "coerce_standard_names",
    "format_standard_infos",
    "format_standards",
]

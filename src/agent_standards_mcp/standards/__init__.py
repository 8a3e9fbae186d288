"""
Standards repository for the Agent Standards MCP Server.

Modules:
- frontmatter: split a markdown standard into description and content
- validator: path containment, size and count checks
- loader: filesystem-backed repository used by the tool handlers
"""

from agent_standards_mcp.standards.frontmatter import parse_frontmatter
from agent_standards_mcp.standards.loader import FileStandardLoader, extract_standard_name
from agent_standards_mcp.standards.validator import ValidationPolicy, is_path_traversal

__all__ = [
    "FileStandardLoader",
    "ValidationPolicy",
    "extract_standard_name",
    "is_path_traversal",
    "parse_frontmatter",
]

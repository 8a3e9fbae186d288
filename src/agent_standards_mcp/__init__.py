"""
Agent Standards MCP Server.

This package serves curated markdown guidance documents ("standards") to MCP
clients over JSON-RPC 2.0 on stdio. Clients discover the available standards
with `list_standards` and fetch their full text with `get_standards`.
"""

__version__ = "1.0.0"

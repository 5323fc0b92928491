"""FastMCP middleware for the Capacities MCP Server."""

from .mcp_logging import MCPLoggingMiddleware

__all__ = ["MCPLoggingMiddleware"]

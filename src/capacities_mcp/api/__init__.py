"""Tool handlers for the Capacities MCP server."""

from . import mutations, read_query
from .results import ToolOutcome, error_result, success_result, unsupported_result

__all__ = [
    "ToolOutcome",
    "error_result",
    "mutations",
    "read_query",
    "success_result",
    "unsupported_result",
]

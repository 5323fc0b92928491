"""Capacities MCP Server: MCP tools for the Capacities knowledge base API."""

__version__ = "0.1.0"

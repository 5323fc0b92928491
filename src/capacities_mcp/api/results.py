"""
Tool result assembly.

Every tool returns exactly one of three shapes, each paired with a markdown
rendering of the same content:

- success: ``{"tool": ..., <tool fields>}``
- unsupported: ``{"tool": ..., "supported": False, "error": {...}, "details": {...}}``
- error: ``{"tool": ..., "ok": False, "error": {...}}``

Only the error shape is flagged ``isError`` on the MCP result; unsupported is
a declared outcome, not a failure.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from fastmcp.tools.tool import ToolResult
from mcp.types import CallToolResult

from ..errors import UnsupportedError, normalize_error


class CapacitiesToolResult(ToolResult):
    """A ToolResult that carries the MCP ``isError`` flag to the client."""

    def __init__(
        self,
        content: Any = None,
        structured_content: dict[str, Any] | None = None,
        is_error: bool = False,
    ) -> None:
        super().__init__(content=content, structured_content=structured_content)
        self.is_error = is_error

    def to_mcp_result(self):
        if not self.is_error:
            return super().to_mcp_result()
        return CallToolResult(
            content=self.content,
            structuredContent=self.structured_content,
            isError=True,
        )


@dataclass(frozen=True)
class ToolOutcome:
    """The rendered and structured result of one tool call."""

    tool: str
    markdown: str
    structured: dict[str, Any] = field(default_factory=dict)
    is_error: bool = False

    @property
    def supported(self) -> bool:
        return self.structured.get("supported", True) is not False

    def to_tool_result(self) -> CapacitiesToolResult:
        """Convert to a FastMCP result carrying text, structured content and the error flag."""
        return CapacitiesToolResult(
            content=self.markdown, structured_content=self.structured, is_error=self.is_error
        )


def success_result(tool: str, markdown: str, payload: dict[str, Any]) -> ToolOutcome:
    return ToolOutcome(tool=tool, markdown=markdown, structured={"tool": tool, **payload})


def unsupported_result(tool: str, message: str, details: dict[str, Any]) -> ToolOutcome:
    """Build the explicit-unsupported shape for a capability the API lacks."""
    error = UnsupportedError(message)
    markdown = "\n".join(
        [
            f"## {tool}",
            "",
            "- Supported: **no**",
            f"- Error code: `{error.code.value}`",
            f"- Message: {error.message}",
            f"- Action: {error.actionable_message}",
            "",
            "### Details",
            "```json",
            json.dumps(details, indent=2, default=str),
            "```",
        ]
    )
    return ToolOutcome(
        tool=tool,
        markdown=markdown,
        structured={
            "tool": tool,
            "supported": False,
            "error": {
                "code": error.code.value,
                "message": error.message,
                "actionable_message": error.actionable_message,
            },
            "details": details,
        },
    )


def error_result(tool: str, error: BaseException) -> ToolOutcome:
    """Build the error shape, classifying the exception if needed."""
    classified = normalize_error(error)
    lines = [
        f"## {tool} error",
        "",
        f"- Code: `{classified.code.value}`",
        f"- Message: {classified.message}",
    ]
    if classified.status is not None:
        lines.append(f"- Status: {classified.status}")
    lines.append(f"- Action: {classified.actionable_message}")

    return ToolOutcome(
        tool=tool,
        markdown="\n".join(lines),
        structured={"tool": tool, "ok": False, "error": classified.to_dict()},
        is_error=True,
    )

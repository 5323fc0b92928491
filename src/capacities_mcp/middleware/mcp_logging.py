"""
MCP request/response logging middleware

Logs every client MCP request and response with a ``CLIENT_MCP`` prefix so the
client-facing traffic can be filtered out of the log file easily.
"""

import json
import logging
import time
from typing import Any

from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext

logger = logging.getLogger(__name__)


class MCPLoggingMiddleware(Middleware):
    """
    Middleware that logs client MCP traffic.

    Args:
        log_request_params: Log tool and prompt arguments
        log_response_data: Log tool results
        max_log_length: Truncate logged data beyond this many characters
    """

    def __init__(
        self,
        log_request_params: bool = True,
        log_response_data: bool = False,
        max_log_length: int = 5000,
    ) -> None:
        self.log_request_params = log_request_params
        self.log_response_data = log_response_data
        self.max_log_length = max_log_length

    def _truncate_data(self, data: Any, max_length: int) -> str:
        try:
            text = json.dumps(data, default=str, indent=2)
        except (TypeError, ValueError):
            text = str(data)

        if len(text) <= max_length:
            return text
        return f"{text[:max_length]}... ({len(text)} chars total)"

    def _log_arguments(self, tool_name: str, arguments: dict[str, Any] | None) -> None:
        if not arguments:
            logger.info(f"CLIENT_MCP   Tool '{tool_name}' arguments: (none)")
            return
        logger.info(
            f"CLIENT_MCP   Tool '{tool_name}' arguments: "
            f"{self._truncate_data(arguments, self.max_log_length)}"
        )

    def _log_result(self, tool_name: str, result: Any) -> None:
        logger.info(
            f"CLIENT_MCP   Tool '{tool_name}' result: "
            f"{self._truncate_data(result, self.max_log_length)}"
        )

    async def on_initialize(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        params = getattr(context.message, "params", None)
        client_info = getattr(params, "clientInfo", None) if params else None
        client_name = getattr(client_info, "name", None) or "unknown"
        client_version = getattr(client_info, "version", None) or "unknown"
        protocol = getattr(params, "protocolVersion", None) if params else None

        logger.info(
            f"CLIENT_MCP → Initialize: {client_name} v{client_version} "
            f"(protocol: {protocol or 'unknown'})"
        )
        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(f"CLIENT_MCP ✗ Initialize error: {type(e).__name__}: {e}")
            raise
        logger.info("CLIENT_MCP ← Initialize complete")
        return result

    async def on_call_tool(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        tool_name = getattr(context.message, "name", "unknown")
        arguments = getattr(context.message, "arguments", None)

        logger.info(f"CLIENT_MCP → Tool call: {tool_name}")
        if self.log_request_params:
            self._log_arguments(tool_name, arguments)

        start_time = time.time()
        try:
            result = await call_next(context)
        except Exception as e:
            duration = (time.time() - start_time) * 1000
            logger.error(
                f"CLIENT_MCP ✗ Tool error: {tool_name} ({duration:.2f}ms) - "
                f"{type(e).__name__}: {e}"
            )
            raise

        duration = (time.time() - start_time) * 1000
        logger.info(f"CLIENT_MCP ← Tool result: {tool_name} ({duration:.2f}ms)")
        if self.log_response_data:
            self._log_result(tool_name, result)
        return result

    async def on_read_resource(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        uri = getattr(context.message, "uri", "unknown")

        logger.info(f"CLIENT_MCP → Resource read: {uri}")
        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(f"CLIENT_MCP ✗ Resource error: {uri} - {type(e).__name__}: {e}")
            raise
        logger.info(f"CLIENT_MCP ← Resource result: {uri}")
        return result

    async def on_get_prompt(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        prompt_name = getattr(context.message, "name", "unknown")
        arguments = getattr(context.message, "arguments", None)

        logger.info(f"CLIENT_MCP → Prompt request: {prompt_name}")
        if self.log_request_params and arguments:
            logger.info(
                f"CLIENT_MCP   Prompt arguments: "
                f"{self._truncate_data(arguments, self.max_log_length)}"
            )
        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(f"CLIENT_MCP ✗ Prompt error: {prompt_name} - {type(e).__name__}: {e}")
            raise
        logger.info(f"CLIENT_MCP ← Prompt result: {prompt_name}")
        return result

    async def _log_list(
        self, kind: str, context: MiddlewareContext, call_next: CallNext
    ) -> Any:
        logger.info(f"CLIENT_MCP → List {kind}")
        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(f"CLIENT_MCP ✗ List {kind} error: {type(e).__name__}: {e}")
            raise
        logger.info(f"CLIENT_MCP ← List {kind} result: {len(result or [])} {kind}")
        return result

    async def on_list_tools(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        return await self._log_list("tools", context, call_next)

    async def on_list_resources(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        return await self._log_list("resources", context, call_next)

    async def on_list_prompts(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        return await self._log_list("prompts", context, call_next)

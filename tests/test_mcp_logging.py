"""Tests for MCPLoggingMiddleware"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from capacities_mcp.middleware import MCPLoggingMiddleware


@pytest.fixture
def middleware():
    """Middleware with request and response logging enabled"""
    return MCPLoggingMiddleware(
        log_request_params=True, log_response_data=True, max_log_length=10000
    )


@pytest.fixture
def context():
    """A mock MiddlewareContext"""
    ctx = MagicMock()
    ctx.message = MagicMock()
    return ctx


@pytest.fixture
def call_next():
    return AsyncMock(return_value={"structured_content": {"tool": "search_entities"}})


class TestInit:
    def test_defaults(self):
        middleware = MCPLoggingMiddleware()
        assert middleware.log_request_params is True
        assert middleware.log_response_data is False
        assert middleware.max_log_length == 5000

    def test_custom(self, middleware):
        assert middleware.log_response_data is True
        assert middleware.max_log_length == 10000


class TestToolCalls:
    """Tests for on_call_tool"""

    @pytest.mark.asyncio
    async def test_logs_request_and_result(self, middleware, context, call_next, caplog):
        context.message.name = "search_entities"
        context.message.arguments = {"text": "project", "limit": 5}

        with caplog.at_level(logging.INFO):
            result = await middleware.on_call_tool(context, call_next)

        assert result == {"structured_content": {"tool": "search_entities"}}
        assert "CLIENT_MCP → Tool call: search_entities" in caplog.text
        assert "CLIENT_MCP   Tool 'search_entities' arguments:" in caplog.text
        assert '"text": "project"' in caplog.text
        assert "CLIENT_MCP ← Tool result: search_entities" in caplog.text
        assert "ms)" in caplog.text
        assert "CLIENT_MCP   Tool 'search_entities' result:" in caplog.text

    @pytest.mark.asyncio
    async def test_no_result_logging_by_default(self, context, call_next, caplog):
        context.message.name = "get_space_info"
        context.message.arguments = {}
        call_next.return_value = {"space_title": "Second Brain"}

        with caplog.at_level(logging.INFO):
            await MCPLoggingMiddleware().on_call_tool(context, call_next)

        assert "CLIENT_MCP   Tool 'get_space_info' arguments: (none)" in caplog.text
        assert "Second Brain" not in caplog.text

    @pytest.mark.asyncio
    async def test_no_argument_logging_when_disabled(self, context, call_next, caplog):
        context.message.name = "save_to_daily_note"
        context.message.arguments = {"md_text": "private journal entry"}
        middleware = MCPLoggingMiddleware(log_request_params=False)

        with caplog.at_level(logging.INFO):
            await middleware.on_call_tool(context, call_next)

        assert "private journal entry" not in caplog.text

    @pytest.mark.asyncio
    async def test_logs_and_reraises_errors(self, middleware, context, caplog):
        context.message.name = "save_weblink"
        context.message.arguments = {"url": "https://example.com"}
        failing = AsyncMock(side_effect=RuntimeError("boom"))

        with caplog.at_level(logging.ERROR):
            with pytest.raises(RuntimeError):
                await middleware.on_call_tool(context, failing)

        assert "CLIENT_MCP ✗ Tool error: save_weblink" in caplog.text
        assert "RuntimeError: boom" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_tool_name(self, middleware, context, call_next, caplog):
        del context.message.name
        context.message.arguments = None

        with caplog.at_level(logging.INFO):
            await middleware.on_call_tool(context, call_next)

        assert "CLIENT_MCP → Tool call: unknown" in caplog.text


class TestTruncation:
    def test_short_data_untouched(self, middleware):
        result = middleware._truncate_data({"space_id": "s-1"}, max_length=100)
        assert '"space_id": "s-1"' in result
        assert "chars total" not in result

    def test_long_data_truncated(self, middleware):
        result = middleware._truncate_data({"md_text": "x" * 10000}, max_length=100)
        assert result.startswith('{\n  "md_text": "xxx')
        assert result.endswith("chars total)")
        assert len(result) < 150

    def test_non_json_uses_str(self, middleware):
        class Opaque:
            def __str__(self):
                return "opaque-value"

        assert "opaque-value" in middleware._truncate_data({"obj": Opaque()}, max_length=100)


class TestInitialize:
    @pytest.mark.asyncio
    async def test_logs_client_info(self, middleware, context, call_next, caplog):
        context.message.params = MagicMock()
        context.message.params.clientInfo = MagicMock()
        context.message.params.clientInfo.name = "Claude Desktop"
        context.message.params.clientInfo.version = "1.0.0"
        context.message.params.protocolVersion = "2025-06-18"

        with caplog.at_level(logging.INFO):
            await middleware.on_initialize(context, call_next)

        assert "CLIENT_MCP → Initialize: Claude Desktop v1.0.0 (protocol: 2025-06-18)" in caplog.text
        assert "CLIENT_MCP ← Initialize complete" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_params(self, middleware, context, call_next, caplog):
        context.message.params = None

        with caplog.at_level(logging.INFO):
            await middleware.on_initialize(context, call_next)

        assert "CLIENT_MCP → Initialize: unknown vunknown (protocol: unknown)" in caplog.text

    @pytest.mark.asyncio
    async def test_error(self, middleware, context, caplog):
        context.message.params = None

        with caplog.at_level(logging.ERROR):
            with pytest.raises(RuntimeError):
                await middleware.on_initialize(context, AsyncMock(side_effect=RuntimeError("x")))

        assert "CLIENT_MCP ✗ Initialize error:" in caplog.text


class TestResourcesAndPrompts:
    @pytest.mark.asyncio
    async def test_read_resource(self, middleware, context, call_next, caplog):
        context.message.uri = "capacities://capabilities"

        with caplog.at_level(logging.INFO):
            await middleware.on_read_resource(context, call_next)

        assert "CLIENT_MCP → Resource read: capacities://capabilities" in caplog.text
        assert "CLIENT_MCP ← Resource result: capacities://capabilities" in caplog.text

    @pytest.mark.asyncio
    async def test_read_resource_error(self, middleware, context, caplog):
        context.message.uri = "capacities://capabilities"

        with caplog.at_level(logging.ERROR):
            with pytest.raises(RuntimeError):
                await middleware.on_read_resource(
                    context, AsyncMock(side_effect=RuntimeError("read failed"))
                )

        assert "CLIENT_MCP ✗ Resource error: capacities://capabilities" in caplog.text

    @pytest.mark.asyncio
    async def test_get_prompt(self, middleware, context, call_next, caplog):
        context.message.name = "getting_started"
        context.message.arguments = {"topic": "search"}

        with caplog.at_level(logging.INFO):
            await middleware.on_get_prompt(context, call_next)

        assert "CLIENT_MCP → Prompt request: getting_started" in caplog.text
        assert "CLIENT_MCP   Prompt arguments:" in caplog.text
        assert "CLIENT_MCP ← Prompt result: getting_started" in caplog.text

    @pytest.mark.asyncio
    async def test_get_prompt_without_arguments(self, middleware, context, call_next, caplog):
        context.message.name = "getting_started"
        context.message.arguments = None

        with caplog.at_level(logging.INFO):
            await middleware.on_get_prompt(context, call_next)

        assert "Prompt arguments:" not in caplog.text

    @pytest.mark.asyncio
    async def test_get_prompt_error(self, middleware, context, caplog):
        context.message.name = "getting_started"
        context.message.arguments = {}

        with caplog.at_level(logging.ERROR):
            with pytest.raises(RuntimeError):
                await middleware.on_get_prompt(context, AsyncMock(side_effect=RuntimeError("x")))

        assert "CLIENT_MCP ✗ Prompt error: getting_started" in caplog.text


class TestListing:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "hook, kind",
        [("on_list_tools", "tools"), ("on_list_resources", "resources"), ("on_list_prompts", "prompts")],
    )
    async def test_counts_items(self, middleware, context, call_next, caplog, hook, kind):
        call_next.return_value = [{"name": "a"}, {"name": "b"}]

        with caplog.at_level(logging.INFO):
            result = await getattr(middleware, hook)(context, call_next)

        assert len(result) == 2
        assert f"CLIENT_MCP → List {kind}" in caplog.text
        assert f"CLIENT_MCP ← List {kind} result: 2 {kind}" in caplog.text

    @pytest.mark.asyncio
    async def test_none_result(self, middleware, context, call_next, caplog):
        call_next.return_value = None

        with caplog.at_level(logging.INFO):
            result = await middleware.on_list_resources(context, call_next)

        assert result is None
        assert "CLIENT_MCP ← List resources result: 0 resources" in caplog.text

    @pytest.mark.asyncio
    async def test_error(self, middleware, context, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(RuntimeError):
                await middleware.on_list_tools(
                    context, AsyncMock(side_effect=RuntimeError("List tools failed"))
                )

        assert "CLIENT_MCP ✗ List tools error: RuntimeError: List tools failed" in caplog.text

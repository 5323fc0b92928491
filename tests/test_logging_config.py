"""Tests for logging_config utilities"""

import logging
from pathlib import Path

import pytest

from capacities_mcp.utils.logging_config import (
    get_logger,
    log_dict,
    log_tool_result,
    setup_file_logging,
)


@pytest.fixture
def restore_root_logging():
    """Put the root logger handlers back after a test reconfigures logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logging")
class TestSetupFileLogging:
    """Tests for setup_file_logging"""

    def test_writes_to_file(self, tmp_path):
        log_file = tmp_path / "capacities.log"

        logger = setup_file_logging(log_file=log_file)
        logger.info("UPSTREAM_API → GET /spaces")
        for handler in logger.handlers:
            handler.flush()

        assert log_file.exists()
        assert "UPSTREAM_API → GET /spaces" in log_file.read_text()

    def test_only_file_handlers(self, tmp_path):
        """Test nothing is written to stdout or stderr"""
        logger = setup_file_logging(log_file=tmp_path / "capacities.log")

        assert logger.handlers
        assert all(isinstance(h, logging.FileHandler) for h in logger.handlers)

    def test_custom_level(self, tmp_path):
        logger = setup_file_logging(log_file=tmp_path / "capacities.log", level=logging.DEBUG)
        assert logger.level == logging.DEBUG

    def test_custom_format(self, tmp_path):
        log_file = tmp_path / "capacities.log"

        logger = setup_file_logging(log_file=log_file, format_string="%(levelname)s| %(message)s")
        logger.warning("formatted")
        for handler in logger.handlers:
            handler.flush()

        assert "WARNING| formatted" in log_file.read_text()

    def test_creates_parent_directories(self, tmp_path):
        log_file = tmp_path / "logs" / "nested" / "capacities.log"

        setup_file_logging(log_file=log_file)

        assert log_file.parent.is_dir()

    def test_falls_back_to_temp_dir(self, tmp_path, monkeypatch):
        """Test an unusable directory falls back to the temp directory"""
        blocking_file = tmp_path / "blocked"
        blocking_file.touch()
        fallback_dir = tmp_path / "fallback"
        fallback_dir.mkdir()
        monkeypatch.setattr("tempfile.gettempdir", lambda: str(fallback_dir))

        logger = setup_file_logging(log_file=blocking_file / "capacities.log")

        handler_paths = [Path(h.baseFilename) for h in logger.handlers]
        assert fallback_dir / "capacities.log" in handler_paths


class TestGetLogger:
    """Tests for get_logger"""

    def test_returns_named_logger(self):
        logger = get_logger("capacities_mcp.client")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "capacities_mcp.client"

    def test_same_name_same_logger(self):
        assert get_logger("capacities_mcp.server") is get_logger("capacities_mcp.server")


class TestLogDict:
    """Tests for log_dict"""

    def test_logs_each_key(self, caplog):
        logger = logging.getLogger("test_log_dict")

        with caplog.at_level(logging.INFO):
            log_dict(
                logger,
                "Capacities configuration:",
                {"base_url": "https://api.capacities.io", "timeout": 30.0},
            )

        assert "Capacities configuration:" in caplog.text
        assert "base_url: https://api.capacities.io" in caplog.text
        assert "timeout: 30.0" in caplog.text

    def test_redacts_api_token(self, caplog):
        """Test the API token never reaches the log"""
        logger = logging.getLogger("test_log_dict_sensitive")

        with caplog.at_level(logging.INFO):
            log_dict(
                logger,
                "Config:",
                {
                    "api_token": "cap-secret-123",
                    "client_secret": "shh-do-not-log",
                    "default_space_id": "s-1",
                },
            )

        assert "cap-secret-123" not in caplog.text
        assert "shh-do-not-log" not in caplog.text
        assert "api_token: ***REDACTED***" in caplog.text
        assert "default_space_id: s-1" in caplog.text

    def test_custom_level(self, caplog):
        logger = logging.getLogger("test_log_dict_level")

        with caplog.at_level(logging.WARNING):
            log_dict(logger, "Warning:", {"issue": "slow"}, level=logging.WARNING)
            log_dict(logger, "Hidden:", {"issue": "quiet"})

        assert "issue: slow" in caplog.text
        assert "Hidden:" not in caplog.text


class TestLogToolResult:
    """Tests for the log_tool_result decorator"""

    @pytest.mark.asyncio
    async def test_logs_json(self, caplog):
        logger = logging.getLogger("test_tool_result")

        @log_tool_result(logger)
        async def search_entities():
            return {"tool": "search_entities", "returned_results": 2}

        with caplog.at_level(logging.INFO):
            result = await search_entities()

        assert result == {"tool": "search_entities", "returned_results": 2}
        assert 'TOOL_RESULT [search_entities]: {"tool": "search_entities"' in caplog.text

    @pytest.mark.asyncio
    async def test_default_logger(self, caplog):
        """Test the module logger is used when none is given"""

        @log_tool_result()
        async def get_space_info():
            return {"space_id": "s-1"}

        with caplog.at_level(logging.INFO):
            await get_space_info()

        assert "TOOL_RESULT [get_space_info]" in caplog.text

    @pytest.mark.asyncio
    async def test_non_serializable_result(self, caplog):
        logger = logging.getLogger("test_non_json")

        class Outcome:
            def __str__(self):
                return "Outcome(list_tasks)"

        @log_tool_result(logger)
        async def list_tasks():
            return Outcome()

        with caplog.at_level(logging.INFO):
            result = await list_tasks()

        assert isinstance(result, Outcome)
        assert "Outcome(list_tasks)" in caplog.text

    @pytest.mark.asyncio
    async def test_passes_arguments_and_keeps_name(self):
        logger = logging.getLogger("test_args")

        @log_tool_result(logger)
        async def create_task(title, space_id=None):
            return {"title": title, "space_id": space_id}

        assert create_task.__name__ == "create_task"
        assert await create_task("Write", space_id="s-1") == {"title": "Write", "space_id": "s-1"}

    @pytest.mark.asyncio
    async def test_exception_propagates(self, caplog):
        logger = logging.getLogger("test_exception")

        @log_tool_result(logger)
        async def update_task():
            raise ValueError("update failed")

        with caplog.at_level(logging.INFO):
            with pytest.raises(ValueError, match="update failed"):
                await update_task()

        assert "TOOL_RESULT [update_task]" not in caplog.text

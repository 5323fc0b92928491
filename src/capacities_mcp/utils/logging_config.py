"""
Logging configuration utilities for capacities-mcp

Provides file-only logging configuration to prevent MCP protocol corruption.
The MCP protocol uses stdout for JSON-RPC communication, so all logging must
go exclusively to files.
"""

import json
import logging
import tempfile
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any

SENSITIVE_KEY_MARKERS = ("token", "password", "secret", "key")


def setup_file_logging(
    log_file: str | Path = "logs/capacities-mcp.log",
    level: int = logging.INFO,
    format_string: str | None = None,
) -> logging.Logger:
    """
    Configure file-only logging for the application.

    NOTE: We log ONLY to file, NOT to stdout/stderr, because stdout is used
    for MCP protocol communication with the client (FastMCP uses stdio transport).
    Logging to stdout would corrupt the MCP protocol messages.

    If the log directory cannot be created or the file cannot be opened, the
    log file is placed in the system temp directory instead.

    Args:
        log_file: Path to the log file (relative or absolute)
        level: Logging level (default: logging.INFO)
        format_string: Custom format string (default: timestamp - name - level - message)

    Returns:
        The root logger instance
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    log_path = Path(log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path)
    except OSError:
        log_path = Path(tempfile.gettempdir()) / log_path.name
        handler = logging.FileHandler(log_path)

    logging.basicConfig(
        level=level,
        format=format_string,
        handlers=[handler],
        force=True,  # Override any existing configuration
    )

    logger = logging.getLogger()
    logger.info(f"Logging configured: file={log_path}, level={logging.getLevelName(level)}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_dict(
    logger: logging.Logger, message: str, data: dict[str, Any], level: int = logging.INFO
) -> None:
    """
    Log a dictionary with formatted key-value pairs.

    Args:
        logger: Logger instance
        message: Prefix message
        data: Dictionary to log
        level: Log level (default: INFO)
    """
    logger.log(level, message)
    for key, value in data.items():
        # Mask sensitive values
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEY_MARKERS):
            value = "***REDACTED***"
        logger.log(level, f"  {key}: {value}")


def log_tool_result(logger: logging.Logger | None = None) -> Callable:
    """
    Decorator that logs the return value of an async tool function.

    The result is serialized as JSON (non-serializable values fall back to
    ``str``) and logged under a ``TOOL_RESULT [name]`` prefix. Exceptions
    propagate unchanged.

    Args:
        logger: Logger to write to. Defaults to the decorated function's module logger.
    """

    def decorator(func: Callable) -> Callable:
        tool_logger = logger or logging.getLogger(func.__module__)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            result = await func(*args, **kwargs)
            try:
                serialized = json.dumps(result, default=str)
            except (TypeError, ValueError):
                serialized = str(result)
            tool_logger.info(f"TOOL_RESULT [{func.__name__}]: {serialized}")
            return result

        return wrapper

    return decorator

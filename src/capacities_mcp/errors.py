"""
Exception classes for the Capacities MCP server.

Every failure is classified into a closed set of error codes, each carrying a
human-readable message and an actionable next step for the caller:

- ConfigError: missing or invalid server configuration
- ValidationError: malformed tool input
- UnsupportedError: the Capacities API has no equivalent capability
- NetworkError: the request never produced a response
- ApiError: the API answered with a failure status or an unusable body
- RateLimitError: the API answered 429
"""

from enum import Enum
from typing import Any

import requests

API_DOCS_URL = "https://api.capacities.io/docs"


class ErrorCode(str, Enum):
    """Closed set of error codes reported to MCP clients."""

    CONFIG_ERROR = "config_error"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    API_ERROR = "api_error"
    RATE_LIMIT = "rate_limit"
    UNSUPPORTED = "unsupported"


class CapacitiesError(Exception):
    """
    Base exception for all classified errors.

    Attributes:
        message: Human-readable error message
        actionable_message: What the caller should do next
        status: HTTP status code, only set for errors derived from an API response
    """

    code: ErrorCode = ErrorCode.API_ERROR
    default_actionable_message = "Retry the request."

    def __init__(self, message: str, actionable_message: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.actionable_message = actionable_message or self.default_actionable_message

    @property
    def status(self) -> int | None:
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for a structured tool result."""
        return {
            "code": self.code.value,
            "message": self.message,
            "status": self.status,
            "actionable_message": self.actionable_message,
        }

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class ConfigError(CapacitiesError):
    code = ErrorCode.CONFIG_ERROR
    default_actionable_message = "Set required environment variables and restart the server."


class ValidationError(CapacitiesError):
    code = ErrorCode.VALIDATION_ERROR
    default_actionable_message = "Fix input values and retry."


class UnsupportedError(CapacitiesError):
    code = ErrorCode.UNSUPPORTED
    default_actionable_message = (
        f"Use a supported Capacities API endpoint documented in {API_DOCS_URL}."
    )


class NetworkError(CapacitiesError):
    code = ErrorCode.NETWORK_ERROR
    default_actionable_message = (
        "Check network connectivity and retry. "
        "If this persists, verify api.capacities.io reachability."
    )


class ApiError(CapacitiesError):
    """Raised when the API responds with a failure status or an unusable body."""

    code = ErrorCode.API_ERROR
    default_actionable_message = (
        "Retry the request. If it persists, verify the upstream API response."
    )

    def __init__(
        self,
        message: str,
        status: int | None = None,
        actionable_message: str | None = None,
    ) -> None:
        super().__init__(message, actionable_message)
        self._status = status

    @property
    def status(self) -> int | None:
        return self._status


class RateLimitError(ApiError):
    """Raised when the API responds 429. Always carries the status."""

    code = ErrorCode.RATE_LIMIT
    default_actionable_message = (
        "Back off and retry with lower request frequency. "
        "Respect RateLimit headers when present."
    )

    def __init__(
        self, message: str, status: int = 429, actionable_message: str | None = None
    ) -> None:
        super().__init__(message, status, actionable_message)


def _retry_hint(response: requests.Response) -> tuple[str, str]:
    """Return (message hint, actionable message) from the rate limit headers."""
    retry_after = (response.headers.get("retry-after") or "").strip()
    reset = (response.headers.get("ratelimit-reset") or "").strip()

    if retry_after:
        return (
            f" Retry after {retry_after} seconds.",
            f"Wait {retry_after} seconds before retrying, then lower the request frequency.",
        )
    if reset:
        return (
            f" Retry when rate limit resets ({reset}).",
            f"Wait until the rate limit resets ({reset}) before retrying, "
            "then lower the request frequency.",
        )
    return " Retry after a short delay.", RateLimitError.default_actionable_message


def error_from_response(response: requests.Response) -> CapacitiesError:
    """
    Classify a non-success HTTP response.

    The response body is read once and appended to the message when non-empty.

    Args:
        response: The failed response

    Returns:
        The classified error (not raised)
    """
    status = response.status_code
    body = (response.text or "").strip()
    prefix = f"Capacities API request failed with status {status}."
    response_hint = f" Response: {body}" if body else ""

    if status == 401:
        return ApiError(
            f"{prefix} Unauthorized.{response_hint}",
            status=status,
            actionable_message="Verify CAPACITIES_API_TOKEN is valid for your Capacities account.",
        )

    if status == 404:
        return ApiError(
            f"{prefix} Not found.{response_hint}",
            status=status,
            actionable_message="Verify endpoint and identifiers (for example space ID) and retry.",
        )

    if status == 429:
        retry_hint, actionable = _retry_hint(response)
        return RateLimitError(
            f"{prefix} Rate limit exceeded.{retry_hint}{response_hint}",
            status=status,
            actionable_message=actionable,
        )

    # 555 is Capacities' own "unexpected server error" status
    if status >= 500:
        return ApiError(
            f"{prefix} Server error.{response_hint}",
            status=status,
            actionable_message=(
                "Retry with exponential backoff. "
                "If repeated, treat as temporary upstream outage."
            ),
        )

    if status >= 400:
        return ApiError(
            f"{prefix}{response_hint}",
            status=status,
            actionable_message=(
                "Check request parameters and payload shape against "
                "Capacities API docs, then retry."
            ),
        )

    return ApiError(f"{prefix}{response_hint}", status=status)


def normalize_error(error: BaseException) -> CapacitiesError:
    """
    Classify an arbitrary exception.

    Already-classified errors are returned unchanged. Anything else is treated
    as a failed network request.
    """
    if isinstance(error, CapacitiesError):
        return error

    if isinstance(error, requests.RequestException):
        return NetworkError(f"Network request to Capacities API failed: {error}")

    return NetworkError(
        f"Network request to Capacities API failed: {type(error).__name__}: {error}"
    )

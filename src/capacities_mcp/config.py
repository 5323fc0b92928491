"""
Configuration management for the Capacities MCP server

Loads the API credential and the optional default space from environment
variables (optionally via a .env file) into an immutable configuration value,
and resolves the effective space ID for each tool call.
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError, ValidationError

logger = logging.getLogger(__name__)

CAPACITIES_API_BASE_URL = "https://api.capacities.io"
CAPACITIES_API_TOKEN_ENV = "CAPACITIES_API_TOKEN"
CAPACITIES_SPACE_ID_ENV = "CAPACITIES_SPACE_ID"
CAPACITIES_API_TIMEOUT_ENV = "CAPACITIES_API_TIMEOUT"

DEFAULT_TIMEOUT_SECONDS = 30.0

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

ENV_FILE_CANDIDATES = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent / ".env",
    Path.home() / ".env",
]


@dataclass(frozen=True)
class CapacitiesConfig:
    """Immutable server configuration, created once at startup."""

    api_token: str
    default_space_id: str | None = None
    base_url: str = CAPACITIES_API_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __repr__(self) -> str:
        return (
            f"CapacitiesConfig(base_url={self.base_url!r}, api_token='***', "
            f"default_space_id={self.default_space_id!r}, timeout={self.timeout!r})"
        )


def is_uuid(value: str) -> bool:
    """Check whether a value is a version 1-5 UUID in canonical 8-4-4-4-12 form."""
    return UUID_PATTERN.match(value) is not None


def _get_optional_trimmed(env: Mapping[str, str], name: str) -> str | None:
    raw = env.get(name)
    if raw is None:
        return None
    trimmed = raw.strip()
    return trimmed or None


def _get_timeout(env: Mapping[str, str]) -> float:
    raw = _get_optional_trimmed(env, CAPACITIES_API_TIMEOUT_ENV)
    if raw is None:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigError(
            f'{CAPACITIES_API_TIMEOUT_ENV} must be a number of seconds. Received: "{raw}".'
        ) from None
    if timeout <= 0:
        raise ConfigError(f'{CAPACITIES_API_TIMEOUT_ENV} must be positive. Received: "{raw}".')
    return timeout


def load_config(env: Mapping[str, str]) -> CapacitiesConfig:
    """
    Build the server configuration from an environment mapping.

    Args:
        env: Environment variables (e.g. ``os.environ``)

    Returns:
        The validated configuration

    Raises:
        ConfigError: If the API token is missing or the timeout is invalid
        ValidationError: If the default space ID is present but not a UUID
    """
    api_token = _get_optional_trimmed(env, CAPACITIES_API_TOKEN_ENV)
    if not api_token:
        raise ConfigError(f"{CAPACITIES_API_TOKEN_ENV} is required and must be a non-empty string.")

    default_space_id = _get_optional_trimmed(env, CAPACITIES_SPACE_ID_ENV)
    if default_space_id is not None and not is_uuid(default_space_id):
        raise ValidationError(
            f'{CAPACITIES_SPACE_ID_ENV} must be a UUID when provided. '
            f'Received: "{default_space_id}".'
        )

    return CapacitiesConfig(
        api_token=api_token,
        default_space_id=default_space_id,
        timeout=_get_timeout(env),
    )


def load_env_file() -> Path | None:
    """Load the first .env file found among the candidate locations."""
    for env_path in ENV_FILE_CANDIDATES:
        if env_path.exists():
            logger.info(f"Loading environment from: {env_path}")
            load_dotenv(env_path)
            return env_path

    logger.warning("No .env file found, using system environment variables only")
    return None


def load_config_from_environment() -> CapacitiesConfig:
    """Load .env (if any) and build the configuration from the process environment."""
    load_env_file()
    return load_config(os.environ)


def resolve_space_id(explicit_space_id: str | None, config: CapacitiesConfig) -> str:
    """
    Resolve the space ID for a call.

    A non-empty explicit value wins over the configured default. The chosen
    value must be a UUID regardless of where it came from.

    Raises:
        ConfigError: If neither an explicit nor a default space ID is available
        ValidationError: If the chosen space ID is not a UUID
    """
    candidate = (explicit_space_id or "").strip() or config.default_space_id

    if not candidate:
        raise ConfigError(
            "Missing space ID. Provide space_id in the request "
            f"or set {CAPACITIES_SPACE_ID_ENV}.",
            actionable_message=(
                f"Pass space_id explicitly or set {CAPACITIES_SPACE_ID_ENV} and restart the server."
            ),
        )

    if not is_uuid(candidate):
        raise ValidationError(f'Space ID must be a UUID. Received: "{candidate}".')

    return candidate

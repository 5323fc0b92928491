"""
Pytest Configuration and Fixtures

This module provides shared fixtures for all tests.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from capacities_mcp.config import CapacitiesConfig

SPACE_ID = "4f7d2c1a-9b3e-4d5f-8a6b-1c2d3e4f5a6b"
OTHER_SPACE_ID = "0e1d2c3b-4a59-4687-b9a0-b1c2d3e4f506"


@pytest.fixture
def config() -> CapacitiesConfig:
    """Configuration with a default space."""
    return CapacitiesConfig(api_token="test-token", default_space_id=SPACE_ID)


@pytest.fixture
def config_without_space() -> CapacitiesConfig:
    """Configuration without a default space."""
    return CapacitiesConfig(api_token="test-token")


@pytest.fixture
def sample_structures() -> list[dict]:
    """Structures as returned by GET /space-info."""
    return [
        {"id": "RootPage", "title": "Page", "pluralName": "Pages"},
        {"id": "RootDailyNote", "title": "Daily Note", "pluralName": "Daily Notes"},
        {"id": "a1b2c3", "title": "Book", "pluralName": "Books", "labelColor": "blue"},
    ]


@pytest.fixture
def sample_lookup_results() -> list[dict]:
    """Results as returned by POST /lookup."""
    return [
        {"id": "e-1", "structureId": "RootPage", "title": "Project notes"},
        {"id": "e-2", "structureId": "a1b2c3", "title": "Project Hail Mary"},
        {"id": "e-3", "structureId": "RootDailyNote", "title": "2026-02-18"},
        {"id": "e-4", "structureId": "a1b2c3", "title": "Project management handbook"},
    ]


@pytest.fixture
def mock_client(sample_structures, sample_lookup_results):
    """
    Create a mock Capacities client for handler tests.

    Every API method is an AsyncMock returning a realistic response body.
    """
    client = Mock()
    client.get_spaces = AsyncMock(
        return_value={
            "spaces": [
                {"id": SPACE_ID, "title": "Second Brain", "icon": None},
                {"id": OTHER_SPACE_ID, "title": "Work"},
            ]
        }
    )
    client.get_space_info = AsyncMock(return_value={"structures": sample_structures})
    client.lookup = AsyncMock(return_value={"results": sample_lookup_results})
    client.save_weblink = AsyncMock(return_value={"id": "wl-1", "title": "Example"})
    client.save_to_daily_note = AsyncMock(return_value={"success": True})
    return client

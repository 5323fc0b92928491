"""
Capacities API Client

A thin async façade over the documented Capacities HTTP endpoints. Each method
issues exactly one HTTP request, classifies any failure, and returns the parsed
JSON body untransformed.

HTTP is done with a blocking ``requests.Session`` run in a worker thread, so
tool handlers can await calls and run independent ones concurrently.
"""

import asyncio
import json
import logging
import time
from typing import Any, cast
from urllib.parse import urlsplit

import requests

from .config import CapacitiesConfig, resolve_space_id
from .errors import (
    ApiError,
    CapacitiesError,
    ValidationError,
    error_from_response,
    normalize_error,
)
from .types import (
    LookupResponse,
    SaveToDailyNoteBody,
    SaveWeblinkBody,
    SpaceInfoResponse,
    SpacesResponse,
)

logger = logging.getLogger(__name__)

DOCUMENTED_ENDPOINTS = (
    "/spaces",
    "/space-info",
    "/lookup",
    "/save-weblink",
    "/save-to-daily-note",
)


class CapacitiesClient:
    """
    HTTP client for the Capacities public API.

    Args:
        config: Server configuration (base URL, token, default space, timeout)
        session: Optional requests session, mainly for tests
    """

    def __init__(self, config: CapacitiesConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout
        self.session = session or requests.Session()

    async def get_spaces(self) -> SpacesResponse:
        """List the spaces the API token can access."""
        return cast(SpacesResponse, await self._request("GET", "/spaces"))

    async def get_space_info(self, space_id: str | None = None) -> SpaceInfoResponse:
        """Fetch the structures defined in a space."""
        resolved = resolve_space_id(space_id, self.config)
        return cast(
            SpaceInfoResponse,
            await self._request("GET", "/space-info", params={"spaceid": resolved}),
        )

    async def lookup(self, search_term: str, space_id: str | None = None) -> LookupResponse:
        """
        Look up entities by keyword.

        Raises:
            ValidationError: If the search term is blank (no request is made)
        """
        term = search_term.strip()
        if not term:
            raise ValidationError("lookup searchTerm must be a non-empty string.")

        resolved = resolve_space_id(space_id, self.config)
        return cast(
            LookupResponse,
            await self._request("POST", "/lookup", body={"searchTerm": term, "spaceId": resolved}),
        )

    async def save_weblink(
        self,
        url: str,
        space_id: str | None = None,
        title_overwrite: str | None = None,
        description_overwrite: str | None = None,
        tags: list[str] | None = None,
        md_text: str | None = None,
    ) -> dict[str, Any]:
        """Save a web link into a space."""
        body: SaveWeblinkBody = {"spaceId": resolve_space_id(space_id, self.config), "url": url}
        if title_overwrite is not None:
            body["titleOverwrite"] = title_overwrite
        if description_overwrite is not None:
            body["descriptionOverwrite"] = description_overwrite
        if tags:
            body["tags"] = tags
        if md_text is not None:
            body["mdText"] = md_text
        return await self._request("POST", "/save-weblink", body=dict(body))

    async def save_to_daily_note(
        self,
        md_text: str,
        space_id: str | None = None,
        origin: str | None = None,
        no_time_stamp: bool | None = None,
    ) -> dict[str, Any]:
        """Append markdown text to today's daily note."""
        body: SaveToDailyNoteBody = {
            "spaceId": resolve_space_id(space_id, self.config),
            "mdText": md_text,
        }
        if origin is not None:
            body["origin"] = origin
        if no_time_stamp is not None:
            body["noTimeStamp"] = no_time_stamp
        return await self._request("POST", "/save-to-daily-note", body=dict(body))

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        try:
            return await asyncio.to_thread(self._request_json, method, path, params, body)
        except CapacitiesError:
            raise
        except Exception as e:
            raise normalize_error(e) from e

    def _request_json(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.config.api_token}"}
        if body is not None:
            headers["Content-Type"] = "application/json"

        start_time = time.time()
        logger.info(f"UPSTREAM_API → {method} {path}")

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                data=json.dumps(body) if body is not None else None,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            duration = (time.time() - start_time) * 1000
            logger.error(
                f"UPSTREAM_API ✗ {method} {path} ({duration:.2f}ms) - {type(e).__name__}: {e}"
            )
            raise

        duration = (time.time() - start_time) * 1000
        logger.info(f"UPSTREAM_API ← {method} {path} {response.status_code} ({duration:.2f}ms)")

        if not response.ok:
            raise error_from_response(response)

        endpoint = urlsplit(url).path
        raw_body = response.text or ""
        if not raw_body.strip():
            raise ApiError(
                f"Capacities API returned an empty response body for {method} {endpoint}.",
                status=response.status_code,
                actionable_message=(
                    "Check endpoint behavior in Capacities docs. "
                    "Use only endpoints with documented response bodies."
                ),
            )

        try:
            return json.loads(raw_body)
        except ValueError:
            raise ApiError(
                f"Capacities API returned invalid JSON for {method} {endpoint}.",
                status=response.status_code,
            ) from None

"""
Read and query tools.

get_space_info and search_entities are backed by the Capacities API.
get_entity_by_id and list_tasks have no API equivalent: they validate their
input and return a deterministic unsupported result.
"""

import asyncio
import logging
from typing import Any

from ..client import DOCUMENTED_ENDPOINTS, CapacitiesClient
from ..config import CapacitiesConfig, resolve_space_id
from ..types import LookupResult, StructureInfo
from .inputs import (
    Now,
    SearchEntitiesFilters,
    normalize_entity_request,
    normalize_list_tasks_filters,
    normalize_search_filters,
)
from .results import ToolOutcome, error_result, success_result, unsupported_result

logger = logging.getLogger(__name__)

BACKED_TOOLS = ("get_space_info", "search_entities", "save_weblink", "save_to_daily_note")
UNSUPPORTED_TOOLS = (
    "get_entity_by_id",
    "list_tasks",
    "create_task",
    "update_task",
    "complete_task",
)


def available_capabilities() -> dict[str, Any]:
    """Endpoints and tools a caller can use instead of an unsupported one."""
    return {
        "available_endpoints": list(DOCUMENTED_ENDPOINTS),
        "available_tools": list(BACKED_TOOLS),
    }


# =============================================================================
# STRUCTURE TYPE MATCHING
# =============================================================================


def resolve_structure_ids_by_type(
    type_filter: str, structures: list[StructureInfo]
) -> set[str]:
    """
    Find the structures a type filter refers to.

    A structure matches when its id, title, or ``pluralName`` equals the
    filter, case-insensitively.
    """
    wanted = type_filter.lower()
    structure_ids: set[str] = set()

    for structure in structures:
        structure_id = structure.get("id")
        if not isinstance(structure_id, str):
            continue
        plural_name = structure.get("pluralName")
        candidates = [structure_id, structure.get("title")]
        if isinstance(plural_name, str):
            candidates.append(plural_name)
        if any(isinstance(c, str) and c.lower() == wanted for c in candidates):
            structure_ids.add(structure_id)

    return structure_ids


def matches_type_filter(
    result: LookupResult, type_filter: str, allowed_structure_ids: set[str]
) -> bool:
    """
    Check a lookup result against a type filter.

    If no structure resolved from the filter, fall back to comparing the raw
    filter with the result's structure id so the filter still narrows.
    """
    if allowed_structure_ids:
        return result["structureId"] in allowed_structure_ids

    return result["structureId"].lower() == type_filter.lower()


# =============================================================================
# RENDERING
# =============================================================================


def render_space_info_markdown(
    space_id: str, space_title: str | None, spaces_count: int, structures: list[StructureInfo]
) -> str:
    if structures:
        structure_lines = "\n".join(
            f"- `{structure.get('id')}` - {structure.get('title')}" for structure in structures
        )
    else:
        structure_lines = "- No structures returned by Capacities API."

    return "\n".join(
        [
            "## Space Info",
            "",
            f"- Space ID: `{space_id}`",
            f"- Space title: {space_title or '_Unknown in /spaces response_'}",
            f"- Accessible spaces in token scope: {spaces_count}",
            f"- Structures returned: {len(structures)}",
            "",
            "### Structures",
            structure_lines,
        ]
    )


def _render_date_filter(filters: SearchEntitiesFilters) -> str:
    if filters.date:
        return f"`{filters.date}`"
    if filters.date_from and filters.date_to:
        return f"`{filters.date_from}` to `{filters.date_to}`"
    return "_Not provided_"


def render_search_markdown(
    filters: SearchEntitiesFilters,
    results: list[LookupResult],
    total_before_limit: int,
    notes: list[str],
) -> str:
    if results:
        result_lines = "\n".join(
            f"- **{result['title']}**  \n  ID: `{result['id']}`  \n"
            f"  Structure: `{result['structureId']}`"
            for result in results
        )
    else:
        result_lines = "- No matching entities."

    note_lines = "\n".join(f"- {note}" for note in notes) if notes else "- None."

    return "\n".join(
        [
            "## Search Entities",
            "",
            f"- Text query: {f'`{filters.text}`' if filters.text else '_Not provided_'}",
            f"- Type filter: {f'`{filters.type}`' if filters.type else '_Not provided_'}",
            f"- Date filter: {_render_date_filter(filters)}",
            f"- Matches before limit: {total_before_limit}",
            f"- Returned after limit ({filters.limit}): {len(results)}",
            "",
            "### Results",
            result_lines,
            "",
            "### Notes",
            note_lines,
        ]
    )


# =============================================================================
# TOOLS
# =============================================================================


async def get_space_info(
    client: CapacitiesClient, config: CapacitiesConfig, space_id: str | None = None
) -> ToolOutcome:
    """
    Return the title and structure definitions of a space.

    The space list and the structure metadata are fetched concurrently; if
    either request fails the whole call fails.
    """
    tool = "get_space_info"
    try:
        resolved = resolve_space_id(space_id, config)
        spaces_response, space_info_response = await asyncio.gather(
            client.get_spaces(), client.get_space_info(resolved)
        )
        spaces = spaces_response.get("spaces", [])
        structures = space_info_response.get("structures", [])
        space_title = next(
            (space.get("title") for space in spaces if space.get("id") == resolved), None
        )

        markdown = render_space_info_markdown(resolved, space_title, len(spaces), structures)
        return success_result(
            tool,
            markdown,
            {
                "space_id": resolved,
                "space_title": space_title,
                "spaces_count": len(spaces),
                "structures": structures,
            },
        )
    except Exception as e:
        logger.warning(f"{tool} failed: {e}")
        return error_result(tool, e)


async def search_entities(
    client: CapacitiesClient,
    config: CapacitiesConfig,
    space_id: str | None = None,
    text: str | None = None,
    type_filter: str | None = None,
    date: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    limit: int | None = None,
    now: Now = None,
) -> ToolOutcome:
    """
    Search entities with /lookup and apply best-effort filters.

    Without a text query nothing is sent to the API and an unsupported result
    is returned. Type filters are applied via structure metadata; date filters
    are echoed but never applied because lookup results carry no dates.
    """
    tool = "search_entities"
    try:
        filters = normalize_search_filters(
            space_id=space_id,
            text=text,
            type=type_filter,
            date=date,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
            now=now,
        )
        resolved = resolve_space_id(filters.space_id, config)

        if not filters.text:
            return unsupported_result(
                tool,
                "Capacities /lookup requires a non-empty text query. Date-only or type-only "
                "search is not supported by the public API.",
                {
                    "requested_filters": filters.to_dict(),
                    "supported": {
                        "text": True,
                        "type": "best-effort (via structureId/title mapping)",
                        "date": False,
                        "date_range": False,
                    },
                },
            )

        lookup_response = await client.lookup(filters.text, resolved)
        results: list[LookupResult] = list(lookup_response.get("results", []))
        notes: list[str] = []

        if filters.type:
            space_info_response = await client.get_space_info(resolved)
            allowed = resolve_structure_ids_by_type(
                filters.type, space_info_response.get("structures", [])
            )
            if not allowed:
                notes.append(
                    f"No structures matched type `{filters.type}` by id, title, or plural name; "
                    "results were matched against the raw structure ID instead."
                )
            results = [r for r in results if matches_type_filter(r, filters.type, allowed)]
            if not results:
                notes.append(
                    f"No results matched type filter `{filters.type}` using structure "
                    "metadata from `/space-info`."
                )

        if filters.has_date_filter:
            notes.append(
                "Date filters are accepted for compatibility but not applied because "
                "/lookup does not return entity date fields."
            )

        limited = results[: filters.limit]
        markdown = render_search_markdown(filters, limited, len(results), notes)
        return success_result(
            tool,
            markdown,
            {
                "query": filters.to_dict(),
                "total_results_before_limit": len(results),
                "returned_results": len(limited),
                "unsupported_notes": notes,
                "results": limited,
            },
        )
    except Exception as e:
        logger.warning(f"{tool} failed: {e}")
        return error_result(tool, e)


async def get_entity_by_id(
    config: CapacitiesConfig,
    entity_id: str | None,
    structure_id: str | None,
    space_id: str | None = None,
) -> ToolOutcome:
    """Validate an entity reference and report that fetching by ID is unsupported."""
    tool = "get_entity_by_id"
    try:
        request = normalize_entity_request(entity_id, structure_id, space_id, config)
        return unsupported_result(
            tool,
            "Capacities public API does not provide a documented endpoint to fetch an "
            "entity by ID and structure.",
            {"requested_entity": request.to_dict(), **available_capabilities()},
        )
    except Exception as e:
        return error_result(tool, e)


async def list_tasks(
    config: CapacitiesConfig,
    space_id: str | None = None,
    status: str | None = None,
    date: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    now: Now = None,
) -> ToolOutcome:
    """Validate task filters and report that listing tasks is unsupported."""
    tool = "list_tasks"
    try:
        filters = normalize_list_tasks_filters(
            space_id=space_id,
            status=status,
            date=date,
            date_from=date_from,
            date_to=date_to,
            now=now,
        )
        return unsupported_result(
            tool,
            "Capacities public API does not provide a documented endpoint for listing tasks "
            "or filtering by task status/date.",
            {"requested_filters": filters.to_dict(), **available_capabilities()},
        )
    except Exception as e:
        return error_result(tool, e)

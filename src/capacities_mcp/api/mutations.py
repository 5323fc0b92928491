"""
Mutation tools.

save_weblink and save_to_daily_note write through the documented Capacities
endpoints. The task tools (create_task, update_task, complete_task) have no
API equivalent: their input is fully validated, then a deterministic
unsupported result echoes the normalized request.
"""

import logging

from ..client import CapacitiesClient
from ..config import CapacitiesConfig
from .inputs import (
    Now,
    normalize_complete_task,
    normalize_create_task,
    normalize_save_to_daily_note,
    normalize_save_weblink,
    normalize_update_task,
)
from .read_query import available_capabilities
from .results import ToolOutcome, error_result, success_result, unsupported_result

logger = logging.getLogger(__name__)


async def create_task(
    config: CapacitiesConfig,
    title: str | None,
    space_id: str | None = None,
    description: str | None = None,
    due_date: str | None = None,
    now: Now = None,
) -> ToolOutcome:
    tool = "create_task"
    try:
        request = normalize_create_task(
            config,
            title=title,
            space_id=space_id,
            description=description,
            due_date=due_date,
            now=now,
        )
        return unsupported_result(
            tool,
            "Capacities public API does not provide a documented endpoint for creating tasks.",
            {"requested_task": request.to_dict(), **available_capabilities()},
        )
    except Exception as e:
        return error_result(tool, e)


async def update_task(
    config: CapacitiesConfig,
    task_id: str | None,
    space_id: str | None = None,
    title: str | None = None,
    description: str | None = None,
    due_date: str | None = None,
    status: str | None = None,
    clear_description: bool = False,
    clear_due_date: bool = False,
    now: Now = None,
) -> ToolOutcome:
    """
    Validate a task update.

    At least one field must change; an update with nothing to apply is a
    validation error rather than a no-op.
    """
    tool = "update_task"
    try:
        request = normalize_update_task(
            config,
            task_id=task_id,
            space_id=space_id,
            title=title,
            description=description,
            due_date=due_date,
            status=status,
            clear_description=clear_description,
            clear_due_date=clear_due_date,
            now=now,
        )
        return unsupported_result(
            tool,
            "Capacities public API does not provide a documented endpoint for updating task "
            "fields or status.",
            {"requested_update": request.to_dict(), **available_capabilities()},
        )
    except Exception as e:
        return error_result(tool, e)


async def complete_task(
    config: CapacitiesConfig,
    task_id: str | None,
    space_id: str | None = None,
    completed: bool | None = None,
) -> ToolOutcome:
    tool = "complete_task"
    try:
        request = normalize_complete_task(
            config, task_id=task_id, space_id=space_id, completed=completed
        )
        return unsupported_result(
            tool,
            "Capacities public API does not provide a documented endpoint for completing or "
            "uncompleting tasks.",
            {"requested_action": request.to_dict(), **available_capabilities()},
        )
    except Exception as e:
        return error_result(tool, e)


async def save_weblink(
    client: CapacitiesClient,
    config: CapacitiesConfig,
    url: str | None,
    space_id: str | None = None,
    title_overwrite: str | None = None,
    description_overwrite: str | None = None,
    tags: list[str] | None = None,
    md_text: str | None = None,
) -> ToolOutcome:
    """Save a web link into a space through POST /save-weblink."""
    tool = "save_weblink"
    try:
        request = normalize_save_weblink(
            config,
            url=url,
            space_id=space_id,
            title_overwrite=title_overwrite,
            description_overwrite=description_overwrite,
            tags=tags,
            md_text=md_text,
        )
        response = await client.save_weblink(
            request.url,
            space_id=request.space_id,
            title_overwrite=request.title_overwrite,
            description_overwrite=request.description_overwrite,
            tags=list(request.tags),
            md_text=request.md_text,
        )

        lines = [
            "## Save Weblink",
            "",
            f"- Space ID: `{request.space_id}`",
            f"- URL: {request.url}",
        ]
        if request.title_overwrite:
            lines.append(f"- Title: {request.title_overwrite}")
        if request.tags:
            lines.append(f"- Tags: {', '.join(request.tags)}")
        if isinstance(response, dict) and response.get("id"):
            lines.append(f"- Created object: `{response['id']}`")

        return success_result(
            tool, "\n".join(lines), {"request": request.to_dict(), "response": response}
        )
    except Exception as e:
        logger.warning(f"{tool} failed: {e}")
        return error_result(tool, e)


async def save_to_daily_note(
    client: CapacitiesClient,
    config: CapacitiesConfig,
    md_text: str | None,
    space_id: str | None = None,
    no_time_stamp: bool = False,
) -> ToolOutcome:
    """Append markdown to today's daily note through POST /save-to-daily-note."""
    tool = "save_to_daily_note"
    try:
        request = normalize_save_to_daily_note(
            config, md_text=md_text, space_id=space_id, no_time_stamp=no_time_stamp
        )
        response = await client.save_to_daily_note(
            request.md_text,
            space_id=request.space_id,
            no_time_stamp=request.no_time_stamp,
        )

        markdown = "\n".join(
            [
                "## Save To Daily Note",
                "",
                f"- Space ID: `{request.space_id}`",
                f"- Characters saved: {len(request.md_text)}",
                f"- Timestamp added: {'no' if request.no_time_stamp else 'yes'}",
            ]
        )
        return success_result(
            tool, markdown, {"request": request.to_dict(), "response": response}
        )
    except Exception as e:
        logger.warning(f"{tool} failed: {e}")
        return error_result(tool, e)

"""
Typed tool inputs.

Raw tool arguments are normalized into frozen dataclasses before any handler
logic runs. Normalization trims strings (blank becomes ``None``), canonicalizes
dates, enforces enumerations and bounds, and raises ``ValidationError`` for
anything malformed.
"""

from dataclasses import asdict, dataclass
from datetime import date as date_type
from datetime import datetime
from typing import Any
from urllib.parse import urlsplit

from ..config import CapacitiesConfig, resolve_space_id
from ..dates import normalize_date
from ..errors import ValidationError

DEFAULT_SEARCH_LIMIT = 20
MIN_SEARCH_LIMIT = 1
MAX_SEARCH_LIMIT = 100
MAX_TITLE_LENGTH = 500

TASK_STATUS_FILTERS = ("open", "completed", "all")
TASK_STATUSES = ("open", "completed")

Now = datetime | date_type | None


@dataclass(frozen=True)
class SearchEntitiesFilters:
    space_id: str | None
    text: str | None
    type: str | None
    date: str | None
    date_from: str | None
    date_to: str | None
    limit: int = DEFAULT_SEARCH_LIMIT

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def has_date_filter(self) -> bool:
        return bool(self.date or self.date_from or self.date_to)


@dataclass(frozen=True)
class ListTasksFilters:
    space_id: str | None
    status: str
    date: str | None
    date_from: str | None
    date_to: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EntityRequest:
    entity_id: str
    structure_id: str
    space_id: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CreateTaskRequest:
    space_id: str
    title: str
    description: str | None
    due_date: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UpdateTaskRequest:
    """
    A task update. ``None`` means "leave unchanged"; clearing a field is
    expressed with the matching ``clear_*`` flag.
    """

    task_id: str
    space_id: str
    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    status: str | None = None
    clear_description: bool = False
    clear_due_date: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize the update, listing only the fields that change."""
        payload: dict[str, Any] = {"task_id": self.task_id, "space_id": self.space_id}
        if self.title is not None:
            payload["title"] = self.title
        if self.description is not None or self.clear_description:
            payload["description"] = self.description
        if self.due_date is not None or self.clear_due_date:
            payload["due_date"] = self.due_date
        if self.status is not None:
            payload["status"] = self.status
        return payload


@dataclass(frozen=True)
class CompleteTaskRequest:
    task_id: str
    space_id: str
    completed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SaveWeblinkRequest:
    space_id: str
    url: str
    title_overwrite: str | None
    description_overwrite: str | None
    tags: tuple[str, ...]
    md_text: str | None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["tags"] = list(self.tags)
        return payload


@dataclass(frozen=True)
class SaveToDailyNoteRequest:
    space_id: str
    md_text: str
    no_time_stamp: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def trim_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def require_text(value: str | None, field_name: str) -> str:
    trimmed = trim_to_none(value)
    if trimmed is None:
        raise ValidationError(f"{field_name} must be a non-empty string.")
    return trimmed


def _require_title(value: str | None, field_name: str = "title") -> str:
    title = require_text(value, field_name)
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"{field_name} must be at most {MAX_TITLE_LENGTH} characters.")
    return title


def _optional_date(value: str | None, now: Now) -> str | None:
    """Normalize an optional date; present-but-blank is treated as absent."""
    trimmed = trim_to_none(value)
    return normalize_date(trimmed, now) if trimmed is not None else None


def _provided_date(value: str | None, field_name: str, now: Now) -> str | None:
    """Normalize an optional date; present-but-blank is an error."""
    if value is None:
        return None
    trimmed = trim_to_none(value)
    if trimmed is None:
        raise ValidationError(f"{field_name} must be a non-empty date string when provided.")
    return normalize_date(trimmed, now)


def _check_enum(value: str, allowed: tuple[str, ...], field_name: str) -> str:
    if value not in allowed:
        raise ValidationError(
            f'{field_name} must be one of: {", ".join(allowed)}. Received: "{value}".'
        )
    return value


def validate_date_inputs(date: str | None, date_from: str | None, date_to: str | None) -> None:
    """
    Check that a single date and a range are not mixed, that a range is
    complete, and that it is ordered. Inputs must already be canonical.
    """
    if date and (date_from or date_to):
        raise ValidationError("Use either date or date_from/date_to, not both.")
    if bool(date_from) != bool(date_to):
        raise ValidationError("date_from and date_to must be provided together.")
    # canonical YYYY-MM-DD strings compare chronologically
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from must be earlier than or equal to date_to.")


def normalize_search_filters(
    space_id: str | None = None,
    text: str | None = None,
    type: str | None = None,
    date: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    limit: int | None = None,
    now: Now = None,
) -> SearchEntitiesFilters:
    normalized_date = _optional_date(date, now)
    normalized_from = _optional_date(date_from, now)
    normalized_to = _optional_date(date_to, now)
    validate_date_inputs(normalized_date, normalized_from, normalized_to)

    if limit is None:
        limit = DEFAULT_SEARCH_LIMIT
    elif isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError(f"limit must be an integer. Received: {limit!r}.")
    elif not MIN_SEARCH_LIMIT <= limit <= MAX_SEARCH_LIMIT:
        raise ValidationError(
            f"limit must be between {MIN_SEARCH_LIMIT} and {MAX_SEARCH_LIMIT}. Received: {limit}."
        )

    return SearchEntitiesFilters(
        space_id=trim_to_none(space_id),
        text=trim_to_none(text),
        type=trim_to_none(type),
        date=normalized_date,
        date_from=normalized_from,
        date_to=normalized_to,
        limit=limit,
    )


def normalize_list_tasks_filters(
    space_id: str | None = None,
    status: str | None = None,
    date: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    now: Now = None,
) -> ListTasksFilters:
    normalized_date = _optional_date(date, now)
    normalized_from = _optional_date(date_from, now)
    normalized_to = _optional_date(date_to, now)
    validate_date_inputs(normalized_date, normalized_from, normalized_to)

    status = "all" if status is None else status.strip()

    return ListTasksFilters(
        space_id=trim_to_none(space_id),
        status=_check_enum(status, TASK_STATUS_FILTERS, "status"),
        date=normalized_date,
        date_from=normalized_from,
        date_to=normalized_to,
    )


def normalize_entity_request(
    entity_id: str | None, structure_id: str | None, space_id: str | None, config: CapacitiesConfig
) -> EntityRequest:
    return EntityRequest(
        entity_id=require_text(entity_id, "entity_id"),
        structure_id=require_text(structure_id, "structure_id"),
        space_id=trim_to_none(space_id) or config.default_space_id,
    )


def normalize_create_task(
    config: CapacitiesConfig,
    title: str | None,
    space_id: str | None = None,
    description: str | None = None,
    due_date: str | None = None,
    now: Now = None,
) -> CreateTaskRequest:
    title = _require_title(title)
    return CreateTaskRequest(
        space_id=resolve_space_id(space_id, config),
        title=title,
        description=trim_to_none(description),
        due_date=_provided_date(due_date, "due_date", now),
    )


def normalize_update_task(
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
) -> UpdateTaskRequest:
    task_id = require_text(task_id, "task_id")

    if title is not None:
        title = _require_title(title, "title")

    if description is not None:
        description = trim_to_none(description)
        if description is None:
            raise ValidationError(
                "description must be a non-empty string when provided. "
                "Use clear_description to remove it."
            )
    if description is not None and clear_description:
        raise ValidationError("Use either description or clear_description, not both.")

    due_date = _provided_date(due_date, "due_date", now)
    if due_date is not None and clear_due_date:
        raise ValidationError("Use either due_date or clear_due_date, not both.")

    if status is not None:
        status = _check_enum(status.strip(), TASK_STATUSES, "status")

    if (
        title is None
        and description is None
        and due_date is None
        and status is None
        and not clear_description
        and not clear_due_date
    ):
        raise ValidationError(
            "Provide at least one update field: title, description, due_date, or status."
        )

    return UpdateTaskRequest(
        task_id=task_id,
        space_id=resolve_space_id(space_id, config),
        title=title,
        description=description,
        due_date=due_date,
        status=status,
        clear_description=clear_description,
        clear_due_date=clear_due_date,
    )


def normalize_complete_task(
    config: CapacitiesConfig,
    task_id: str | None,
    space_id: str | None = None,
    completed: bool | None = None,
) -> CompleteTaskRequest:
    task_id = require_text(task_id, "task_id")
    return CompleteTaskRequest(
        task_id=task_id,
        space_id=resolve_space_id(space_id, config),
        completed=True if completed is None else completed,
    )


def normalize_save_weblink(
    config: CapacitiesConfig,
    url: str | None,
    space_id: str | None = None,
    title_overwrite: str | None = None,
    description_overwrite: str | None = None,
    tags: list[str] | None = None,
    md_text: str | None = None,
) -> SaveWeblinkRequest:
    url = require_text(url, "url")
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValidationError(f'url must be an absolute http(s) URL. Received: "{url}".')

    cleaned_tags = tuple(tag.strip() for tag in tags or [] if tag and tag.strip())

    return SaveWeblinkRequest(
        space_id=resolve_space_id(space_id, config),
        url=url,
        title_overwrite=trim_to_none(title_overwrite),
        description_overwrite=trim_to_none(description_overwrite),
        tags=cleaned_tags,
        md_text=trim_to_none(md_text),
    )


def normalize_save_to_daily_note(
    config: CapacitiesConfig,
    md_text: str | None,
    space_id: str | None = None,
    no_time_stamp: bool = False,
) -> SaveToDailyNoteRequest:
    return SaveToDailyNoteRequest(
        space_id=resolve_space_id(space_id, config),
        md_text=require_text(md_text, "md_text"),
        no_time_stamp=no_time_stamp,
    )

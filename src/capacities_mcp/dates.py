"""Calendar date normalization for tool inputs."""

import re
from datetime import date, datetime, timedelta

from .errors import ValidationError

RELATIVE_YESTERDAY = "yesterday"

ABSOLUTE_DATE_PATTERN = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")


def normalize_date(value: str, now: datetime | date | None = None) -> str:
    """
    Normalize a date input to ``YYYY-MM-DD``.

    Accepts an absolute calendar date or the relative keyword ``yesterday``
    (case-insensitive), which resolves to the day before ``now`` in local time.

    Args:
        value: Raw date input
        now: Reference time for relative values (default: current local time)

    Returns:
        The canonical date string

    Raises:
        ValidationError: If the input is neither a real calendar date nor ``yesterday``
    """
    normalized = value.strip()

    if normalized.lower() == RELATIVE_YESTERDAY:
        reference = now if now is not None else datetime.now()
        if isinstance(reference, datetime):
            reference = reference.date()
        return (reference - timedelta(days=1)).isoformat()

    match = ABSOLUTE_DATE_PATTERN.match(normalized)
    if not match:
        raise ValidationError(
            f'Invalid date "{value}". Expected YYYY-MM-DD or relative value "yesterday".'
        )

    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError:
        raise ValidationError(
            f'Invalid date "{value}". Use a real calendar date in YYYY-MM-DD format.'
        ) from None

    return normalized

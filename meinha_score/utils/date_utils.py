"""Date manipulation utilities"""

import math
from datetime import date, datetime
from meinha_score.domain.exceptions import InvalidDateError
from meinha_score.domain.models import DateLike


def parse_datetime(value: DateLike, field_name: str) -> datetime:
    """
    Coerce a stored date value to a naive local datetime.

    Accepts datetimes, plain dates (midnight) and ISO-8601 strings,
    including a trailing "Z". Aware values are converted to local time
    so that naive and aware inputs sort and compare together.

    Raises:
        InvalidDateError: value is missing or unparseable
    """
    if value is None:
        raise InvalidDateError(f"{field_name} is missing")

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidDateError(f"{field_name} is not a valid date: {value!r}") from e
    else:
        raise InvalidDateError(f"{field_name} has unsupported type {type(value).__name__}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def days_between(start: datetime, end: datetime) -> int:
    """Whole calendar days from start to end, time of day ignored"""
    return (end.date() - start.date()).days


def round_half_up(value: float) -> int:
    """Round halves towards positive infinity (2.5 -> 3, -2.5 -> -2)"""
    return math.floor(value + 0.5)

# flexcal/util/dates.py
from __future__ import annotations

import datetime as dt
import re
from typing import Union

DayLike = Union[dt.date, dt.datetime, str]

_DAY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def to_day(value: DayLike) -> dt.date:
    """Normalize a date-like value into a UTC calendar day.

    Supported forms:
      - datetime.date -> returned as-is
      - aware datetime -> converted to UTC, then truncated to its day
      - naive datetime -> treated as UTC, truncated to its day
      - "YYYY-MM-DD" and ISO-8601 timestamps ("2025-08-04T00:00:00.000Z",
        "2025-08-04T22:00:00-05:00")

    Raises ValueError for anything else.
    """
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")

    s = value.strip()
    if len(s) > 10:
        iso = s[:-1] + "+00:00" if s.endswith(("Z", "z")) else s
        try:
            parsed = dt.datetime.fromisoformat(iso)
        except ValueError:
            parsed = None
        if parsed is not None:
            return to_day(parsed)

    m = _DAY_RE.match(s)
    if not m or len(s) != 10:
        raise ValueError(f"Invalid date: {value!r}")
    try:
        return dt.date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError as ex:
        raise ValueError(f"Invalid date: {value!r}") from ex


def day_key(value: DayLike) -> str:
    """Canonical `YYYY-MM-DD` key for set membership checks."""
    return to_day(value).isoformat()


def is_weekend(value: DayLike) -> bool:
    # date.weekday(): Monday == 0 ... Sunday == 6
    return to_day(value).weekday() >= 5


def add_days(value: DayLike, days: int) -> dt.date:
    return to_day(value) + dt.timedelta(days=int(days))


def days_between(a: DayLike, b: DayLike) -> int:
    """Signed calendar-day difference b - a."""
    return (to_day(b) - to_day(a)).days

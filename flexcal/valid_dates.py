# flexcal/valid_dates.py
"""Valid-date resolver.

A valid day is one that is neither a disallowed weekend nor blocked for the
layer in question. Gaps between chained items are measured in valid days,
never in raw calendar days.
"""

from __future__ import annotations

import datetime as dt
import os
from typing import AbstractSet, List, Optional

from .util.dates import DayLike, to_day

DEFAULT_SEARCH_LIMIT = 2000

_ONE_DAY = dt.timedelta(days=1)


class UnsatisfiableDateError(ValueError):
    """Raised when no valid date exists within the bounded search window."""


def _search_limit() -> int:
    raw = (os.getenv("FLEXCAL_SEARCH_LIMIT", "") or "").strip()
    if raw:
        try:
            v = int(raw)
        except ValueError:
            v = 0
        if v > 0:
            return v
    return DEFAULT_SEARCH_LIMIT


def is_valid_day(day: dt.date, include_weekends: bool, blocked: Optional[AbstractSet[str]] = None) -> bool:
    if not include_weekends and day.weekday() >= 5:
        return False
    if blocked and day.isoformat() in blocked:
        return False
    return True


def next_valid_date(
    candidate: DayLike,
    include_weekends: bool,
    blocked: Optional[AbstractSet[str]] = None,
) -> dt.date:
    """First valid day on or after `candidate`."""
    day = to_day(candidate)
    if include_weekends and not blocked:
        return day

    limit = _search_limit()
    for _ in range(limit):
        if is_valid_day(day, include_weekends, blocked):
            return day
        day += _ONE_DAY

    raise UnsatisfiableDateError(
        f"No valid date within {limit} days of {to_day(candidate).isoformat()} "
        f"(include_weekends={include_weekends}, blocked={len(blocked or ())} dates)"
    )


def previous_valid_date(
    candidate: DayLike,
    include_weekends: bool,
    blocked: Optional[AbstractSet[str]] = None,
) -> dt.date:
    """Last valid day on or before `candidate`."""
    day = to_day(candidate)
    if include_weekends and not blocked:
        return day

    limit = _search_limit()
    for _ in range(limit):
        if is_valid_day(day, include_weekends, blocked):
            return day
        day -= _ONE_DAY

    raise UnsatisfiableDateError(
        f"No valid date within {limit} days before {to_day(candidate).isoformat()}"
    )


def generate_valid_dates(
    start: DayLike,
    count: int,
    include_weekends: bool,
    blocked: Optional[AbstractSet[str]] = None,
) -> List[dt.date]:
    """`count` strictly increasing valid days, the first on or after `start`."""
    out: List[dt.date] = []
    if count <= 0:
        return out

    current = next_valid_date(start, include_weekends, blocked)
    out.append(current)
    while len(out) < count:
        current = next_valid_date(current + _ONE_DAY, include_weekends, blocked)
        out.append(current)
    return out


def valid_day_span(
    a: DayLike,
    b: DayLike,
    include_weekends: bool,
    blocked: Optional[AbstractSet[str]] = None,
) -> int:
    """Number of valid-day steps from the earlier date to the later one.

    Symmetric in (a, b); 0 for the same day. When the later date is itself
    invalid, the step that lands past it counts as reaching it.
    """
    da = to_day(a)
    db = to_day(b)
    if da == db:
        return 0

    earlier, later = (da, db) if da < db else (db, da)
    steps = 0
    cursor = earlier + _ONE_DAY
    while True:
        nxt = next_valid_date(cursor, include_weekends, blocked)
        steps += 1
        if nxt >= later:
            return steps
        cursor = nxt + _ONE_DAY


def advance_valid_days(
    start: DayLike,
    steps: int,
    include_weekends: bool,
    blocked: Optional[AbstractSet[str]] = None,
) -> dt.date:
    """Walk forward `steps` valid days from `start` (exclusive)."""
    result = to_day(start)
    if steps <= 0:
        return result

    for _ in range(int(steps)):
        result = next_valid_date(result + _ONE_DAY, include_weekends, blocked)
    return result


def retreat_valid_days(
    start: DayLike,
    steps: int,
    include_weekends: bool,
    blocked: Optional[AbstractSet[str]] = None,
) -> dt.date:
    """Walk backward `steps` valid days from `start` (exclusive)."""
    result = to_day(start)
    if steps <= 0:
        return result

    for _ in range(int(steps)):
        result = previous_valid_date(result - _ONE_DAY, include_weekends, blocked)
    return result


__all__ = [
    "DEFAULT_SEARCH_LIMIT",
    "UnsatisfiableDateError",
    "advance_valid_days",
    "generate_valid_dates",
    "is_valid_day",
    "next_valid_date",
    "previous_valid_date",
    "retreat_valid_days",
    "valid_day_span",
]

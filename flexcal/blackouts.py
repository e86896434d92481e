# flexcal/blackouts.py
"""Exception lookup: blocked day keys per layer, derived from exception layers."""

from __future__ import annotations

from typing import AbstractSet, Dict, FrozenSet, Iterable, Optional, Set

from .model import Calendar, ExceptionLookup, ScheduledItem
from .util.dates import day_key


def build_lookup(items: Iterable[ScheduledItem], exception_layer_keys: AbstractSet[str]) -> ExceptionLookup:
    global_keys: Set[str] = set()
    per_layer: Dict[str, Set[str]] = {}

    for it in items:
        if it.layer_key not in exception_layer_keys:
            continue
        key = day_key(it.date)
        targets = [t for t in it.target_layer_keys if t]
        if not targets:
            global_keys.add(key)
            continue
        for target in targets:
            per_layer.setdefault(target, set()).add(key)

    return ExceptionLookup(
        global_keys=frozenset(global_keys),
        per_layer={k: frozenset(v) for k, v in per_layer.items()},
    )


def build_exception_lookup(calendar: Calendar) -> ExceptionLookup:
    return build_lookup(calendar.items, calendar.exception_layer_keys())


def blocked_dates_for_layer(
    layer_key: str,
    lookup: ExceptionLookup,
    respects_global: bool = True,
) -> Optional[FrozenSet[str]]:
    """Blocked day keys for one layer.

    None means "no filtering" and is only returned when nothing is blocked.
    """
    own = lookup.per_layer.get(layer_key, frozenset())
    if not respects_global:
        return own or None
    if not own and not lookup.global_keys:
        return None
    return lookup.global_keys | own


def blocked_dates_for(
    calendar: Calendar,
    layer_key: str,
    lookup: Optional[ExceptionLookup] = None,
) -> Optional[FrozenSet[str]]:
    """Blocked day keys for a layer under the calendar's own switches.

    Calendars with include_exceptions off only ever filter weekends.
    """
    if not calendar.include_exceptions:
        return None
    if lookup is None:
        lookup = build_exception_lookup(calendar)
    layer = calendar.layer(layer_key)
    respects_global = True if layer is None else bool(layer.respects_global_exceptions)
    return blocked_dates_for_layer(layer_key, lookup, respects_global)


__all__ = [
    "blocked_dates_for",
    "blocked_dates_for_layer",
    "build_exception_lookup",
    "build_lookup",
]

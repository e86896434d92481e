# flexcal/reflow.py
"""Reflow engine: move one item and re-thread everything downstream of it.

Spacing between chained items is carried forward in valid-day units, so a
shift followed by the inverse shift restores every downstream date.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import replace
from typing import AbstractSet, Dict, List, Optional, Sequence, Set, Tuple

from .blackouts import blocked_dates_for, build_exception_lookup
from .model import CHAIN_INDEPENDENT, Calendar, ExceptionLookup, ScheduledItem
from .util.console import obs
from .util.dates import add_days
from .valid_dates import DEFAULT_SEARCH_LIMIT, advance_valid_days, next_valid_date, valid_day_span

_ONE_DAY = dt.timedelta(days=1)


class UnknownLayerError(ValueError):
    """Raised when an item references a layer the calendar does not define."""


class _BlockedCache:
    """Per-call memo of blocked day keys per layer (one lookup per operation)."""

    def __init__(self, calendar: Calendar) -> None:
        self._calendar = calendar
        self._lookup: Optional[ExceptionLookup] = None
        self._by_layer: Dict[str, Optional[AbstractSet[str]]] = {}

    def __call__(self, layer_key: str) -> Optional[AbstractSet[str]]:
        if layer_key not in self._by_layer:
            if self._calendar.include_exceptions and self._lookup is None:
                self._lookup = build_exception_lookup(self._calendar)
            self._by_layer[layer_key] = blocked_dates_for(self._calendar, layer_key, self._lookup)
        return self._by_layer[layer_key]


def with_dates(calendar: Calendar, new_dates: Dict[str, dt.date]) -> Calendar:
    """Return `calendar` with only the given items' dates replaced."""
    if not new_dates:
        return calendar
    items = tuple(
        replace(it, date=new_dates[it.id]) if it.id in new_dates and new_dates[it.id] != it.date else it
        for it in calendar.items
    )
    return replace(calendar, items=items)


def _downstream(calendar: Calendar, anchor: ScheduledItem, effective: Set[str]) -> List[ScheduledItem]:
    exception_keys = calendar.exception_layer_keys()
    picked: List[Tuple[int, int, ScheduledItem]] = []
    for pos, it in enumerate(calendar.items):
        if it.layer_key not in effective or it.layer_key in exception_keys:
            continue
        if it.sequence_index >= anchor.sequence_index:
            picked.append((it.sequence_index, pos, it))
    picked.sort(key=lambda x: (x[0], x[1]))
    chain = [it for _, _, it in picked]

    # The moved item anchors the reflow regardless of tie order.
    for i, it in enumerate(chain):
        if it.id == anchor.id:
            if i > 0:
                chain.insert(0, chain.pop(i))
            break
    return chain


def _recorded_gaps(chain: Sequence[ScheduledItem], include_weekends: bool, blocked: _BlockedCache) -> List[int]:
    gaps: List[int] = []
    for prev, cur in zip(chain, chain[1:]):
        span = valid_day_span(prev.date, cur.date, include_weekends, blocked(cur.layer_key))
        if span <= 0 or span > DEFAULT_SEARCH_LIMIT:
            span = 1
        gaps.append(span)
    return gaps


def shift(
    calendar: Calendar,
    anchor_item_id: str,
    delta_days: int,
    layer_keys: Optional[Sequence[str]] = None,
) -> Optional[Calendar]:
    """Move `anchor_item_id` by `delta_days` and reflow its chain.

    Returns the updated calendar, or None when the anchor item or an
    explicitly requested layer does not exist.

    Effective layers:
      - explicit `layer_keys` when non-empty (cross-layer chaining is opt-in)
      - otherwise the anchor's own layer, unless it is `independent`
      - exception layers never take part; their items are blackout markers
    """
    if not delta_days:
        return calendar

    anchor = calendar.item(anchor_item_id)
    if anchor is None:
        obs("reflow", "info", f"shift: anchor not found id={anchor_item_id!r}")
        return None

    layers = calendar.layers_by_key()
    anchor_layer = layers.get(anchor.layer_key)
    if anchor_layer is None:
        raise UnknownLayerError(f"item {anchor.id!r} references unknown layer {anchor.layer_key!r}")

    explicit = [k for k in (layer_keys or ()) if k]
    unknown = [k for k in explicit if k not in layers]
    if unknown:
        obs("reflow", "info", f"shift: unknown layer keys {unknown!r}")
        return None

    raw_target = add_days(anchor.date, int(delta_days))

    if anchor_layer.is_exception:
        # Blackout markers move verbatim and never cascade.
        return with_dates(calendar, {anchor.id: raw_target})

    blocked = _BlockedCache(calendar)
    include_weekends = calendar.include_weekends
    target = next_valid_date(raw_target, include_weekends, blocked(anchor.layer_key))

    if explicit:
        effective = set(explicit)
    elif anchor_layer.chain_behavior == CHAIN_INDEPENDENT:
        effective = set()
    else:
        effective = {anchor.layer_key}

    chain = _downstream(calendar, anchor, effective)
    if not chain or chain[0].id != anchor.id:
        return with_dates(calendar, {anchor.id: target})

    gaps = _recorded_gaps(chain, include_weekends, blocked)

    new_dates: Dict[str, dt.date] = {anchor.id: target}
    previous = target
    for it, gap in zip(chain[1:], gaps):
        previous = advance_valid_days(previous, gap, include_weekends, blocked(it.layer_key))
        new_dates[it.id] = previous

    obs(
        "reflow",
        "info",
        f"shift: anchor={anchor.id!r} delta={delta_days} target={target.isoformat()} "
        f"layers={sorted(effective)!r} reflowed={len(chain)}",
    )
    return with_dates(calendar, new_dates)


def settle_exceptions(calendar: Calendar, layer_keys: Optional[Sequence[str]] = None) -> Optional[Calendar]:
    """Push items off dates that have become invalid (e.g. a new blackout).

    Items already on valid dates stay put unless a pushed predecessor in a
    linked layer now sits on or after them; then they are pushed just past it.
    Returns None when a requested layer key does not exist.
    """
    layers = calendar.layers_by_key()
    keys = [k for k in (layer_keys or ()) if k] or [layer.key for layer in calendar.layers]
    unknown = [k for k in keys if k not in layers]
    if unknown:
        obs("reflow", "info", f"settle: unknown layer keys {unknown!r}")
        return None

    blocked = _BlockedCache(calendar)
    include_weekends = calendar.include_weekends
    new_dates: Dict[str, dt.date] = {}

    for key in keys:
        layer = layers[key]
        if layer.is_exception:
            continue
        linked = layer.chain_behavior != CHAIN_INDEPENDENT
        layer_blocked = blocked(key)

        floor: Optional[dt.date] = None
        for it in calendar.items_in_layer(key):
            day = it.date
            if floor is not None and day < floor:
                day = floor
            day = next_valid_date(day, include_weekends, layer_blocked)
            if day != it.date:
                new_dates[it.id] = day
                floor = day + _ONE_DAY if linked else None
            else:
                floor = None

    if new_dates:
        obs("reflow", "info", f"settle: moved {len(new_dates)} item(s)")
    return with_dates(calendar, new_dates)


__all__ = [
    "UnknownLayerError",
    "settle_exceptions",
    "shift",
    "with_dates",
]

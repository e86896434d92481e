# flexcal/split.py
"""Split an item into linked parts, and collapse a split group back into one item."""

from __future__ import annotations

import re
import uuid
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from .blackouts import blocked_dates_for
from .model import Calendar, ScheduledItem
from .reflow import UnknownLayerError, shift
from .util.console import obs
from .util.dates import days_between
from .valid_dates import advance_valid_days, retreat_valid_days

MIN_PARTS = 2
MAX_PARTS = 6

_PART_SUFFIX_RE = re.compile(r" \(Part \d+/\d+\)$")

IdFactory = Callable[[], str]


class AlreadySplitError(ValueError):
    """Raised when splitting an item that already belongs to a split group."""


class InvalidSplitError(ValueError):
    """Raised for a part count outside [MIN_PARTS, MAX_PARTS] or a non-splittable item."""


def _new_id() -> str:
    return uuid.uuid4().hex


def base_title(title: str) -> str:
    return _PART_SUFFIX_RE.sub("", title or "")


def part_title(base: str, index: int, total: int) -> str:
    return f"{base} (Part {index}/{total})"


def coerce_parts(parts: int, *, clamp: bool = False) -> int:
    n = int(parts)
    if MIN_PARTS <= n <= MAX_PARTS:
        return n
    if clamp:
        return max(MIN_PARTS, min(MAX_PARTS, n))
    raise InvalidSplitError(f"parts must be between {MIN_PARTS} and {MAX_PARTS}; got {n}")


def _renumbered(items: Sequence[ScheduledItem], layer_key: str, order: Sequence[str]) -> List[ScheduledItem]:
    seq: Dict[str, int] = {item_id: i + 1 for i, item_id in enumerate(order)}
    out: List[ScheduledItem] = []
    for it in items:
        if it.layer_key == layer_key and it.id in seq and it.sequence_index != seq[it.id]:
            it = replace(it, sequence_index=seq[it.id])
        out.append(it)
    return out


def split(
    calendar: Calendar,
    item_id: str,
    parts: int,
    *,
    clamp: bool = False,
    id_factory: Optional[IdFactory] = None,
) -> Optional[Calendar]:
    """Divide one item into `parts` consecutive valid-day parts.

    The item becomes part 1; parts 2..n follow on the next valid days and
    every later item of the layer is pushed forward by `parts - 1` valid days.
    Returns None when the item does not exist.
    """
    target = calendar.item(item_id)
    if target is None:
        obs("split", "info", f"split: item not found id={item_id!r}")
        return None
    if target.is_split:
        raise AlreadySplitError(f"item {item_id!r} is already part of split group {target.split_group_id!r}")

    n = coerce_parts(parts, clamp=clamp)

    layer = calendar.layer(target.layer_key)
    if layer is None:
        raise UnknownLayerError(f"item {target.id!r} references unknown layer {target.layer_key!r}")
    if layer.is_exception:
        raise InvalidSplitError(f"item {item_id!r} is a blackout marker and cannot be split")

    new_id = id_factory or _new_id
    group_id = new_id()
    include_weekends = calendar.include_weekends
    blocked = blocked_dates_for(calendar, layer.key)
    base = base_title(target.title)

    first = replace(
        target,
        title=part_title(base, 1, n),
        split_group_id=group_id,
        split_index=1,
        split_total=n,
    )
    extra: List[ScheduledItem] = []
    previous = target.date
    for idx in range(2, n + 1):
        previous = advance_valid_days(previous, 1, include_weekends, blocked)
        extra.append(
            ScheduledItem(
                id=new_id(),
                date=previous,
                layer_key=target.layer_key,
                sequence_index=target.sequence_index,
                title=part_title(base, idx, n),
                description=target.description,
                notes=target.notes,
                duration_days=target.duration_days,
                metadata=dict(target.metadata),
                target_layer_keys=target.target_layer_keys,
                split_group_id=group_id,
                split_index=idx,
                split_total=n,
            )
        )

    layer_items = calendar.items_in_layer(layer.key)
    pos = next(i for i, it in enumerate(layer_items) if it.id == target.id)
    tail = layer_items[pos + 1:]
    tail_dates = {it.id: advance_valid_days(it.date, n - 1, include_weekends, blocked) for it in tail}
    order = [it.id for it in layer_items[:pos]] + [first.id] + [p.id for p in extra] + [it.id for it in tail]

    items: List[ScheduledItem] = []
    for it in calendar.items:
        if it.id == target.id:
            items.append(first)
            items.extend(extra)
        elif it.id in tail_dates:
            items.append(replace(it, date=tail_dates[it.id]))
        else:
            items.append(it)

    obs("split", "info", f"split: item={item_id!r} parts={n} group={group_id!r} pushed={len(tail)}")
    return replace(calendar, items=tuple(_renumbered(items, layer.key, order)))


def unsplit(
    calendar: Calendar,
    item_id: Optional[str] = None,
    split_group_id: Optional[str] = None,
) -> Optional[Calendar]:
    """Collapse a split group back into its first part.

    The last part is shifted back by (members - 1) valid days within the
    group's layer, which re-threads every later item; then the extra parts
    are removed and part 1 gets its base title back.
    When both ids are given the item must belong to that group.
    Returns None when the item or group does not exist.
    """
    if not item_id and not split_group_id:
        raise ValueError("unsplit requires item_id or split_group_id")

    group_id = split_group_id
    if item_id:
        anchor = calendar.item(item_id)
        if anchor is None:
            obs("split", "info", f"unsplit: item not found id={item_id!r}")
            return None
        if group_id and anchor.split_group_id != group_id:
            raise ValueError(f"item {item_id!r} is not part of split group {group_id!r}")
        if not anchor.split_group_id:
            return calendar
        group_id = anchor.split_group_id

    indexed = [(it.split_index or 0, pos, it) for pos, it in enumerate(calendar.items) if it.split_group_id == group_id]
    if not indexed:
        obs("split", "info", f"unsplit: group not found id={group_id!r}")
        return None
    indexed.sort(key=lambda x: (x[0], x[1]))
    members = [it for _, _, it in indexed]
    if len(members) < 2:
        return calendar

    layer_key = members[0].layer_key
    if calendar.layer(layer_key) is None:
        raise UnknownLayerError(f"split group {group_id!r} references unknown layer {layer_key!r}")

    last = members[-1]
    gap = len(members) - 1
    target = retreat_valid_days(last.date, gap, calendar.include_weekends, blocked_dates_for(calendar, layer_key))
    shifted = shift(calendar, last.id, days_between(last.date, target), [layer_key])
    if shifted is None:
        return None

    drop = {m.id for m in members[1:]}
    first_id = members[0].id
    items: List[ScheduledItem] = []
    for it in shifted.items:
        if it.id in drop:
            continue
        if it.id == first_id:
            it = replace(
                it,
                title=base_title(it.title),
                split_group_id=None,
                split_index=None,
                split_total=None,
            )
        items.append(it)

    collapsed = replace(shifted, items=tuple(items))
    order = [it.id for it in collapsed.items_in_layer(layer_key)]

    obs("split", "info", f"unsplit: group={group_id!r} removed={len(drop)}")
    return replace(collapsed, items=tuple(_renumbered(collapsed.items, layer_key, order)))


__all__ = [
    "AlreadySplitError",
    "InvalidSplitError",
    "MAX_PARTS",
    "MIN_PARTS",
    "base_title",
    "coerce_parts",
    "part_title",
    "split",
    "unsplit",
]

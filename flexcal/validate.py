"""Calendar validation helpers (library-facing)."""

from __future__ import annotations

from typing import Dict, List

from .model import CHAIN_BEHAVIORS, LAYER_KINDS, Calendar, ScheduledItem


class CalendarValidationError(ValueError):
    """Raised when a calendar document or snapshot fails validation."""


def _require(cond: bool, msg: str, errs: List[str]) -> None:
    if not cond:
        errs.append(msg)


def _validate_split_groups(calendar: Calendar, label: str, errs: List[str]) -> None:
    groups: Dict[str, List[ScheduledItem]] = {}
    for it in calendar.items:
        if it.split_group_id:
            groups.setdefault(it.split_group_id, []).append(it)

    for gid, members in groups.items():
        totals = {m.split_total for m in members}
        layers = {m.layer_key for m in members}
        _require(len(layers) == 1, f"{label}: split group {gid!r} spans several layers", errs)
        if len(totals) != 1:
            errs.append(f"{label}: split group {gid!r} has inconsistent split_total")
            continue
        total = totals.pop()
        indices = sorted(m.split_index or 0 for m in members)
        _require(
            indices == list(range(1, len(members) + 1)) and total == len(members),
            f"{label}: split group {gid!r} indices {indices} do not run 1..{total}",
            errs,
        )
        ordered = sorted(members, key=lambda m: m.split_index or 0)
        for prev, cur in zip(ordered, ordered[1:]):
            _require(
                cur.date > prev.date,
                f"{label}: split group {gid!r} part {cur.split_index} is not after part {prev.split_index}",
                errs,
            )


def validate_calendar(calendar: Calendar, *, label: str = "calendar") -> List[str]:
    errs: List[str] = []

    _require(bool(calendar.id), f"{label}: id must be non-empty", errs)

    seen_layers: Dict[str, int] = {}
    for i, layer in enumerate(calendar.layers):
        _require(bool(layer.key), f"{label}: layers[{i}].key must be non-empty", errs)
        if layer.key in seen_layers:
            errs.append(f"{label}: duplicate layer key {layer.key!r}")
        seen_layers[layer.key] = i
        _require(
            layer.chain_behavior in CHAIN_BEHAVIORS,
            f"{label}: layers[{i}].chain_behavior must be one of {CHAIN_BEHAVIORS}",
            errs,
        )
        _require(layer.kind in LAYER_KINDS, f"{label}: layers[{i}].kind must be one of {LAYER_KINDS}", errs)

    seen_items: Dict[str, int] = {}
    for i, it in enumerate(calendar.items):
        _require(bool(it.id), f"{label}: items[{i}].id must be non-empty", errs)
        if it.id in seen_items:
            errs.append(f"{label}: duplicate item id {it.id!r}")
        seen_items[it.id] = i
        _require(
            it.layer_key in seen_layers,
            f"{label}: items[{i}] ({it.id!r}) references unknown layer {it.layer_key!r}",
            errs,
        )
        _require(
            isinstance(it.sequence_index, int) and it.sequence_index > 0,
            f"{label}: items[{i}] ({it.id!r}) sequence_index must be a positive int",
            errs,
        )

    _validate_split_groups(calendar, label, errs)
    return errs


def assert_valid_calendar(calendar: Calendar) -> None:
    errs = validate_calendar(calendar)
    if errs:
        raise CalendarValidationError(errs[0])


__all__ = [
    "CalendarValidationError",
    "assert_valid_calendar",
    "validate_calendar",
]

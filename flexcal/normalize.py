# flexcal/normalize.py
"""Map calendar documents (camelCase JSON) to model snapshots and back.

Legacy documents are accepted and normalized here, so the engine only ever
sees the canonical representation:
  - groupings -> layers, days -> scheduledItems
  - includeHolidays -> includeExceptions
  - groupingKey / groupingSequence / label / _id on items
  - autoShift (bool) -> chainBehavior
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from .model import (
    CHAIN_BEHAVIORS,
    CHAIN_INDEPENDENT,
    CHAIN_LINKED,
    KIND_STANDARD,
    LAYER_KINDS,
    Calendar,
    Layer,
    ScheduledItem,
)
from .util.console import obs
from .util.dates import to_day
from .validate import CalendarValidationError, assert_valid_calendar

JsonDict = Dict[str, Any]

_MISSING = object()


def _first(d: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        v = d.get(k, _MISSING)
        if v is not _MISSING and v is not None:
            return v
    return default


def _as_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if v is None:
        return default
    if isinstance(v, str):
        low = v.strip().lower()
        if low in {"1", "true", "yes", "on"}:
            return True
        if low in {"0", "false", "no", "off"}:
            return False
    raise CalendarValidationError(f"expected a boolean, got {v!r}")


def _as_opt_int(v: Any, label: str) -> Optional[int]:
    if v is None:
        return None
    if isinstance(v, bool) or not isinstance(v, int):
        raise CalendarValidationError(f"{label} must be an int; got {v!r}")
    return v


def chain_behavior_from_legacy(chain_behavior: Any = None, auto_shift: Any = None) -> str:
    """The single mapping from stored layer flags to a chain behavior.

    An explicit chainBehavior wins; otherwise legacy autoShift decides, and a
    layer with neither is linked.
    """
    if chain_behavior is not None:
        s = str(chain_behavior).strip().lower()
        if s not in CHAIN_BEHAVIORS:
            raise CalendarValidationError(f"unknown chainBehavior {chain_behavior!r}")
        return s
    if auto_shift is None:
        return CHAIN_LINKED
    return CHAIN_LINKED if _as_bool(auto_shift, True) else CHAIN_INDEPENDENT


def layer_from_dict(d: Mapping[str, Any], *, index: int = 0) -> Layer:
    if not isinstance(d, Mapping):
        raise CalendarValidationError(f"layers[{index}] must be an object")
    key = str(d.get("key") or "").strip()
    if not key:
        raise CalendarValidationError(f"layers[{index}].key must be non-empty")

    kind = str(d.get("kind") or KIND_STANDARD).strip().lower()
    if kind not in LAYER_KINDS:
        raise CalendarValidationError(f"layers[{index}].kind unknown: {d.get('kind')!r}")

    return Layer(
        key=key,
        name=str(d.get("name") or key),
        color=str(d.get("color") or ""),
        description=str(d.get("description") or ""),
        chain_behavior=chain_behavior_from_legacy(d.get("chainBehavior"), d.get("autoShift")),
        kind=kind,
        respects_global_exceptions=_as_bool(d.get("respectsGlobalExceptions"), True),
    )


def _legacy_event_title(d: Mapping[str, Any]) -> Optional[str]:
    events = d.get("events")
    if isinstance(events, list) and events and isinstance(events[0], Mapping):
        t = events[0].get("title")
        if isinstance(t, str) and t.strip():
            return t
    return None


def item_from_dict(d: Mapping[str, Any], *, index: int = 0) -> ScheduledItem:
    if not isinstance(d, Mapping):
        raise CalendarValidationError(f"scheduledItems[{index}] must be an object")

    item_id = str(_first(d, "id", "_id", default="")).strip()
    if not item_id:
        raise CalendarValidationError(f"scheduledItems[{index}].id must be non-empty")

    raw_date = d.get("date")
    try:
        day = to_day(raw_date)
    except ValueError as ex:
        raise CalendarValidationError(f"scheduledItems[{index}] ({item_id!r}) has invalid date {raw_date!r}") from ex

    seq = _first(d, "sequenceIndex", "groupingSequence")
    if isinstance(seq, bool) or not isinstance(seq, int):
        raise CalendarValidationError(f"scheduledItems[{index}] ({item_id!r}) sequenceIndex must be an int")

    title = _first(d, "title") or _legacy_event_title(d) or _first(d, "label", default="")

    targets_raw = d.get("targetLayerKeys") or []
    if not isinstance(targets_raw, list):
        raise CalendarValidationError(f"scheduledItems[{index}] ({item_id!r}) targetLayerKeys must be a list")
    targets: Tuple[str, ...] = tuple(str(t) for t in targets_raw if isinstance(t, str) and t.strip())

    metadata = d.get("metadata")
    duration = _first(d, "durationDays", default=1)

    return ScheduledItem(
        id=item_id,
        date=day,
        layer_key=str(_first(d, "layerKey", "groupingKey", default="")),
        sequence_index=seq,
        title=str(title),
        description=str(d.get("description") or ""),
        notes=str(d.get("notes") or ""),
        duration_days=duration if isinstance(duration, int) and not isinstance(duration, bool) else 1,
        metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
        target_layer_keys=targets,
        split_group_id=(str(d["splitGroupId"]) if d.get("splitGroupId") else None),
        split_index=_as_opt_int(d.get("splitIndex"), f"scheduledItems[{index}].splitIndex"),
        split_total=_as_opt_int(d.get("splitTotal"), f"scheduledItems[{index}].splitTotal"),
    )


def calendar_from_dict(doc: Mapping[str, Any], *, validate: bool = True) -> Calendar:
    """Build a Calendar snapshot from a (possibly legacy) document."""
    if not isinstance(doc, Mapping):
        raise TypeError(f"calendar document must be a dict/object; got {type(doc).__name__}")

    layers_raw = _first(doc, "layers", "groupings", default=[])
    items_raw = _first(doc, "scheduledItems", "days", default=[])
    if not isinstance(layers_raw, list):
        raise CalendarValidationError("layers must be a list")
    if not isinstance(items_raw, list):
        raise CalendarValidationError("scheduledItems must be a list")

    if "groupings" in doc or "days" in doc or "includeHolidays" in doc:
        obs("normalize", "info", "legacy calendar keys mapped to layers/scheduledItems/includeExceptions")

    start_raw = doc.get("startDate")
    try:
        start = to_day(start_raw) if start_raw else None
    except ValueError as ex:
        raise CalendarValidationError(f"startDate is invalid: {start_raw!r}") from ex

    calendar = Calendar(
        id=str(_first(doc, "id", "_id", default="")),
        name=str(doc.get("name") or ""),
        start_date=start,
        include_weekends=_as_bool(doc.get("includeWeekends"), False),
        include_exceptions=_as_bool(_first(doc, "includeExceptions", "includeHolidays"), False),
        layers=tuple(layer_from_dict(d, index=i) for i, d in enumerate(layers_raw)),
        items=tuple(item_from_dict(d, index=i) for i, d in enumerate(items_raw)),
    )

    if validate:
        assert_valid_calendar(calendar)
    return calendar


def layer_to_dict(layer: Layer) -> JsonDict:
    return {
        "key": layer.key,
        "name": layer.name,
        "color": layer.color,
        "description": layer.description,
        "chainBehavior": layer.chain_behavior,
        "kind": layer.kind,
        "respectsGlobalExceptions": layer.respects_global_exceptions,
    }


def item_to_dict(it: ScheduledItem) -> JsonDict:
    out: JsonDict = {
        "id": it.id,
        "date": it.date.isoformat(),
        "layerKey": it.layer_key,
        "sequenceIndex": it.sequence_index,
        "title": it.title,
        "description": it.description,
        "notes": it.notes,
        "durationDays": it.duration_days,
        "metadata": dict(it.metadata),
    }
    if it.target_layer_keys:
        out["targetLayerKeys"] = list(it.target_layer_keys)
    if it.split_group_id:
        out["splitGroupId"] = it.split_group_id
        out["splitIndex"] = it.split_index
        out["splitTotal"] = it.split_total
    return out


def calendar_to_dict(calendar: Calendar) -> JsonDict:
    return {
        "id": calendar.id,
        "name": calendar.name,
        "startDate": calendar.start_date.isoformat() if calendar.start_date else None,
        "includeWeekends": calendar.include_weekends,
        "includeExceptions": calendar.include_exceptions,
        "layers": [layer_to_dict(layer) for layer in calendar.layers],
        "scheduledItems": [item_to_dict(it) for it in calendar.items],
    }


__all__ = [
    "calendar_from_dict",
    "calendar_to_dict",
    "chain_behavior_from_legacy",
    "item_from_dict",
    "item_to_dict",
    "layer_from_dict",
    "layer_to_dict",
]

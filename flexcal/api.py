"""flexcal.api

Stable *library* entrypoint for flexcal.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
  - Every operation takes a Calendar snapshot and returns a new one (or None
    for not-found); nothing here performs I/O except the *_json helpers.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from flexcal.blackouts import blocked_dates_for, blocked_dates_for_layer, build_exception_lookup
from flexcal.generate import generate_layer_items
from flexcal.io import dump_calendar_json, dump_json, load_calendar_json, write_calendar_json
from flexcal.model import Calendar, ExceptionLookup, Layer, ScheduledItem
from flexcal.normalize import calendar_from_dict, calendar_to_dict, chain_behavior_from_legacy
from flexcal.reflow import UnknownLayerError, settle_exceptions, shift
from flexcal.split import AlreadySplitError, InvalidSplitError, split, unsplit
from flexcal.util.dates import day_key, is_weekend
from flexcal.validate import CalendarValidationError, assert_valid_calendar, validate_calendar
from flexcal.valid_dates import (
    UnsatisfiableDateError,
    advance_valid_days,
    generate_valid_dates,
    next_valid_date,
    valid_day_span,
)

OPERATIONS = ("shift", "split", "unsplit", "settle")


def _req_int(request: Mapping[str, Any], *keys: str) -> int:
    for k in keys:
        v = request.get(k)
        if v is None:
            continue
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError(f"{k} must be an int; got {v!r}")
        return v
    raise ValueError(f"{keys[0]} is required")


def _req_str(request: Mapping[str, Any], *keys: str) -> Optional[str]:
    for k in keys:
        v = request.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def _req_keys(request: Mapping[str, Any], key: str) -> Optional[List[str]]:
    raw = request.get(key)
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"{key} must be a list of layer keys; got {raw!r}")
    keys: List[str] = []
    for k in raw:
        if not isinstance(k, str) or not k.strip():
            raise ValueError(f"{key} entries must be non-empty strings; got {k!r}")
        keys.append(k.strip())
    return keys or None


def apply_request(calendar: Calendar, op: str, request: Mapping[str, Any]) -> Optional[Calendar]:
    """Run one operation from a request document.

    Both the optimistic client preview and the authoritative server path call
    this same function, so the two can never disagree.

    Request keys (camelCase, legacy aliases accepted):
      shift:   scheduledItemId|anchorItemId|dayId, shiftByDays|deltaDays, layerKeys?
      split:   itemId|scheduledItemId, parts
      unsplit: itemId|scheduledItemId and/or splitGroupId
      settle:  layerKeys?
    """
    name = (op or "").strip().lower()
    if name == "shift":
        anchor = _req_str(request, "scheduledItemId", "anchorItemId", "dayId")
        if not anchor:
            raise ValueError("scheduledItemId is required")
        layer_keys = _req_keys(request, "layerKeys")
        return shift(calendar, anchor, _req_int(request, "shiftByDays", "deltaDays"), layer_keys)
    if name == "split":
        item_id = _req_str(request, "itemId", "scheduledItemId")
        if not item_id:
            raise ValueError("itemId is required")
        return split(calendar, item_id, _req_int(request, "parts"))
    if name == "unsplit":
        item_id = _req_str(request, "itemId", "scheduledItemId")
        group_id = _req_str(request, "splitGroupId")
        return unsplit(calendar, item_id=item_id, split_group_id=group_id)
    if name == "settle":
        return settle_exceptions(calendar, _req_keys(request, "layerKeys"))
    raise ValueError(f"Unknown operation: {op!r} (expected one of {', '.join(OPERATIONS)})")


__all__ = [
    "AlreadySplitError",
    "Calendar",
    "CalendarValidationError",
    "ExceptionLookup",
    "InvalidSplitError",
    "Layer",
    "OPERATIONS",
    "ScheduledItem",
    "UnknownLayerError",
    "UnsatisfiableDateError",
    "advance_valid_days",
    "apply_request",
    "assert_valid_calendar",
    "blocked_dates_for",
    "blocked_dates_for_layer",
    "build_exception_lookup",
    "calendar_from_dict",
    "calendar_to_dict",
    "chain_behavior_from_legacy",
    "day_key",
    "dump_calendar_json",
    "dump_json",
    "generate_layer_items",
    "generate_valid_dates",
    "is_weekend",
    "load_calendar_json",
    "next_valid_date",
    "settle_exceptions",
    "shift",
    "split",
    "unsplit",
    "valid_day_span",
    "validate_calendar",
    "write_calendar_json",
]

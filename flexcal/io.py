# flexcal/io.py
"""Calendar document I/O (JSON files)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from .model import Calendar
from .normalize import calendar_from_dict, calendar_to_dict

try:
    import orjson  # type: ignore
except Exception:  # pragma: no cover
    orjson = None  # type: ignore

JsonPath = Union[str, Path]


def load_document(path: JsonPath) -> Dict[str, Any]:
    p = Path(path)
    raw = p.read_bytes()
    obj = orjson.loads(raw) if orjson is not None else json.loads(raw.decode("utf-8", errors="replace"))
    if not isinstance(obj, dict):
        raise ValueError(f"calendar JSON must be an object/dict; got {type(obj).__name__}")
    return obj


def load_calendar_json(path: JsonPath, *, validate: bool = True) -> Calendar:
    return calendar_from_dict(load_document(path), validate=validate)


def dump_json(doc: Any, *, sort_keys: bool = False) -> str:
    if orjson is not None:
        option = orjson.OPT_INDENT_2 | (orjson.OPT_SORT_KEYS if sort_keys else 0)
        return orjson.dumps(doc, option=option).decode("utf-8") + "\n"
    return json.dumps(doc, indent=2, ensure_ascii=False, sort_keys=sort_keys) + "\n"


def dump_calendar_json(calendar: Calendar) -> str:
    return dump_json(calendar_to_dict(calendar))


def write_calendar_json(calendar: Calendar, path: JsonPath) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(dump_calendar_json(calendar), encoding="utf-8")
    return p


__all__ = [
    "dump_calendar_json",
    "dump_json",
    "load_calendar_json",
    "load_document",
    "write_calendar_json",
]

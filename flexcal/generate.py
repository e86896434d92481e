# flexcal/generate.py
from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional, Sequence

from .blackouts import blocked_dates_for
from .model import Calendar, ScheduledItem
from .util.console import obs
from .util.dates import DayLike, to_day
from .valid_dates import generate_valid_dates


def _new_id() -> str:
    return uuid.uuid4().hex


def item_title(layer_name: str, n: int, title_pattern: Optional[str] = None) -> str:
    if title_pattern and "{n}" in title_pattern:
        return title_pattern.replace("{n}", str(n))
    return f"{layer_name} Lesson {n}"


def generate_layer_items(
    calendar: Calendar,
    layer_key: str,
    count: int,
    *,
    start: Optional[DayLike] = None,
    title_pattern: Optional[str] = None,
    templates: Sequence[Mapping[str, Any]] = (),
    id_factory: Optional[Callable[[], str]] = None,
) -> Optional[Calendar]:
    """Append `count` items to a layer, one per consecutive valid day.

    Numbering continues after the layer's highest sequence_index. Template
    entries (title/description/durationDays) win over the title pattern for
    the positions they cover. Returns None when the layer does not exist.
    """
    layer = calendar.layer(layer_key)
    if layer is None:
        return None
    if layer.is_exception:
        raise ValueError(f"layer {layer_key!r} is an exception layer; add blackout markers explicitly")
    if count <= 0:
        return calendar

    start_raw = start if start is not None else calendar.start_date
    if start_raw is None:
        raise ValueError("generate_layer_items needs a start date (argument or calendar.start_date)")

    new_id = id_factory or _new_id
    existing = calendar.items_in_layer(layer_key)
    base_seq = max((it.sequence_index for it in existing), default=0)

    dates = generate_valid_dates(
        to_day(start_raw),
        int(count),
        calendar.include_weekends,
        blocked_dates_for(calendar, layer_key),
    )

    added = []
    for i, day in enumerate(dates):
        n = i + 1
        tpl = templates[i] if i < len(templates) else {}
        duration = tpl.get("durationDays")
        added.append(
            ScheduledItem(
                id=new_id(),
                date=day,
                layer_key=layer_key,
                sequence_index=base_seq + n,
                title=str(tpl.get("title") or item_title(layer.name or layer.key, base_seq + n, title_pattern)),
                description=str(tpl.get("description") or ""),
                duration_days=duration if isinstance(duration, int) and duration > 0 else 1,
            )
        )

    obs("generate", "info", f"generated {len(added)} item(s) for layer={layer_key!r} from {dates[0].isoformat()}")
    return replace(calendar, items=calendar.items + tuple(added))


__all__ = [
    "generate_layer_items",
    "item_title",
]

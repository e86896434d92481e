# flexcal/model.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

CHAIN_LINKED = "linked"
CHAIN_INDEPENDENT = "independent"
CHAIN_BEHAVIORS = (CHAIN_LINKED, CHAIN_INDEPENDENT)

KIND_STANDARD = "standard"
KIND_EXCEPTION = "exception"
LAYER_KINDS = (KIND_STANDARD, KIND_EXCEPTION)


@dataclass(frozen=True)
class Layer:
    key: str
    name: str = ""
    color: str = ""
    description: str = ""
    chain_behavior: str = CHAIN_LINKED  # "linked" | "independent"
    kind: str = KIND_STANDARD  # "standard" | "exception"
    respects_global_exceptions: bool = True

    @property
    def is_exception(self) -> bool:
        return self.kind == KIND_EXCEPTION


@dataclass(frozen=True)
class ScheduledItem:
    id: str
    date: dt.date
    layer_key: str
    sequence_index: int
    title: str
    description: str = ""
    notes: str = ""
    duration_days: int = 1
    metadata: Mapping[str, Any] = field(default_factory=dict)

    # Only meaningful on exception layers: empty means a global blackout.
    target_layer_keys: Tuple[str, ...] = ()

    split_group_id: Optional[str] = None
    split_index: Optional[int] = None
    split_total: Optional[int] = None

    def __post_init__(self) -> None:
        # metadata is stored as a read-only copy of whatever mapping was passed in.
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

    @property
    def is_split(self) -> bool:
        return self.split_total is not None and self.split_total > 1


@dataclass(frozen=True)
class Calendar:
    """Aggregate root: one planning document with its layers and items.

    `items` keeps document order; that order breaks sequence_index ties.
    """

    id: str
    name: str
    start_date: Optional[dt.date] = None
    include_weekends: bool = False
    include_exceptions: bool = False
    layers: Tuple[Layer, ...] = ()
    items: Tuple[ScheduledItem, ...] = ()

    def layers_by_key(self) -> Dict[str, Layer]:
        return {layer.key: layer for layer in self.layers}

    def layer(self, key: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.key == key:
                return layer
        return None

    def item(self, item_id: str) -> Optional[ScheduledItem]:
        for it in self.items:
            if it.id == item_id:
                return it
        return None

    def exception_layer_keys(self) -> FrozenSet[str]:
        return frozenset(layer.key for layer in self.layers if layer.is_exception)

    def items_in_layer(self, key: str) -> List[ScheduledItem]:
        """Items of one layer in chain order (sequence_index, then document order)."""
        indexed = [(it.sequence_index, pos, it) for pos, it in enumerate(self.items) if it.layer_key == key]
        indexed.sort(key=lambda x: (x[0], x[1]))
        return [it for _, _, it in indexed]


@dataclass(frozen=True)
class ExceptionLookup:
    """Blocked day keys derived from exception-layer items (never persisted)."""

    global_keys: FrozenSet[str] = frozenset()
    per_layer: Dict[str, FrozenSet[str]] = field(default_factory=dict)


__all__ = [
    "CHAIN_BEHAVIORS",
    "CHAIN_INDEPENDENT",
    "CHAIN_LINKED",
    "Calendar",
    "ExceptionLookup",
    "KIND_EXCEPTION",
    "KIND_STANDARD",
    "LAYER_KINDS",
    "Layer",
    "ScheduledItem",
]

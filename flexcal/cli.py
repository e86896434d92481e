#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .blackouts import build_exception_lookup
from .io import dump_calendar_json, dump_json, load_calendar_json, write_calendar_json
from .model import Calendar
from .reflow import settle_exceptions, shift
from .split import split, unsplit


def _die(msg: str, rc: int = 2) -> int:
    print(f"[flexcal] ERROR: {msg}", file=sys.stderr)
    return rc


def _split_keys(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    keys = [k.strip() for k in raw.split(",") if k.strip()]
    return keys or None


def _emit(calendar: Calendar, out: Optional[str]) -> int:
    if out:
        print(write_calendar_json(calendar, Path(out)))
    else:
        sys.stdout.write(dump_calendar_json(calendar))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="flexcal",
        description="Reflow, split and un-split scheduled items in a calendar JSON document.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--in", dest="in_json", required=True, help="Input calendar JSON path")
        p.add_argument("--out", default=None, help="Write the updated calendar here (default: stdout)")

    p = sub.add_parser("shift", help="Move one item by N days and reflow its chain")
    _common(p)
    p.add_argument("--item", required=True, help="Anchor item id")
    p.add_argument("--delta", type=int, required=True, help="Calendar-day delta (may be negative)")
    p.add_argument("--layers", default=None, help="Comma-separated layer keys to chain across (default: anchor layer)")

    p = sub.add_parser("split", help="Split one item into linked parts")
    _common(p)
    p.add_argument("--item", required=True, help="Item id to split")
    p.add_argument("--parts", type=int, required=True, help="Number of parts (2-6)")
    p.add_argument("--clamp", action="store_true", help="Clamp --parts into 2-6 instead of rejecting it")

    p = sub.add_parser("unsplit", help="Collapse a split group back into one item")
    _common(p)
    p.add_argument("--item", default=None, help="Any item id of the split group")
    p.add_argument("--group", default=None, help="Split group id")

    p = sub.add_parser("settle", help="Push items off weekend/blackout dates")
    _common(p)
    p.add_argument("--layers", default=None, help="Comma-separated layer keys (default: all standard layers)")

    p = sub.add_parser("exceptions", help="Print the blocked-date lookup as JSON")
    p.add_argument("--in", dest="in_json", required=True, help="Input calendar JSON path")

    return ap


def main(argv: List[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)

    in_path = Path(ns.in_json)
    if not in_path.exists():
        return _die(f"Missing input JSON: {in_path}")

    try:
        calendar = load_calendar_json(in_path)
    except Exception as e:
        return _die(f"Failed to load calendar: {in_path} ({e})")

    if ns.cmd == "exceptions":
        lookup = build_exception_lookup(calendar)
        doc = {
            "global": sorted(lookup.global_keys),
            "perLayer": {k: sorted(v) for k, v in sorted(lookup.per_layer.items())},
        }
        sys.stdout.write(dump_json(doc, sort_keys=True))
        return 0

    if ns.cmd == "unsplit" and not (ns.item or ns.group):
        return _die("unsplit needs --item or --group")

    try:
        if ns.cmd == "shift":
            result = shift(calendar, ns.item, int(ns.delta), _split_keys(ns.layers))
        elif ns.cmd == "split":
            result = split(calendar, ns.item, int(ns.parts), clamp=bool(ns.clamp))
        elif ns.cmd == "unsplit":
            result = unsplit(calendar, item_id=ns.item, split_group_id=ns.group)
        else:
            result = settle_exceptions(calendar, _split_keys(ns.layers))
    except ValueError as e:
        return _die(str(e))

    if result is None:
        return _die(f"{ns.cmd}: item, group or layer not found", rc=1)

    return _emit(result, ns.out)


if __name__ == "__main__":
    raise SystemExit(main())

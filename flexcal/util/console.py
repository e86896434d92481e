# flexcal/util/console.py
from __future__ import annotations

import os
import sys
from typing import Any


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def obs_enabled() -> bool:
    v = (os.getenv("FLEXCAL_OBS_LOG", "") or "").strip().lower()
    return v in {"1", "true", "yes", "on"}


def obs(component: str, level: str, msg: str) -> None:
    """Emit a `[flexcal.<component>] LEVEL: msg` line when FLEXCAL_OBS_LOG is on."""
    if obs_enabled():
        eprint(f"[flexcal.{component}] {level.upper()}: {msg}")

"""flexcal Python package.

Public API:
  - import from `flexcal.api` (preferred) or `import flexcal` (re-export)
"""

from __future__ import annotations

from .api import *  # noqa: F401,F403
from . import api as _api

__all__ = list(_api.__all__)

from .api import (
    Calendar,
    Layer,
    ScheduledItem,
    build_exception_lookup,
    calendar_from_dict,
    calendar_to_dict,
    load_calendar_json,
    settle_exceptions,
    shift,
    split,
    unsplit,
)

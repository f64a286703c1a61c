"""
Date/time adapter
=================

Every place that needs to understand a timestamp goes through this module:
the input format (`config.DATE_FORMAT`) and the civil timezone
(`config.TIMEZONE`, Europe/Vienna) are known only here.

Rules:
- Parsing never raises. A malformed or empty string becomes `pd.NaT`.
- `month_of(pd.NaT)` is None, so a record with a bad start timestamp never
  equals any month and drops out of every month filter.
- Local times that do not exist (spring DST gap) are shifted forward;
  ambiguous local times (autumn DST overlap) take the summer-time reading.
"""

from __future__ import annotations
from typing import Iterable, List, Optional

import pandas as pd

from .config import DATE_FORMAT, TIMEZONE
from .models import Instant


def parse_instant(text, tz: str = TIMEZONE) -> Instant:
    """Parse one 'DD.MM.YYYY HH:mm' string into a tz-aware Timestamp (or NaT)."""
    if text is None or not isinstance(text, str):
        return pd.NaT
    ts = pd.to_datetime(text.strip(), format=DATE_FORMAT, errors="coerce")
    if pd.isna(ts):
        return pd.NaT
    return ts.tz_localize(tz, ambiguous=True, nonexistent="shift_forward")


def parse_instants(values: Iterable, tz: str = TIMEZONE) -> List[Instant]:
    """Vectorised `parse_instant` for a whole column."""
    raw = pd.Series(list(values), dtype="object")
    raw = raw.where(raw.map(lambda v: isinstance(v, str)), None).str.strip()
    parsed = pd.to_datetime(raw, format=DATE_FORMAT, errors="coerce")
    return list(parsed.dt.tz_localize(tz, ambiguous=True, nonexistent="shift_forward"))


def is_valid(instant) -> bool:
    return instant is not None and not pd.isna(instant)


def month_of(instant) -> Optional[int]:
    """Calendar month 1-12, or None for an unparseable instant."""
    if not is_valid(instant):
        return None
    return instant.month


def start_of_day(instant) -> Instant:
    """Local midnight of the instant's day."""
    if not is_valid(instant):
        return pd.NaT
    return instant.normalize()


def to_iso(instant) -> str:
    if not is_valid(instant):
        return ""
    return instant.isoformat()


def minutes_between(start, end) -> Optional[int]:
    """Whole minutes from start to end, truncated toward zero."""
    if not (is_valid(start) and is_valid(end)):
        return None
    return int((end - start).total_seconds() / 60)

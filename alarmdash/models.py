"""
Data model (Alarm, BrigadeDeployment, ...)
==========================================

Each row of the alarms table becomes an `Alarm`, each row of the brigades
table a `BrigadeDeployment`. Both are immutable (`frozen=True`):
records are created once at load time and every filter/aggregate builds
new lists instead of editing them.

Timestamps are timezone-aware `pandas.Timestamp` values. A timestamp that
could not be parsed is `pandas.NaT`; see `alarmdash.timeparse`.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, Optional, Union

import pandas as pd

Instant = pd.Timestamp


@dataclass(frozen=True)
class Alarm:
    """One emergency dispatch event."""
    alarm_id: Optional[int]
    district_no: Optional[int]
    district: str
    alarm_type: str
    alarm_level: Optional[int]
    brigade_count: Optional[int]
    latitude: Optional[float]
    longitude: Optional[float]
    alarm_start: Instant
    alarm_end: Instant


@dataclass(frozen=True)
class BrigadeDeployment:
    """One unit's engagement, linked to an alarm through `alarm_nr`."""
    brigade_id: Optional[int]
    name: str
    call_start: Instant
    call_end: Instant
    # join key: Alarm.alarm_id
    alarm_nr: Optional[int]


@dataclass(frozen=True)
class Topology:
    """Map geometry. Only `district_names` is read outside of rendering."""
    document: Mapping[str, Any]
    district_names: FrozenSet[str]


@dataclass(frozen=True)
class FilterSelection:
    """Current view parameters: a month and optionally one district."""
    month: int
    district: Optional[str] = None

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {self.month}")


@dataclass(frozen=True)
class AggregateEntry:
    key: str
    value: Union[int, float]

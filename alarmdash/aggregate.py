"""
Aggregation stage
=================

Reducers that turn a (filtered) list of records into the summaries the
charts and the map consume:

- `group_by_key`: top-n frequency of any key (alarm type, brigade name, day)
- `group_average_call_duration_by_alarm_type`: mean alarm duration in hours
- `group_alarms_by_district` / `count_alarms_by_district`: map colouring
- `district_count_domain`: (min, max) of the district counts

Counting uses `collections.Counter`, which remembers the order in which keys
were first seen. Sorting is Python's stable sort, so equal values keep that
first-seen order. Every reducer returns an empty result for empty input.
"""

from __future__ import annotations
from collections import Counter
from operator import itemgetter
from typing import Callable, Dict, Hashable, Iterable, List, Mapping, Tuple, TypeVar

from .models import Alarm, AggregateEntry
from .timeparse import minutes_between

T = TypeVar("T")


def group_by_key(
    items: Iterable[T],
    key_extractor: Callable[[T], Hashable],
    n: int,
    sort_by_value: bool,
) -> List[AggregateEntry]:
    """Count `key_extractor(item)` over items and keep the first `n` entries.

    sort_by_value=True  -> descending count, ties in first-seen order
    sort_by_value=False -> first-seen order (chronological buckets)
    """
    counts: Counter = Counter()
    for item in items:
        counts[key_extractor(item)] += 1
    pairs = list(counts.items())
    if sort_by_value:
        pairs.sort(key=itemgetter(1), reverse=True)
    return [AggregateEntry(key=k, value=v) for k, v in pairs[:n]]


def group_average_call_duration_by_alarm_type(alarms: Iterable[Alarm], n: int) -> List[AggregateEntry]:
    """Mean (alarm_end - alarm_start) per alarm type, in hours, longest first.

    Alarms whose duration cannot be computed (NaT start or end) are skipped.
    """
    acc: Dict[str, List[float]] = {}
    for a in alarms:
        minutes = minutes_between(a.alarm_start, a.alarm_end)
        if minutes is None:
            continue
        count_sum = acc.setdefault(a.alarm_type, [0, 0.0])
        count_sum[0] += 1
        count_sum[1] += minutes
    out = [AggregateEntry(key=k, value=s / c / 60) for k, (c, s) in acc.items()]
    out.sort(key=lambda e: e.value, reverse=True)
    return out[:n]


def group_alarms_by_district(alarms: Iterable[Alarm]) -> Dict[str, List[Alarm]]:
    """district -> alarms of that district (districts without alarms are absent)."""
    out: Dict[str, List[Alarm]] = {}
    for a in alarms:
        out.setdefault(a.district, []).append(a)
    return out


def count_alarms_by_district(alarms: Iterable[Alarm]) -> Dict[str, int]:
    return dict(Counter(a.district for a in alarms))


def district_count_domain(counts: Mapping[str, int]) -> Tuple[int, int]:
    """(min, max) of the district counts for the colour scale.

    With fewer than two districts min is 0, so the domain never collapses to
    a single point while there is data.
    """
    if not counts:
        return 0, 0
    values = list(counts.values())
    lo, hi = min(values), max(values)
    if len(values) < 2:
        lo = 0
    return lo, hi


def split_mapped_districts(
    counts: Mapping[str, int],
    district_names: Iterable[str],
) -> Tuple[Dict[str, int], Dict[str, int]]:
    """Separate counts whose district exists in the map from unmapped ones (exact names)."""
    known = set(district_names)
    mapped: Dict[str, int] = {}
    unmapped: Dict[str, int] = {}
    for district, count in counts.items():
        (mapped if district in known else unmapped)[district] = count
    return mapped, unmapped

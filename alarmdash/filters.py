"""
Filter stage
============

Narrows the loaded records to one month and, optionally, one district.
Both filters keep the input order.

Brigade filtering depends on alarm filtering: with a district selected, a
deployment survives only if its `alarm_nr` is the id of one of the already
filtered alarms.
"""

from __future__ import annotations
from typing import List, Optional, Sequence
import logging

from .models import Alarm, BrigadeDeployment
from .timeparse import month_of

logger = logging.getLogger(__name__)


def filter_alarms(alarms: Sequence[Alarm], month: int, district: Optional[str] = None) -> List[Alarm]:
    """Alarms that started in `month` (and lie in `district`, exact match, if given)."""
    out = [a for a in alarms if month_of(a.alarm_start) == month]
    if district:
        out = [a for a in out if a.district == district]
    return out


def filter_brigades(
    brigades: Sequence[BrigadeDeployment],
    all_alarms: Sequence[Alarm],
    filtered_alarms: Sequence[Alarm],
    month: int,
    district: Optional[str] = None,
) -> List[BrigadeDeployment]:
    """Deployments called in `month`; with a district, only those linked to `filtered_alarms`.

    `all_alarms` is only consulted for diagnostics (deployments pointing at no
    loaded alarm at all are counted and logged).
    """
    out = [b for b in brigades if month_of(b.call_start) == month]
    if not district:
        return out

    linked_ids = {a.alarm_id for a in filtered_alarms if a.alarm_id is not None}
    if logger.isEnabledFor(logging.DEBUG):
        known_ids = {a.alarm_id for a in all_alarms}
        orphans = sum(1 for b in out if b.alarm_nr not in known_ids)
        if orphans:
            logger.debug("%d deployments in month %d reference no loaded alarm", orphans, month)
    return [b for b in out if b.alarm_nr in linked_ids]

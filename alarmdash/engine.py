"""
Dashboard engine
================

This is the heart of the project:

1) Load the three sources concurrently -> `DashboardData` (immutable snapshot)
2) Keep a *current selection* (`FilterSelection`: month + optional district)
3) On every selection change run `recompute`: filter, then aggregate
4) Hand the resulting `DashboardView` to every subscribed listener

`recompute` is a pure function of (data, selection, config). The only thing
that changes over time is `Dashboard.selection`; each change produces a
brand-new view, nothing is updated incrementally.

If any source fails to load the dashboard is `FAILED` and stays so: the
failures are kept on `Dashboard.failures` and selection changes raise
`DashboardNotReady`.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
import csv
import json
import logging

from .aggregate import (
    count_alarms_by_district,
    district_count_domain,
    group_alarms_by_district,
    group_average_call_duration_by_alarm_type,
    group_by_key,
    split_mapped_districts,
)
from .config import DashboardConfig
from .errors import DashboardNotReady, DataLoadError
from .filters import filter_alarms, filter_brigades
from .loader import load_alarms, load_brigades, load_topology
from .models import AggregateEntry, Alarm, BrigadeDeployment, FilterSelection, Topology
from .timeparse import start_of_day, to_iso

logger = logging.getLogger(__name__)

Listener = Callable[["DashboardView"], None]


class LoadStatus(Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class DashboardData:
    """Everything loaded at startup. Never modified afterwards."""
    topology: Topology
    alarms: Tuple[Alarm, ...]
    brigades: Tuple[BrigadeDeployment, ...]


@dataclass(frozen=True)
class DashboardView:
    """Result of one recompute cycle."""
    selection: FilterSelection
    alarms: List[Alarm]
    brigades: List[BrigadeDeployment]
    # district -> member alarms / counts (only districts with alarms)
    district_alarms: Dict[str, List[Alarm]]
    district_counts: Dict[str, int]
    # counts whose district name is not in the topology
    unmapped_districts: Dict[str, int]
    color_domain: Tuple[int, int]
    top_alarm_types: List[AggregateEntry]
    most_active_brigades: List[AggregateEntry]
    average_call_duration: List[AggregateEntry]
    alarms_per_day: List[AggregateEntry]


def _day_key(alarm: Alarm) -> str:
    return to_iso(start_of_day(alarm.alarm_start))


def recompute(data: DashboardData, selection: FilterSelection, config: Optional[DashboardConfig] = None) -> DashboardView:
    """Full filter + aggregate pass for one selection."""
    config = config or DashboardConfig()
    month, district = selection.month, selection.district

    alarms = filter_alarms(data.alarms, month, district)
    brigades = filter_brigades(data.brigades, data.alarms, alarms, month, district)

    district_alarms = group_alarms_by_district(alarms)
    counts = count_alarms_by_district(alarms)
    _, unmapped = split_mapped_districts(counts, data.topology.district_names)
    if unmapped:
        logger.debug("Districts not on the map: %s", sorted(unmapped))

    return DashboardView(
        selection=selection,
        alarms=alarms,
        brigades=brigades,
        district_alarms=district_alarms,
        district_counts=counts,
        unmapped_districts=unmapped,
        color_domain=district_count_domain(counts),
        top_alarm_types=group_by_key(alarms, lambda a: a.alarm_type, config.top_alarm_types, True),
        most_active_brigades=group_by_key(brigades, lambda b: b.name, config.top_brigades, True),
        average_call_duration=group_average_call_duration_by_alarm_type(alarms, config.top_durations),
        alarms_per_day=group_by_key(alarms, _day_key, config.max_days, False),
    )


def load_data(config: DashboardConfig) -> Tuple[Optional[DashboardData], List[DataLoadError]]:
    """Load topology, alarms and brigades in parallel and wait for all three.

    Returns (data, []) on success, or (None, failures) if any source failed.
    """
    jobs = {
        "topology": (load_topology, config.topology_path, (config.topology_layer,)),
        "alarms": (load_alarms, config.alarms_path, (config.delimiter, config.timezone)),
        "brigades": (load_brigades, config.brigades_path, (config.delimiter, config.timezone)),
    }
    results: Dict[str, Any] = {}
    failures: List[DataLoadError] = []

    with ThreadPoolExecutor(max_workers=len(jobs), thread_name_prefix="alarmdash-load") as pool:
        futures = {name: pool.submit(fn, path, *extra) for name, (fn, path, extra) in jobs.items()}
        for name, fut in futures.items():
            path = str(jobs[name][1])
            try:
                results[name] = fut.result()
            except Exception as e:
                logger.error("Error loading the %s data from %s", name, path, exc_info=True)
                err = e if isinstance(e, DataLoadError) else DataLoadError(str(e), source=name, path=path)
                if err.source is None:
                    err.source = name
                if err.path is None:
                    err.path = path
                failures.append(err)

    if failures:
        return None, failures
    data = DashboardData(
        topology=results["topology"],
        alarms=tuple(results["alarms"]),
        brigades=tuple(results["brigades"]),
    )
    return data, []


@dataclass
class Dashboard:
    """Holds the loaded data, the current selection and the current view.

    Selection changes (`set_month`, `select_district`, `reset_district`,
    `undo`, `redo`) each run one full recompute and notify the listeners.
    """
    config: DashboardConfig = field(default_factory=DashboardConfig)
    status: LoadStatus = LoadStatus.PENDING
    data: Optional[DashboardData] = None
    failures: List[DataLoadError] = field(default_factory=list)
    view: Optional[DashboardView] = None
    selection: FilterSelection = field(init=False)

    _listeners: List[Listener] = field(default_factory=list, init=False)
    # Stacks for undo/redo (previous selections)
    _undo: List[FilterSelection] = field(default_factory=list, init=False)
    _redo: List[FilterSelection] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.selection = FilterSelection(month=self.config.initial_month)

    # ---------------- Loading ----------------
    def load(self) -> LoadStatus:
        """Load all sources (join barrier) and run the first recompute."""
        data, failures = load_data(self.config)
        if failures:
            self.status = LoadStatus.FAILED
            self.failures = failures
            return self.status
        self.attach(data)
        return self.status

    def attach(self, data: DashboardData) -> DashboardView:
        """Use already loaded data and run the first recompute."""
        self.data = data
        self.status = LoadStatus.READY
        self.failures = []
        return self._refresh()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # ---------------- Selection ----------------
    def set_month(self, month: int) -> DashboardView:
        return self._select(FilterSelection(month=month, district=self.selection.district))

    def select_district(self, district: str) -> DashboardView:
        return self._select(FilterSelection(month=self.selection.month, district=district))

    def reset_district(self) -> DashboardView:
        return self._select(FilterSelection(month=self.selection.month))

    def undo(self) -> bool:
        self._require_ready()
        if not self._undo:
            return False
        self._redo.append(self.selection)
        self.selection = self._undo.pop()
        self._refresh()
        return True

    def redo(self) -> bool:
        self._require_ready()
        if not self._redo:
            return False
        self._undo.append(self.selection)
        self.selection = self._redo.pop()
        self._refresh()
        return True

    def _select(self, selection: FilterSelection) -> DashboardView:
        self._require_ready()
        self._undo.append(self.selection)
        self._redo.clear()
        self.selection = selection
        return self._refresh()

    def _require_ready(self) -> None:
        if self.status is LoadStatus.FAILED:
            sources = ", ".join(str(f.source) for f in self.failures)
            raise DashboardNotReady(f"Loading failed ({sources}); the dashboard cannot be updated.")
        if self.status is not LoadStatus.READY:
            raise DashboardNotReady("Data is not loaded yet.")

    def _refresh(self) -> DashboardView:
        self.view = recompute(self.data, self.selection, self.config)
        logger.info(
            "Recomputed month=%d district=%s: %d alarms, %d deployments",
            self.selection.month, self.selection.district or "all", len(self.view.alarms), len(self.view.brigades),
        )
        for listener in self._listeners:
            listener(self.view)
        return self.view

    # ---------------- Output operations ----------------
    def export_csv(self, path: str) -> None:
        """Write the currently filtered alarms as a CSV file."""
        if self.view is None:
            raise DashboardNotReady("Nothing to export: no view computed yet.")
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["alarm_id", "district_no", "district", "alarm_type", "alarm_level",
                        "brigade_count", "latitude", "longitude", "alarm_start", "alarm_end"])
            for a in self.view.alarms:
                w.writerow([a.alarm_id, a.district_no, a.district, a.alarm_type, a.alarm_level,
                            a.brigade_count, a.latitude, a.longitude,
                            to_iso(a.alarm_start), to_iso(a.alarm_end)])

    def export_json(self, path: str) -> None:
        """Write the current view (all summaries) as JSON."""
        if self.view is None:
            raise DashboardNotReady("Nothing to export: no view computed yet.")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(view_to_dict(self.view), f, ensure_ascii=False, indent=2)


# ---------------- Helpers ----------------
def _entries(entries: List[AggregateEntry]) -> List[Dict[str, Any]]:
    return [{"key": e.key, "value": e.value} for e in entries]


def view_to_dict(view: DashboardView) -> Dict[str, Any]:
    """JSON-ready representation of a view."""
    return {
        "selection": {"month": view.selection.month, "district": view.selection.district},
        "alarms": [
            {
                "alarm_id": a.alarm_id,
                "district": a.district,
                "alarm_type": a.alarm_type,
                "latitude": a.latitude,
                "longitude": a.longitude,
                "alarm_start": to_iso(a.alarm_start),
                "alarm_end": to_iso(a.alarm_end),
            }
            for a in view.alarms
        ],
        "district_counts": dict(view.district_counts),
        "unmapped_districts": dict(view.unmapped_districts),
        "color_domain": {"min": view.color_domain[0], "max": view.color_domain[1]},
        "top_alarm_types": _entries(view.top_alarm_types),
        "most_active_brigades": _entries(view.most_active_brigades),
        "average_call_duration": _entries(view.average_call_duration),
        "alarms_per_day": _entries(view.alarms_per_day),
    }

"""
Dataset loader (delimited tables -> Alarm / BrigadeDeployment lists)
===================================================================

This module reads the three data sources of the dashboard:

- the alarms table  (`;`-delimited CSV, or an .xlsx export),
- the brigades table (same formats),
- the district topology (TopoJSON; only the district names are extracted).

Key ideas:
- Column names are matched tolerantly (`alarmId`, `alarm_id`, `Alarm ID` ...).
- Conversion helpers (_to_int/_to_float/_to_str) turn bad cells into None/""
  instead of failing the whole table.
- Timestamps go through `timeparse`, so a malformed date becomes NaT and the
  row is still kept.
"""

from __future__ import annotations
from typing import List, Optional
import json
import logging
import re

import pandas as pd

from .config import DELIMITER, TIMEZONE, TOPOLOGY_LAYER
from .errors import DataLoadError, MissingColumnError
from .models import Alarm, BrigadeDeployment, Topology
from .timeparse import is_valid, parse_instants

logger = logging.getLogger(__name__)


def _to_int(x) -> Optional[int]:
    """Convert a cell to int, returning None if missing/invalid."""
    if pd.isna(x): return None
    try: return int(float(x))
    except (TypeError, ValueError, OverflowError): return None

def _to_float(x) -> Optional[float]:
    """Convert a cell to float, returning None if missing/invalid."""
    if pd.isna(x): return None
    try: return float(x)
    except (TypeError, ValueError): return None

def _to_str(x) -> str:
    if pd.isna(x): return ""
    return str(x).strip()

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _col(df: pd.DataFrame, *names: str) -> str:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise MissingColumnError(f"Missing required column. Tried={names}. Available={cols}")


def read_table(path, delimiter: str = DELIMITER) -> pd.DataFrame:
    """Read a table as raw strings. `.xlsx` files use openpyxl, everything else is CSV."""
    if str(path).lower().endswith((".xlsx", ".xlsm")):
        df = pd.read_excel(path, engine="openpyxl", dtype=str)
    else:
        df = pd.read_csv(path, sep=delimiter, dtype=str, encoding="utf-8")
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


def load_alarms(path, delimiter: str = DELIMITER, tz: str = TIMEZONE) -> List[Alarm]:
    """Load the alarms table.

    Required columns: alarmId, districtNo, district, alarmType, alarmLevel,
    brigadeCount, latitude, longitude, alarmStart, alarmEnd.
    """
    df = read_table(path, delimiter)

    id_col = _col(df, "alarmId", "Alarm ID", "alarmNr")
    district_no_col = _col(df, "districtNo", "District No", "District Number")
    district_col = _col(df, "district", "District", "District Name")
    type_col = _col(df, "alarmType", "Alarm Type", "Type")
    level_col = _col(df, "alarmLevel", "Alarm Level", "Level")
    brigade_count_col = _col(df, "brigadeCount", "Brigade Count", "Brigades")
    lat_col = _col(df, "latitude", "lat")
    lon_col = _col(df, "longitude", "lon", "lng")
    start_col = _col(df, "alarmStart", "Alarm Start", "start")
    end_col = _col(df, "alarmEnd", "Alarm End", "end")

    starts = parse_instants(df[start_col], tz)
    ends = parse_instants(df[end_col], tz)

    alarms: List[Alarm] = []
    for (_, row), start, end in zip(df.iterrows(), starts, ends):
        alarms.append(Alarm(
            alarm_id=_to_int(row[id_col]),
            district_no=_to_int(row[district_no_col]),
            district=_to_str(row[district_col]),
            alarm_type=_to_str(row[type_col]),
            alarm_level=_to_int(row[level_col]),
            brigade_count=_to_int(row[brigade_count_col]),
            latitude=_to_float(row[lat_col]),
            longitude=_to_float(row[lon_col]),
            alarm_start=start,
            alarm_end=end,
        ))

    bad = sum(1 for a in alarms if not is_valid(a.alarm_start))
    logger.info("Loaded %d alarms from %s (%d with unparseable start)", len(alarms), path, bad)
    return alarms


def load_brigades(path, delimiter: str = DELIMITER, tz: str = TIMEZONE) -> List[BrigadeDeployment]:
    """Load the brigade deployments table.

    `alarmNr` is required: it is the only link between a deployment and its alarm.
    """
    df = read_table(path, delimiter)

    id_col = _col(df, "brigadeId", "Brigade ID")
    name_col = _col(df, "name", "Brigade", "Brigade Name")
    start_col = _col(df, "callStart", "Call Start")
    end_col = _col(df, "callEnd", "Call End")
    alarm_nr_col = _col(df, "alarmNr", "alarmId", "Alarm No")

    starts = parse_instants(df[start_col], tz)
    ends = parse_instants(df[end_col], tz)

    brigades: List[BrigadeDeployment] = []
    for (_, row), start, end in zip(df.iterrows(), starts, ends):
        brigades.append(BrigadeDeployment(
            brigade_id=_to_int(row[id_col]),
            name=_to_str(row[name_col]),
            call_start=start,
            call_end=end,
            alarm_nr=_to_int(row[alarm_nr_col]),
        ))

    bad = sum(1 for b in brigades if not is_valid(b.call_start))
    logger.info("Loaded %d brigade deployments from %s (%d with unparseable start)", len(brigades), path, bad)
    return brigades


def load_topology(path, layer: str = TOPOLOGY_LAYER) -> Topology:
    """Load a TopoJSON file and collect the district names of `layer`."""
    with open(path, "r", encoding="utf-8") as f:
        document = json.load(f)
    return topology_from_document(document, layer)


def topology_from_document(document: dict, layer: str = TOPOLOGY_LAYER) -> Topology:
    if not isinstance(document, dict):
        raise DataLoadError(f"Topology must be a JSON object, got {type(document).__name__}", source="topology")
    objects = document.get("objects") or {}
    if not isinstance(objects, dict):
        raise DataLoadError("Topology 'objects' must be a JSON object", source="topology")
    if layer not in objects:
        raise DataLoadError(f"Topology has no object layer {layer!r}. Available={sorted(objects)}", source="topology")
    collection = objects[layer]
    geometries = collection.get("geometries", []) if isinstance(collection, dict) else None
    if not isinstance(geometries, list):
        raise DataLoadError(f"Topology layer {layer!r} has no geometry list", source="topology")
    names = set()
    for geometry in geometries:
        properties = geometry.get("properties") if isinstance(geometry, dict) else None
        if not isinstance(properties, dict):
            continue
        name = properties.get("name")
        if name is not None:
            names.add(str(name))
    logger.info("Loaded topology layer %r with %d districts", layer, len(names))
    return Topology(document=document, district_names=frozenset(names))

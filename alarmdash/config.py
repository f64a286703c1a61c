"""
Configuration
=============

Data paths, the input format and the timezone come from environment
variables (`ALARMDASH_*`), read once at import. `DashboardConfig` bundles
them with the summary sizes and the initial month; the CLI overrides the
paths from its arguments.
"""

import os
from dataclasses import dataclass
from pathlib import Path

DATA_DIR = Path(os.getenv("ALARMDASH_DATA_DIR", "data"))
TOPOLOGY_PATH = Path(os.getenv("ALARMDASH_TOPOLOGY", str(DATA_DIR / "bezirke_95_topo.json")))
ALARMS_PATH = Path(os.getenv("ALARMDASH_ALARMS", str(DATA_DIR / "alarms-splitted.csv")))
BRIGADES_PATH = Path(os.getenv("ALARMDASH_BRIGADES", str(DATA_DIR / "brigades-splitted.csv")))
TOPOLOGY_LAYER = os.getenv("ALARMDASH_TOPOLOGY_LAYER", "bezirke")
DELIMITER = os.getenv("ALARMDASH_DELIMITER", ";")
TIMEZONE = os.getenv("ALARMDASH_TIMEZONE", "Europe/Vienna")
LOG_LEVEL = os.getenv("ALARMDASH_LOG_LEVEL", "INFO")

# Day.Month.Year Hour:Minute, e.g. "05.01.2021 10:00"
DATE_FORMAT = "%d.%m.%Y %H:%M"


@dataclass(frozen=True)
class DashboardConfig:
    """Knobs for loading and for the size of each summary."""
    topology_path: Path = TOPOLOGY_PATH
    alarms_path: Path = ALARMS_PATH
    brigades_path: Path = BRIGADES_PATH
    topology_layer: str = TOPOLOGY_LAYER
    delimiter: str = DELIMITER
    timezone: str = TIMEZONE

    initial_month: int = 1
    top_alarm_types: int = 10
    top_brigades: int = 10
    top_durations: int = 20
    max_days: int = 31

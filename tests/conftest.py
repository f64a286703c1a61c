from typing import Optional

import pytest

from alarmdash.engine import DashboardData
from alarmdash.models import Alarm, BrigadeDeployment, Topology
from alarmdash.timeparse import parse_instant


def make_alarm(
    alarm_id: int,
    district: str,
    alarm_type: str,
    start: str,
    end: str,
    district_no: Optional[int] = None,
) -> Alarm:
    return Alarm(
        alarm_id=alarm_id,
        district_no=district_no,
        district=district,
        alarm_type=alarm_type,
        alarm_level=1,
        brigade_count=1,
        latitude=48.2,
        longitude=16.37,
        alarm_start=parse_instant(start),
        alarm_end=parse_instant(end),
    )


def make_brigade(brigade_id: int, name: str, start: str, end: str, alarm_nr: Optional[int]) -> BrigadeDeployment:
    return BrigadeDeployment(
        brigade_id=brigade_id,
        name=name,
        call_start=parse_instant(start),
        call_end=parse_instant(end),
        alarm_nr=alarm_nr,
    )


@pytest.fixture
def alarms() -> list:
    return [
        make_alarm(1, "Innere Stadt", "fire", "05.01.2021 10:00", "05.01.2021 11:30"),
        make_alarm(2, "Innere Stadt", "fire", "05.01.2021 12:00", "05.01.2021 12:30"),
        make_alarm(3, "Leopoldstadt", "flood", "06.01.2021 08:00", "06.01.2021 12:00"),
        make_alarm(4, "Leopoldstadt", "smoke", "07.01.2021 09:00", "07.01.2021 09:20"),
        make_alarm(5, "Atlantis", "fire", "07.01.2021 18:00", "07.01.2021 19:00"),
        make_alarm(6, "Innere Stadt", "flood", "02.02.2021 10:00", "02.02.2021 11:00"),
        make_alarm(7, "Leopoldstadt", "fire", "not a date", "05.01.2021 11:00"),
    ]


@pytest.fixture
def brigades() -> list:
    return [
        make_brigade(10, "FF Mitte", "05.01.2021 10:05", "05.01.2021 11:00", 1),
        make_brigade(11, "FF Mitte", "05.01.2021 12:05", "05.01.2021 12:25", 2),
        make_brigade(12, "FF Donau", "06.01.2021 08:10", "06.01.2021 11:00", 3),
        make_brigade(13, "FF Donau", "07.01.2021 09:05", "07.01.2021 09:15", 4),
        make_brigade(14, "FF Nord", "02.02.2021 10:05", "02.02.2021 10:55", 6),
        make_brigade(15, "FF Nord", "07.01.2021 18:10", "07.01.2021 18:50", 999),
    ]


@pytest.fixture
def topology() -> Topology:
    return Topology(document={}, district_names=frozenset({"Innere Stadt", "Leopoldstadt", "Landstraße"}))


@pytest.fixture
def data(topology, alarms, brigades) -> DashboardData:
    return DashboardData(topology=topology, alarms=tuple(alarms), brigades=tuple(brigades))

import json
from pathlib import Path

import pandas as pd
import pytest

from alarmdash.errors import DataLoadError, MissingColumnError
from alarmdash.loader import load_alarms, load_brigades, load_topology, topology_from_document
from alarmdash.timeparse import is_valid, month_of

ALARMS_CSV = """alarmId;districtNo;district;alarmType;alarmLevel;brigadeCount;latitude;longitude;alarmStart;alarmEnd
1;1;Innere Stadt;Brand;2;3;48.2082;16.3738;05.01.2021 10:00;05.01.2021 11:30
2;2;Leopoldstadt;Technischer Einsatz;1;1;48.2167;16.4;06.01.2021 08:00;06.01.2021 09:00
3;x;Leopoldstadt;Brand;;1;n/a;16.4;31.02.2021 08:00;31.02.2021 09:00
"""

BRIGADES_CSV = """brigadeId;name;callStart;callEnd;alarmNr
10;FF Mitte;05.01.2021 10:05;05.01.2021 11:00;1
11;FF Donau;06.01.2021 08:10;06.01.2021 08:50;2
12;FF Donau;;06.01.2021 08:50;
"""

TOPOLOGY = {
    "type": "Topology",
    "objects": {
        "bezirke": {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Polygon", "arcs": [[0]], "properties": {"name": "Innere Stadt"}},
                {"type": "Polygon", "arcs": [[1]], "properties": {"name": "Leopoldstadt"}},
                {"type": "Polygon", "arcs": [[2]], "properties": {}},
            ],
        }
    },
    "arcs": [],
}


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_alarms_parses_types(tmp_path: Path) -> None:
    alarms = load_alarms(_write(tmp_path / "alarms.csv", ALARMS_CSV))

    assert len(alarms) == 3
    first = alarms[0]
    assert first.alarm_id == 1
    assert first.district_no == 1
    assert first.district == "Innere Stadt"
    assert first.alarm_type == "Brand"
    assert first.alarm_level == 2
    assert first.brigade_count == 3
    assert first.latitude == pytest.approx(48.2082)
    assert month_of(first.alarm_start) == 1
    assert first.alarm_end.hour == 11 and first.alarm_end.minute == 30


def test_bad_cells_do_not_drop_the_row(tmp_path: Path) -> None:
    alarms = load_alarms(_write(tmp_path / "alarms.csv", ALARMS_CSV))

    bad = alarms[2]
    assert bad.alarm_id == 3
    assert bad.district_no is None
    assert bad.alarm_level is None
    assert bad.latitude is None
    assert not is_valid(bad.alarm_start)


def test_load_brigades(tmp_path: Path) -> None:
    brigades = load_brigades(_write(tmp_path / "brigades.csv", BRIGADES_CSV))

    assert [b.brigade_id for b in brigades] == [10, 11, 12]
    assert brigades[0].name == "FF Mitte"
    assert brigades[0].alarm_nr == 1
    assert brigades[2].alarm_nr is None
    assert not is_valid(brigades[2].call_start)


def test_missing_column_raises(tmp_path: Path) -> None:
    text = "brigadeId;name;callStart;callEnd\n10;FF Mitte;05.01.2021 10:05;05.01.2021 11:00\n"

    with pytest.raises(MissingColumnError):
        load_brigades(_write(tmp_path / "brigades.csv", text))


def test_missing_column_is_also_a_key_error(tmp_path: Path) -> None:
    with pytest.raises(KeyError):
        load_alarms(_write(tmp_path / "alarms.csv", "alarmId;district\n1;A\n"))


def test_column_names_are_matched_loosely(tmp_path: Path) -> None:
    text = "Brigade ID;Name;Call Start;Call End;Alarm Nr\n10;FF Mitte;05.01.2021 10:05;05.01.2021 11:00;1\n"

    brigades = load_brigades(_write(tmp_path / "brigades.csv", text))

    assert brigades[0].brigade_id == 10
    assert brigades[0].alarm_nr == 1


def test_load_alarms_from_xlsx(tmp_path: Path) -> None:
    pytest.importorskip("openpyxl")
    csv_path = _write(tmp_path / "alarms.csv", ALARMS_CSV)
    xlsx_path = tmp_path / "alarms.xlsx"
    pd.read_csv(csv_path, sep=";", dtype=str).to_excel(xlsx_path, index=False, engine="openpyxl")

    alarms = load_alarms(xlsx_path)

    assert [a.alarm_id for a in alarms] == [1, 2, 3]
    assert month_of(alarms[1].alarm_start) == 1


def test_load_topology_collects_district_names(tmp_path: Path) -> None:
    path = tmp_path / "topo.json"
    path.write_text(json.dumps(TOPOLOGY), encoding="utf-8")

    topology = load_topology(path)

    assert topology.district_names == frozenset({"Innere Stadt", "Leopoldstadt"})
    assert topology.document["type"] == "Topology"


def test_topology_without_layer_fails() -> None:
    with pytest.raises(DataLoadError):
        topology_from_document(TOPOLOGY, layer="gemeinden")


@pytest.mark.parametrize("document", [
    [1, 2, 3],
    {"objects": [1, 2]},
    {"objects": {"bezirke": "not a collection"}},
    {"objects": {"bezirke": {"geometries": {"name": "x"}}}},
])
def test_topology_of_wrong_shape_raises_load_error(document) -> None:
    with pytest.raises(DataLoadError) as info:
        topology_from_document(document)

    assert info.value.source == "topology"

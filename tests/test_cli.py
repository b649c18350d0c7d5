import argparse
import json
import logging
import sys
from unittest.mock import patch

import pytest

from roadinspect import cli
from roadinspect.config import InspectionConfig
from roadinspect.geometry import Position

ROADS = [
    {
        "id": "A",
        "name": "Rua A",
        "coordinates": [{"lat": 0, "lng": 0}, {"lat": 0, "lng": 1}, {"lat": 1, "lng": 1}],
    },
    {"id": "B", "coordinates": [{"lat": 0, "lng": 10}, {"lat": 0, "lng": 11}]},
]

PATHOLOGIES = [
    {"id": "p1", "road_id": "A", "coordinates": {"lat": 0, "lng": 0.51}},
    {"id": "p2", "road_id": "B", "coordinates": {"lat": 0, "lng": 10.5}},
]

GPX_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><name>Hill road</name><trkseg>
    <trkpt lat="0.0" lon="0.0"><ele>100</ele></trkpt>
    <trkpt lat="0.0009" lon="0.0"><ele>130</ele></trkpt>
  </trkseg></trk>
</gpx>
"""


@pytest.fixture(autouse=True)
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers = handlers
    root_logger.setLevel(level)


def run_main(argv):
    with patch.object(sys, "argv", ["roadinspect"] + argv):
        cli.main()


def write_json(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_parse_center():
    assert cli.parse_center("-23.5, -46.6") == Position(-23.5, -46.6)


@pytest.mark.parametrize("value", ["1", "a,b", "95,0", "1,2,3"])
def test_parse_center_rejects_bad_values(value):
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_center(value)


def test_config_from_args():
    args = cli.create_argument_parser().parse_args(
        ["roads.json", "--speed", "45", "--steep-slope", "0.08", "--metrics"]
    )
    config = InspectionConfig.from_args(args)

    assert config.speed_kmh == 45.0
    assert config.steep_slope_ratio == 0.08
    assert config.sharp_turn_degrees == 45.0
    assert config.centroid_strategy == "flat"
    assert config.search_radius_km == 1.0
    assert config.metrics is True


def test_main_writes_report(tmp_path, capsys):
    roads_file = write_json(tmp_path / "roads.json", ROADS)
    output = tmp_path / "out.json"

    run_main([roads_file, "--output", str(output)])

    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["route"]["ordered_roads"] == ["A", "B"]
    assert report["route"]["total_distance_km"] > 1000
    assert [road["id"] for road in report["roads"]] == ["A", "B"]
    assert report["roads"][0]["name"] == "Rua A"
    assert report["roads"][0]["area"]["area_square_meters"] > 0
    assert report["roads"][1]["area"]["area_square_meters"] == 0
    assert report["roads"][0]["critical_points"]["sharp_turns"] == [{"lat": 1.0, "lng": 1.0}]
    assert "nearby_pathologies" not in report

    stdout = capsys.readouterr().out
    assert "Inspection route (2 waypoints" in stdout
    assert "Rua A: 0 intersections, 1 sharp turns, 0 steep slopes" in stdout


def test_main_generates_report_filename(tmp_path):
    roads_file = write_json(tmp_path / "batch.json", ROADS)

    run_main([roads_file])

    report_path = tmp_path / "batch report.json"
    assert report_path.exists()
    assert json.loads(report_path.read_text(encoding="utf-8"))["route"]["waypoints"]


def test_main_with_gpx_and_pathologies(tmp_path):
    gpx_file = tmp_path / "hill.gpx"
    gpx_file.write_text(GPX_TRACK, encoding="utf-8")
    roads_file = write_json(tmp_path / "roads.json", ROADS)
    pathologies_file = write_json(tmp_path / "pathologies.json", PATHOLOGIES)
    output = tmp_path / "out.json"

    run_main(
        [
            str(gpx_file),
            roads_file,
            "--pathologies",
            pathologies_file,
            "--center",
            "0,0.5",
            "--radius",
            "5",
            "--output",
            str(output),
        ]
    )

    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["route"]["ordered_roads"][0] == "hill"
    hill = report["roads"][0]
    assert hill["name"] == "Hill road"
    assert hill["critical_points"]["steep_slopes"] == [
        {"lat": 0.0009, "lng": 0.0, "elevation": 130.0}
    ]
    assert [p["id"] for p in report["nearby_pathologies"]] == ["p1"]


def test_pathology_search_defaults_to_first_waypoint(tmp_path):
    roads_file = write_json(tmp_path / "roads.json", ROADS)
    pathologies_file = write_json(tmp_path / "pathologies.json", PATHOLOGIES)
    output = tmp_path / "out.json"

    run_main([roads_file, "--pathologies", pathologies_file, "--output", str(output)])

    report = json.loads(output.read_text(encoding="utf-8"))
    # First waypoint is road A's centroid, about 0.33 degrees from p1
    assert report["nearby_pathologies"] == []


def test_main_metrics_logging(tmp_path, caplog):
    roads_file = write_json(tmp_path / "roads.json", ROADS)
    output = tmp_path / "out.json"

    with caplog.at_level(logging.DEBUG):
        run_main([roads_file, "--output", str(output), "--metrics", "--log-level", "DEBUG"])

    assert "=== ROADINSPECT_METRICS ===" in caplog.text
    assert "roads[total]=2" in caplog.text
    assert "critical_points[sharp_turns]=1" in caplog.text


def test_main_without_inputs_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        run_main([])
    assert exc_info.value.code == 1
    assert "usage:" in capsys.readouterr().out


def test_main_missing_file(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        run_main([str(tmp_path / "missing.json"), "--output", str(tmp_path / "out.json")])
    assert exc_info.value.code == 1


def test_main_invalid_json(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit) as exc_info:
        run_main([str(bad), "--output", str(tmp_path / "out.json")])
    assert exc_info.value.code == 1


def test_main_invalid_record(tmp_path):
    roads_file = write_json(tmp_path / "roads.json", [{"id": "x", "coordinates": []}])
    with pytest.raises(SystemExit) as exc_info:
        run_main([roads_file, "--output", str(tmp_path / "out.json")])
    assert exc_info.value.code == 1


def test_main_empty_collection(tmp_path):
    roads_file = write_json(tmp_path / "roads.json", [])
    with pytest.raises(SystemExit) as exc_info:
        run_main([roads_file, "--output", str(tmp_path / "out.json")])
    assert exc_info.value.code == 1

import io
import json

import pytest
import gpxpy.gpx

from roadinspect.geometry import InvalidInputError, Position
from roadinspect.road import (
    CentroidStrategy,
    Pathology,
    Road,
    load_pathologies_json,
    load_roads_json,
)

GPX_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Rua das Flores</name>
    <trkseg>
      <trkpt lat="-23.5505" lon="-46.6333"><ele>760.0</ele></trkpt>
      <trkpt lat="-23.5510" lon="-46.6340"><ele>765.5</ele></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="-23.5515" lon="-46.6347"></trkpt>
    </trkseg>
  </trk>
</gpx>
"""


def test_road_creation_and_basic_properties():
    pos1 = Position(latitude=10.0, longitude=20.0, elevation=5.0)
    pos2 = Position(latitude=10.1, longitude=20.1, elevation=10.0)
    pos3 = Position(latitude=10.2, longitude=20.2, elevation=15.0)
    road = Road(id="r1", coordinates=[pos1, pos2, pos3])

    assert road.coordinates == [pos1, pos2, pos3]
    assert len(road) == 3
    assert road[0] == pos1
    assert road[-1] == pos3
    assert list(road) == [pos1, pos2, pos3]
    assert road.get_display_name() == "<Road r1>"


def test_road_requires_coordinates():
    with pytest.raises(InvalidInputError):
        Road(id="empty", coordinates=[])


def test_road_rejects_out_of_range_coordinates():
    with pytest.raises(InvalidInputError):
        Road(id="bad", coordinates=[Position(0.0, 0.0), Position(91.0, 0.0)])


def test_single_point_road_is_allowed():
    road = Road(id="r1", coordinates=[Position(1.0, 2.0)])
    assert road.centroid() == Position(1.0, 2.0)


def test_flat_average_centroid():
    road = Road(id="a", coordinates=[Position(0.0, 0.0), Position(0.0, 1.0)])
    assert road.centroid() == Position(0.0, 0.5)
    assert road.centroid(CentroidStrategy.FLAT_AVERAGE) == Position(0.0, 0.5)


def test_geodesic_centroid_matches_flat_for_short_equatorial_road():
    road = Road(id="a", coordinates=[Position(0.0, 0.0), Position(0.0, 1.0)])
    centroid = road.centroid(CentroidStrategy.GEODESIC)
    assert centroid.latitude == pytest.approx(0.0, abs=1e-9)
    assert centroid.longitude == pytest.approx(0.5)


def test_geodesic_centroid_across_antimeridian():
    road = Road(id="a", coordinates=[Position(0.0, 179.0), Position(0.0, -179.0)])
    # The flat average lands on the opposite side of the planet
    assert road.centroid().longitude == pytest.approx(0.0)
    assert abs(road.centroid(CentroidStrategy.GEODESIC).longitude) == pytest.approx(180.0)


def test_centroid_strategy_values():
    assert CentroidStrategy("flat") is CentroidStrategy.FLAT_AVERAGE
    assert CentroidStrategy("geodesic") is CentroidStrategy.GEODESIC
    assert str(CentroidStrategy.GEODESIC) == "geodesic"


def test_road_from_dict():
    record = {
        "id": "42",
        "service_order_id": "so-1",
        "name": "Avenida Paulista",
        "length": "2800",
        "width": 20,
        "paved_length": None,
        "coordinates": [
            {"lat": -23.5614, "lng": -46.6559},
            {"lat": -23.5632, "lng": -46.6543, "elevation": 820},
        ],
        "pathologies": [],
    }
    road = Road.from_dict(record)

    assert road.id == "42"
    assert road.name == "Avenida Paulista"
    assert road.service_order_id == "so-1"
    assert road.measurements == {"length": 2800.0, "width": 20.0}
    assert road.coordinates == [
        Position(-23.5614, -46.6559),
        Position(-23.5632, -46.6543, 820.0),
    ]
    assert road.get_display_name() == "Avenida Paulista"


def test_road_dict_round_trip():
    road = Road(
        id="7",
        coordinates=[Position(1.0, 2.0, 3.0), Position(1.5, 2.5)],
        name="Main",
        measurements={"width": 8.0},
    )
    restored = Road.from_dict(road.to_dict())
    assert restored.to_dict() == road.to_dict()


@pytest.mark.parametrize(
    "record",
    [
        [],
        {"coordinates": [{"lat": 0, "lng": 0}]},
        {"id": "1"},
        {"id": "1", "coordinates": []},
        {"id": "1", "coordinates": "0,0"},
        {"id": "1", "coordinates": [{"lat": 0}]},
        {"id": "1", "coordinates": [{"lat": 0, "lng": 0}], "width": "wide"},
    ],
)
def test_road_from_dict_rejects_malformed_records(record):
    with pytest.raises(InvalidInputError):
        Road.from_dict(record)


def test_road_from_gpx_concatenates_segments():
    road = Road.from_gpx(io.StringIO(GPX_TRACK), "flores")

    assert road.id == "flores"
    assert road.name == "Rua das Flores"
    assert len(road) == 3
    assert road[0] == Position(-23.5505, -46.6333, 760.0)
    assert road[1].elevation == 765.5
    assert road[2].elevation is None


def test_road_from_gpx_without_points():
    empty = '<?xml version="1.0"?><gpx version="1.1" creator="t"></gpx>'
    with pytest.raises(InvalidInputError):
        Road.from_gpx(io.StringIO(empty), "empty")


def test_road_from_gpx_malformed():
    with pytest.raises(gpxpy.gpx.GPXException):
        Road.from_gpx(io.StringIO("<gpx><trk>"), "broken")


def test_road_from_file(tmp_path):
    path = tmp_path / "flores.gpx"
    path.write_text(GPX_TRACK, encoding="utf-8")

    assert Road.from_file(str(path), "r").id == "r"
    assert Road.from_file(str(path)).id == str(path)


def test_pathology_from_dict_and_back():
    record = {
        "id": "p1",
        "road_id": "42",
        "description": "Pothole",
        "coordinates": {"lat": -23.56, "lng": -46.65},
    }
    pathology = Pathology.from_dict(record)

    assert pathology == Pathology("p1", "42", Position(-23.56, -46.65), "Pothole")
    assert pathology.to_dict() == record


@pytest.mark.parametrize("missing", ["id", "road_id", "coordinates"])
def test_pathology_from_dict_requires_keys(missing):
    record = {"id": "p1", "road_id": "42", "coordinates": {"lat": 0, "lng": 0}}
    del record[missing]
    with pytest.raises(InvalidInputError):
        Pathology.from_dict(record)


def test_load_roads_json_accepts_array_and_wrapped_object():
    records = [
        {"id": "a", "coordinates": [{"lat": 0, "lng": 0}]},
        {"id": "b", "coordinates": [{"lat": 1, "lng": 1}]},
    ]
    roads = load_roads_json(io.StringIO(json.dumps(records)))
    assert [road.id for road in roads] == ["a", "b"]

    wrapped = load_roads_json(io.StringIO(json.dumps({"roads": records})))
    assert [road.id for road in wrapped] == ["a", "b"]


def test_load_roads_json_rejects_non_list():
    with pytest.raises(InvalidInputError):
        load_roads_json(io.StringIO('{"id": "a"}'))


def test_load_pathologies_json():
    records = {
        "pathologies": [
            {"id": "p1", "road_id": "a", "coordinates": {"lat": 0, "lng": 0.01}},
        ]
    }
    pathologies = load_pathologies_json(io.StringIO(json.dumps(records)))
    assert pathologies == [Pathology("p1", "a", Position(0.0, 0.01))]

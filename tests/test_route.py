import io
import json
import math

import pytest
import gpxpy.gpx

from routewatch.geometry import GeoPoint
from routewatch.route import (
    DEFAULT_THRESHOLD_M,
    Route,
    RouteConfiguration,
    RouteConfigurationError,
    validate_threshold,
)


def test_route_creation_and_basic_properties():
    """
    Tests basic Route creation, coordinate storage, length, indexing, and iteration.
    """
    pos1 = GeoPoint(longitude=20.0, latitude=10.0)
    pos2 = GeoPoint(longitude=20.1, latitude=10.1)
    pos3 = GeoPoint(longitude=20.2, latitude=10.2)
    my_position_list = [pos1, pos2, pos3]

    route = Route(coords=my_position_list)

    assert route.coords == tuple(my_position_list)
    assert len(route) == 3
    assert route[0] == pos1
    assert route[-1] == pos3
    assert list(route) == my_position_list
    assert list(route.segments()) == [(pos1, pos2), (pos2, pos3)]

    empty_route = Route()
    assert len(empty_route) == 0
    assert list(empty_route.segments()) == []

    single = Route([pos1])
    assert len(single) == 1
    assert list(single.segments()) == []


def test_route_accepts_plain_tuples():
    route = Route([(1.0, 2.0)])
    assert route[0] == GeoPoint(longitude=1.0, latitude=2.0)
    assert isinstance(route[0], GeoPoint)


def test_route_is_immutable_copy_of_input():
    points = [GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0)]
    route = Route(points)
    points.append(GeoPoint(0.0, 2.0))
    assert len(route) == 2


def test_route_equality():
    assert Route([(0.0, 0.0), (1.0, 1.0)]) == Route([GeoPoint(0.0, 0.0), GeoPoint(1.0, 1.0)])
    assert Route([(0.0, 0.0)]) != Route([(1.0, 1.0)])
    assert hash(Route([(0.0, 0.0)])) == hash(Route([(0.0, 0.0)]))
    assert repr(Route([(0.0, 0.0)])) == "Route(1 points)"


@pytest.mark.parametrize(
    "coords",
    [
        [(180.5, 0.0)],
        [(-180.5, 0.0)],
        [(0.0, 90.5)],
        [(0.0, -91.0)],
        [(0.0, math.nan)],
        [(math.inf, 0.0)],
        [("1.0", 0.0)],
        [(True, 0.0)],
        [(0.0, 0.0, 5.0)],
        [(1.0,)],
        [None],
        [7],
    ],
)
def test_route_rejects_invalid_coordinates(coords):
    with pytest.raises(RouteConfigurationError):
        Route(coords)


def test_route_accepts_boundary_coordinates():
    route = Route([(-180.0, -90.0), (180.0, 90.0)])
    assert len(route) == 2


def test_from_rows_valid():
    route = Route.from_rows([[0, 0], [0.0, 0.5], [0, 1]])
    assert list(route) == [GeoPoint(0.0, 0.0), GeoPoint(0.0, 0.5), GeoPoint(0.0, 1.0)]
    assert all(isinstance(value, float) for point in route for value in point)


def test_from_rows_empty():
    assert len(Route.from_rows([])) == 0


def test_from_rows_inconsistent_widths():
    with pytest.raises(RouteConfigurationError, match="consistent 2D array"):
        Route.from_rows([[0.0, 0.0], [0.0, 1.0, 5.0]])


@pytest.mark.parametrize(
    "rows",
    [
        "not a list",
        {"lon": 0, "lat": 0},
        [0.0, 1.0],
        [[0.0]],
        [[0.0, 1.0, 2.0], [0.0, 1.0, 2.0]],
        [[0.0, None]],
        [["a", "b"]],
    ],
)
def test_from_rows_rejects_malformed_rows(rows):
    with pytest.raises(RouteConfigurationError):
        Route.from_rows(rows)


def test_from_gpx_prefers_tracks():
    gpx_data = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <wpt lat="5.0" lon="5.0"></wpt>
  <rte><rtept lat="4.0" lon="4.0"></rtept></rte>
  <trk>
    <trkseg>
      <trkpt lat="1.0" lon="2.0"></trkpt>
      <trkpt lat="1.5" lon="2.5"></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="2.0" lon="3.0"></trkpt>
    </trkseg>
  </trk>
</gpx>"""
    route = Route.from_gpx(io.StringIO(gpx_data))
    assert list(route) == [
        GeoPoint(2.0, 1.0),
        GeoPoint(2.5, 1.5),
        GeoPoint(3.0, 2.0),
    ]


def test_from_gpx_falls_back_to_route_points():
    gpx_data = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <wpt lat="5.0" lon="5.0"></wpt>
  <rte>
    <rtept lat="4.0" lon="4.0"></rtept>
    <rtept lat="4.1" lon="4.0"></rtept>
  </rte>
</gpx>"""
    route = Route.from_gpx(io.StringIO(gpx_data))
    assert list(route) == [GeoPoint(4.0, 4.0), GeoPoint(4.0, 4.1)]


def test_from_gpx_falls_back_to_waypoints():
    gpx_data = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <wpt lat="5.0" lon="6.0"></wpt>
</gpx>"""
    route = Route.from_gpx(io.StringIO(gpx_data))
    assert list(route) == [GeoPoint(6.0, 5.0)]


def test_from_gpx_empty_file_gives_empty_route():
    gpx_data = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
</gpx>"""
    assert len(Route.from_gpx(io.StringIO(gpx_data))) == 0


def test_from_gpx_malformed():
    with pytest.raises(gpxpy.gpx.GPXException):
        Route.from_gpx(io.StringIO("this is not xml"))


def test_get_bbox_with_buffer():
    route = Route([(10.0, 45.0), (10.1, 45.2)])
    south, west, north, east = route.get_bbox()
    assert (south, west, north, east) == (45.0, 10.0, 45.2, 10.1)

    south, west, north, east = route.get_bbox(1110.0)
    assert south == pytest.approx(45.0 - 0.01)
    assert north == pytest.approx(45.2 + 0.01)
    # Longitude degrees are shorter away from the equator
    assert 10.0 - west > 0.01
    assert east - 10.1 > 0.01


def test_get_bbox_is_clamped():
    south, west, north, east = Route([(-180.0, -90.0)]).get_bbox(1000.0)
    assert south == -90.0
    assert west == -180.0


def test_get_bbox_empty_route():
    with pytest.raises(ValueError):
        Route().get_bbox()


def test_validate_threshold():
    assert validate_threshold(0) == 0.0
    assert validate_threshold(25) == 25.0
    assert isinstance(validate_threshold(25), float)
    for bad in (-1, -0.001, math.nan, math.inf, "50", None, True):
        with pytest.raises(RouteConfigurationError):
            validate_threshold(bad)


def test_configuration_create_from_rows_and_points():
    from_rows = RouteConfiguration.create([[0.0, 0.0], [0.0, 1.0]], 30)
    from_points = RouteConfiguration.create([GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0)], 30)
    from_route = RouteConfiguration.create(Route([(0.0, 0.0), (0.0, 1.0)]), 30)
    assert from_rows == from_points == from_route
    assert from_rows.threshold_m == 30.0


def test_configuration_create_default_threshold():
    configuration = RouteConfiguration.create([])
    assert configuration.threshold_m == DEFAULT_THRESHOLD_M
    assert len(configuration.route) == 0


def test_configuration_from_wire_dict():
    configuration = RouteConfiguration.from_wire(
        {"route": [[0.0, 0.0], [0.0, 1.0]], "distance": 75}
    )
    assert list(configuration.route) == [GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0)]
    assert configuration.threshold_m == 75.0


def test_configuration_from_wire_distance_defaults_to_50():
    configuration = RouteConfiguration.from_wire({"route": [[0.0, 0.0]]})
    assert configuration.threshold_m == 50.0


def test_configuration_from_wire_null_distance_uses_default():
    configuration = RouteConfiguration.from_wire({"route": [[0.0, 0.0]], "distance": None})
    assert configuration.threshold_m == 50.0


def test_configuration_from_wire_bare_list():
    configuration = RouteConfiguration.from_wire([[1.0, 2.0]])
    assert list(configuration.route) == [GeoPoint(1.0, 2.0)]
    assert configuration.threshold_m == 50.0


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"distance": 50},
        {"route": [[0.0, 0.0]], "distance": -5},
        {"route": [[0.0, 0.0]], "distance": "far"},
        {"route": [[0.0, 0.0], [1.0]], "distance": 50},
        {"route": [[0.0, 95.0]], "distance": 50},
        None,
        42,
    ],
)
def test_configuration_from_wire_rejects(data):
    with pytest.raises(RouteConfigurationError):
        RouteConfiguration.from_wire(data)


def test_configuration_from_json_file(tmp_path):
    path = tmp_path / "route.json"
    path.write_text(json.dumps({"route": [[0.0, 0.0], [0.0, 0.01]], "distance": 20}))
    configuration = RouteConfiguration.from_json_file(str(path))
    assert len(configuration.route) == 2
    assert configuration.threshold_m == 20.0


def test_configuration_from_json_file_invalid_json(tmp_path):
    path = tmp_path / "route.json"
    path.write_text("{not json")
    with pytest.raises(RouteConfigurationError, match="Invalid JSON"):
        RouteConfiguration.from_json_file(str(path))


def test_configuration_from_json_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        RouteConfiguration.from_json_file(str(tmp_path / "missing.json"))


def test_configuration_from_gpx_file(tmp_path):
    path = tmp_path / "route.gpx"
    path.write_text(
        """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <rte>
    <rtept lat="0.0" lon="0.0"></rtept>
    <rtept lat="0.01" lon="0.0"></rtept>
  </rte>
</gpx>"""
    )
    configuration = RouteConfiguration.from_gpx_file(str(path), 15)
    assert list(configuration.route) == [GeoPoint(0.0, 0.0), GeoPoint(0.0, 0.01)]
    assert configuration.threshold_m == 15.0

import math

import pytest

from routewatch.detector import RouteDeviationDetector
from routewatch.geometry import GeoPoint, great_circle_distance
from routewatch.route import Route, RouteConfigurationError

NORTH_SOUTH_ROUTE = [GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0)]


class TestRouteDeviationDetector:

    def test_defaults(self):
        detector = RouteDeviationDetector()
        assert len(detector.route) == 0
        assert detector.threshold_m == 50.0

    def test_empty_route_is_infinitely_far(self):
        detector = RouteDeviationDetector([], 50)
        point = GeoPoint(10.0, 10.0)
        assert detector.distance_to_route(point) == math.inf
        assert detector.exceeds_threshold(point) is True

    def test_single_point_route(self):
        route_point = GeoPoint(0.0, 0.0)
        detector = RouteDeviationDetector([route_point], 50)
        point = GeoPoint(0.001, 0.0)
        assert detector.distance_to_route(point) == great_circle_distance(
            point, route_point
        )

    def test_sample_near_route_is_within_threshold(self):
        detector = RouteDeviationDetector(NORTH_SOUTH_ROUTE, 50)
        point = GeoPoint(0.0001, 0.5)
        assert detector.distance_to_route(point) == pytest.approx(11.1, abs=0.1)
        assert detector.exceeds_threshold(point) is False

    def test_sample_far_from_route_exceeds_threshold(self):
        detector = RouteDeviationDetector(NORTH_SOUTH_ROUTE, 50)
        point = GeoPoint(0.01, 0.5)
        assert detector.distance_to_route(point) == pytest.approx(1112, abs=2)
        assert detector.exceeds_threshold(point) is True

    def test_minimum_over_segments(self):
        # An L-shaped route: north, then east
        route = [GeoPoint(0.0, 0.0), GeoPoint(0.0, 0.01), GeoPoint(0.01, 0.01)]
        detector = RouteDeviationDetector(route, 50)

        near_second_leg = GeoPoint(0.005, 0.0101)
        assert detector.distance_to_route(near_second_leg) == pytest.approx(11.1, abs=0.2)

        near_first_leg = GeoPoint(0.0001, 0.005)
        assert detector.distance_to_route(near_first_leg) == pytest.approx(11.1, abs=0.2)

    def test_threshold_comparison_is_strict(self):
        route_point = GeoPoint(0.0, 0.0)
        point = GeoPoint(0.001, 0.0)
        distance = great_circle_distance(point, route_point)

        at_threshold = RouteDeviationDetector([route_point], distance)
        assert at_threshold.exceeds_threshold(point) is False

        below_threshold = RouteDeviationDetector([route_point], distance - 0.001)
        assert below_threshold.exceeds_threshold(point) is True

    def test_zero_threshold(self):
        detector = RouteDeviationDetector(NORTH_SOUTH_ROUTE, 0)
        assert detector.exceeds_threshold(GeoPoint(0.0, 0.0)) is False
        assert detector.exceeds_threshold(GeoPoint(0.0001, 0.5)) is True

    def test_measure_returns_distance_and_comparison(self):
        detector = RouteDeviationDetector(NORTH_SOUTH_ROUTE, 50)
        distance, exceeds = detector.measure(GeoPoint(0.01, 0.5))
        assert distance == detector.distance_to_route(GeoPoint(0.01, 0.5))
        assert exceeds is True

    def test_set_route_replaces_route_and_threshold(self):
        detector = RouteDeviationDetector(NORTH_SOUTH_ROUTE, 50)
        point = GeoPoint(0.01, 0.5)
        assert detector.exceeds_threshold(point)

        detector.set_route(Route([(0.01, 0.0), (0.01, 1.0)]), 5000)
        assert detector.threshold_m == 5000.0
        assert len(detector.route) == 2
        assert detector.distance_to_route(point) == pytest.approx(0.0, abs=0.01)
        assert not detector.exceeds_threshold(point)

    @pytest.mark.parametrize(
        "route, threshold",
        [
            ([GeoPoint(0.0, 91.0)], 50),
            ([GeoPoint(200.0, 0.0)], 50),
            (NORTH_SOUTH_ROUTE, -1),
            (NORTH_SOUTH_ROUTE, math.nan),
        ],
    )
    def test_invalid_configuration_keeps_previous(self, route, threshold):
        detector = RouteDeviationDetector(NORTH_SOUTH_ROUTE, 50)
        with pytest.raises(RouteConfigurationError):
            detector.set_route(route, threshold)
        assert list(detector.route) == NORTH_SOUTH_ROUTE
        assert detector.threshold_m == 50.0

    @pytest.mark.parametrize("threshold", [-0.5, math.inf, "50"])
    def test_constructor_rejects_invalid_threshold(self, threshold):
        with pytest.raises(RouteConfigurationError):
            RouteDeviationDetector(NORTH_SOUTH_ROUTE, threshold)

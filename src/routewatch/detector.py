#!/usr/bin/env python3
"""Minimum distance from a position to a planned route."""

from typing import Iterable, Tuple, Union
import logging
import math

from .geometry import GeoPoint, distance_point_to_segment, great_circle_distance
from .route import DEFAULT_THRESHOLD_M, Route, RouteConfiguration, validate_threshold

logger = logging.getLogger(__name__)


class RouteDeviationDetector:
    """Measures how far positions are from a route and compares against a threshold."""

    def __init__(
        self,
        route: Union[Route, Iterable[GeoPoint]] = (),
        threshold_m: float = DEFAULT_THRESHOLD_M,
    ):
        """Initializes a RouteDeviationDetector.

        Args:
            route: The planned route. May be empty.
            threshold_m: Distance in meters beyond which a position is off route.

        Raises:
            RouteConfigurationError: If the route or threshold is invalid.
        """
        self._config = self._build(route, threshold_m)

    @staticmethod
    def _build(route, threshold_m: float) -> RouteConfiguration:
        if not isinstance(route, Route):
            route = Route(route)
        return RouteConfiguration(route, validate_threshold(threshold_m))

    @property
    def route(self) -> Route:
        return self._config.route

    @property
    def threshold_m(self) -> float:
        return self._config.threshold_m

    def set_route(
        self, route: Union[Route, Iterable[GeoPoint]], threshold_m: float
    ) -> None:
        """
        Replace the route and threshold together.

        Both are validated before anything is replaced, so a rejected
        configuration leaves the previous one in force.

        Raises:
            RouteConfigurationError: If the route or threshold is invalid.
        """
        config = self._build(route, threshold_m)
        self._config = config
        logger.debug(
            f"Route set: {len(config.route)} points, threshold {config.threshold_m} m"
        )

    def distance_to_route(self, point: GeoPoint) -> float:
        """
        Calculate the minimum distance from a point to the route.

        Args:
            point: Position to measure

        Returns:
            Distance in meters. Infinity for an empty route.
        """
        return self._distance(self._config, point)

    def exceeds_threshold(self, point: GeoPoint) -> bool:
        """Return True if the point is strictly farther than the threshold from the route."""
        config = self._config
        return self._distance(config, point) > config.threshold_m

    def measure(self, point: GeoPoint) -> Tuple[float, bool]:
        """
        Measure a point against a single consistent route/threshold pair.

        Returns:
            Tuple of (distance_m, exceeds_threshold)
        """
        config = self._config
        distance = self._distance(config, point)
        return distance, distance > config.threshold_m

    def _distance(self, config: RouteConfiguration, point: GeoPoint) -> float:
        route = config.route
        if len(route) == 0:
            return math.inf
        if len(route) == 1:
            return great_circle_distance(point, route[0])
        return min(
            distance_point_to_segment(point, start, end)
            for start, end in route.segments()
        )

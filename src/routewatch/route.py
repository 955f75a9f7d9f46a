#!/usr/bin/env python3
"""
Planned route data model and route configuration parsing.
"""

from typing import Any, Iterable, Iterator, List, NamedTuple, TextIO, Tuple
import json
import logging
import math
from math import cos, radians
import gpxpy
import gpxpy.gpx

from .geometry import GeoPoint

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_M = 50.0


class RouteConfigurationError(ValueError):
    """Raised when a route or threshold fails validation."""

    pass


def _check_number(value: Any, what: str) -> float:
    # bool is an int subclass, but true/false is never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RouteConfigurationError(f"{what} is not a number: {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise RouteConfigurationError(f"{what} is not finite: {value!r}")
    return value


def validate_threshold(threshold: Any) -> float:
    """
    Validate a distance threshold.

    Args:
        threshold: Threshold distance in meters

    Returns:
        The threshold as a float

    Raises:
        RouteConfigurationError: If the threshold is not a finite, non-negative number
    """
    threshold = _check_number(threshold, "Distance threshold")
    if threshold < 0:
        raise RouteConfigurationError(
            f"Distance threshold must be non-negative, got {threshold} meters"
        )
    return threshold


class Route:
    """Represents a planned route as an ordered, immutable polyline."""

    def __init__(self, coords: Iterable[GeoPoint] = ()):
        """Initializes a Route object.

        Args:
            coords: GeoPoint objects in travel order. May be empty.

        Raises:
            RouteConfigurationError: If a coordinate is malformed or out of range.
        """
        points = []
        for i, coord in enumerate(coords):
            if not isinstance(coord, (list, tuple)) or len(coord) != 2:
                raise RouteConfigurationError(
                    f"Route point {i} must be (longitude, latitude), got {coord!r}"
                )
            lon = _check_number(coord[0], f"Route point {i} longitude")
            lat = _check_number(coord[1], f"Route point {i} latitude")
            if not -180.0 <= lon <= 180.0:
                raise RouteConfigurationError(
                    f"Route point {i} longitude {lon:.6f}° is outside [-180, 180]"
                )
            if not -90.0 <= lat <= 90.0:
                raise RouteConfigurationError(
                    f"Route point {i} latitude {lat:.6f}° is outside [-90, 90]"
                )
            points.append(GeoPoint(longitude=lon, latitude=lat))
        self.coords: Tuple[GeoPoint, ...] = tuple(points)

    @classmethod
    def from_rows(cls, rows: Any) -> "Route":
        """
        Build a route from wire-format rows of [longitude, latitude].

        Every row must be a list of the same length as the first row, and that
        length must be two.

        Args:
            rows: List of [longitude, latitude] rows

        Returns:
            Route object

        Raises:
            RouteConfigurationError: If the rows are malformed
        """
        if not isinstance(rows, (list, tuple)):
            raise RouteConfigurationError(
                f"Route must be a list of coordinate rows, got {type(rows).__name__}"
            )
        if not rows:
            return cls()

        width = None
        points = []
        for i, row in enumerate(rows):
            if not isinstance(row, (list, tuple)):
                raise RouteConfigurationError(f"Route row {i} is not a list: {row!r}")
            if width is None:
                width = len(row)
            elif len(row) != width:
                raise RouteConfigurationError(
                    "Input array is not a consistent 2D array "
                    f"(row {i} has {len(row)} values, expected {width})"
                )
            if len(row) != 2:
                raise RouteConfigurationError(
                    f"Route row {i} must be [longitude, latitude], got {len(row)} values"
                )
            lon = _check_number(row[0], f"Route row {i} longitude")
            lat = _check_number(row[1], f"Route row {i} latitude")
            points.append(GeoPoint(longitude=lon, latitude=lat))

        return cls(points)

    @classmethod
    def from_gpx(cls, file_input: TextIO) -> "Route":
        """
        Parse GPX data into a route.

        Track points from all tracks and segments are concatenated. If the file
        has no tracks, route points are used, and failing that, waypoints.

        Args:
            file_input: File-like object containing GPX data

        Returns:
            Route object

        Raises:
            gpxpy.gpx.GPXException: If GPX data is malformed
        """
        gpx_data = gpxpy.parse(file_input)

        points: List[GeoPoint] = []
        for track in gpx_data.tracks:
            for segment in track.segments:
                for point in segment.points:
                    points.append(GeoPoint(point.longitude, point.latitude))

        if not points:
            for gpx_route in gpx_data.routes:
                for point in gpx_route.points:
                    points.append(GeoPoint(point.longitude, point.latitude))

        if not points:
            points = [GeoPoint(w.longitude, w.latitude) for w in gpx_data.waypoints]

        if not points:
            logger.warning("No track, route or waypoint data found in GPX file")

        route = cls(points)
        logger.debug(f"Parsed {len(route)} route points from GPX data")
        return route

    def get_bbox(self, buffer: float = 0.0) -> Tuple[float, float, float, float]:
        """
        Get bounding box for this route, optionally with a buffer.

        Args:
            buffer: Buffer distance in meters (default: 0.0)

        Returns:
            Tuple of (south, west, north, east) in decimal degrees

        Raises:
            ValueError: If the route is empty
        """
        if not self.coords:
            raise ValueError("Cannot calculate bounding box for empty route")

        latitudes = [coord.latitude for coord in self.coords]
        longitudes = [coord.longitude for coord in self.coords]
        min_lat, max_lat = min(latitudes), max(latitudes)
        min_lon, max_lon = min(longitudes), max(longitudes)

        # 1 degree latitude ≈ 111 km, longitude shrinks with latitude
        avg_lat = (min_lat + max_lat) / 2
        lat_buffer = buffer / 111000.0
        lon_buffer = buffer / (111000.0 * max(abs(cos(radians(avg_lat))), 1e-6))

        return (
            max(-90.0, min_lat - lat_buffer),
            max(-180.0, min_lon - lon_buffer),
            min(90.0, max_lat + lat_buffer),
            min(180.0, max_lon + lon_buffer),
        )

    def segments(self) -> Iterator[Tuple[GeoPoint, GeoPoint]]:
        """Yield each pair of consecutive points."""
        return zip(self.coords, self.coords[1:])

    def __len__(self) -> int:
        """Return number of points in route."""
        return len(self.coords)

    def __getitem__(self, index):
        """Allow indexing into route points."""
        return self.coords[index]

    def __iter__(self):
        """Allow iteration over route points."""
        return iter(self.coords)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Route):
            return NotImplemented
        return self.coords == other.coords

    def __hash__(self) -> int:
        return hash(self.coords)

    def __repr__(self) -> str:
        return f"Route({len(self.coords)} points)"


class RouteConfiguration(NamedTuple):
    """A planned route and the distance threshold that defines off-route."""

    route: Route
    threshold_m: float = DEFAULT_THRESHOLD_M

    @classmethod
    def create(
        cls, route: Any, threshold_m: Any = DEFAULT_THRESHOLD_M
    ) -> "RouteConfiguration":
        """
        Validate and build a configuration.

        Args:
            route: A Route, or a sequence of GeoPoint or [longitude, latitude] rows
            threshold_m: Threshold distance in meters

        Returns:
            Validated RouteConfiguration

        Raises:
            RouteConfigurationError: If the route or threshold is invalid
        """
        if not isinstance(route, Route):
            if isinstance(route, (list, tuple)) and all(
                isinstance(point, GeoPoint) for point in route
            ):
                route = Route(route)
            else:
                route = Route.from_rows(route)
        return cls(route=route, threshold_m=validate_threshold(threshold_m))

    @classmethod
    def from_wire(cls, data: Any) -> "RouteConfiguration":
        """
        Build a configuration from decoded wire data.

        Accepts either {"route": [[lon, lat], ...], "distance": meters}
        or a bare list of rows (threshold defaults to 50 m).

        Raises:
            RouteConfigurationError: If the data is malformed
        """
        if isinstance(data, dict):
            if "route" not in data:
                raise RouteConfigurationError("Route configuration has no 'route'")
            return cls.create(
                Route.from_rows(data["route"]),
                # A null distance falls back to the default like a missing one
                DEFAULT_THRESHOLD_M
                if data.get("distance") is None
                else data["distance"],
            )
        return cls.create(Route.from_rows(data))

    @classmethod
    def from_json_file(cls, filename: str) -> "RouteConfiguration":
        """
        Load a configuration from a JSON file in wire format.

        Raises:
            RouteConfigurationError: If the JSON or its content is invalid
            FileNotFoundError: If file doesn't exist
            PermissionError: If file can't be read
        """
        logger.debug(f"Reading route configuration: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise RouteConfigurationError(f"Invalid JSON: {e}") from e
        return cls.from_wire(data)

    @classmethod
    def from_gpx_file(
        cls, filename: str, threshold_m: Any = DEFAULT_THRESHOLD_M
    ) -> "RouteConfiguration":
        """
        Load a planned route from a GPX file.

        Raises:
            RouteConfigurationError: If the threshold or a point is invalid
            FileNotFoundError: If file doesn't exist
            PermissionError: If file can't be read
            gpxpy.gpx.GPXException: If GPX file is malformed
        """
        logger.debug(f"Reading GPX route: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            route = Route.from_gpx(f)
        return cls.create(route, threshold_m)

#!/usr/bin/env python3
"""
Position samples and the sources that deliver them.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO
import logging
import gpxpy
import gpxpy.gpx

from .geometry import GeoPoint, great_circle_distance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionSample:
    """A position fix plus the provider data that travels with it.

    Only `point` is used to measure deviation. The other fields are carried
    through so callers can correlate results with their own records.
    """

    point: GeoPoint
    sample_id: Optional[str] = None
    time: Optional[int] = None  # Milliseconds since the Unix epoch
    accuracy: Optional[float] = None  # Horizontal uncertainty in meters
    altitude: Optional[float] = None  # Meters above sea level
    altitude_accuracy: Optional[float] = None  # Vertical uncertainty in meters
    speed: Optional[float] = None  # Meters per second
    bearing: Optional[float] = None  # Degrees from true north
    simulated: bool = False

    @property
    def longitude(self) -> float:
        return self.point.longitude

    @property
    def latitude(self) -> float:
        return self.point.latitude


SampleCallback = Callable[[PositionSample], None]
ErrorCallback = Callable[[Exception], None]


def _in_range(point: GeoPoint) -> bool:
    return -180.0 <= point.longitude <= 180.0 and -90.0 <= point.latitude <= 90.0


class LocationSource:
    """Pushes position samples to a single subscriber, one at a time."""

    def __init__(self) -> None:
        self._on_sample: Optional[SampleCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    @property
    def subscribed(self) -> bool:
        return self._on_sample is not None

    def subscribe(
        self, on_sample: SampleCallback, on_error: Optional[ErrorCallback] = None
    ) -> None:
        """Register the callbacks that receive samples and provider errors."""
        self._on_sample = on_sample
        self._on_error = on_error

    def unsubscribe(self) -> None:
        """Stop delivering samples."""
        self._on_sample = None
        self._on_error = None

    def _deliver(self, sample: PositionSample) -> None:
        if self._on_sample is not None:
            self._on_sample(sample)

    def _report_error(self, error: Exception) -> None:
        if self._on_error is not None:
            self._on_error(error)
        else:
            logger.warning(f"Location source error: {error}")


class GpxTrackSource(LocationSource):
    """Replays the track points of a GPX file as a location stream."""

    def __init__(self, samples: List[PositionSample], distance_filter: float = 0.0):
        """Initializes a GpxTrackSource.

        Args:
            samples: Samples to replay, in order.
            distance_filter: Minimum distance in meters between delivered
                samples. 0 delivers every sample.

        Raises:
            ValueError: If distance_filter is negative.
        """
        super().__init__()
        if distance_filter < 0:
            raise ValueError(
                f"Distance filter must be non-negative, got {distance_filter} meters"
            )
        self.samples = samples
        self.distance_filter = distance_filter

    @classmethod
    def from_gpx(
        cls, file_input: TextIO, distance_filter: float = 0.0
    ) -> "GpxTrackSource":
        """
        Parse GPX data into a replayable source.

        Track points from all tracks and segments are concatenated. Files with
        no tracks fall back to their route points.

        Raises:
            gpxpy.gpx.GPXException: If GPX data is malformed
        """
        gpx_data = gpxpy.parse(file_input)

        points = [
            point
            for track in gpx_data.tracks
            for segment in track.segments
            for point in segment.points
        ]
        if not points:
            points = [point for route in gpx_data.routes for point in route.points]

        samples = []
        for index, point in enumerate(points):
            time_ms = None
            if point.time is not None:
                time_ms = int(point.time.timestamp() * 1000)
            samples.append(
                PositionSample(
                    point=GeoPoint(point.longitude, point.latitude),
                    sample_id=str(index),
                    time=time_ms,
                    altitude=point.elevation,
                    speed=getattr(point, "speed", None),
                )
            )

        logger.debug(f"Parsed {len(samples)} samples from GPX data")
        return cls(samples, distance_filter)

    @classmethod
    def from_file(cls, filename: str, distance_filter: float = 0.0) -> "GpxTrackSource":
        """
        Load a GPX file into a replayable source.

        Raises:
            FileNotFoundError: If file doesn't exist.
            PermissionError: If file can't be read.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        logger.debug(f"Reading GPX track: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            return cls.from_gpx(f, distance_filter)

    def replay(self) -> int:
        """
        Deliver every sample that passes the distance filter to the subscriber.

        Returns:
            Number of samples delivered

        Raises:
            RuntimeError: If nobody is subscribed
        """
        if not self.subscribed:
            raise RuntimeError("No subscriber for GPX track replay")

        delivered = 0
        last_point: Optional[GeoPoint] = None
        for sample in self.samples:
            # A subscriber may stop the stream from inside its callback
            if not self.subscribed:
                break
            if not _in_range(sample.point):
                self._report_error(
                    ValueError(
                        f"Sample {sample.sample_id} has invalid coordinates "
                        f"({sample.longitude}, {sample.latitude})"
                    )
                )
                continue
            if (
                last_point is not None
                and self.distance_filter > 0
                and great_circle_distance(last_point, sample.point)
                < self.distance_filter
            ):
                continue
            last_point = sample.point
            self._deliver(sample)
            delivered += 1

        logger.debug(f"Replayed {delivered} of {len(self.samples)} samples")
        return delivered

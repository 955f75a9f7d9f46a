#!/usr/bin/env python3
"""
Great-circle geometry for route deviation analysis.

All distances are measured on a sphere of radius EARTH_RADIUS_M. No planar
projection is involved, so results are valid anywhere on the globe.
"""

from typing import NamedTuple
import logging
import math

logger = logging.getLogger(__name__)

# Mean Earth radius in meters
EARTH_RADIUS_M = 6371000.0


class GeoPoint(NamedTuple):
    """Represents a geographic position with longitude and latitude."""

    longitude: float
    latitude: float


def great_circle_distance(a: GeoPoint, b: GeoPoint) -> float:
    """
    Calculate the great circle distance between two points.

    Uses the haversine formula on a sphere of radius EARTH_RADIUS_M.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters
    """
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push h just past 1 for antipodal points
    h = min(1.0, max(0.0, h))

    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def distance_point_to_segment(p: GeoPoint, s1: GeoPoint, s2: GeoPoint) -> float:
    """
    Approximate the distance from a point to the segment [s1, s2].

    The three pairwise great circle distances are treated as the sides of a
    triangle. If the angle at either segment endpoint is obtuse, the closest
    point is that endpoint. Otherwise the distance is the height of the
    triangle over the base s1-s2, found with Heron's formula. This is
    accurate for segments up to a few kilometers long.

    Args:
        p: Point to measure from
        s1: Start of the segment
        s2: End of the segment

    Returns:
        Distance in meters
    """
    d_p_s1 = great_circle_distance(p, s1)
    d_p_s2 = great_circle_distance(p, s2)
    d_s1_s2 = great_circle_distance(s1, s2)

    # Zero-length segment is just a point
    if d_s1_s2 == 0:
        return d_p_s1

    # Point sits on an endpoint
    if d_p_s1 == 0 or d_p_s2 == 0:
        return 0.0

    # Law of cosines: c^2 = a^2 + b^2 - 2ab*cos(C), obtuse when cos(C) < 0
    cos_s1 = (d_p_s1**2 + d_s1_s2**2 - d_p_s2**2) / (2 * d_p_s1 * d_s1_s2)
    if cos_s1 < 0:
        return d_p_s1

    cos_s2 = (d_p_s2**2 + d_s1_s2**2 - d_p_s1**2) / (2 * d_p_s2 * d_s1_s2)
    if cos_s2 < 0:
        return d_p_s2

    s = (d_p_s1 + d_p_s2 + d_s1_s2) / 2
    area = math.sqrt(max(0.0, s * (s - d_p_s1) * (s - d_p_s2) * (s - d_s1_s2)))

    # Area = 0.5 * base * height
    return (2 * area) / d_s1_s2

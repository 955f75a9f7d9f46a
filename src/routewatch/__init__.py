#!/usr/bin/env python3
"""
Routewatch - Off-route detection and alerting for GPS position streams.

This package measures how far each incoming position is from a planned route
and raises a single alert each time the position strays beyond a threshold.
"""
import importlib.metadata

__version__ = importlib.metadata.version("routewatch")

# Import main classes for public API
from .geometry import GeoPoint, great_circle_distance, distance_point_to_segment
from .route import Route, RouteConfiguration, RouteConfigurationError
from .detector import RouteDeviationDetector
from .hysteresis import AlertEvent, AlertHysteresis, DeviationState
from .location import GpxTrackSource, LocationSource, PositionSample
from .audio import AudioTrigger, AudioTriggerError, BellAudioTrigger, CommandAudioTrigger
from .watcher import DeviationEvent, DeviationResult, RouteWatcher
from .session import WatchSession, WatchSessionError

__all__ = [
    "GeoPoint",
    "great_circle_distance",
    "distance_point_to_segment",
    "Route",
    "RouteConfiguration",
    "RouteConfigurationError",
    "RouteDeviationDetector",
    "AlertEvent",
    "AlertHysteresis",
    "DeviationState",
    "GpxTrackSource",
    "LocationSource",
    "PositionSample",
    "AudioTrigger",
    "AudioTriggerError",
    "BellAudioTrigger",
    "CommandAudioTrigger",
    "DeviationEvent",
    "DeviationResult",
    "RouteWatcher",
    "WatchSession",
    "WatchSessionError",
]

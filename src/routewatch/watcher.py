#!/usr/bin/env python3
"""
Route watcher: turns a stream of position samples into off-route alerts.
"""

from typing import Callable, Iterable, List, NamedTuple, Optional, Union
import logging
import math

from .audio import AudioTrigger
from .detector import RouteDeviationDetector
from .geometry import GeoPoint
from .hysteresis import AlertEvent, AlertHysteresis, DeviationState
from .location import PositionSample
from .route import DEFAULT_THRESHOLD_M, Route, RouteConfiguration

logger = logging.getLogger(__name__)


class DeviationEvent(NamedTuple):
    """Emitted when a sample takes the position off the route."""

    sample: PositionSample
    distance_m: float
    threshold_m: float


class DeviationResult(NamedTuple):
    """The outcome of processing one sample."""

    sample: PositionSample
    distance_m: float
    exceeds: bool
    state: DeviationState
    event: Optional[DeviationEvent] = None


DeviationListener = Callable[[DeviationEvent], None]


class RouteWatcher:
    """
    Watches position samples against a planned route.

    Each sample is measured, fed to the hysteresis, and on the transition to
    off-route the audio trigger is played once and listeners are notified.
    Collaborator failures are logged and never reach the hysteresis.
    """

    def __init__(
        self,
        route: Union[Route, Iterable[GeoPoint], None] = None,
        threshold_m: float = DEFAULT_THRESHOLD_M,
        audio_trigger: Optional[AudioTrigger] = None,
        initial_state: DeviationState = DeviationState.ON_ROUTE,
    ):
        """Initializes a RouteWatcher.

        Args:
            route: The planned route. If None, samples pass through unmeasured
                until set_route() is called.
            threshold_m: Off-route threshold in meters.
            audio_trigger: Played once per off-route episode.
            initial_state: Hysteresis state after creation and after every
                set_route(). OFF_ROUTE reproduces the legacy behaviour where
                the first sample after configuration cannot alert.

        Raises:
            RouteConfigurationError: If the route or threshold is invalid.
        """
        self.detector = RouteDeviationDetector(
            route if route is not None else (), threshold_m
        )
        self.hysteresis = AlertHysteresis(initial_state)
        self.audio_trigger = audio_trigger
        self.configured = route is not None
        self._listeners: List[DeviationListener] = []

    def add_listener(self, listener: DeviationListener) -> None:
        """Register a callback for DeviationEvents."""
        self._listeners.append(listener)

    def remove_listener(self, listener: DeviationListener) -> None:
        """Unregister a DeviationEvent callback."""
        self._listeners.remove(listener)

    def set_route(
        self,
        route: Union[Route, Iterable[GeoPoint], RouteConfiguration],
        threshold_m: Optional[float] = None,
    ) -> None:
        """
        Replace the planned route and threshold, then reset the hysteresis.

        Args:
            route: New route, or a RouteConfiguration carrying its own threshold
            threshold_m: New threshold in meters. Keeps the current one if None
                and route is not a RouteConfiguration.

        Raises:
            RouteConfigurationError: If the route or threshold is invalid. The
                previous route, threshold and state stay in force.
        """
        if isinstance(route, RouteConfiguration):
            route, config_threshold = route
            if threshold_m is None:
                threshold_m = config_threshold
        if threshold_m is None:
            threshold_m = self.detector.threshold_m

        self.detector.set_route(route, threshold_m)
        self.hysteresis.reset()
        self.configured = True
        logger.info(
            f"Planned route set with {len(self.detector.route)} points, "
            f"threshold {self.detector.threshold_m:.1f} m"
        )

    def on_sample(self, sample: Union[PositionSample, GeoPoint]) -> DeviationResult:
        """
        Process one position sample.

        Args:
            sample: A PositionSample, or a bare GeoPoint

        Returns:
            DeviationResult describing the measurement and any alert
        """
        if not isinstance(sample, PositionSample):
            sample = PositionSample(point=GeoPoint(*sample))

        if not self.configured:
            logger.debug("No planned route yet, sample not measured")
            return DeviationResult(
                sample=sample,
                distance_m=math.inf,
                exceeds=False,
                state=self.hysteresis.state,
            )

        distance, exceeds = self.detector.measure(sample.point)
        alert = self.hysteresis.update(exceeds)
        logger.debug(
            f"Sample {sample.sample_id}: {distance:.1f} m from route "
            f"({self.hysteresis.state})"
        )

        event = None
        if alert == AlertEvent.TRIGGERED:
            event = DeviationEvent(
                sample=sample,
                distance_m=distance,
                threshold_m=self.detector.threshold_m,
            )
            logger.info(
                f"Off route at ({sample.latitude:.6f}, {sample.longitude:.6f}): "
                f"{distance:.1f} m from route"
            )
            self._play_alert()
            self._notify(event)

        return DeviationResult(
            sample=sample,
            distance_m=distance,
            exceeds=exceeds,
            state=self.hysteresis.state,
            event=event,
        )

    def _play_alert(self) -> None:
        if self.audio_trigger is None:
            return
        try:
            self.audio_trigger.play()
        except Exception as e:
            logger.warning(f"Could not play alert sound: {e}")

    def _notify(self, event: DeviationEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Deviation listener failed: {e}")

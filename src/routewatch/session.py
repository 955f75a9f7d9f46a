#!/usr/bin/env python3
"""
Watch session lifecycle: connects a location source to a route watcher.
"""

from typing import Callable, List, Optional
import logging

from .location import LocationSource, PositionSample
from .route import RouteConfiguration
from .watcher import DeviationResult, RouteWatcher

logger = logging.getLogger(__name__)


class WatchSessionError(RuntimeError):
    """Raised when a session operation is not valid in the current state."""

    ALREADY_STARTED = "ALREADY_STARTED"
    NOT_STARTED = "NOT_STARTED"

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


class WatchSession:
    """Feeds samples from one LocationSource into one RouteWatcher."""

    def __init__(
        self,
        source: LocationSource,
        watcher: RouteWatcher,
        on_result: Optional[Callable[[DeviationResult], None]] = None,
    ):
        """Initializes a WatchSession.

        Args:
            source: Where samples come from.
            watcher: What measures them.
            on_result: Optional callback receiving every DeviationResult.
        """
        self.source = source
        self.watcher = watcher
        self.on_result = on_result
        self.started = False
        self.errors: List[Exception] = []

    def start(self) -> None:
        """
        Begin receiving samples.

        Raises:
            WatchSessionError: If the session is already started
        """
        if self.started:
            raise WatchSessionError(
                "Service already started", WatchSessionError.ALREADY_STARTED
            )
        self.source.subscribe(self._handle_sample, self._handle_error)
        self.started = True
        logger.debug("Watch session started")

    def stop(self) -> None:
        """Stop receiving samples. Does nothing if not started."""
        if not self.started:
            return
        self.source.unsubscribe()
        self.started = False
        logger.debug("Watch session stopped")

    def set_planned_route(self, configuration: RouteConfiguration) -> None:
        """
        Configure the route to watch.

        Raises:
            WatchSessionError: If the session has not been started
            RouteConfigurationError: If the configuration is invalid
        """
        if not self.started:
            raise WatchSessionError(
                "Service not started, make sure to call start() first",
                WatchSessionError.NOT_STARTED,
            )
        self.watcher.set_route(configuration)

    def _handle_sample(self, sample: PositionSample) -> None:
        result = self.watcher.on_sample(sample)
        if self.on_result is not None:
            self.on_result(result)

    def _handle_error(self, error: Exception) -> None:
        self.errors.append(error)
        logger.warning(f"Location error: {error}")

    def __enter__(self) -> "WatchSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

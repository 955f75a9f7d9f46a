#!/usr/bin/env python3
"""Edge-triggered off-route alerting."""

from enum import Enum
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class DeviationState(Enum):
    """Enumeration for position states relative to the route."""

    ON_ROUTE = "on_route"
    OFF_ROUTE = "off_route"

    def __str__(self) -> str:
        return self.value


class AlertEvent(Enum):
    """Enumeration for events emitted by AlertHysteresis."""

    TRIGGERED = "triggered"

    def __str__(self) -> str:
        return self.value


class AlertHysteresis:
    """
    Two-state machine that fires once per off-route episode.

    Only the ON_ROUTE -> OFF_ROUTE transition emits TRIGGERED. Staying off
    route and returning to the route are both silent.
    """

    def __init__(self, initial_state: DeviationState = DeviationState.ON_ROUTE):
        self.initial_state = initial_state
        self.state = initial_state

    def update(self, exceeds: bool) -> Optional[AlertEvent]:
        """
        Feed one threshold comparison into the state machine.

        Args:
            exceeds: True if the latest sample is beyond the threshold

        Returns:
            AlertEvent.TRIGGERED on the transition to OFF_ROUTE, otherwise None
        """
        if exceeds:
            if self.state == DeviationState.ON_ROUTE:
                self.state = DeviationState.OFF_ROUTE
                return AlertEvent.TRIGGERED
            return None

        if self.state == DeviationState.OFF_ROUTE:
            logger.debug("Back on route")
        self.state = DeviationState.ON_ROUTE
        return None

    def reset(self, state: Optional[DeviationState] = None) -> None:
        """Return to the initial state, or to an explicit one."""
        self.state = self.initial_state if state is None else state

    @property
    def is_off_route(self) -> bool:
        return self.state == DeviationState.OFF_ROUTE

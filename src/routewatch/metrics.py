"""
Module for collecting and logging metrics about a watch session.
"""

import logging
import math
from typing import Iterable, NamedTuple, Optional

from .config import WatcherConfig
from .watcher import DeviationResult

logger = logging.getLogger(__name__)


class SessionMetrics(NamedTuple):
    """Container for watch session metrics data."""

    samples: int
    off_route_samples: int
    alerts: int
    min_distance_m: Optional[float]
    max_distance_m: Optional[float]
    source_errors: int = 0


def collect_metrics(
    results: Iterable[DeviationResult], source_errors: int = 0
) -> SessionMetrics:
    """
    Collect metrics from the results of a watch session.

    Args:
        results: DeviationResult for every processed sample
        source_errors: Number of errors reported by the location source

    Returns:
        SessionMetrics summarizing the session
    """
    samples = off_route = alerts = 0
    min_distance: Optional[float] = None
    max_distance: Optional[float] = None

    for result in results:
        samples += 1
        if result.exceeds:
            off_route += 1
        if result.event is not None:
            alerts += 1

        # Unmeasured samples and empty routes give infinite distances
        if math.isfinite(result.distance_m):
            if min_distance is None or result.distance_m < min_distance:
                min_distance = result.distance_m
            if max_distance is None or result.distance_m > max_distance:
                max_distance = result.distance_m

    return SessionMetrics(
        samples=samples,
        off_route_samples=off_route,
        alerts=alerts,
        min_distance_m=min_distance,
        max_distance_m=max_distance,
        source_errors=source_errors,
    )


def log_metrics(metrics: SessionMetrics, config: WatcherConfig) -> None:
    """
    Log detailed metrics after the session has finished.

    Args:
        metrics: SessionMetrics to log
        config: WatcherConfig containing the metrics flag
    """
    if not config.metrics:
        return

    logger.debug("=== ROUTEWATCH_METRICS ===")
    logger.debug(f"threshold_m={config.threshold_m}")
    logger.debug(f"samples={metrics.samples}")
    logger.debug(f"off_route_samples={metrics.off_route_samples}")
    logger.debug(f"on_route_samples={metrics.samples - metrics.off_route_samples}")
    logger.debug(f"alerts={metrics.alerts}")
    if metrics.min_distance_m is not None:
        logger.debug(f"min_distance_m={metrics.min_distance_m:.2f}")
    if metrics.max_distance_m is not None:
        logger.debug(f"max_distance_m={metrics.max_distance_m:.2f}")
    logger.debug(f"source_errors={metrics.source_errors}")
    logger.debug("=== END_ROUTEWATCH_METRICS ===")

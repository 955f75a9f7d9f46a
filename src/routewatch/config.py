from dataclasses import dataclass
import argparse

from .route import DEFAULT_THRESHOLD_M


@dataclass
class WatcherConfig:
    """Configuration for the routewatch CLI."""

    threshold_m: float = DEFAULT_THRESHOLD_M
    distance_filter: float = 0.0
    legacy_off_route_start: bool = False
    map_padding: float = 50.0
    log_level: str = "WARNING"
    metrics: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "WatcherConfig":
        """Build a config from parsed command line arguments."""
        return cls(
            threshold_m=(
                args.threshold if args.threshold is not None else DEFAULT_THRESHOLD_M
            ),
            distance_filter=args.distance_filter,
            legacy_off_route_start=args.legacy_off_route_start,
            map_padding=args.map_padding,
            log_level=args.log_level,
            metrics=args.metrics,
        )

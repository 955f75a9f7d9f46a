#!/usr/bin/env python3
"""
Route deviation replay tool.

This script replays a GPX track against a planned route, reports every point
where the track leaves the route by more than a threshold distance, and
generates an interactive HTML map of the session.

Requirements:
    pip install gpxpy folium

"""

from typing import List, Optional, Tuple
import webbrowser
import argparse
import logging
import sys
import os
from gpxpy import gpx

from . import __version__
from . import visualization
from .audio import AudioTrigger, AudioTriggerError, BellAudioTrigger, CommandAudioTrigger
from .config import WatcherConfig
from .file_utils import generate_output_filename
from .hysteresis import DeviationState
from .location import GpxTrackSource
from .metrics import SessionMetrics, collect_metrics, log_metrics
from .route import RouteConfiguration, RouteConfigurationError
from .session import WatchSession
from .watcher import DeviationEvent, DeviationResult, RouteWatcher

# Configure logging
logger = logging.getLogger("routewatch")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Route deviation replay tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "route",
        type=str,
        nargs="?",
        help="Planned route: JSON ({\"route\": [[lon, lat], ...], \"distance\": m}) or GPX",
    )
    parser.add_argument(
        "track",
        type=str,
        nargs="?",
        help="GPX track to replay as the location stream",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Off-route distance threshold in meters (default: from route file, else 50)",
    )
    parser.add_argument(
        "--distance-filter",
        type=float,
        default=0.0,
        help="Minimum movement in meters between processed samples (default: 0)",
    )
    parser.add_argument(
        "--sound",
        type=str,
        default=None,
        help="Sound file to play when leaving the route",
    )
    parser.add_argument(
        "--player",
        type=str,
        default=None,
        help="Command line audio player for --sound (default: paplay, aplay or afplay)",
    )
    parser.add_argument(
        "--bell",
        action="store_true",
        help="Ring the terminal bell when leaving the route",
    )
    parser.add_argument(
        "--legacy-off-route-start",
        action="store_true",
        help="Start each route in the off-route state, so the first sample cannot alert",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output HTML map file (default: auto-generated based on track filename)",
    )
    parser.add_argument(
        "--map-padding",
        type=float,
        default=50.0,
        help="Padding around route and samples in the map, in meters (default: 50)",
    )
    parser.add_argument(
        "--no-map",
        action="store_true",
        help="Don't generate an HTML map",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Don't automatically open the HTML file in browser",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after processing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"routewatch {__version__}",
    )
    return parser


def determine_output_filename(track_filename: str, output_arg: Optional[str]) -> str:
    """
    Determine the output filename to use.

    Args:
        track_filename: Path to the GPX track
        output_arg: Value from --output argument (None if not specified)

    Returns:
        Output filename to use

    Raises:
        RuntimeError: If auto-generation fails
        ValueError: If constructed filename would be illegal
    """
    if output_arg is not None:
        return output_arg

    try:
        return generate_output_filename(track_filename)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Failed to generate output filename: {e}")
        raise


def open_file_in_browser(filename: str) -> None:
    """
    Open the specified file in the default browser.

    Args:
        filename: Path to the file to open
    """
    abs_path = os.path.abspath(filename)
    try:
        webbrowser.open(f"file://{abs_path}")
        logger.debug(f"Opening {abs_path} in your default browser...")
    except Exception as e:
        logger.warning(f"Could not automatically open browser: {e}")
        logger.warning(f"Please manually open {abs_path}")


def setup_logging(args: argparse.Namespace) -> None:
    """Setup logging configuration."""
    level = getattr(logging, args.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Structured metrics go to stderr without prefixes, whatever the level
    if args.metrics:
        metrics_handler = logging.StreamHandler()
        metrics_handler.setLevel(logging.DEBUG)
        metrics_handler.setFormatter(logging.Formatter("%(message)s"))
        metrics_logger = logging.getLogger("routewatch.metrics")
        metrics_logger.setLevel(logging.DEBUG)
        metrics_logger.addHandler(metrics_handler)
        metrics_logger.propagate = False


def load_route_configuration(
    filename: str, threshold: Optional[float]
) -> RouteConfiguration:
    """
    Load the planned route from a JSON or GPX file.

    Args:
        filename: Route file; ".json" files use the wire format, anything else is GPX
        threshold: Threshold override in meters, or None to use the file's

    Returns:
        Validated RouteConfiguration

    Raises:
        RouteConfigurationError: If the route or threshold is invalid
        FileNotFoundError: If file doesn't exist
        PermissionError: If file can't be read
        gpxpy.gpx.GPXException: If GPX file is malformed
    """
    if filename.lower().endswith(".json"):
        configuration = RouteConfiguration.from_json_file(filename)
        if threshold is not None:
            configuration = RouteConfiguration.create(configuration.route, threshold)
        return configuration

    if threshold is None:
        return RouteConfiguration.from_gpx_file(filename)
    return RouteConfiguration.from_gpx_file(filename, threshold)


def create_audio_trigger(args: argparse.Namespace) -> Optional[AudioTrigger]:
    """
    Create the audio trigger requested on the command line.

    Raises:
        AudioTriggerError: If the sound file or player cannot be found
    """
    if args.sound:
        return CommandAudioTrigger(args.sound, args.player)
    if args.bell:
        return BellAudioTrigger()
    return None


def print_alert(event: DeviationEvent) -> None:
    """Print a single off-route alert."""
    sample = event.sample
    label = f"sample {sample.sample_id}" if sample.sample_id is not None else "sample"
    print(
        f"Off route: {label} at ({sample.latitude:.6f}, {sample.longitude:.6f}) "
        f"is {event.distance_m:.1f} m from route (threshold {event.threshold_m:.1f} m)"
    )


def print_summary(metrics: SessionMetrics) -> None:
    """Print the session summary line."""
    print(
        f"Processed {metrics.samples} samples: "
        f"{metrics.off_route_samples} off route, {metrics.alerts} alerts"
    )


def run_session(
    source: GpxTrackSource,
    watcher: RouteWatcher,
    configuration: RouteConfiguration,
) -> Tuple[WatchSession, List[DeviationResult]]:
    """
    Replay a track through a watcher.

    Returns:
        Tuple of (finished WatchSession, DeviationResult for every sample)
    """
    results: List[DeviationResult] = []
    session = WatchSession(source, watcher, on_result=results.append)
    with session:
        session.set_planned_route(configuration)
        source.replay()
    return session, results


def main():
    """
    Parses command-line arguments, replays the track against the route,
    reports alerts, and generates an interactive map.
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    if not args.route or not args.track:
        parser.print_help()
        sys.exit(1)

    setup_logging(args)
    config = WatcherConfig.from_args(args)

    # Reject bad configuration before anything is watched
    try:
        configuration = load_route_configuration(args.route, args.threshold)
    except FileNotFoundError:
        logger.error(f"Route file not found: {args.route}")
        sys.exit(1)
    except PermissionError:
        logger.error(f"Cannot read route file (permission denied): {args.route}")
        sys.exit(1)
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX route file: {e}")
        sys.exit(1)
    except RouteConfigurationError as e:
        logger.error(f"Invalid route configuration: {e}")
        sys.exit(1)
    config.threshold_m = configuration.threshold_m
    logger.info(
        f"Loaded planned route with {len(configuration.route)} points, "
        f"threshold {configuration.threshold_m:.1f} m"
    )

    try:
        audio_trigger = create_audio_trigger(args)
    except AudioTriggerError as e:
        logger.error(f"{e}")
        sys.exit(1)

    try:
        source = GpxTrackSource.from_file(args.track, config.distance_filter)
    except FileNotFoundError:
        logger.error(f"GPX track not found: {args.track}")
        sys.exit(1)
    except PermissionError:
        logger.error(f"Cannot read GPX track (permission denied): {args.track}")
        sys.exit(1)
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX track file: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"{e}")
        sys.exit(1)
    logger.info(f"Loaded GPX track with {len(source.samples)} points")

    initial_state = (
        DeviationState.OFF_ROUTE
        if config.legacy_off_route_start
        else DeviationState.ON_ROUTE
    )
    watcher = RouteWatcher(audio_trigger=audio_trigger, initial_state=initial_state)
    watcher.add_listener(print_alert)

    session, results = run_session(source, watcher, configuration)

    metrics = collect_metrics(results, len(session.errors))
    print_summary(metrics)

    if not args.no_map:
        try:
            output_filename = determine_output_filename(args.track, args.output)
            logger.debug(f"Output filename: {output_filename}")
        except (RuntimeError, ValueError):
            sys.exit(1)

        try:
            visualization.create_deviation_map(
                configuration.route, results, output_filename, config, metrics
            )
        except Exception as e:
            logger.error(f"Failed to create map: {e}")
            sys.exit(1)

        if not args.no_open:
            open_file_in_browser(output_filename)

    log_metrics(metrics, config)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Filename utilities for generating output filenames.
"""

import os
import logging

logger = logging.getLogger(__name__)

# Number of numbered variants tried after the plain name
MAX_FILENAME_ATTEMPTS = 180


def generate_output_filename(track_filename: str) -> str:
    """
    Generate a map filename next to the track and reserve it by creating an empty file.

    "ride.gpx" becomes "ride deviation map.html", then "ride deviation map (1).html",
    "ride deviation map (2).html" and so on if earlier names are taken. Names are
    reserved with an exclusive open so two runs cannot pick the same file.

    Args:
        track_filename: Path to the GPX track being replayed

    Returns:
        Filename that has been created as an empty file

    Raises:
        RuntimeError: If every candidate name is taken
        ValueError: If a file cannot be created (permissions, illegal name)
    """
    track_dir = os.path.dirname(track_filename)
    base_name, extension = os.path.splitext(os.path.basename(track_filename))
    if extension.lower() != ".gpx":
        base_name += extension
    stem = os.path.join(track_dir, base_name + " deviation map")

    candidates = [f"{stem}.html"] + [
        f"{stem} ({i}).html" for i in range(1, MAX_FILENAME_ATTEMPTS + 1)
    ]
    for candidate in candidates:
        try:
            with open(candidate, "x"):
                pass
            return candidate
        except FileExistsError:
            continue
        except OSError as e:
            logger.error(f"Cannot create file {candidate}: {e}")
            raise ValueError(f"Cannot create file: {e}") from e

    logger.error(
        f"Could not find an available filename after {len(candidates)} attempts. "
        f"Please clean up your output directory or specify --output explicitly."
    )
    raise RuntimeError(
        f"No available filename found after {len(candidates)} attempts"
    )

#!/usr/bin/env python3
"""
Audible alert triggers.

The watcher only ever calls play(). Playback is fire-and-forget: play()
returns as soon as the sound has been started.
"""

from typing import List, Optional, Sequence, TextIO
import logging
import os
import shutil
import subprocess
import sys

logger = logging.getLogger(__name__)

# Command line players tried in order when none is given
DEFAULT_PLAYERS = ["paplay", "aplay", "afplay"]


class AudioTriggerError(Exception):
    """Raised when an alert sound cannot be configured or started."""

    pass


class AudioTrigger:
    """Base class for anything that can sound an alert."""

    def play(self) -> None:
        raise NotImplementedError


class BellAudioTrigger(AudioTrigger):
    """Rings the terminal bell."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def play(self) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        try:
            stream.write("\a")
            stream.flush()
        except (OSError, ValueError) as e:
            raise AudioTriggerError(f"Could not ring terminal bell: {e}") from e


class CommandAudioTrigger(AudioTrigger):
    """Plays a sound file through an external command line player."""

    def __init__(
        self,
        sound_file: str,
        player: Optional[str] = None,
        player_args: Sequence[str] = (),
    ):
        """Initializes a CommandAudioTrigger.

        Args:
            sound_file: Path to the alert sound.
            player: Player executable. If None, the first of DEFAULT_PLAYERS
                found on PATH is used.
            player_args: Extra arguments placed before the sound file.

        Raises:
            AudioTriggerError: If the sound file or a player cannot be found.
        """
        if not sound_file:
            raise AudioTriggerError("Sound file is required")
        if not os.path.isfile(sound_file):
            raise AudioTriggerError(f"Sound file not found: {sound_file}")

        self.sound_file = sound_file
        self.player = self._resolve_player(player)
        self.player_args = list(player_args)
        self._process: Optional[subprocess.Popen] = None

        logger.debug(f"Alert sound {sound_file} will play with {self.player}")

    @staticmethod
    def _resolve_player(player: Optional[str]) -> str:
        candidates = [player] if player else DEFAULT_PLAYERS
        for candidate in candidates:
            path = shutil.which(candidate)
            if path:
                return path
        raise AudioTriggerError(
            f"No audio player found (tried: {', '.join(candidates)})"
        )

    def command(self) -> List[str]:
        """Return the command line used to play the sound."""
        return [self.player, *self.player_args, self.sound_file]

    def play(self) -> None:
        # Reap the previous player so finished processes do not linger
        if self._process is not None and self._process.poll() is not None:
            self._process = None

        try:
            self._process = subprocess.Popen(
                self.command(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise AudioTriggerError(f"Could not start {self.player}: {e}") from e

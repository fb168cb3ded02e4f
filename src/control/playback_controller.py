"""
Playback Controller
====================

Launches the video attached to a confirmed gesture in an external player
process (VLC by default) and reports when it has finished.
"""

import os
import shlex
import shutil
import subprocess
import threading
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Dict, Callable, List

# Import local types
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from recognition.config import GestureSymbol

logger = logging.getLogger(__name__)


@dataclass
class PlaybackConfig:
    """Playback collaborator configuration."""
    enabled: bool = True
    player_command: str = "cvlc --play-and-exit --fullscreen"
    video_dir: str = "videos"

    # Gesture name -> video file (relative to video_dir)
    videos: Dict[str, str] = field(default_factory=lambda: {
        "usain": "usain.mov",
        "victory": "victory.mov",
        "power_pose": "power_pose.mov",
        "t_pose": "t_pose.mov",
        "flying": "flying.mov",
    })

    abort_timeout_s: float = 2.0
    simulated_duration_s: float = 3.0

    @classmethod
    def from_dict(cls, config: dict) -> "PlaybackConfig":
        """Create config from dictionary."""
        return cls(
            enabled=config.get("enabled", True),
            player_command=config.get("player_command", "cvlc --play-and-exit --fullscreen"),
            video_dir=config.get("video_dir", "videos"),
            videos=config.get("videos", cls().videos),
            abort_timeout_s=config.get("abort_timeout_s", 2.0),
            simulated_duration_s=config.get("simulated_duration_s", 3.0),
        )


class PlaybackController:
    """
    Fire-and-forget video playback.

    ``start()`` and ``abort()`` return immediately; a daemon thread waits for
    the player process, escalates an abort to a kill if the player ignores
    it, and sets the finished flag, which the session polls each tick.
    If the player binary is not installed, playback is simulated.

    Example:
        >>> player = PlaybackController(PlaybackConfig())
        >>> player.start(GestureSymbol.VICTORY)
        >>> while not player.is_finished:
        ...     ...
    """

    def __init__(self, config: Optional[PlaybackConfig] = None):
        self.config = config or PlaybackConfig()
        self._finished = threading.Event()
        self._finished.set()
        self._abort_requested = threading.Event()
        self._lock = threading.Lock()
        self._process: Optional[subprocess.Popen] = None
        self._thread: Optional[threading.Thread] = None
        self._current: GestureSymbol = GestureSymbol.NONE
        self._callbacks: List[Callable[[GestureSymbol, bool], None]] = []

        command = shlex.split(self.config.player_command)
        self._command = command
        self._player_available = bool(command) and shutil.which(command[0]) is not None

        if not self._player_available:
            logger.warning(f"Player '{command[0] if command else ''}' not found. Playback will be simulated.")

    def resolve_video(self, gesture: GestureSymbol) -> Optional[str]:
        """Get the media path configured for a gesture."""
        name = self.config.videos.get(gesture.value)
        if not name:
            return None
        return os.path.join(self.config.video_dir, name)

    def start(self, gesture: GestureSymbol) -> bool:
        """
        Start playback for a gesture without blocking.

        Returns:
            True if playback (real or simulated) was launched
        """
        video = self.resolve_video(gesture)
        if not self.config.enabled or video is None:
            if video is None:
                logger.warning(f"No video configured for gesture: {gesture.value}")
            else:
                logger.debug(f"Playback disabled, ignoring {gesture.value}")
            # Nothing to wait for, let the session return to Ready
            self._finished.set()
            return False

        with self._lock:
            self._finished.clear()
            self._abort_requested.clear()
            self._current = gesture
            self._thread = threading.Thread(
                target=self._run,
                args=(gesture, video),
                daemon=True,
            )
            self._thread.start()

        logger.info(f"Playback started: {gesture.value} -> {video}")
        return True

    def _run(self, gesture: GestureSymbol, video: str) -> None:
        """Background thread: run the player and publish completion."""
        success = False
        try:
            if self._player_available:
                success = self._play(video)
            else:
                logger.debug(f"[SIMULATED] Playing {video}")
                aborted = self._abort_requested.wait(self.config.simulated_duration_s)
                success = not aborted
        except Exception as e:
            logger.error(f"Error during playback: {e}")
        finally:
            with self._lock:
                self._process = None
            self._finished.set()
            logger.info(f"Playback completed: {gesture.value} (success={success})")

        for callback in self._callbacks:
            try:
                callback(gesture, success)
            except Exception as e:
                logger.error(f"Error in playback callback: {e}")

    def _play(self, video: str) -> bool:
        if self._abort_requested.is_set():
            logger.info("Playback aborted before launch")
            return False

        try:
            process = subprocess.Popen(
                self._command + [video],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error(f"Failed to launch player: {e}")
            return False

        with self._lock:
            self._process = process
        return self._supervise(process)

    def _supervise(self, process: subprocess.Popen) -> bool:
        """Wait for the player, stopping it once an abort is requested."""
        while process.poll() is None:
            if self._abort_requested.wait(timeout=0.1):
                # Also covers an abort issued before _process was stored
                process.terminate()
                try:
                    process.wait(timeout=self.config.abort_timeout_s)
                except subprocess.TimeoutExpired:
                    logger.warning("Player did not exit, killing it")
                    process.kill()
                    process.wait()
                return False
        return process.returncode == 0

    def abort(self) -> None:
        """Stop the active playback (best effort, no confirmation, never blocks)."""
        self._abort_requested.set()

        with self._lock:
            process = self._process
        if process is None or process.poll() is not None:
            return

        logger.info("Aborting playback")
        process.terminate()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until playback finishes. Returns the finished flag."""
        return self._finished.wait(timeout)

    def add_callback(self, callback: Callable[[GestureSymbol, bool], None]) -> None:
        """Add callback(gesture, success) called when playback ends."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[GestureSymbol, bool], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    @property
    def is_finished(self) -> bool:
        return self._finished.is_set()

    @property
    def current_gesture(self) -> GestureSymbol:
        return self._current

    @property
    def is_available(self) -> bool:
        """Check if a real player is installed and enabled."""
        return self._player_available and self.config.enabled


def test_playback_controller():
    """Manual check: simulated or real playback of one gesture."""
    print("Testing Playback Controller")
    print("=" * 40)

    player = PlaybackController()
    print(f"Player available: {player.is_available}")

    player.start(GestureSymbol.VICTORY)
    start = time.time()
    player.wait()
    print(f"Finished after {time.time() - start:.1f}s")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    test_playback_controller()

"""
Tests for the Playback Controller
==================================
"""

import subprocess
import threading
import time
import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from control.playback_controller import PlaybackConfig, PlaybackController
from recognition.config import GestureSymbol


def simulated_player(**overrides) -> PlaybackController:
    config = PlaybackConfig(simulated_duration_s=0.05, **overrides)
    with patch("control.playback_controller.shutil.which", return_value=None):
        return PlaybackController(config)


def real_player(**overrides) -> PlaybackController:
    config = PlaybackConfig(**overrides)
    with patch("control.playback_controller.shutil.which", return_value="/usr/bin/cvlc"):
        return PlaybackController(config)


class TestPlaybackConfig:

    def test_defaults_cover_every_pose(self):
        config = PlaybackConfig()
        poses = [g.value for g in GestureSymbol if g.is_pose]
        assert sorted(config.videos) == sorted(poses)

    def test_from_dict(self):
        config = PlaybackConfig.from_dict({
            "player_command": "mpv --fs",
            "videos": {"usain": "u.mp4"},
        })

        assert config.player_command == "mpv --fs"
        assert config.videos == {"usain": "u.mp4"}
        assert config.enabled is True


class TestPlaybackController:
    """Test suite for PlaybackController."""

    def test_initially_finished(self):
        player = simulated_player()
        assert player.is_finished
        assert player.current_gesture is GestureSymbol.NONE

    def test_resolve_video(self):
        player = simulated_player(video_dir="/media")
        assert player.resolve_video(GestureSymbol.FLYING) == str(Path("/media") / "flying.mov")
        assert player.resolve_video(GestureSymbol.CANCEL) is None

    def test_simulated_playback(self):
        player = simulated_player()
        assert not player.is_available

        assert player.start(GestureSymbol.VICTORY) is True
        assert player.current_gesture is GestureSymbol.VICTORY
        assert player.wait(timeout=2.0)
        assert player.is_finished

    def test_simulated_abort(self):
        player = simulated_player()
        player.config.simulated_duration_s = 30.0
        done = threading.Event()
        outcomes = []

        def on_done(gesture, success):
            outcomes.append((gesture, success))
            done.set()

        player.add_callback(on_done)
        player.start(GestureSymbol.T_POSE)
        assert not player.is_finished

        player.abort()

        assert done.wait(timeout=2.0)
        assert player.is_finished
        assert outcomes == [(GestureSymbol.T_POSE, False)]

    def test_unknown_gesture_finishes_immediately(self):
        player = simulated_player()
        assert player.start(GestureSymbol.CANCEL) is False
        assert player.is_finished

    def test_disabled(self):
        player = simulated_player(enabled=False)
        assert player.start(GestureSymbol.USAIN) is False
        assert player.is_finished

    def test_real_player_invoked(self):
        player = real_player(video_dir="videos")
        done = threading.Event()
        outcomes = []
        player.add_callback(lambda g, ok: (outcomes.append((g, ok)), done.set()))

        process = MagicMock()
        process.poll.return_value = 0
        process.returncode = 0
        with patch("control.playback_controller.subprocess.Popen", return_value=process) as popen:
            player.start(GestureSymbol.USAIN)
            assert done.wait(timeout=2.0)

        args = popen.call_args[0][0]
        assert args[0] == "cvlc"
        assert args[-1] == str(Path("videos") / "usain.mov")
        assert outcomes == [(GestureSymbol.USAIN, True)]
        assert player.is_finished

    def test_launch_failure_reported(self):
        player = real_player()
        done = threading.Event()
        outcomes = []
        player.add_callback(lambda g, ok: (outcomes.append(ok), done.set()))

        with patch("control.playback_controller.subprocess.Popen", side_effect=OSError("nope")):
            player.start(GestureSymbol.USAIN)
            assert done.wait(timeout=2.0)

        assert outcomes == [False]
        assert player.is_finished

    def test_abort_terminates_process(self):
        player = real_player()
        process = MagicMock()
        process.poll.return_value = None
        player._process = process

        player.abort()

        process.terminate.assert_called_once()
        process.kill.assert_not_called()

    def test_abort_does_not_wait_for_player(self):
        """abort() runs inside a tick, so it must return without waiting."""
        player = real_player(abort_timeout_s=5.0)
        process = MagicMock()
        process.poll.return_value = None
        process.wait.side_effect = AssertionError("abort() waited on the player")
        player._process = process

        start = time.monotonic()
        player.abort()

        assert time.monotonic() - start < 0.5
        process.terminate.assert_called_once()
        process.wait.assert_not_called()
        process.kill.assert_not_called()

    def test_supervisor_kills_stubborn_process(self):
        player = real_player(abort_timeout_s=0.1)
        process = MagicMock()
        process.poll.return_value = None
        process.wait.side_effect = [subprocess.TimeoutExpired("cvlc", 0.1), -9]
        player._abort_requested.set()

        assert player._supervise(process) is False

        process.terminate.assert_called_once()
        process.kill.assert_called_once()

    def test_player_ignoring_terminate(self):
        """A player that ignores SIGTERM is killed off the tick thread."""
        player = real_player(abort_timeout_s=0.1)
        done = threading.Event()
        outcomes = []
        player.add_callback(lambda g, ok: (outcomes.append(ok), done.set()))

        process = MagicMock()
        process.poll.return_value = None
        process.wait.side_effect = [subprocess.TimeoutExpired("cvlc", 0.1), -9]
        launched = threading.Event()

        def launch(*args, **kwargs):
            launched.set()
            return process

        with patch("control.playback_controller.subprocess.Popen", side_effect=launch):
            player.start(GestureSymbol.USAIN)
            assert launched.wait(timeout=2.0)

            start = time.monotonic()
            player.abort()
            assert time.monotonic() - start < 0.5

            assert done.wait(timeout=2.0)

        process.kill.assert_called_once()
        assert outcomes == [False]
        assert player.is_finished

    def test_abort_before_launch(self):
        player = real_player()
        player._abort_requested.set()

        with patch("control.playback_controller.subprocess.Popen") as popen:
            assert player._play("videos/usain.mov") is False

        popen.assert_not_called()

    def test_abort_during_launch_still_stops_player(self):
        """An abort issued while Popen is starting, before the process is stored."""
        player = real_player()
        process = MagicMock()
        process.poll.return_value = None
        process.wait.return_value = 0

        def launch(*args, **kwargs):
            player.abort()
            return process

        with patch("control.playback_controller.subprocess.Popen", side_effect=launch):
            assert player._play("videos/usain.mov") is False

        process.terminate.assert_called_once()

    def test_abort_without_playback_is_noop(self):
        player = real_player()
        player.abort()
        assert player.is_finished


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

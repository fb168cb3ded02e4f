"""Playback control via an external video player."""
from .playback_controller import PlaybackController, PlaybackConfig

__all__ = ["PlaybackController", "PlaybackConfig"]

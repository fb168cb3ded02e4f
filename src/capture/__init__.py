"""Frame acquisition from camera devices and video files."""
from .frame_source import FrameSource, FrameSourceConfig, Frame

__all__ = ["FrameSource", "FrameSourceConfig", "Frame"]

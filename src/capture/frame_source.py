"""
Frame Source
=============

Synchronous frame acquisition from a camera or a recorded video file.
One read() per tick; a failed read yields None and the tick is skipped.
"""

import cv2
import time
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class FrameSourceConfig:
    """Camera / video source settings."""
    source: Union[int, str] = 0   # Device index or video file path
    width: int = 640
    height: int = 480
    fps: int = 30
    flip_horizontal: bool = False
    loop_video: bool = False

    @classmethod
    def from_dict(cls, config: dict) -> "FrameSourceConfig":
        """Create config from dictionary (YAML parsed)."""
        return cls(
            source=config.get("source", 0),
            width=config.get("width", 640),
            height=config.get("height", 480),
            fps=config.get("fps", 30),
            flip_horizontal=config.get("flip_horizontal", False),
            loop_video=config.get("loop_video", False),
        )

    @property
    def is_file(self) -> bool:
        return isinstance(self.source, str) and not self.source.isdigit()


@dataclass
class Frame:
    """Captured frame with metadata."""
    image: np.ndarray
    timestamp: float
    frame_number: int

    @property
    def rgb(self) -> np.ndarray:
        """Convert BGR to RGB."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp * 1000)


class FrameSource:
    """
    OpenCV-backed frame source.

    Example:
        >>> with FrameSource(FrameSourceConfig(source="recording.mp4")) as source:
        ...     frame = source.read()
    """

    def __init__(self, config: Optional[FrameSourceConfig] = None):
        self.config = config or FrameSourceConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_number = 0
        self._start_time = 0.0

    def start(self) -> bool:
        """Open the device or file. Returns False if it cannot be read."""
        source = self.config.source
        if isinstance(source, str) and source.isdigit():
            source = int(source)

        logger.info(f"Opening frame source {source!r}")
        self._cap = cv2.VideoCapture(source)

        if not self._cap.isOpened():
            logger.error(f"Failed to open frame source {source!r}")
            self._cap = None
            return False

        if not self.config.is_file:
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            self._cap.set(cv2.CAP_PROP_FPS, self.config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        actual_width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"Frame source ready: {actual_width}x{actual_height}")

        self._frame_number = 0
        self._start_time = time.time()
        return True

    def stop(self) -> None:
        if self._cap:
            self._cap.release()
            self._cap = None
        logger.info("Frame source stopped")

    def read(self) -> Optional[Frame]:
        """Read the next frame, or None if none could be captured."""
        if self._cap is None:
            return None

        ret, image = self._cap.read()
        if (not ret or image is None) and self.config.is_file and self.config.loop_video:
            self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ret, image = self._cap.read()

        if not ret or image is None:
            return None

        if self.config.flip_horizontal:
            image = cv2.flip(image, 1)

        self._frame_number += 1
        return Frame(image=image, timestamp=time.time(), frame_number=self._frame_number)

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    @property
    def exhausted(self) -> bool:
        """True once a non-looping video file has no more frames."""
        if self._cap is None or not self.config.is_file or self.config.loop_video:
            return False
        total = self._cap.get(cv2.CAP_PROP_FRAME_COUNT)
        position = self._cap.get(cv2.CAP_PROP_POS_FRAMES)
        return total > 0 and position >= total

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.config.width, self.config.height)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

"""
Visualization Module
=====================

Debug overlay: tracked skeleton, shoulder-to-hand offsets, per-pose
dwell progress and the session state.
"""

import cv2
import numpy as np
from typing import Optional, Tuple, Dict
from dataclasses import dataclass

# Import local types
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from recognition.features import JointFrame, JointIndex, OffsetFeatures


@dataclass
class VisualizerConfig:
    """Visualization settings."""
    enabled: bool = True
    show_skeleton: bool = True
    show_offsets: bool = True
    show_progress: bool = True
    show_fps: bool = True
    window_name: str = "Electric Tree"

    # Colors (BGR format)
    joint_color: Tuple[int, int, int] = (0, 255, 0)        # Green
    bone_color: Tuple[int, int, int] = (255, 255, 255)     # White
    text_color: Tuple[int, int, int] = (0, 255, 255)       # Yellow
    progress_color: Tuple[int, int, int] = (0, 200, 0)
    warning_color: Tuple[int, int, int] = (0, 0, 255)      # Red

    font_scale: float = 0.6
    font_thickness: int = 2

    @classmethod
    def from_dict(cls, config: dict) -> "VisualizerConfig":
        """Create config from dictionary."""
        colors = config.get("colors", {})
        return cls(
            enabled=config.get("enabled", True),
            show_skeleton=config.get("show_skeleton", True),
            show_offsets=config.get("show_offsets", True),
            show_progress=config.get("show_progress", True),
            show_fps=config.get("show_fps", True),
            window_name=config.get("window_name", "Electric Tree"),
            joint_color=tuple(colors.get("joints", [0, 255, 0])),
            bone_color=tuple(colors.get("bones", [255, 255, 255])),
            text_color=tuple(colors.get("text", [0, 255, 255])),
            font_scale=config.get("font_scale", 0.6),
            font_thickness=config.get("font_thickness", 2),
        )


class Visualizer:
    """
    Overlay renderer for the tick loop.

    Example:
        >>> viz = Visualizer(VisualizerConfig())
        >>> viz.draw_skeleton(frame.image, tracking.joints)
        >>> viz.draw_session(frame.image, session.state.value, tracking.person_count)
        >>> cv2.imshow(viz.config.window_name, frame.image)
    """

    BONES = [
        (JointIndex.LEFT_SHOULDER, JointIndex.LEFT_HAND),
        (JointIndex.RIGHT_SHOULDER, JointIndex.RIGHT_HAND),
        (JointIndex.LEFT_SHOULDER, JointIndex.RIGHT_SHOULDER),
        (JointIndex.HEAD, JointIndex.SPINE_BASE),
    ]

    def __init__(self, config: Optional[VisualizerConfig] = None):
        self.config = config or VisualizerConfig()
        self._font = cv2.FONT_HERSHEY_SIMPLEX

    def draw_skeleton(self, image: np.ndarray, joints: Optional[JointFrame]) -> np.ndarray:
        """Draw the tracked joints and the bones between them."""
        if joints is None or not self.config.show_skeleton:
            return image

        def point(index):
            x, y = joints.get(index)
            return (int(x), int(y))

        for start, end in self.BONES:
            if max(start, end) < len(joints):
                cv2.line(image, point(start), point(end), self.config.bone_color, 2)

        for index in JointIndex:
            if index < len(joints):
                cv2.circle(image, point(index), 6, self.config.joint_color, -1)

        return image

    def draw_offsets(self, image: np.ndarray, features: Optional[OffsetFeatures]) -> np.ndarray:
        """Print the four offset features (used when tuning envelopes)."""
        if features is None or not self.config.show_offsets:
            return image
        height = image.shape[0]
        cv2.putText(image, str(features), (20, height - 20),
                    self._font, self.config.font_scale,
                    self.config.text_color, self.config.font_thickness)
        return image

    def draw_progress(self, image: np.ndarray, progress: Dict[str, float]) -> np.ndarray:
        """Draw one bar per pose showing dwell progress towards confirmation."""
        if not self.config.show_progress:
            return image

        width = image.shape[1]
        x = width - 220
        y = 30
        bar_width = 100

        for name, value in progress.items():
            cv2.putText(image, name, (x, y + 10), self._font, 0.45, self.config.text_color, 1)
            cv2.rectangle(image, (x + 100, y), (x + 100 + bar_width, y + 12),
                          self.config.bone_color, 1)
            filled = int(bar_width * max(0.0, min(1.0, value)))
            if filled > 0:
                cv2.rectangle(image, (x + 100, y), (x + 100 + filled, y + 12),
                              self.config.progress_color, -1)
            y += 22

        return image

    def draw_session(
        self,
        image: np.ndarray,
        state_name: str,
        person_count: int,
        fps: Optional[float] = None,
    ) -> np.ndarray:
        """Draw session state, tracked-person count and FPS."""
        x, y = 20, 30
        count_color = self.config.text_color if person_count == 1 else self.config.warning_color

        cv2.putText(image, f"State: {state_name.upper()}", (x, y),
                    self._font, self.config.font_scale,
                    self.config.text_color, self.config.font_thickness)
        cv2.putText(image, f"People: {person_count}", (x, y + 25),
                    self._font, self.config.font_scale,
                    count_color, self.config.font_thickness)

        if fps is not None and self.config.show_fps:
            cv2.putText(image, f"FPS: {fps:.1f}", (x, y + 50),
                        self._font, self.config.font_scale,
                        self.config.text_color, self.config.font_thickness)
        return image

    def draw_banner(self, image: np.ndarray, text: str) -> np.ndarray:
        """Large centered text, e.g. when a gesture is confirmed."""
        height, width = image.shape[:2]
        font_scale = 1.5
        thickness = 3

        text_size = cv2.getTextSize(text, self._font, font_scale, thickness)[0]
        x = (width - text_size[0]) // 2
        y = (height + text_size[1]) // 2

        cv2.putText(image, text, (x + 2, y + 2), self._font, font_scale, (0, 0, 0), thickness + 2)
        cv2.putText(image, text, (x, y), self._font, font_scale, (0, 255, 0), thickness)
        return image

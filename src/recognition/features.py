"""
Offset Feature Extraction
==========================

Converts a tracked person's skeleton joints into the shoulder-to-hand
offset vectors that every pose envelope is evaluated against.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class JointIndex(IntEnum):
    """Skeleton joint slots as reported by the tracker."""
    LEFT_HAND = 0
    RIGHT_HAND = 1
    HEAD = 2
    SPINE_BASE = 3
    LEFT_SHOULDER = 4
    RIGHT_SHOULDER = 5


# Slots read by extract_features()
REQUIRED_JOINTS = (
    JointIndex.LEFT_HAND,
    JointIndex.RIGHT_HAND,
    JointIndex.LEFT_SHOULDER,
    JointIndex.RIGHT_SHOULDER,
)
MIN_JOINT_COUNT = max(REQUIRED_JOINTS) + 1


class InsufficientJointsError(IndexError):
    """Raised when a joint frame lacks a slot needed for feature extraction."""


@dataclass
class JointFrame:
    """Image-space joint positions for one tracked person in one tick."""
    points: np.ndarray  # (N, 2) pixel coordinates, indexed by JointIndex

    @classmethod
    def from_points(cls, points: Sequence[Tuple[float, float]]) -> "JointFrame":
        """Build a frame from a sequence of (x, y) pairs."""
        array = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return cls(points=array)

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def get(self, index: JointIndex) -> Tuple[float, float]:
        """Get a joint's (x, y) position."""
        if index >= len(self):
            raise InsufficientJointsError(
                f"Joint {JointIndex(index).name} (slot {int(index)}) missing: "
                f"frame has {len(self)} joints"
            )
        x, y = self.points[index]
        return (float(x), float(y))

    def to_numpy(self) -> np.ndarray:
        """Copy of the joint array, shape (N, 2)."""
        return self.points.copy()


@dataclass(frozen=True)
class OffsetFeatures:
    """Shoulder minus hand offsets for both arms, in pixels."""
    left_x: int
    left_y: int
    right_x: int
    right_y: int

    def as_dict(self) -> Dict[str, int]:
        return {
            "left_x": self.left_x,
            "left_y": self.left_y,
            "right_x": self.right_x,
            "right_y": self.right_y,
        }

    def __str__(self) -> str:
        return (f"L({self.left_x:+d}, {self.left_y:+d}) "
                f"R({self.right_x:+d}, {self.right_y:+d})")


def extract_features(frame: JointFrame) -> OffsetFeatures:
    """
    Compute offset features for a single frame.

    Args:
        frame: Joint positions of the tracked person

    Returns:
        OffsetFeatures with shoulder - hand components per arm

    Raises:
        InsufficientJointsError: if a required joint slot is absent
    """
    if len(frame) < MIN_JOINT_COUNT:
        raise InsufficientJointsError(
            f"Need {MIN_JOINT_COUNT} joints for offset features, got {len(frame)}"
        )

    # Sensor reports whole pixels; truncate the same way before subtracting
    points = frame.points.astype(np.int64)
    shoulders = points[[JointIndex.LEFT_SHOULDER, JointIndex.RIGHT_SHOULDER]]
    hands = points[[JointIndex.LEFT_HAND, JointIndex.RIGHT_HAND]]
    (left_x, left_y), (right_x, right_y) = (shoulders - hands).tolist()

    return OffsetFeatures(
        left_x=int(left_x),
        left_y=int(left_y),
        right_x=int(right_x),
        right_y=int(right_y),
    )

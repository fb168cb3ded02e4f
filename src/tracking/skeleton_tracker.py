"""
Skeleton Tracking - MediaPipe Tasks API
========================================

Detects people with the MediaPipe PoseLandmarker and reduces the tracked
person's landmarks to the joint slots used for gesture recognition.
"""

import logging
import urllib.request
from dataclasses import dataclass
from typing import List, Optional, Tuple
from pathlib import Path

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

# Import local types
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))
from recognition.features import JointFrame, JointIndex

logger = logging.getLogger(__name__)

POSE_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_lite/float16/1/pose_landmarker_lite.task"
DEFAULT_MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "pose_landmarker_lite.task"

# MediaPipe pose landmark indices
MP_NOSE = 0
MP_LEFT_SHOULDER = 11
MP_RIGHT_SHOULDER = 12
MP_LEFT_WRIST = 15
MP_RIGHT_WRIST = 16
MP_LEFT_HIP = 23
MP_RIGHT_HIP = 24


@dataclass
class TrackerConfig:
    """Configuration for the skeleton tracker."""
    model_path: str = ""
    num_poses: int = 2
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    # Joint slots follow image left/right: the person's right arm is on the
    # left of an unmirrored camera image.
    swap_sides: bool = True

    @classmethod
    def from_dict(cls, d: dict) -> "TrackerConfig":
        """Create config from dictionary."""
        return cls(
            model_path=d.get("model_path", "") or "",
            num_poses=d.get("num_poses", 2),
            min_detection_confidence=d.get("min_detection_confidence", 0.5),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
            swap_sides=d.get("swap_sides", True),
        )


@dataclass
class TrackingResult:
    """Per-tick tracker output."""
    person_count: int
    joints: Optional[JointFrame] = None   # Only when exactly one person is tracked
    person_id: int = -1


def download_model(url: str, save_path: Path) -> bool:
    """Download the pose landmarker model if not present."""
    if save_path.exists():
        logger.info(f"Model already exists at {save_path}")
        return True

    try:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Downloading pose landmarker model to {save_path}...")
        urllib.request.urlretrieve(url, save_path)
        logger.info("Model download complete!")
        return True
    except Exception as e:
        logger.error(f"Failed to download model: {e}")
        return False


def landmarks_to_joints(
    landmarks,
    width: int,
    height: int,
    swap_sides: bool = True,
) -> JointFrame:
    """
    Map normalized pose landmarks to a JointFrame in pixel coordinates.

    Args:
        landmarks: Sequence of objects with normalized ``x``/``y``
        width: Image width in pixels
        height: Image height in pixels
        swap_sides: Use the person's right side for the LEFT slots

    Returns:
        JointFrame with one point per JointIndex slot
    """
    def pixel(index: int) -> Tuple[float, float]:
        lm = landmarks[index]
        return (lm.x * width, lm.y * height)

    if swap_sides:
        left_wrist, right_wrist = MP_RIGHT_WRIST, MP_LEFT_WRIST
        left_shoulder, right_shoulder = MP_RIGHT_SHOULDER, MP_LEFT_SHOULDER
    else:
        left_wrist, right_wrist = MP_LEFT_WRIST, MP_RIGHT_WRIST
        left_shoulder, right_shoulder = MP_LEFT_SHOULDER, MP_RIGHT_SHOULDER

    hip_l, hip_r = pixel(MP_LEFT_HIP), pixel(MP_RIGHT_HIP)

    points = [None] * len(JointIndex)
    points[JointIndex.LEFT_HAND] = pixel(left_wrist)
    points[JointIndex.RIGHT_HAND] = pixel(right_wrist)
    points[JointIndex.HEAD] = pixel(MP_NOSE)
    points[JointIndex.SPINE_BASE] = ((hip_l[0] + hip_r[0]) / 2, (hip_l[1] + hip_r[1]) / 2)
    points[JointIndex.LEFT_SHOULDER] = pixel(left_shoulder)
    points[JointIndex.RIGHT_SHOULDER] = pixel(right_shoulder)

    return JointFrame.from_points(points)


class SkeletonTracker:
    """
    Person tracking wrapper around the MediaPipe PoseLandmarker.

    Also acts as the identity registry: each time exactly one person
    appears a new person id is assigned; ``clear()`` forgets all ids.

    Example:
        >>> tracker = SkeletonTracker(TrackerConfig())
        >>> tracker.start()
        >>> result = tracker.process(rgb_image, frame.timestamp_ms)
        >>> tracker.stop()
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self.config = config or TrackerConfig()
        self._landmarker: Optional[vision.PoseLandmarker] = None
        self._last_timestamp = -1
        self._next_person_id = 0
        self._current_person_id = -1

    def start(self) -> bool:
        """Initialize the pose landmarker."""
        try:
            model_path = self.config.model_path or str(DEFAULT_MODEL_PATH)

            if not Path(model_path).exists():
                if not download_model(POSE_LANDMARKER_MODEL_URL, Path(model_path)):
                    logger.error("Could not download pose landmarker model")
                    return False

            options = vision.PoseLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=model_path),
                running_mode=vision.RunningMode.VIDEO,
                num_poses=self.config.num_poses,
                min_pose_detection_confidence=self.config.min_detection_confidence,
                min_pose_presence_confidence=self.config.min_presence_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
            )
            self._landmarker = vision.PoseLandmarker.create_from_options(options)

            logger.info(f"PoseLandmarker initialized with model: {model_path}")
            logger.info(f"Max poses: {self.config.num_poses}")
            return True

        except Exception as e:
            logger.error(f"Failed to initialize PoseLandmarker: {e}")
            return False

    def stop(self) -> None:
        """Release resources."""
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
        logger.info("PoseLandmarker stopped")

    def process(self, image: np.ndarray, timestamp_ms: int) -> TrackingResult:
        """
        Track people in an RGB image.

        Args:
            image: RGB image as numpy array (H, W, 3)
            timestamp_ms: Frame timestamp, must increase between calls

        Returns:
            TrackingResult; joints are set only when exactly one person is seen
        """
        if self._landmarker is None:
            raise RuntimeError("PoseLandmarker not initialized. Call start() first.")

        # VIDEO mode rejects non-increasing timestamps
        timestamp_ms = max(timestamp_ms, self._last_timestamp + 1)
        self._last_timestamp = timestamp_ms

        height, width = image.shape[:2]
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image)
        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)

        return self._to_result(result.pose_landmarks, width, height)

    def _to_result(self, poses: List, width: int, height: int) -> TrackingResult:
        count = len(poses)
        if count != 1:
            self._current_person_id = -1
            return TrackingResult(person_count=count)

        if self._current_person_id < 0:
            self._current_person_id = self._next_person_id
            self._next_person_id += 1

        joints = landmarks_to_joints(poses[0], width, height, self.config.swap_sides)
        return TrackingResult(person_count=1, joints=joints, person_id=self._current_person_id)

    def clear(self) -> None:
        """Forget recognized identities; the current occupant becomes person 0."""
        logger.debug(f"Clearing identities (person id was {self._current_person_id})")
        self._next_person_id = 0
        if self._current_person_id >= 0:
            self._current_person_id = self._next_person_id
            self._next_person_id += 1

    @property
    def current_person_id(self) -> int:
        return self._current_person_id

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

"""Person and skeleton tracking using MediaPipe."""
from .skeleton_tracker import SkeletonTracker, TrackerConfig, TrackingResult

__all__ = ["SkeletonTracker", "TrackerConfig", "TrackingResult"]

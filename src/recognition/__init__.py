"""Pose recognition: offset features, pose state machines and dispatch."""
from .features import JointFrame, JointIndex, OffsetFeatures, InsufficientJointsError, extract_features
from .config import GestureSymbol, RecognitionConfig
from .dispatcher import GestureDispatcher

__all__ = [
    "JointFrame",
    "JointIndex",
    "OffsetFeatures",
    "InsufficientJointsError",
    "extract_features",
    "GestureSymbol",
    "RecognitionConfig",
    "GestureDispatcher",
]

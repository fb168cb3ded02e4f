"""
Electric Tree Gesture Installation
===================================

Skeleton-tracked pose recognition that triggers video playback
for a single visitor standing in front of the installation.

Modules:
    - capture: Camera / video frame acquisition
    - tracking: MediaPipe pose landmarks to joint frames
    - recognition: Offset features, pose machines, gesture dispatcher
    - session: Idle / Ready / Playback lifecycle
    - control: Video playback through an external player
    - utils: Config, logging, performance monitoring, visualization
"""

__version__ = "1.0.0"
__author__ = "Electric Tree Team"

#!/usr/bin/env python3
"""
Live pose monitor - shows offsets and every pose machine's phase in real time.
Useful for tuning envelopes in gestures.yaml for a new camera placement.
"""

import cv2
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from capture.frame_source import FrameSource, FrameSourceConfig
from tracking.skeleton_tracker import SkeletonTracker, TrackerConfig
from recognition.config import GestureSymbol, RecognitionConfig
from recognition.dispatcher import GestureDispatcher
from recognition.features import extract_features
from utils.config import load_config
from utils.logger import setup_logging
from utils.visualization import Visualizer, VisualizerConfig


def main():
    print("Pose Monitor")
    print("=" * 50)
    print("Shows offsets and pose phases in real-time")
    print("Press 'q' to quit")
    print("=" * 50)

    setup_logging("DEBUG" if "--debug" in sys.argv else "INFO")
    config = load_config()

    source = FrameSource(FrameSourceConfig.from_dict(config.get("camera", {})))
    tracker = SkeletonTracker(TrackerConfig.from_dict(config.get("tracking", {})))
    dispatcher = GestureDispatcher(RecognitionConfig.from_dict(config.get("recognition", {})))
    visualizer = Visualizer(VisualizerConfig.from_dict(config.get("visualization", {})))

    if not source.start() or not tracker.start():
        print("Could not start camera or tracker")
        return 1

    print("\nCamera started. Showing detections...\n")

    try:
        while True:
            frame = source.read()
            if frame is None:
                continue

            tracking = tracker.process(frame.rgb, frame.timestamp_ms)
            display = frame.image.copy()
            visualizer.draw_session(display, "monitor", tracking.person_count)

            if tracking.joints is not None:
                visualizer.draw_skeleton(display, tracking.joints)
                features = extract_features(tracking.joints)
                visualizer.draw_offsets(display, features)

                gesture = dispatcher.update(features)
                visualizer.draw_progress(display, dispatcher.progress())

                phases = ", ".join(
                    "{}={}".format(name, state.phase.value)
                    for name, state in dispatcher.states().items()
                )
                print("{} | {}".format(features, phases), end="\r")

                if gesture is not GestureSymbol.NONE:
                    print("\nConfirmed: {}".format(gesture.value))
            else:
                dispatcher.reset()

            cv2.imshow("Pose Monitor", display)

            if cv2.waitKey(1) & 0xFF == ord('q'):
                break

    finally:
        source.stop()
        tracker.stop()
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    sys.exit(main())

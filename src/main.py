"""
Electric Tree - Main Application
=================================

Entry point for the pose-triggered video installation.
Orchestrates frame capture, skeleton tracking, pose recognition, the
session state machine and video playback, one tick per captured frame.
"""

import cv2
import logging
import argparse
import signal
import sys
from typing import Optional
from dataclasses import dataclass

# Import local modules
from capture.frame_source import FrameSource, FrameSourceConfig
from tracking.skeleton_tracker import SkeletonTracker, TrackerConfig, TrackingResult
from recognition.config import RecognitionConfig
from recognition.dispatcher import GestureDispatcher
from recognition.features import InsufficientJointsError, extract_features
from session.session_machine import SessionMachine, SessionState
from control.playback_controller import PlaybackController, PlaybackConfig
from utils.config import load_config
from utils.logger import setup_logging, SessionEventLogger
from utils.performance import PerformanceMonitor
from utils.visualization import Visualizer, VisualizerConfig

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    """Application configuration container."""
    camera: FrameSourceConfig
    tracking: TrackerConfig
    recognition: RecognitionConfig
    media: PlaybackConfig
    visualization: VisualizerConfig
    performance_window: int = 30
    performance_target_fps: float = 25.0


def create_app_config(config_dict: dict) -> AppConfig:
    """Create AppConfig from the merged configuration dictionary."""
    performance = config_dict.get("performance", {})
    return AppConfig(
        camera=FrameSourceConfig.from_dict(config_dict.get("camera", {})),
        tracking=TrackerConfig.from_dict(config_dict.get("tracking", {})),
        recognition=RecognitionConfig.from_dict(config_dict.get("recognition", {})),
        media=PlaybackConfig.from_dict(config_dict.get("media", {})),
        visualization=VisualizerConfig.from_dict(config_dict.get("visualization", {})),
        performance_window=performance.get("window_size", 30),
        performance_target_fps=performance.get("target_fps", 25.0),
    )


class ElectricTreeApp:
    """
    Main application: the single-threaded tick loop.

    Each tick:
    - read one frame (skipped if unavailable)
    - track people and extract the occupant's joints
    - advance the session, which runs the gesture dispatcher
    - draw the overlay and poll for quit keys
    """

    def __init__(self, config: AppConfig):
        self.config = config

        self.source = FrameSource(config.camera)
        self.tracker = SkeletonTracker(config.tracking)
        self.dispatcher = GestureDispatcher(config.recognition)
        self.player = PlaybackController(config.media)
        self.session = SessionMachine(self.dispatcher, self.player, identities=self.tracker)
        self.visualizer = Visualizer(config.visualization)
        self.performance = PerformanceMonitor(
            window_size=config.performance_window,
            target_fps=config.performance_target_fps,
        )

        self.events = SessionEventLogger()
        self.session.add_listener(self.events.on_transition)
        self.player.add_callback(self.events.log_playback)

        self._running = False

    def start(self) -> bool:
        """Start collaborators. Failure here is fatal."""
        logger.info("Starting Electric Tree...")

        if not self.source.start():
            logger.error("Failed to open frame source")
            return False

        if not self.tracker.start():
            logger.error("Failed to start skeleton tracker")
            self.source.stop()
            return False

        self._running = True
        logger.info("Electric Tree started")
        return True

    def stop(self) -> None:
        logger.info("Stopping Electric Tree...")
        self._running = False
        self.player.abort()
        self.source.stop()
        self.tracker.stop()
        if self.config.visualization.enabled:
            cv2.destroyAllWindows()
        logger.info("Electric Tree stopped")

    def run(self) -> int:
        """Run until quit. Returns the process exit code."""
        if not self.start():
            return 1

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            self._main_loop()
        finally:
            self.stop()
            print(self.performance.get_report())
        return 0

    def _main_loop(self) -> None:
        while self._running:
            self.performance.tick_start()
            skipped = not self.tick()
            self.performance.tick_complete(skipped=skipped)

            if self.source.exhausted:
                logger.info("End of video input")
                self._running = False

    def tick(self) -> bool:
        """Process one frame. Returns False if the tick was skipped."""
        with self.performance.measure("capture"):
            frame = self.source.read()

        if frame is None:
            logger.warning("Invalid frame, skipping tick")
            return False

        with self.performance.measure("tracking"):
            try:
                tracking = self.tracker.process(frame.rgb, frame.timestamp_ms)
            except Exception as e:
                logger.warning(f"Failed to process frame: {e}")
                return False

        with self.performance.measure("recognition"):
            result = self.session.step(tracking.person_count, tracking.joints)

        if self.config.visualization.enabled:
            self._render(frame.image, tracking)

        return not result.skipped

    def _render(self, image, tracking: TrackingResult) -> None:
        display = image.copy()
        self.visualizer.draw_skeleton(display, tracking.joints)

        if tracking.joints is not None:
            try:
                self.visualizer.draw_offsets(display, extract_features(tracking.joints))
            except InsufficientJointsError:
                pass

        if self.session.state in (SessionState.READY, SessionState.PLAYBACK_UNDERWAY):
            self.visualizer.draw_progress(display, self.dispatcher.progress())
        if self.session.state is SessionState.PLAYBACK_UNDERWAY:
            self.visualizer.draw_banner(display, self.session.active_gesture.value.upper())

        self.visualizer.draw_session(
            display, self.session.state.value, tracking.person_count, self.performance.fps)

        cv2.imshow(self.config.visualization.window_name, display)

        key = cv2.waitKey(1) & 0xFF
        if key == ord('q') or key == 27:
            self._running = False
        elif key == ord('p'):
            print(self.performance.get_report())

    def _signal_handler(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        self._running = False


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Electric Tree - pose-triggered video playback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keyboard Controls:
  q/ESC     - Quit
  p         - Print performance report

Examples:
  python main.py
  python main.py --source recording.mp4 --headless
  python main.py --config config/config.yaml --debug
        """
    )
    parser.add_argument("--config", "-c", default=None, help="Path to config.yaml")
    parser.add_argument("--gestures", "-g", default=None, help="Path to gestures.yaml")
    parser.add_argument("--source", "-s", default=None,
                        help="Camera index or video file (overrides config)")
    parser.add_argument("--headless", action="store_true", help="Disable the overlay window")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    config_dict = load_config(args.config, args.gestures)

    log_cfg = config_dict.get("logging", {})
    setup_logging(
        level="DEBUG" if args.debug else log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    if args.source is not None:
        config_dict["camera"]["source"] = args.source
    if args.headless:
        config_dict["visualization"]["enabled"] = False

    try:
        app_config = create_app_config(config_dict)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logger.info(f"Poses: {', '.join(app_config.recognition.pose_names)}")
    app = ElectricTreeApp(app_config)
    return app.run()


if __name__ == "__main__":
    sys.exit(main())

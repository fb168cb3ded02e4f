"""
Tick Performance Monitoring
============================

Rolling per-stage timings and frame rate for the tick loop.
"""

import time
import logging
from dataclasses import dataclass
from typing import Optional, Dict
from collections import deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)


@dataclass
class TickMetrics:
    """Snapshot of loop performance."""
    fps: float = 0.0
    tick_time_ms: float = 0.0
    capture_time_ms: float = 0.0
    tracking_time_ms: float = 0.0
    recognition_time_ms: float = 0.0
    total_ticks: int = 0
    skipped_ticks: int = 0


class PerformanceMonitor:
    """
    Measures the capture / tracking / recognition stages of each tick.

    Example:
        >>> monitor = PerformanceMonitor()
        >>> monitor.tick_start()
        >>> with monitor.measure("tracking"):
        ...     result = tracker.process(frame.rgb)
        >>> monitor.tick_complete()
    """

    def __init__(self, window_size: int = 30, target_fps: float = 25.0):
        self.window_size = window_size
        self.target_fps = target_fps
        self._tick_times: deque = deque(maxlen=window_size)
        self._stage_times: Dict[str, deque] = {}
        self._tick_start: Optional[float] = None
        self._total_ticks = 0
        self._skipped_ticks = 0

    def tick_start(self) -> None:
        self._tick_start = time.perf_counter()

    def tick_complete(self, skipped: bool = False) -> None:
        """Mark the current tick finished and record its duration."""
        if self._tick_start is None:
            return
        self._tick_times.append(time.perf_counter() - self._tick_start)
        self._total_ticks += 1
        if skipped:
            self._skipped_ticks += 1
        self._tick_start = None

    @contextmanager
    def measure(self, stage: str):
        """Context manager timing one named stage."""
        start = time.perf_counter()
        try:
            yield
        finally:
            times = self._stage_times.setdefault(stage, deque(maxlen=self.window_size))
            times.append(time.perf_counter() - start)

    @property
    def fps(self) -> float:
        """Rolling average ticks per second."""
        if not self._tick_times:
            return 0.0
        avg = sum(self._tick_times) / len(self._tick_times)
        return 1.0 / avg if avg > 0 else 0.0

    @property
    def tick_time_ms(self) -> float:
        if not self._tick_times:
            return 0.0
        return (sum(self._tick_times) / len(self._tick_times)) * 1000

    def stage_time_ms(self, stage: str) -> float:
        times = self._stage_times.get(stage)
        if not times:
            return 0.0
        return (sum(times) / len(times)) * 1000

    @property
    def is_meeting_target(self) -> bool:
        return self.fps >= self.target_fps

    def get_metrics(self) -> TickMetrics:
        return TickMetrics(
            fps=self.fps,
            tick_time_ms=self.tick_time_ms,
            capture_time_ms=self.stage_time_ms("capture"),
            tracking_time_ms=self.stage_time_ms("tracking"),
            recognition_time_ms=self.stage_time_ms("recognition"),
            total_ticks=self._total_ticks,
            skipped_ticks=self._skipped_ticks,
        )

    def get_report(self) -> str:
        """Formatted performance report."""
        m = self.get_metrics()
        status = "OK" if self.is_meeting_target else "SLOW"
        return (
            f"Performance Report [{status}]\n"
            f"{'=' * 40}\n"
            f"FPS: {m.fps:.1f} (target: >={self.target_fps})\n"
            f"Tick time: {m.tick_time_ms:.1f}ms\n"
            f"  Capture: {m.capture_time_ms:.2f}ms\n"
            f"  Tracking: {m.tracking_time_ms:.2f}ms\n"
            f"  Recognition: {m.recognition_time_ms:.2f}ms\n"
            f"Ticks: {m.total_ticks} (skipped: {m.skipped_ticks})\n"
        )

"""
Logging setup and the session event log.
"""

import os
import logging
import logging.handlers
import time


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console and optional rotating file logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class SessionEventLogger:
    """Records confirmed gestures and session transitions.

    Registered as a session listener; also keeps an in-memory history
    for the end-of-run summary.
    """

    def __init__(self):
        self.logger = logging.getLogger("session_events")
        self._history = []

    def on_transition(self, old_state, new_state, gesture):
        """Session listener: callback(old_state, new_state, gesture)."""
        entry = {
            "timestamp": time.time(),
            "from": old_state.value,
            "to": new_state.value,
            "gesture": gesture.value,
        }
        self._history.append(entry)
        self.logger.info(
            "Session: %-17s -> %-17s | Gesture: %s",
            old_state.value,
            new_state.value,
            gesture.value,
        )

    def log_playback(self, gesture, success):
        """Playback listener: callback(gesture, success)."""
        self.logger.info("Playback: %-12s | Completed: %s", gesture.value, success)

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def playbacks_started(self):
        return sum(1 for e in self._history if e["to"] == "playback_underway")

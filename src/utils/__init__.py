"""Configuration, logging, performance and visualization helpers."""
from .config import load_config
from .logger import setup_logging, SessionEventLogger
from .performance import PerformanceMonitor

__all__ = ["load_config", "setup_logging", "SessionEventLogger", "PerformanceMonitor"]

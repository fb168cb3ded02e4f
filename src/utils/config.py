"""
Configuration loading.
Reads config.yaml and gestures.yaml, merges them over built-in defaults
and warns about fields with unexpected types.
"""

import copy
import os
import yaml
import logging

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
CONFIG_DIR = os.path.join(_BASE_DIR, "config")

DEFAULT_CONFIG = {
    "camera": {
        "source": 0,
        "width": 640,
        "height": 480,
        "fps": 30,
        "flip_horizontal": False,
    },
    "tracking": {
        "model_path": "",
        "num_poses": 2,
        "min_detection_confidence": 0.5,
        "min_presence_confidence": 0.5,
        "min_tracking_confidence": 0.5,
    },
    "recognition": {
        "detect_confirm_ticks": 15,
        "lost_reset_ticks": 10,
        "sequence_timeout_ticks": 30,
    },
    "media": {
        "enabled": True,
        "player_command": "cvlc --play-and-exit --fullscreen",
        "video_dir": "videos",
    },
    "visualization": {
        "enabled": True,
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
    "performance": {
        "window_size": 30,
        "target_fps": 25.0,
    },
}

# Schema: sections and their expected field types
_CONFIG_SCHEMA = {
    "camera": {
        "width": int,
        "height": int,
        "fps": int,
    },
    "tracking": {
        "num_poses": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "recognition": {
        "detect_confirm_ticks": int,
        "lost_reset_ticks": int,
        "sequence_timeout_ticks": int,
        "poses": list,
    },
    "media": {
        "player_command": str,
        "videos": dict,
    },
    "performance": {
        "target_fps": float,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: str) -> dict:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file not found: %s, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top level should be a mapping, got %s",
                       path, type(data).__name__)
        return {}
    logger.info("Loaded config from %s", path)
    return data


def validate(data: dict) -> list:
    """Check fields against the schema. Returns a list of warning strings."""
    warnings = []
    for section_name, fields in _CONFIG_SCHEMA.items():
        section = data.get(section_name)
        if section is None:
            warnings.append(f"Missing config section: '{section_name}'")
            continue
        if not isinstance(section, dict):
            warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
            continue
        for field_name, expected_type in fields.items():
            if field_name not in section:
                continue
            value = section[field_name]
            # Allow int where float is expected
            if expected_type is float and isinstance(value, (int, float)):
                continue
            if not isinstance(value, expected_type):
                warnings.append(
                    f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )
    for w in warnings:
        logger.warning("Config validation: %s", w)
    return warnings


def load_config(config_path=None, gestures_path=None) -> dict:
    """
    Load the application configuration.

    The pose table from gestures.yaml ends up under recognition.poses;
    anything missing falls back to DEFAULT_CONFIG.
    """
    config_path = config_path or os.path.join(CONFIG_DIR, "config.yaml")
    gestures_path = gestures_path or os.path.join(CONFIG_DIR, "gestures.yaml")

    data = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), _read_yaml(config_path))

    gestures = _read_yaml(gestures_path)
    if gestures:
        recognition = data.setdefault("recognition", {})
        for key in ("detect_confirm_ticks", "lost_reset_ticks", "sequence_timeout_ticks"):
            if key in gestures:
                recognition[key] = gestures[key]
        if "poses" in gestures:
            recognition["poses"] = gestures["poses"]

    validate(data)
    return data


def get_value(data: dict, key_path: str, default=None):
    """Get nested config value using dot notation: 'camera.width'."""
    value = data
    for key in key_path.split("."):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value

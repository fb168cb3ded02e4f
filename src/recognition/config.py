"""
Recognition Configuration
==========================

Gesture symbols, per-pose envelope tables and the tick thresholds shared
by all pose state machines. Loaded once at startup from gestures.yaml.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .envelope import PoseEnvelope

logger = logging.getLogger(__name__)


class GestureSymbol(Enum):
    """Confirmed gesture emitted by the dispatcher."""
    NONE = "none"
    USAIN = "usain"
    VICTORY = "victory"
    POWER_POSE = "power_pose"
    T_POSE = "t_pose"
    FLYING = "flying"
    CANCEL = "cancel"

    @classmethod
    def from_string(cls, name: str) -> "GestureSymbol":
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unknown gesture symbol: {name!r}") from None

    @property
    def is_pose(self) -> bool:
        """True for a confirmed gesture that can start playback."""
        return self not in (GestureSymbol.NONE, GestureSymbol.CANCEL)


POSE_KINDS = ("static", "sequence")

# Default pose table. Same layout as config/gestures.yaml.
DEFAULT_POSES = [
    {
        "name": "usain",
        "symbol": "usain",
        "envelope": {
            "left_x": [20, 45],
            "left_y": [-45, -10],
            "right_x": [-90, -30],
            "right_y": [15, 50],
        },
    },
    {
        "name": "victory",
        "symbol": "victory",
        "envelope": {
            "left_x": [35, 70],
            "left_y": [50, 90],
            "right_x": [-60, -20],
            "right_y": [50, 80],
        },
    },
    {
        "name": "power_pose",
        "symbol": "power_pose",
        "envelope": {
            "left_x": {"min": 0, "max": 40, "min_inclusive": False},
            "left_y": {"min": 0, "max": 40, "min_inclusive": False},
            "right_x": {"min": -40, "max": 0, "min_inclusive": False},
            "right_y": {"min": 0, "max": 40, "min_inclusive": False},
        },
    },
    {
        "name": "t_pose",
        "symbol": "t_pose",
        "envelope": {
            "left_x": {"min": 75},
            "left_y": [-10, 10],
            "right_x": {"min": -110},
            "right_y": [-15, 5],
        },
    },
    # Flap: arms out level, lowered to the sides, level again.
    # Negative y offset = hand below the shoulder (image y grows downwards).
    {
        "name": "flying",
        "symbol": "flying",
        "kind": "sequence",
        "stages": [
            {"name": "arms_level_baseline",
             "envelope": {"left_y": [-20, 20], "right_y": [-10, 30]}},
            {"name": "arms_lowered",
             "envelope": {"left_y": [-100, -60], "right_y": [-90, -50]}},
            {"name": "arms_level_confirm",
             "envelope": {"left_y": [-20, 20], "right_y": [-10, 30]}},
        ],
    },
    {
        "name": "cancel",
        "symbol": "cancel",
        "envelope": {
            "left_x": [-10, 15],
            "left_y": [55, 65],
            "right_x": [-5, 15],
            "right_y": [55, 70],
        },
    },
]


@dataclass(frozen=True)
class PoseConfig:
    """One recognizable pose: a static envelope or a chain of stage envelopes."""
    name: str
    symbol: GestureSymbol
    kind: str = "static"
    envelope: Optional[PoseEnvelope] = None
    stages: Tuple[Tuple[str, PoseEnvelope], ...] = ()

    @classmethod
    def from_dict(cls, config: dict) -> "PoseConfig":
        """Create pose config from dictionary."""
        name = config.get("name")
        if not name:
            raise ValueError(f"Pose entry without a name: {config!r}")

        kind = config.get("kind", "static")
        if kind not in POSE_KINDS:
            raise ValueError(f"Pose '{name}': kind must be one of {POSE_KINDS}, got {kind!r}")

        symbol = GestureSymbol.from_string(config.get("symbol", name))
        if symbol is GestureSymbol.NONE:
            raise ValueError(f"Pose '{name}' cannot emit the 'none' symbol")

        if kind == "static":
            if "envelope" not in config:
                raise ValueError(f"Static pose '{name}' needs an envelope")
            return cls(name=name, symbol=symbol, kind=kind,
                       envelope=PoseEnvelope.from_dict(config["envelope"]))

        stages = config.get("stages") or []
        if len(stages) < 2:
            raise ValueError(f"Sequence pose '{name}' needs at least two stages")
        return cls(
            name=name,
            symbol=symbol,
            kind=kind,
            stages=tuple(
                (stage.get("name", f"stage_{i}"), PoseEnvelope.from_dict(stage.get("envelope", {})))
                for i, stage in enumerate(stages)
            ),
        )


@dataclass(frozen=True)
class RecognitionConfig:
    """Tick thresholds and the ordered pose table."""
    detect_confirm_ticks: int = 15      # Consecutive matching ticks to confirm
    lost_reset_ticks: int = 10          # Non-matching ticks tolerated in Lost
    sequence_timeout_ticks: int = 30    # Max ticks per stage of a sequence pose
    poses: Tuple[PoseConfig, ...] = field(
        default_factory=lambda: tuple(PoseConfig.from_dict(p) for p in DEFAULT_POSES)
    )

    def __post_init__(self):
        for name in ("detect_confirm_ticks", "lost_reset_ticks", "sequence_timeout_ticks"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"{name} must be a non-negative int, got {value!r}")
        if self.detect_confirm_ticks < 1:
            raise ValueError("detect_confirm_ticks must be at least 1")

        names = [pose.name for pose in self.poses]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate pose names: {sorted(duplicates)}")

    @classmethod
    def from_dict(cls, config: dict) -> "RecognitionConfig":
        """Create config from the merged 'recognition' section."""
        poses = config.get("poses")
        if poses is None:
            poses = DEFAULT_POSES
        parsed = tuple(PoseConfig.from_dict(p) for p in poses)
        logger.debug(f"Loaded {len(parsed)} poses: {[p.name for p in parsed]}")
        return cls(
            detect_confirm_ticks=config.get("detect_confirm_ticks", 15),
            lost_reset_ticks=config.get("lost_reset_ticks", 10),
            sequence_timeout_ticks=config.get("sequence_timeout_ticks", 30),
            poses=parsed,
        )

    def get_pose(self, name: str) -> PoseConfig:
        for pose in self.poses:
            if pose.name == name:
                return pose
        raise KeyError(name)

    @property
    def pose_names(self) -> List[str]:
        return [pose.name for pose in self.poses]

"""
Pose Envelopes
===============

Static min/max bounds over the four offset features. A pose "matches" a
frame when every feature falls inside its bound.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .features import OffsetFeatures

FEATURE_NAMES = ("left_x", "left_y", "right_x", "right_y")


@dataclass(frozen=True)
class Bound:
    """Range on one feature. A missing side is unbounded."""
    min: Optional[int] = None
    max: Optional[int] = None
    min_inclusive: bool = True
    max_inclusive: bool = True

    def __post_init__(self):
        for side in ("min", "max"):
            value = getattr(self, side)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Bound {side} must be a number, got {value!r}")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"Bound min {self.min} is greater than max {self.max}")

    def contains(self, value: int) -> bool:
        if self.min is not None:
            if value < self.min or (value == self.min and not self.min_inclusive):
                return False
        if self.max is not None:
            if value > self.max or (value == self.max and not self.max_inclusive):
                return False
        return True

    @classmethod
    def from_dict(cls, config: Optional[dict]) -> "Bound":
        """Create bound from dictionary. ``None`` means unbounded."""
        if config is None:
            return cls()
        if isinstance(config, (list, tuple)):
            # Shorthand: [min, max], both inclusive
            if len(config) != 2:
                raise ValueError(f"Bound shorthand needs [min, max], got {config!r}")
            return cls(min=config[0], max=config[1])
        if not isinstance(config, dict):
            raise ValueError(f"Bound must be a mapping or [min, max], got {config!r}")
        return cls(
            min=config.get("min"),
            max=config.get("max"),
            min_inclusive=config.get("min_inclusive", True),
            max_inclusive=config.get("max_inclusive", True),
        )

    def __str__(self) -> str:
        low = "(-inf" if self.min is None else ("[" if self.min_inclusive else "(") + str(self.min)
        high = "+inf)" if self.max is None else str(self.max) + ("]" if self.max_inclusive else ")")
        return f"{low}, {high}"


@dataclass(frozen=True)
class PoseEnvelope:
    """Bounds for all four offset features of one pose (or pose stage)."""
    left_x: Bound = field(default_factory=Bound)
    left_y: Bound = field(default_factory=Bound)
    right_x: Bound = field(default_factory=Bound)
    right_y: Bound = field(default_factory=Bound)

    def matches(self, features: OffsetFeatures) -> bool:
        """Check whether the frame's features lie inside every bound."""
        return (
            self.left_x.contains(features.left_x)
            and self.left_y.contains(features.left_y)
            and self.right_x.contains(features.right_x)
            and self.right_y.contains(features.right_y)
        )

    @classmethod
    def from_dict(cls, config: dict) -> "PoseEnvelope":
        """Create envelope from dictionary keyed by feature name."""
        unknown = set(config) - set(FEATURE_NAMES)
        if unknown:
            raise ValueError(f"Unknown envelope features: {sorted(unknown)}")
        return cls(**{name: Bound.from_dict(config.get(name)) for name in FEATURE_NAMES})

    def describe(self) -> Dict[str, str]:
        """Human-readable bounds, for logs and the tuning overlay."""
        return {name: str(getattr(self, name)) for name in FEATURE_NAMES}

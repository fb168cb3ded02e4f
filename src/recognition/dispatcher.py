"""
Gesture Dispatcher
===================

Runs every pose machine against the same tick's features and reports at
most one confirmed gesture per tick.
"""

import logging
from typing import Dict, List, Optional

from .config import GestureSymbol, RecognitionConfig
from .features import OffsetFeatures
from .pose_machine import PoseMachine, PoseState, create_machine

logger = logging.getLogger(__name__)


class GestureDispatcher:
    """
    Owns one state machine per configured pose.

    Machines are advanced in configuration order. The first confirmation of
    a tick wins, and any confirmation resets every machine so that one held
    pose yields exactly one gesture.

    Example:
        >>> dispatcher = GestureDispatcher(RecognitionConfig())
        >>> gesture = dispatcher.update(extract_features(joints))
        >>> if gesture is not GestureSymbol.NONE:
        ...     print(f"Confirmed: {gesture.value}")
    """

    def __init__(self, config: Optional[RecognitionConfig] = None):
        self.config = config or RecognitionConfig()
        self._machines: List[PoseMachine] = [
            create_machine(pose, self.config) for pose in self.config.poses
        ]

    def update(self, features: OffsetFeatures) -> GestureSymbol:
        """
        Advance all pose machines by one tick.

        Args:
            features: Offset features of the tracked person for this tick

        Returns:
            The first confirmed gesture, or GestureSymbol.NONE
        """
        confirmed = GestureSymbol.NONE

        for machine in self._machines:
            if machine.update(features) and confirmed is GestureSymbol.NONE:
                confirmed = machine.symbol

        if confirmed is not GestureSymbol.NONE:
            self.reset()

        return confirmed

    def reset(self) -> None:
        """Return every pose machine to Init."""
        for machine in self._machines:
            machine.reset()

    def states(self) -> Dict[str, PoseState]:
        """Snapshot of every machine's state, keyed by pose name."""
        return {machine.name: machine.state for machine in self._machines}

    def progress(self) -> Dict[str, float]:
        return {machine.name: machine.progress for machine in self._machines}

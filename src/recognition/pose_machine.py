"""
Pose Hysteresis State Machines
===============================

Per-pose temporal classifiers. Each machine is advanced once per tick with
the current offset features and reports whether its pose was confirmed.

Static poses use a three-phase machine (Init / Detecting / Lost): the pose
must be held for ``detect_confirm_ticks`` consecutive ticks, and brief
dropouts are bridged by the Lost phase for up to ``lost_reset_ticks``.

Sequence poses (e.g. flying) chain several stage envelopes that must be
matched in order, each within ``sequence_timeout_ticks`` of the previous.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple, Union

from .config import GestureSymbol, PoseConfig, RecognitionConfig
from .envelope import PoseEnvelope
from .features import OffsetFeatures

logger = logging.getLogger(__name__)


class PosePhase(Enum):
    INIT = "init"
    DETECTING = "detecting"
    LOST = "lost"


@dataclass
class PoseState:
    """Mutable per-pose tracking state."""
    phase: PosePhase = PosePhase.INIT
    detecting_ticks: int = 0
    lost_ticks: int = 0
    stage: int = 0          # Sequence poses only
    stage_ticks: int = 0    # Sequence poses only

    def reset(self) -> None:
        self.phase = PosePhase.INIT
        self.detecting_ticks = 0
        self.lost_ticks = 0
        self.stage = 0
        self.stage_ticks = 0


class StaticPoseMachine:
    """
    Hysteresis machine for a pose defined by a single envelope.

    Example:
        >>> machine = StaticPoseMachine("power_pose", GestureSymbol.POWER_POSE, envelope)
        >>> for features in stream:
        ...     if machine.update(features):
        ...         print("confirmed")
    """

    def __init__(
        self,
        name: str,
        symbol: GestureSymbol,
        envelope: PoseEnvelope,
        detect_confirm_ticks: int = 15,
        lost_reset_ticks: int = 10,
    ):
        self.name = name
        self.symbol = symbol
        self.envelope = envelope
        self.detect_confirm_ticks = detect_confirm_ticks
        self.lost_reset_ticks = lost_reset_ticks
        self._state = PoseState()

    def update(self, features: OffsetFeatures) -> bool:
        """
        Advance one tick.

        Returns:
            True if the pose was confirmed on this tick
        """
        matched = self.envelope.matches(features)
        state = self._state

        if state.phase is PosePhase.INIT:
            if matched:
                self._enter_detecting()
                return self._count_match()
            return False

        if state.phase is PosePhase.DETECTING:
            if matched:
                return self._count_match()
            # detecting_ticks is kept until Detecting is re-entered
            state.phase = PosePhase.LOST
            state.lost_ticks = 0
            logger.debug(f"{self.name}: lost after {state.detecting_ticks} ticks ({features})")
            return False

        # Lost
        if matched:
            state.lost_ticks = 0
            self._enter_detecting()
            return self._count_match()
        if state.lost_ticks >= self.lost_reset_ticks:
            logger.debug(f"{self.name}: lost timeout, back to init")
            state.reset()
        else:
            state.lost_ticks += 1
        return False

    def _enter_detecting(self) -> None:
        self._state.phase = PosePhase.DETECTING
        self._state.detecting_ticks = 0
        logger.debug(f"{self.name}: detecting")

    def _count_match(self) -> bool:
        self._state.detecting_ticks += 1
        if self._state.detecting_ticks >= self.detect_confirm_ticks:
            logger.info(f"{self.name}: confirmed after {self._state.detecting_ticks} ticks")
            self._state.reset()
            return True
        return False

    def reset(self) -> None:
        self._state.reset()

    @property
    def state(self) -> PoseState:
        """Snapshot of the current state."""
        return replace(self._state)

    @property
    def progress(self) -> float:
        """Dwell progress towards confirmation (0.0 - 1.0)."""
        if self._state.phase is PosePhase.INIT:
            return 0.0
        return min(1.0, self._state.detecting_ticks / self.detect_confirm_ticks)


class SequencePoseMachine:
    """
    Machine for a pose made of ordered stage envelopes.

    The first stage waits indefinitely. Every later stage must match within
    ``timeout_ticks`` ticks, otherwise the machine returns to the first stage.
    Matching the final stage confirms the pose.
    """

    def __init__(
        self,
        name: str,
        symbol: GestureSymbol,
        stages: Tuple[Tuple[str, PoseEnvelope], ...],
        timeout_ticks: int = 30,
    ):
        if len(stages) < 2:
            raise ValueError(f"Sequence pose '{name}' needs at least two stages")
        self.name = name
        self.symbol = symbol
        self.stages = stages
        self.timeout_ticks = timeout_ticks
        self._state = PoseState()

    def update(self, features: OffsetFeatures) -> bool:
        state = self._state
        stage_name, envelope = self.stages[state.stage]

        if envelope.matches(features):
            if state.stage == len(self.stages) - 1:
                logger.info(f"{self.name}: sequence confirmed")
                state.reset()
                return True
            state.stage += 1
            state.stage_ticks = 0
            state.phase = PosePhase.DETECTING
            logger.debug(f"{self.name}: {stage_name} matched, waiting for {self.stage_name}")
            return False

        if state.stage == 0:
            return False

        if state.stage_ticks >= self.timeout_ticks:
            logger.debug(f"{self.name}: timed out waiting for {stage_name}, restarting")
            state.reset()
        else:
            state.stage_ticks += 1
        return False

    def reset(self) -> None:
        self._state.reset()

    @property
    def stage_name(self) -> str:
        return self.stages[self._state.stage][0]

    @property
    def state(self) -> PoseState:
        return replace(self._state)

    @property
    def progress(self) -> float:
        return self._state.stage / len(self.stages)


PoseMachine = Union[StaticPoseMachine, SequencePoseMachine]


def create_machine(pose: PoseConfig, config: RecognitionConfig) -> PoseMachine:
    """Build the state machine for one configured pose."""
    if pose.kind == "sequence":
        return SequencePoseMachine(
            pose.name,
            pose.symbol,
            pose.stages,
            timeout_ticks=config.sequence_timeout_ticks,
        )
    return StaticPoseMachine(
        pose.name,
        pose.symbol,
        pose.envelope,
        detect_confirm_ticks=config.detect_confirm_ticks,
        lost_reset_ticks=config.lost_reset_ticks,
    )

"""
Session State Machine
======================

Top-level Idle / Ready / PlaybackStart / PlaybackUnderway lifecycle.
Consumes the tracked-person count and confirmed gestures each tick and
drives the playback and identity collaborators.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

# Import local types
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from recognition.config import GestureSymbol
from recognition.dispatcher import GestureDispatcher
from recognition.features import InsufficientJointsError, JointFrame, extract_features

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    READY = "ready"
    PLAYBACK_START = "playback_start"
    PLAYBACK_UNDERWAY = "playback_underway"


@dataclass
class TickResult:
    """Outcome of one session tick."""
    state: SessionState
    gesture: GestureSymbol = GestureSymbol.NONE
    skipped: bool = False


StateListener = Callable[[SessionState, SessionState, GestureSymbol], None]


class SessionMachine:
    """
    Session controller for one continuously tracked occupant.

    Collaborators are duck-typed:
        player:     start(gesture), abort(), is_finished
        identities: clear()

    Example:
        >>> session = SessionMachine(GestureDispatcher(), player, tracker)
        >>> while running:
        ...     tracking = tracker.process(frame.rgb)
        ...     session.step(tracking.person_count, tracking.joints)
    """

    def __init__(self, dispatcher: GestureDispatcher, player, identities=None):
        self.dispatcher = dispatcher
        self._player = player
        self._identities = identities
        self._state = SessionState.IDLE
        self._active_gesture = GestureSymbol.NONE
        self._listeners: List[StateListener] = []

    def step(self, tracked_count: int, joints: Optional[JointFrame] = None) -> TickResult:
        """
        Process one tick.

        Args:
            tracked_count: Number of people currently tracked
            joints: Joint frame of the tracked person (only used when tracked_count == 1)

        Returns:
            TickResult with the state after this tick and any confirmed gesture
        """
        state = self._state
        gesture = GestureSymbol.NONE

        if state is SessionState.IDLE:
            if tracked_count == 1:
                logger.info("Found someone, session ready")
                if self._identities is not None:
                    self._identities.clear()
                self.dispatcher.reset()
                self._transition(SessionState.READY)

        elif state is SessionState.READY:
            if tracked_count != 1:
                logger.info(f"Tracking {tracked_count} people, back to idle")
                self._enter_idle()
            else:
                gesture, ok = self._evaluate(joints)
                if not ok:
                    return TickResult(self._state, skipped=True)
                if gesture.is_pose:
                    self._active_gesture = gesture
                    self._transition(SessionState.PLAYBACK_START, gesture)

        elif state is SessionState.PLAYBACK_START:
            logger.info(f"Starting playback for {self._active_gesture.value}")
            self._player.start(self._active_gesture)
            self._transition(SessionState.PLAYBACK_UNDERWAY, self._active_gesture)

        elif state is SessionState.PLAYBACK_UNDERWAY:
            # Still listening for the cancel gesture while someone is tracked
            if tracked_count == 1:
                gesture, ok = self._evaluate(joints)
                if not ok:
                    return TickResult(self._state, skipped=True)
                if gesture is GestureSymbol.CANCEL:
                    logger.info("Cancel gesture, aborting playback")
                    self._player.abort()
                elif gesture.is_pose:
                    logger.debug(f"Ignoring {gesture.value} during playback")

            if self._player.is_finished:
                logger.info("Playback completed or aborted")
                self._transition(SessionState.READY)

        return TickResult(self._state, gesture)

    def _evaluate(self, joints: Optional[JointFrame]) -> Tuple[GestureSymbol, bool]:
        """Run the dispatcher for this tick. Returns (gesture, ok)."""
        if joints is None:
            logger.warning("One person tracked but no joints supplied, skipping tick")
            return GestureSymbol.NONE, False
        try:
            features = extract_features(joints)
        except InsufficientJointsError as e:
            logger.debug(f"Skipping tick: {e}")
            return GestureSymbol.NONE, False
        return self.dispatcher.update(features), True

    def _enter_idle(self) -> None:
        self.dispatcher.reset()
        self._transition(SessionState.IDLE)

    def _transition(self, new_state: SessionState,
                    gesture: GestureSymbol = GestureSymbol.NONE) -> None:
        old_state = self._state
        if new_state is old_state:
            return
        self._state = new_state
        logger.debug(f"Session: {old_state.value} -> {new_state.value}")

        for callback in self._listeners:
            try:
                callback(old_state, new_state, gesture)
            except Exception as e:
                logger.error(f"Error in session listener: {e}")

    def add_listener(self, callback: StateListener) -> None:
        """Register callback(old_state, new_state, gesture) for state changes."""
        self._listeners.append(callback)

    def remove_listener(self, callback: StateListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_gesture(self) -> GestureSymbol:
        """Gesture whose playback was most recently requested."""
        return self._active_gesture

"""
Tests for the Session State Machine
====================================
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from recognition.config import GestureSymbol, RecognitionConfig
from recognition.dispatcher import GestureDispatcher
from recognition.features import JointFrame
from recognition.pose_machine import PosePhase
from session.session_machine import SessionMachine, SessionState
from conftest import CANCEL, NOTHING, POWER_POSE, joints_for


@pytest.fixture
def session(player, identities):
    return SessionMachine(GestureDispatcher(RecognitionConfig()), player, identities)


def make_ready(session):
    result = session.step(1, joints_for(NOTHING))
    assert result.state is SessionState.READY
    return result


def hold(session, features, ticks, tracked=1):
    return [session.step(tracked, joints_for(features)) for _ in range(ticks)]


def all_init(session) -> bool:
    return all(s.phase is PosePhase.INIT and s.stage == 0
               for s in session.dispatcher.states().values())


class TestIdleReady:
    """Occupancy handling."""

    def test_starts_idle(self, session):
        assert session.state is SessionState.IDLE

    def test_single_person_makes_ready(self, session, identities):
        result = session.step(1, joints_for(NOTHING))

        assert result.state is SessionState.READY
        assert result.gesture is GestureSymbol.NONE
        assert identities.clears == 1

    @pytest.mark.parametrize("count", [0, 2, 3])
    def test_idle_needs_exactly_one(self, session, count):
        assert session.step(count).state is SessionState.IDLE

    def test_idle_does_not_evaluate_gestures(self, session):
        session.step(2, joints_for(POWER_POSE))
        assert all_init(session)

    def test_person_lost_returns_idle(self, session):
        make_ready(session)
        assert session.step(0).state is SessionState.IDLE
        make_ready(session)
        assert session.step(2).state is SessionState.IDLE

    def test_occupancy_toggling(self, session, identities):
        """Toggling 1 / 0-or-2 never leaks gesture progress across Idle."""
        states = []
        for count in [1, 0, 1, 2, 1, 0]:
            states.append(session.step(count, joints_for(POWER_POSE)).state)
            if session.state is SessionState.IDLE:
                assert all_init(session)

        assert states == [
            SessionState.READY, SessionState.IDLE,
            SessionState.READY, SessionState.IDLE,
            SessionState.READY, SessionState.IDLE,
        ]
        assert identities.clears == 3


class TestPlayback:
    """Gesture-triggered playback."""

    def test_power_pose_scenario(self, session, player):
        """Confirm on tick 15, PlaybackStart after it, Underway on the next tick."""
        make_ready(session)

        results = hold(session, POWER_POSE, 15)

        assert [r.state for r in results[:14]] == [SessionState.READY] * 14
        assert results[14].gesture is GestureSymbol.POWER_POSE
        assert results[14].state is SessionState.PLAYBACK_START
        assert player.started == []

        result = session.step(1, joints_for(POWER_POSE))
        assert result.state is SessionState.PLAYBACK_UNDERWAY
        assert player.started == [GestureSymbol.POWER_POSE]
        assert session.active_gesture is GestureSymbol.POWER_POSE

    def test_dropout_delays_confirmation(self, session):
        make_ready(session)
        results = hold(session, POWER_POSE, 7)
        results += hold(session, NOTHING, 1)
        results += hold(session, POWER_POSE, 15)

        confirmed = [i + 1 for i, r in enumerate(results) if r.gesture is GestureSymbol.POWER_POSE]
        assert confirmed == [23]

    def test_person_lost_mid_detection(self, session):
        """Leaving mid-dwell resets pose machines; re-entry needs a full dwell."""
        make_ready(session)
        hold(session, POWER_POSE, 5)

        assert session.step(0).state is SessionState.IDLE
        assert all_init(session)

        make_ready(session)
        results = hold(session, POWER_POSE, 15)
        assert [r.gesture for r in results].index(GestureSymbol.POWER_POSE) == 14

    def test_playback_start_is_unconditional(self, session, player):
        make_ready(session)
        hold(session, POWER_POSE, 15)

        # Nobody tracked on the start tick: playback still launches
        assert session.step(0).state is SessionState.PLAYBACK_UNDERWAY
        assert len(player.started) == 1

    def test_finished_returns_ready(self, session, player):
        make_ready(session)
        hold(session, POWER_POSE, 16)
        assert session.state is SessionState.PLAYBACK_UNDERWAY

        assert session.step(1, joints_for(NOTHING)).state is SessionState.PLAYBACK_UNDERWAY
        player.is_finished = True
        assert session.step(1, joints_for(NOTHING)).state is SessionState.READY

    def test_finished_while_nobody_tracked(self, session, player):
        make_ready(session)
        hold(session, POWER_POSE, 16)
        player.is_finished = True

        assert session.step(0).state is SessionState.READY

    def test_other_gestures_ignored_during_playback(self, session, player):
        make_ready(session)
        hold(session, POWER_POSE, 16)

        results = hold(session, POWER_POSE, 15)

        assert results[-1].gesture is GestureSymbol.POWER_POSE
        assert results[-1].state is SessionState.PLAYBACK_UNDERWAY
        assert len(player.started) == 1
        assert player.aborts == 0


class TestCancel:
    """The cancel pose."""

    def test_cancel_aborts_playback(self, session, player):
        make_ready(session)
        hold(session, POWER_POSE, 16)

        results = hold(session, CANCEL, 15)

        assert results[-1].gesture is GestureSymbol.CANCEL
        assert player.aborts == 1
        # State only changes once the player reports completion
        assert session.state is SessionState.PLAYBACK_UNDERWAY

        player.is_finished = True
        assert session.step(1, joints_for(NOTHING)).state is SessionState.READY

    def test_cancel_does_not_start_playback(self, session, player):
        make_ready(session)

        results = hold(session, CANCEL, 15)

        assert results[-1].gesture is GestureSymbol.CANCEL
        assert session.state is SessionState.READY
        assert player.started == []


class TestSkippedTicks:
    """Invalid joint data degrades to "no gesture this tick"."""

    def test_missing_joints(self, session):
        make_ready(session)
        result = session.step(1, None)

        assert result.skipped
        assert result.state is SessionState.READY

    def test_insufficient_joints(self, session):
        make_ready(session)
        hold(session, POWER_POSE, 3)
        before = session.dispatcher.states()

        result = session.step(1, JointFrame.from_points([(0, 0), (1, 1)]))

        assert result.skipped
        assert result.gesture is GestureSymbol.NONE
        assert session.state is SessionState.READY
        assert session.dispatcher.states() == before

    def test_skipped_during_playback(self, session, player):
        make_ready(session)
        hold(session, POWER_POSE, 16)
        player.is_finished = True

        result = session.step(1, JointFrame.from_points([(0, 0)]))

        assert result.skipped
        assert result.state is SessionState.PLAYBACK_UNDERWAY


class TestListeners:

    def test_transitions_reported(self, session):
        seen = []
        session.add_listener(lambda old, new, g: seen.append((old, new, g)))

        make_ready(session)
        hold(session, POWER_POSE, 16)

        assert seen == [
            (SessionState.IDLE, SessionState.READY, GestureSymbol.NONE),
            (SessionState.READY, SessionState.PLAYBACK_START, GestureSymbol.POWER_POSE),
            (SessionState.PLAYBACK_START, SessionState.PLAYBACK_UNDERWAY, GestureSymbol.POWER_POSE),
        ]

    def test_listener_errors_contained(self, session):
        def broken(old, new, gesture):
            raise RuntimeError("boom")

        session.add_listener(broken)
        assert make_ready(session).state is SessionState.READY

    def test_remove_listener(self, session):
        seen = []
        callback = lambda old, new, g: seen.append(new)
        session.add_listener(callback)
        session.remove_listener(callback)

        make_ready(session)
        assert seen == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

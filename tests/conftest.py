"""
Shared test helpers
====================
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from recognition.features import JointFrame, OffsetFeatures

LEFT_SHOULDER = (300, 200)
RIGHT_SHOULDER = (400, 200)


def make_joints(left_x=0, left_y=0, right_x=0, right_y=0) -> JointFrame:
    """
    Build a joint frame whose offset features equal the given values.

    Shoulders sit at fixed positions; hands are placed so that
    shoulder - hand == requested offset.
    """
    lsx, lsy = LEFT_SHOULDER
    rsx, rsy = RIGHT_SHOULDER
    return JointFrame.from_points([
        (lsx - left_x, lsy - left_y),    # left hand
        (rsx - right_x, rsy - right_y),  # right hand
        (350, 100),                      # head
        (350, 400),                      # spine base
        (lsx, lsy),                      # left shoulder
        (rsx, rsy),                      # right shoulder
    ])


# Feature values matching each default pose envelope
POWER_POSE = OffsetFeatures(20, 20, -20, 20)
USAIN = OffsetFeatures(30, -20, -60, 30)
VICTORY = OffsetFeatures(50, 70, -40, 60)
T_POSE = OffsetFeatures(90, 0, -90, -5)
CANCEL = OffsetFeatures(5, 60, 5, 60)
FLAP_BASELINE = OffsetFeatures(0, 0, 0, 10)
FLAP_LOWERED = OffsetFeatures(0, -80, 0, -70)
NOTHING = OffsetFeatures(999, 999, 999, 999)


def joints_for(features: OffsetFeatures) -> JointFrame:
    return make_joints(features.left_x, features.left_y, features.right_x, features.right_y)


class FakePlayer:
    """Records playback calls; tests flip is_finished by hand."""

    def __init__(self):
        self.started = []
        self.aborts = 0
        self.is_finished = True

    def start(self, gesture):
        self.started.append(gesture)
        self.is_finished = False
        return True

    def abort(self):
        self.aborts += 1


class FakeIdentities:
    def __init__(self):
        self.clears = 0

    def clear(self):
        self.clears += 1


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def identities():
    return FakeIdentities()

"""
Body Animation
==============

Optional kinematic body sway layered over the walking pose: a vertical bob
in step with the gait cycle, and a lean that follows speed and turn rate.
The sway only moves the body relative to its nominal pose, so feet keep
their world positions and only the joint angles change.

Both effects default to zero, in which case the animated frame is the
nominal body frame.
"""

import math
from dataclasses import dataclass

import numpy as np

from legged_py.config import GaitConfig
from legged_py.errors import ConfigurationError
from legged_py.locomotion.body_motion import MotionDelta

# Approach rates (1/s) toward the animation target.
BOB_RATE = 8.0
TILT_RATE = 2.0
SETTLE_RATE = 3.0   # Back to the nominal pose once the body stops

# Lean at a tilt factor of 1: degrees of pitch per m/s of speed, and degrees
# of roll per deg/s of turn rate.
PITCH_PER_SPEED = 0.5
ROLL_PER_TURN_RATE = 0.05


def approach(current: float, target: float, dt: float, rate: float) -> float:
    return current + (target - current) * min(1.0, dt * rate)


@dataclass(frozen=True)
class BodyAnimation:
    """
    Offset of the animated body from its nominal pose.

    :param height: Vertical offset (metres).
    :param pitch: Nose-up rotation about the body X axis (radians).
    :param roll: Right-side-up rotation about the body Z axis (radians).
    """
    height: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    @property
    def rotation(self) -> np.ndarray:
        """Orientation of the animated body in the nominal body frame."""
        cp, sp = np.cos(self.pitch), np.sin(self.pitch)
        cr, sr = np.cos(self.roll), np.sin(self.roll)
        Rx = np.array([[1, 0, 0], [0, cp, sp], [0, -sp, cp]])
        Rz = np.array([[cr, -sr, 0], [sr, cr, 0], [0, 0, 1]])
        return Rx @ Rz

    @property
    def offset(self) -> np.ndarray:
        return np.array([0.0, self.height, 0.0])

    def to_animated(self, point_nominal) -> np.ndarray:
        """Nominal body frame -> animated body frame."""
        return self.rotation.T @ (np.asarray(point_nominal, dtype=float) - self.offset)

    def to_nominal(self, point_animated) -> np.ndarray:
        """Animated body frame -> nominal body frame."""
        return self.offset + self.rotation @ np.asarray(point_animated, dtype=float)


class BodyAnimator:

    def __init__(self, config: GaitConfig):
        for name in ('body_oscillation_height', 'body_tilt_factor'):
            value = getattr(config, name)
            if not (math.isfinite(value) and value >= 0.0):
                raise ConfigurationError(f"Gait {name} must be a non-negative number, got {value}")
        self.config = config
        self.state = BodyAnimation()

    @property
    def enabled(self) -> bool:
        return self.config.body_oscillation_height > 0.0 or self.config.body_tilt_factor > 0.0

    def target(self, motion: MotionDelta, cycle_fraction: float) -> BodyAnimation:
        """Pose the body sways toward at this point of the gait cycle."""
        if not motion.moving:
            return BodyAnimation()
        cfg = self.config
        height = math.sin(cycle_fraction * 2.0 * math.pi) * cfg.body_oscillation_height
        pitch = math.radians(motion.speed * PITCH_PER_SPEED * cfg.body_tilt_factor)
        roll = motion.turn_rate * ROLL_PER_TURN_RATE * cfg.body_tilt_factor
        return BodyAnimation(height, pitch, roll)

    def update(self, motion: MotionDelta, cycle_fraction: float, dt: float) -> BodyAnimation:
        if not self.enabled:
            return self.state

        goal = self.target(motion, cycle_fraction)
        bob_rate, tilt_rate = (BOB_RATE, TILT_RATE) if motion.moving else (SETTLE_RATE, SETTLE_RATE)
        current = self.state
        self.state = BodyAnimation(approach(current.height, goal.height, dt, bob_rate),
                                   approach(current.pitch, goal.pitch, dt, tilt_rate),
                                   approach(current.roll, goal.roll, dt, tilt_rate))
        return self.state

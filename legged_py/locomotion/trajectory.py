"""
Foot Trajectory Generator
=========================

Produces the next foot target of every leg in the body frame.

- Stance: the foot stays where it is in the world while the body moves over
  it. Translation is compensated exactly; rotation is compensated with a
  tangential correction when the body is turning in place.
- Swing: the foot travels from a lift-off point behind its default position
  to the default position along an eased path, with a half-sine lift.
- Idle: the foot relaxes toward its default position with a first-order lag.

``stride_factor`` sizes the stride for a leg that is on the ground for half
of the cycle. Legs that stay down longer (the sequential walk, or a raised
duty factor) get a proportionally longer stride so the swing spans exactly
the distance covered in stance. The extra length is placed ahead of the
default position, so a stance foot never ends further behind it than it
would at half duty.
"""

import math
from dataclasses import dataclass

import numpy as np

from legged_py.config import GaitConfig
from legged_py.errors import ConfigurationError
from legged_py.locomotion.body_motion import MotionDelta
from legged_py.locomotion.gait_scheduler import LegPhase

UP = np.array([0.0, 1.0, 0.0])
FORWARD = np.array([0.0, 0.0, 1.0])

# Stance fraction the stride factor is calibrated for.
REFERENCE_STANCE_FRACTION = 0.5


def ease_in_out_quad(t: float) -> float:
    return 2.0 * t * t if t < 0.5 else 1.0 - (-2.0 * t + 2.0) ** 2 / 2.0


def swing_progress(phase: float, duty_factor: float = 0.5) -> float:
    """
    Normalises a swing-phase value to [0, 1). With a duty factor of 0.5 this
    is ``(phase * 2) mod 1``.
    """
    return (phase / (1.0 - duty_factor)) % 1.0


def swing_lift(progress: float, step_height: float) -> float:
    """Half-sine lift: zero at lift-off and touch-down, ``step_height`` mid-swing."""
    if progress <= 0.0 or progress >= 1.0:
        return 0.0
    return step_height * math.sin(progress * math.pi)


def horizontal(vector) -> np.ndarray:
    return np.array([vector[0], 0.0, vector[2]])


def stride_scale(stance_fraction: float) -> float:
    return stance_fraction / REFERENCE_STANCE_FRACTION


def touchdown_lead(stance_fraction: float) -> float:
    """Share of the stride that lies ahead of the default position at touch-down."""
    return max(0.0, 1.0 - 1.0 / stride_scale(stance_fraction))


@dataclass(frozen=True)
class FootTarget:
    position: np.ndarray    # Body frame
    lift: float             # Height added above the swing baseline
    stance: bool


class FootTrajectoryGenerator:

    def __init__(self, config: GaitConfig):
        for name in ('step_height', 'stride_factor', 'idle_stride', 'relax_rate'):
            value = getattr(config, name)
            if not (math.isfinite(value) and value >= 0.0):
                raise ConfigurationError(f"Gait {name} must be a non-negative number, got {value}")
        self.config = config

    def is_turning_in_place(self, motion: MotionDelta) -> bool:
        return (abs(motion.speed) < self.config.turn_in_place_speed
                and abs(motion.turn_rate) > self.config.turn_in_place_rate)

    def stride_vector(self, default_position, motion: MotionDelta, cycle_duration: float,
                      stance_fraction: float = REFERENCE_STANCE_FRACTION) -> np.ndarray:
        """
        Body-frame displacement a foot covers during one swing.
        """
        cfg = self.config
        length = cycle_duration * cfg.stride_factor * stride_scale(stance_fraction)

        if abs(motion.speed) > cfg.linear_stride_speed:
            return FORWARD * math.copysign(abs(motion.speed) * length, motion.speed)

        if abs(motion.turn_rate) > cfg.turn_stride_rate:
            radial = horizontal(default_position)
            radius = np.linalg.norm(radial)
            if radius > 1e-9:
                # Tangent to the circle the foot traces around the body centre.
                direction = np.cross(UP, radial / radius) * math.copysign(1.0, motion.turn_rate)
                return direction * radius * abs(motion.turn_rate) * length

        return FORWARD * cfg.idle_stride

    def stance_target(self, previous_position, local_delta, motion: MotionDelta) -> FootTarget:
        """
        :param local_delta: This tick's body displacement expressed in the body frame.
        """
        position = np.asarray(previous_position, dtype=float) - np.asarray(local_delta, dtype=float)

        if self.is_turning_in_place(motion):
            # Points fixed in the world sweep backward around the body centre
            # by the body's rotation: -d(theta) * (up x r).
            radial = horizontal(position)
            radius = np.linalg.norm(radial)
            if radius > 1e-9:
                tangent = np.cross(UP, radial / radius)
                position = position - tangent * motion.rotation_delta * radius

        return FootTarget(position, 0.0, True)

    def swing_target(self, default_position, stride, progress: float, lead: float = 0.0) -> FootTarget:
        """
        :param lead: Fraction of ``stride`` the touch-down point lies ahead of
                     the default position.
        """
        stride = np.asarray(stride, dtype=float)
        touchdown = np.asarray(default_position, dtype=float) + stride * lead
        lift_off = touchdown - stride

        eased = ease_in_out_quad(progress)
        position = lift_off + (touchdown - lift_off) * eased

        lift = swing_lift(progress, self.config.step_height)
        position[1] += lift
        return FootTarget(position, lift, False)

    def idle_target(self, previous_position, default_position, dt: float, stance: bool) -> FootTarget:
        previous_position = np.asarray(previous_position, dtype=float)
        blend = min(1.0, dt * self.config.relax_rate)
        position = previous_position + (np.asarray(default_position, dtype=float) - previous_position) * blend
        return FootTarget(position, 0.0, stance)

    def next_target(self, leg_phase: LegPhase, previous_position, default_position,
                    motion: MotionDelta, local_delta, dt: float, cycle_duration: float) -> FootTarget:
        if not motion.moving:
            return self.idle_target(previous_position, default_position, dt, leg_phase.stance)

        if leg_phase.stance:
            return self.stance_target(previous_position, local_delta, motion)

        stride = self.stride_vector(default_position, motion, cycle_duration, leg_phase.stance_fraction)
        progress = swing_progress(leg_phase.phase, leg_phase.duty_factor)
        return self.swing_target(default_position, stride, progress, touchdown_lead(leg_phase.stance_fraction))

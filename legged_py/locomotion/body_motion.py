"""
Body Motion Integrator
======================

Turns normalised forward/turn commands into body speed, turn rate and pose
change, with separate acceleration and deceleration limits.
"""

import math
from dataclasses import dataclass, field

import numpy as np

from legged_py.config import MotionConfig
from legged_py.errors import ConfigurationError
from legged_py.kinematics.fk import body_to_world, world_to_body


def move_towards(current: float, target: float, max_delta: float) -> float:
    """Steps ``current`` toward ``target`` by at most ``max_delta``."""
    if abs(target - current) <= max_delta:
        return target
    return current + math.copysign(max_delta, target - current)


def clamp_command(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(-1.0, min(1.0, float(value)))


@dataclass
class BodyPose:
    """World pose and velocity state of the body."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    heading: float = 0.0
    speed: float = 0.0
    turn_rate: float = 0.0
    target_speed: float = 0.0
    target_turn_rate: float = 0.0

    @property
    def forward(self) -> np.ndarray:
        return np.array([np.sin(self.heading), 0.0, np.cos(self.heading)])

    def to_world(self, point_body) -> np.ndarray:
        return body_to_world(point_body, self.position, self.heading)

    def to_body(self, point_world) -> np.ndarray:
        return world_to_body(point_world, self.position, self.heading)


@dataclass(frozen=True)
class MotionDelta:
    position_delta: np.ndarray
    rotation_delta: float
    speed: float
    turn_rate: float
    moving: bool


class BodyMotionIntegrator:

    def __init__(self, config: MotionConfig, pose: BodyPose = None):
        for name in ('max_speed', 'max_turn_rate', 'acceleration', 'deceleration', 'turn_acceleration'):
            value = getattr(config, name)
            if not (math.isfinite(value) and value >= 0.0):
                raise ConfigurationError(f"Motion {name} must be a non-negative number, got {value}")
        self.config = config
        self.pose = pose if pose is not None else BodyPose()
        self.moving = False

    def integrate(self, forward_cmd: float, turn_cmd: float, dt: float) -> MotionDelta:
        """
        Advances the body by ``dt`` seconds.

        The heading is updated before the position, so the body moves along
        its new forward axis.
        """
        cfg = self.config
        pose = self.pose

        pose.target_speed = clamp_command(forward_cmd) * cfg.max_speed
        pose.target_turn_rate = clamp_command(turn_cmd) * cfg.max_turn_rate

        if abs(pose.target_speed) > abs(pose.speed):
            pose.speed = move_towards(pose.speed, pose.target_speed, cfg.acceleration * dt)
        else:
            pose.speed = move_towards(pose.speed, pose.target_speed, cfg.deceleration * dt)
        pose.turn_rate = move_towards(pose.turn_rate, pose.target_turn_rate, cfg.turn_acceleration * dt)

        self.moving = abs(pose.speed) > cfg.speed_epsilon or abs(pose.turn_rate) > cfg.turn_epsilon

        rotation_delta = pose.turn_rate * dt
        pose.heading = math.remainder(pose.heading + rotation_delta, math.tau)
        position_delta = pose.forward * pose.speed * dt
        pose.position = pose.position + position_delta

        return MotionDelta(position_delta, rotation_delta, pose.speed, pose.turn_rate, self.moving)

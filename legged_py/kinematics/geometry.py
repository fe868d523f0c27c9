"""
Leg Geometry
============

Immutable description of one 3-DOF leg (hip yaw, femur pitch, tibia pitch)
and where it is mounted on the body.

Coordinate frames (all Y-up):
- Body frame: X right, Y up, Z forward.
- Leg frame: origin at the hip mount, yawed about Y by ``mount_yaw`` so that
  the leg's +Z axis points along its neutral outward direction.

Leg-local X is mirrored for left legs before the hip angle is computed, so a
positive hip angle sweeps the foot rearward on both sides of the body.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

from legged_py.errors import ConfigurationError


class LegSide(Enum):
    LEFT = 'left'
    RIGHT = 'right'

    @property
    def mirror(self) -> float:
        """Sign applied to leg-local X before solving."""
        return -1.0 if self is LegSide.LEFT else 1.0


@dataclass(frozen=True)
class LegGeometry:
    """
    Segment lengths, joint limits and mounting of a single leg.

    Joint limits are (min, max) pairs in radians.
    """
    name: str
    hip_length: float
    femur_length: float
    tibia_length: float
    hip_limits: Tuple[float, float]
    femur_limits: Tuple[float, float]
    tibia_limits: Tuple[float, float]
    side: LegSide
    mount_position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    mount_yaw: float = 0.0

    def __post_init__(self):
        for label, length in (('hip', self.hip_length), ('femur', self.femur_length), ('tibia', self.tibia_length)):
            if not math.isfinite(length) or length <= 0.0:
                raise ConfigurationError(f"Leg '{self.name}': {label} length must be positive, got {length}")

        for label, limits in (('hip', self.hip_limits), ('femur', self.femur_limits), ('tibia', self.tibia_limits)):
            if len(limits) != 2:
                raise ConfigurationError(f"Leg '{self.name}': {label} limits must be a (min, max) pair")
            lo, hi = limits
            if not (math.isfinite(lo) and math.isfinite(hi)):
                raise ConfigurationError(f"Leg '{self.name}': {label} limits must be finite")
            if lo > hi:
                raise ConfigurationError(f"Leg '{self.name}': {label} limits are inverted ({lo} > {hi})")

        if len(self.mount_position) != 3 or not all(math.isfinite(v) for v in self.mount_position):
            raise ConfigurationError(f"Leg '{self.name}': mount position must be three finite values")
        if not math.isfinite(self.mount_yaw):
            raise ConfigurationError(f"Leg '{self.name}': mount yaw must be finite")

        # Normalise sequences so the dataclass stays hashable and comparable.
        object.__setattr__(self, 'hip_limits', (float(self.hip_limits[0]), float(self.hip_limits[1])))
        object.__setattr__(self, 'femur_limits', (float(self.femur_limits[0]), float(self.femur_limits[1])))
        object.__setattr__(self, 'tibia_limits', (float(self.tibia_limits[0]), float(self.tibia_limits[1])))
        object.__setattr__(self, 'mount_position', tuple(float(v) for v in self.mount_position))

    @property
    def max_reach(self) -> float:
        """Femur pivot to foot distance with the knee fully extended."""
        return self.femur_length + self.tibia_length

    @property
    def min_reach(self) -> float:
        """Femur pivot to foot distance with the knee fully folded."""
        return abs(self.femur_length - self.tibia_length)

    @property
    def mount(self) -> np.ndarray:
        return np.array(self.mount_position, dtype=float)

    @property
    def outward(self) -> np.ndarray:
        """Unit vector of the leg's neutral direction in the body frame."""
        return np.array([np.sin(self.mount_yaw), 0.0, np.cos(self.mount_yaw)])

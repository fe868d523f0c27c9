"""
Ground Adaptation
=================

The controller does not know anything about terrain. It asks a ``GroundQuery``
for the ground height under a horizontal world position and biases the
vertical foot target to sit ``clearance`` above it. A query that finds no
ground under the point is not an error: the foot falls back to a fixed depth
below the body.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple, Union

import numpy as np

from legged_py.config import GroundConfig
from legged_py.errors import ConfigurationError
from legged_py.locomotion.body_motion import BodyPose
from legged_py.locomotion.trajectory import FootTarget

logger = logging.getLogger(__name__)


class GroundQuery(ABC):
    """
    Terrain interface consumed by the controller.
    """

    @abstractmethod
    def query_height(self, x: float, z: float) -> Optional[float]:
        """
        Returns the ground height at world position (x, z), or None when there
        is no ground under that point.
        """
        pass

    def __call__(self, x: float, z: float) -> Optional[float]:
        return self.query_height(x, z)


class FlatGround(GroundQuery):

    def __init__(self, height: float = 0.0):
        self.height = float(height)

    def query_height(self, x, z):
        return self.height


class CallableGround(GroundQuery):
    """Wraps a plain ``f(x, z) -> Optional[float]`` function."""

    def __init__(self, func: Callable[[float, float], Optional[float]]):
        self.func = func

    def query_height(self, x, z):
        return self.func(x, z)


class HeightField(GroundQuery):
    """
    Regular grid of heights sampled with bilinear interpolation.

    ``heights[row, col]`` is the height at ``x = origin[0] + col * spacing``,
    ``z = origin[1] + row * spacing``. Points outside the grid have no ground.
    """

    def __init__(self, heights, origin: Tuple[float, float] = (0.0, 0.0), spacing: float = 1.0):
        heights = np.asarray(heights, dtype=float)
        if heights.ndim != 2 or heights.shape[0] < 2 or heights.shape[1] < 2:
            raise ConfigurationError(f"Height field needs a 2-D grid of at least 2x2 samples, got shape {heights.shape}")
        if not (math.isfinite(spacing) and spacing > 0.0):
            raise ConfigurationError(f"Height field spacing must be positive, got {spacing}")

        self.heights = heights
        self.origin = (float(origin[0]), float(origin[1]))
        self.spacing = float(spacing)

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """(x_min, x_max, z_min, z_max)"""
        rows, cols = self.heights.shape
        x0, z0 = self.origin
        return x0, x0 + (cols - 1) * self.spacing, z0, z0 + (rows - 1) * self.spacing

    def query_height(self, x, z):
        x_min, x_max, z_min, z_max = self.extent
        if not (x_min <= x <= x_max and z_min <= z <= z_max):
            return None

        rows, cols = self.heights.shape
        u = (x - x_min) / self.spacing
        v = (z - z_min) / self.spacing
        col = min(int(u), cols - 2)
        row = min(int(v), rows - 2)
        fu = u - col
        fv = v - row

        h = self.heights
        near = h[row, col] * (1.0 - fu) + h[row, col + 1] * fu
        far = h[row + 1, col] * (1.0 - fu) + h[row + 1, col + 1] * fu
        return float(near * (1.0 - fv) + far * fv)


def as_ground_query(query: Union[GroundQuery, Callable, None]) -> Optional[GroundQuery]:
    if query is None or isinstance(query, GroundQuery):
        return query
    if callable(query):
        return CallableGround(query)
    raise ConfigurationError(f"Ground query must be a GroundQuery or a callable, got {type(query).__name__}")


class GroundAdaptation:
    """
    Biases foot targets onto the terrain reported by a ``GroundQuery``.

    :param fallback_clearance: Depth of the foot below the body origin when
                               the query finds no ground.
    """

    def __init__(self, query: GroundQuery, config: GroundConfig, fallback_clearance: float):
        if not (math.isfinite(config.clearance) and config.clearance >= 0.0):
            raise ConfigurationError(f"Ground clearance must be non-negative, got {config.clearance}")
        if not math.isfinite(fallback_clearance):
            raise ConfigurationError(f"Fallback clearance must be finite, got {fallback_clearance}")
        self.query = as_ground_query(query)
        self.config = config
        self.fallback_clearance = float(fallback_clearance)

    def applies_to(self, target: FootTarget) -> bool:
        return target.stance or not self.config.stance_only

    def foot_height(self, world_x: float, world_z: float, pose: BodyPose) -> float:
        """
        Body-frame height of a planted foot over (world_x, world_z).
        """
        height = self.query.query_height(world_x, world_z)
        if height is None or not math.isfinite(height):
            logger.debug(f"No ground under ({world_x:.3f}, {world_z:.3f}), using fallback clearance")
            return -self.fallback_clearance
        return height + self.config.clearance - pose.position[1]

    def adapt(self, target: FootTarget, pose: BodyPose) -> FootTarget:
        if not self.applies_to(target):
            return target

        world = pose.to_world(target.position)
        position = np.array(target.position, dtype=float)
        position[1] = self.foot_height(world[0], world[2], pose) + target.lift
        return FootTarget(position, target.lift, target.stance)

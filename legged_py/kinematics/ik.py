import numpy as np
from typing import Tuple

from legged_py.kinematics.fk import body_to_leg
from legged_py.kinematics.geometry import LegGeometry

JointAngles = Tuple[float, float, float]

# Femur/tibia used when the target sits on the femur pivot and the planar
# problem has no direction. Clamped to the leg's limits before use.
NEUTRAL_FEMUR_ANGLE = 0.0
NEUTRAL_TIBIA_ANGLE = -np.pi / 2


class LegKinematicsSolver:
    """
    Analytical inverse kinematics for a hip-yaw / femur-pitch / tibia-pitch leg.

    The solver is stateless and total: every input, including unreachable or
    non-finite targets, maps to joint angles inside the leg's limits.
    """

    def __init__(self, epsilon: float = 1e-3):
        self.epsilon = epsilon

    def solve(self, target, geometry: LegGeometry) -> JointAngles:
        """
        Calculates the joint angles for a leg to reach a target in its leg frame.
        """
        target = np.asarray(target, dtype=float)
        if target.shape != (3,) or not np.all(np.isfinite(target)):
            return self._neutral_pose(self._clamp(0.0, geometry.hip_limits), geometry)

        x, y, z = target
        l_femur, l_tibia = geometry.femur_length, geometry.tibia_length

        # Hip yaw in the horizontal plane. Left legs are mirrored so the sign
        # convention is the same on both sides.
        x_mirrored = geometry.side.mirror * x
        hip_angle = self._clamp(np.arctan2(x_mirrored, z), geometry.hip_limits)

        # Undo the hip rotation to get the depth along the leg plane, then
        # move the origin from the hip pivot to the femur pivot.
        depth = x_mirrored * np.sin(hip_angle) + z * np.cos(hip_angle) - geometry.hip_length
        distance = np.hypot(y, depth)

        if distance < self.epsilon:
            return self._neutral_pose(hip_angle, geometry)

        # Keep the law of cosines inside its domain.
        distance = np.clip(distance, geometry.min_reach + self.epsilon, geometry.max_reach - self.epsilon)

        # Angle at the knee, between femur and tibia.
        cos_knee = (l_femur**2 + l_tibia**2 - distance**2) / (2 * l_femur * l_tibia)
        knee_angle = np.arccos(np.clip(cos_knee, -1.0, 1.0))

        # Angle at the femur pivot, between the femur and the line to the foot.
        cos_femur = (l_femur**2 + distance**2 - l_tibia**2) / (2 * l_femur * distance)
        femur_offset = np.arccos(np.clip(cos_femur, -1.0, 1.0))

        elevation = np.arctan2(y, depth)

        # The knee only ever bends downward: tibia is 0 when straight, negative when folded.
        femur_angle = self._clamp(elevation + femur_offset, geometry.femur_limits)
        tibia_angle = self._clamp(-(np.pi - knee_angle), geometry.tibia_limits)

        return float(hip_angle), float(femur_angle), float(tibia_angle)

    def solve_body(self, target_body, geometry: LegGeometry) -> JointAngles:
        """Same as ``solve`` for a target given in the body frame."""
        return self.solve(body_to_leg(target_body, geometry), geometry)

    def reach_distance(self, target, geometry: LegGeometry) -> float:
        """
        Unclamped distance from the femur pivot to a leg-frame target,
        assuming the hip can point straight at it.
        """
        x, y, z = np.asarray(target, dtype=float)
        depth = np.hypot(x, z) - geometry.hip_length
        return float(np.hypot(y, depth))

    def is_reachable(self, target, geometry: LegGeometry) -> bool:
        distance = self.reach_distance(target, geometry)
        return geometry.min_reach + self.epsilon <= distance <= geometry.max_reach - self.epsilon

    def _neutral_pose(self, hip_angle: float, geometry: LegGeometry) -> JointAngles:
        return (float(hip_angle),
                self._clamp(NEUTRAL_FEMUR_ANGLE, geometry.femur_limits),
                self._clamp(NEUTRAL_TIBIA_ANGLE, geometry.tibia_limits))

    @staticmethod
    def _clamp(value: float, limits) -> float:
        return float(np.clip(value, limits[0], limits[1]))

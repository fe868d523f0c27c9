import numpy as np
from typing import Sequence

from legged_py.kinematics.geometry import LegGeometry


def yaw_matrix(angle: float) -> np.ndarray:
    """
    Rotation about +Y. A yaw of ``angle`` turns +Z toward +X.
    """
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, 0.0, s],
                     [0.0, 1.0, 0.0],
                     [-s, 0.0, c]])


def body_to_leg(point_body, geometry: LegGeometry) -> np.ndarray:
    """Expresses a body-frame point in the leg frame of ``geometry``."""
    return yaw_matrix(-geometry.mount_yaw) @ (np.asarray(point_body, dtype=float) - geometry.mount)


def leg_to_body(point_leg, geometry: LegGeometry) -> np.ndarray:
    """Expresses a leg-frame point in the body frame."""
    return geometry.mount + yaw_matrix(geometry.mount_yaw) @ np.asarray(point_leg, dtype=float)


def body_to_world(point_body, body_position, heading: float) -> np.ndarray:
    return np.asarray(body_position, dtype=float) + yaw_matrix(heading) @ np.asarray(point_body, dtype=float)


def world_to_body(point_world, body_position, heading: float) -> np.ndarray:
    return yaw_matrix(-heading) @ (np.asarray(point_world, dtype=float) - np.asarray(body_position, dtype=float))


def leg_fk(angles: Sequence[float], geometry: LegGeometry) -> np.ndarray:
    """
    Calculates the joint chain of a leg in its own frame.

    :param angles: (hip, femur, tibia) in radians. Femur is measured from the
                   horizontal (up positive), tibia relative to the femur
                   (0 is a straight leg, negative bends the knee down).
    :return: 4x3 array of [hip pivot, femur pivot, knee, foot].
    """
    hip_angle, femur_angle, tibia_angle = angles

    # Horizontal direction the leg plane points to after the hip yaw. The
    # mirror undoes the left-leg sign flip applied by the solver.
    direction = np.array([geometry.side.mirror * np.sin(hip_angle), 0.0, np.cos(hip_angle)])
    up = np.array([0.0, 1.0, 0.0])

    hip_pivot = np.zeros(3)
    femur_pivot = hip_pivot + direction * geometry.hip_length

    knee = femur_pivot + geometry.femur_length * (direction * np.cos(femur_angle) + up * np.sin(femur_angle))

    tibia_world_angle = femur_angle + tibia_angle
    foot = knee + geometry.tibia_length * (direction * np.cos(tibia_world_angle) + up * np.sin(tibia_world_angle))

    return np.array([hip_pivot, femur_pivot, knee, foot])


def foot_position(angles: Sequence[float], geometry: LegGeometry) -> np.ndarray:
    """Foot tip of a leg in its own frame."""
    return leg_fk(angles, geometry)[-1]


def body_fk(all_leg_angles, geometries: Sequence[LegGeometry],
            body_position=np.zeros(3), heading: float = 0.0, body_transform=None):
    """
    Calculates the world positions of all joints for every leg.

    Legs without angles are reported as their hip mount only.

    :param body_transform: Optional mapping applied to body-frame points before
                           they are placed in the world, for a body that is
                           tilted or raised relative to its pose.
    """
    def to_world(point):
        if body_transform is not None:
            point = body_transform(point)
        return body_to_world(point, body_position, heading)

    world_leg_points = []
    for i, geometry in enumerate(geometries):
        mount_world = to_world(geometry.mount)

        if not all_leg_angles or all_leg_angles[i] is None:
            world_leg_points.append(np.array([mount_world]))
            continue

        local_points = leg_fk(all_leg_angles[i], geometry)
        leg_world = np.array([to_world(leg_to_body(p, geometry)) for p in local_points])
        world_leg_points.append(leg_world)

    return world_leg_points

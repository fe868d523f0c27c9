import math

import numpy as np
import pytest

from legged_py.config import MotionConfig
from legged_py.errors import ConfigurationError
from legged_py.locomotion.body_motion import BodyMotionIntegrator, BodyPose, clamp_command, move_towards


def test_move_towards_limits_the_step():
    assert move_towards(0.0, 1.0, 0.25) == 0.25
    assert move_towards(0.0, -1.0, 0.25) == -0.25
    assert move_towards(0.9, 1.0, 0.25) == 1.0


@pytest.mark.parametrize("value, expected", [
    (0.5, 0.5), (3.0, 1.0), (-7.0, -1.0), (float('nan'), 0.0), (float('inf'), 0.0),
])
def test_clamp_command(value, expected):
    assert clamp_command(value) == expected


def test_speed_is_rate_limited_with_asymmetric_rates():
    integrator = BodyMotionIntegrator(MotionConfig(max_speed=1.5, acceleration=4.0, deceleration=6.0))

    delta = integrator.integrate(1.0, 0.0, 0.1)
    assert delta.speed == pytest.approx(0.4)
    assert integrator.pose.target_speed == 1.5

    delta = integrator.integrate(0.0, 0.0, 0.01)
    assert delta.speed == pytest.approx(0.34)


def test_speed_reaches_target_without_overshoot():
    integrator = BodyMotionIntegrator(MotionConfig(max_speed=1.0, acceleration=4.0))
    for _ in range(100):
        delta = integrator.integrate(0.5, 0.0, 0.05)
    assert delta.speed == 0.5


def test_turn_rate_uses_turn_acceleration():
    integrator = BodyMotionIntegrator(MotionConfig(turn_acceleration=math.radians(8.0)))
    delta = integrator.integrate(0.0, 1.0, 0.1)
    assert delta.turn_rate == pytest.approx(math.radians(0.8))
    assert delta.rotation_delta == pytest.approx(math.radians(0.8) * 0.1)


def test_position_advances_along_heading():
    integrator = BodyMotionIntegrator(MotionConfig(), BodyPose(heading=math.pi / 2))
    integrator.integrate(1.0, 0.0, 0.1)
    np.testing.assert_allclose(integrator.pose.position, [0.04, 0.0, 0.0], atol=1e-12)


def test_moving_flag_uses_epsilons():
    integrator = BodyMotionIntegrator(MotionConfig(acceleration=0.1, speed_epsilon=0.05))
    assert not integrator.integrate(0.0, 0.0, 0.1).moving
    assert not integrator.integrate(1.0, 0.0, 0.1).moving     # Speed 0.01
    for _ in range(10):
        delta = integrator.integrate(1.0, 0.0, 0.1)
    assert delta.moving


def test_heading_stays_wrapped():
    integrator = BodyMotionIntegrator(MotionConfig(max_turn_rate=3.0, turn_acceleration=100.0))
    for _ in range(200):
        integrator.integrate(0.0, 1.0, 0.1)
    assert -math.pi <= integrator.pose.heading <= math.pi


def test_pose_frame_round_trip():
    pose = BodyPose(position=np.array([1.0, 0.5, 2.0]), heading=0.3)
    point = np.array([0.4, -0.5, 0.9])
    np.testing.assert_allclose(pose.to_body(pose.to_world(point)), point, atol=1e-12)


def test_negative_limits_are_rejected():
    with pytest.raises(ConfigurationError):
        BodyMotionIntegrator(MotionConfig(deceleration=-1.0))

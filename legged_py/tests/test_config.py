import math
from pathlib import Path

import pytest

from legged_py.config import (build_gait_table, build_leg_geometries, hexapod_config, load_config,
                              preset_for, quadruped_config)
from legged_py.errors import ConfigurationError
from legged_py.kinematics.geometry import LegSide

CONFIG_DIR = Path(__file__).resolve().parents[2] / 'configs'


def write_ini(tmp_path, text):
    path = tmp_path / 'body.ini'
    path.write_text(text)
    return str(path)


def test_hexapod_preset_layout():
    config = hexapod_config()
    legs = build_leg_geometries(config)

    assert [leg.name for leg in legs] == ['FR', 'FL', 'MR', 'ML', 'RR', 'RL']
    assert [leg.side for leg in legs] == [LegSide.RIGHT, LegSide.LEFT] * 3
    assert config.gait_name == 'tripod'
    # Left legs mirror the right ones.
    for right, left in zip(legs[::2], legs[1::2]):
        assert left.mount_position[0] == -right.mount_position[0]
        assert left.mount_yaw == -right.mount_yaw


def test_quadruped_preset_layout():
    config = quadruped_config()
    legs = build_leg_geometries(config)

    assert [leg.name for leg in legs] == ['FR', 'FL', 'BR', 'BL']
    assert legs[0].hip_length == 0.4
    assert config.gait_name == 'trot'
    assert config.fallback_clearance == config.stance.body_height


def test_preset_for_rejects_other_leg_counts():
    assert preset_for(4).leg_count == 4
    with pytest.raises(ConfigurationError):
        preset_for(8)


def test_load_config_applies_overrides(tmp_path):
    path = write_ini(tmp_path, """
[body]
leg_count = 4
body_height = 1.0
tibia_min_deg = -120

[motion]
max_turn_rate_deg = 30

[gait]
name = walk
cycle_duration = 1.2
duty_factor.walk = 0.75
body_tilt_factor = 2.0

[ground]
clearance = 0.02
stance_only = no
""")
    config = load_config(path)

    assert config.leg_count == 4
    assert config.stance.body_height == 1.0
    assert config.stance.tibia_limits == (pytest.approx(math.radians(-120)), 0.0)
    assert config.stance.femur_length == 0.8
    assert config.motion.max_turn_rate == pytest.approx(math.radians(30))
    assert config.gait.name == 'walk'
    assert config.gait.cycle_duration == 1.2
    assert config.gait.body_tilt_factor == 2.0
    assert config.gait.body_oscillation_height == 0.0
    assert config.ground.clearance == 0.02
    assert config.ground.stance_only is False
    assert build_gait_table(config)['walk'].duty_factor == 0.75


def test_empty_file_gives_hexapod_defaults(tmp_path):
    config = load_config(write_ini(tmp_path, ""))
    assert config.leg_count == 6
    assert config.motion.max_speed == hexapod_config().motion.max_speed


@pytest.mark.parametrize("text", [
    "[body]\nfemur_length = long\n",
    "[body]\nleg_count = 5\n",
    "[motion]\nmax_speed = inf\n",
    "[ground]\nstance_only = perhaps\n",
    "this is not an ini file",
])
def test_invalid_files_are_rejected(tmp_path, text):
    with pytest.raises(ConfigurationError):
        load_config(write_ini(tmp_path, text))


def test_missing_file_is_rejected(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / 'missing.ini'))


def test_invalid_lengths_surface_when_building_legs(tmp_path):
    config = load_config(write_ini(tmp_path, "[body]\nfemur_length = -0.5\n"))
    with pytest.raises(ConfigurationError):
        build_leg_geometries(config)


@pytest.mark.parametrize("name, legs", [('hexapod.ini', 6), ('quadruped.ini', 4)])
def test_shipped_configs_load(name, legs):
    config = load_config(str(CONFIG_DIR / name))
    assert config.leg_count == legs
    assert len(build_leg_geometries(config)) == legs

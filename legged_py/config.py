"""
config.py: Configuration objects, presets and INI loading for the locomotion controller.

Every value has a default taken from the reference body designs, so an INI
file only needs to list what it changes. Angles are radians in code and
degrees in INI files.

Example INI:

    [body]
    leg_count = 4
    body_height = 1.0

    [gait]
    name = walk
    cycle_duration = 1.2
    duty_factor.walk = 0.75
"""

from __future__ import annotations
import configparser
import dataclasses
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from legged_py.errors import ConfigurationError
from legged_py.kinematics.geometry import LegGeometry, LegSide
from legged_py.locomotion.gait_base import DEFAULT_GAITS, GaitPattern, default_gait_table

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Configuration dataclasses
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class LegMount:
    """Where a leg attaches to the body (body frame, metres / radians)."""
    name: str
    position: Tuple[float, float, float]
    yaw: float
    side: LegSide


@dataclass
class StanceConfig:
    """Body layout and leg dimensions."""
    mounts: Tuple[LegMount, ...] = ()
    hip_length: float = 0.25
    femur_length: float = 0.45
    tibia_length: float = 0.65
    hip_limits: Tuple[float, float] = (math.radians(-60.0), math.radians(60.0))
    femur_limits: Tuple[float, float] = (math.radians(-90.0), math.radians(90.0))
    tibia_limits: Tuple[float, float] = (math.radians(-135.0), 0.0)
    body_height: float = 0.5    # Body origin above the ground plane
    standoff: float = 0.75      # Horizontal hip pivot to default foot distance

    @property
    def leg_count(self) -> int:
        return len(self.mounts)


@dataclass
class MotionConfig:
    max_speed: float = 1.5
    max_turn_rate: float = math.radians(60.0)
    acceleration: float = 4.0
    deceleration: float = 6.0
    turn_acceleration: float = math.radians(8.0)
    speed_epsilon: float = 0.05
    turn_epsilon: float = math.radians(0.5)
    max_dt: float = 0.1


@dataclass
class GaitConfig:
    name: Optional[str] = None          # None picks the default for the leg count
    cycle_duration: float = 0.8
    step_height: float = 0.25
    stride_factor: float = 0.5
    idle_stride: float = 0.05           # Stride used when neither walking nor turning
    linear_stride_speed: float = 0.1    # Above this speed the stride follows the body axis
    turn_stride_rate: float = math.radians(0.5)
    turn_in_place_speed: float = 0.1    # Below this speed a turning body is turning in place
    turn_in_place_rate: float = math.radians(1.0)
    relax_rate: float = 2.0             # Idle return-to-stance rate (1/s)
    body_oscillation_height: float = 0.0    # Vertical body bob while walking
    body_tilt_factor: float = 0.0           # Lean with speed and turn rate
    duty_factors: Dict[str, float] = field(default_factory=dict)


@dataclass
class GroundConfig:
    clearance: float = 0.05
    fallback_clearance: Optional[float] = None  # None uses the body height
    stance_only: bool = True


@dataclass
class LocomotionConfig:
    """Master configuration container for one legged body."""
    stance: StanceConfig = field(default_factory=StanceConfig)
    motion: MotionConfig = field(default_factory=MotionConfig)
    gait: GaitConfig = field(default_factory=GaitConfig)
    ground: GroundConfig = field(default_factory=GroundConfig)

    @property
    def leg_count(self) -> int:
        return self.stance.leg_count

    @property
    def gait_name(self) -> str:
        return self.gait.name or DEFAULT_GAITS.get(self.leg_count, '')

    @property
    def fallback_clearance(self) -> float:
        if self.ground.fallback_clearance is None:
            return self.stance.body_height
        return self.ground.fallback_clearance


# -----------------------------------------------------------------------------
# Presets
# -----------------------------------------------------------------------------
def _mirrored_mounts(names_right, names_left, positions) -> Tuple[LegMount, ...]:
    """Builds right/left mount pairs from right-side (x, y, z) positions."""
    mounts = []
    for right, left, (x, y, z) in zip(names_right, names_left, positions):
        mounts.append(LegMount(right, (x, y, z), math.atan2(x, z), LegSide.RIGHT))
        mounts.append(LegMount(left, (-x, y, z), math.atan2(-x, z), LegSide.LEFT))
    return tuple(mounts)


def hexapod_config() -> LocomotionConfig:
    """Six legs ordered FR, FL, MR, ML, RR, RL."""
    spread, front, rear, mount_y = 0.65, 0.7, -0.7, -0.05
    mounts = _mirrored_mounts(('FR', 'MR', 'RR'), ('FL', 'ML', 'RL'),
                              [(spread, mount_y, front), (spread, mount_y, 0.0), (spread, mount_y, rear)])
    return LocomotionConfig(stance=StanceConfig(mounts=mounts))


def quadruped_config() -> LocomotionConfig:
    """Four legs ordered FR, FL, BR, BL."""
    half_width, half_length = 0.4, 0.75
    mounts = (
        LegMount('FR', (half_width, 0.0, half_length), math.radians(45.0), LegSide.RIGHT),
        LegMount('FL', (-half_width, 0.0, half_length), math.radians(-45.0), LegSide.LEFT),
        LegMount('BR', (half_width, 0.0, -half_length), math.radians(135.0), LegSide.RIGHT),
        LegMount('BL', (-half_width, 0.0, -half_length), math.radians(-135.0), LegSide.LEFT),
    )
    stance = StanceConfig(mounts=mounts, hip_length=0.4, femur_length=0.8, tibia_length=1.0,
                          body_height=1.1, standoff=0.9)
    motion = MotionConfig(max_speed=1.0, max_turn_rate=math.radians(40.0))
    gait = GaitConfig(cycle_duration=1.4)
    return LocomotionConfig(stance=stance, motion=motion, gait=gait)


PRESETS = {6: hexapod_config, 4: quadruped_config}


def preset_for(leg_count: int) -> LocomotionConfig:
    try:
        return PRESETS[leg_count]()
    except KeyError:
        raise ConfigurationError(f"No preset for a {leg_count}-legged body (expected 4 or 6)") from None


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------
def build_leg_geometries(config: LocomotionConfig) -> List[LegGeometry]:
    stance = config.stance
    return [
        LegGeometry(
            name=mount.name,
            hip_length=stance.hip_length,
            femur_length=stance.femur_length,
            tibia_length=stance.tibia_length,
            hip_limits=stance.hip_limits,
            femur_limits=stance.femur_limits,
            tibia_limits=stance.tibia_limits,
            side=mount.side,
            mount_position=mount.position,
            mount_yaw=mount.yaw,
        )
        for mount in stance.mounts
    ]


def build_gait_table(config: LocomotionConfig) -> Dict[str, GaitPattern]:
    """Built-in gaits for the leg count with configured duty factors applied."""
    table = default_gait_table(config.leg_count)
    for name, duty in config.gait.duty_factors.items():
        if name not in table:
            raise ConfigurationError(f"Duty factor given for unknown gait '{name}'")
        table[name] = dataclasses.replace(table[name], duty_factor=duty)
    return table


# -----------------------------------------------------------------------------
# Load configuration
# -----------------------------------------------------------------------------
def _get_float(cfg, section, key, fallback):
    try:
        value = cfg.getfloat(section, key, fallback=fallback)
    except ValueError as e:
        raise ConfigurationError(f"[{section}] {key}: {e}") from e
    if value is not None and not math.isfinite(value):
        raise ConfigurationError(f"[{section}] {key}: value must be finite")
    return value


def _get_degrees(cfg, section, key, fallback_rad):
    value = _get_float(cfg, section, key, None)
    return fallback_rad if value is None else math.radians(value)


def _get_limits(cfg, section, joint, fallback):
    return (_get_degrees(cfg, section, f'{joint}_min_deg', fallback[0]),
            _get_degrees(cfg, section, f'{joint}_max_deg', fallback[1]))


def load_config(config_path: str) -> LocomotionConfig:
    """
    Load a LocomotionConfig from an INI file.

    The ``[body] leg_count`` key selects the preset the file is applied on top
    of (6 when absent).
    """
    if not os.path.isfile(config_path):
        raise ConfigurationError(f"Config file not found: {config_path}")

    cfg = configparser.ConfigParser()
    try:
        cfg.read(config_path)
    except configparser.Error as e:
        raise ConfigurationError(f"Could not parse {config_path}: {e}") from e

    try:
        leg_count = cfg.getint('body', 'leg_count', fallback=6)
    except ValueError as e:
        raise ConfigurationError(f"[body] leg_count: {e}") from e
    config = preset_for(leg_count)

    # [body]
    s = config.stance
    s.hip_length = _get_float(cfg, 'body', 'hip_length', s.hip_length)
    s.femur_length = _get_float(cfg, 'body', 'femur_length', s.femur_length)
    s.tibia_length = _get_float(cfg, 'body', 'tibia_length', s.tibia_length)
    s.body_height = _get_float(cfg, 'body', 'body_height', s.body_height)
    s.standoff = _get_float(cfg, 'body', 'standoff', s.standoff)
    s.hip_limits = _get_limits(cfg, 'body', 'hip', s.hip_limits)
    s.femur_limits = _get_limits(cfg, 'body', 'femur', s.femur_limits)
    s.tibia_limits = _get_limits(cfg, 'body', 'tibia', s.tibia_limits)

    # [motion]
    m = config.motion
    m.max_speed = _get_float(cfg, 'motion', 'max_speed', m.max_speed)
    m.max_turn_rate = _get_degrees(cfg, 'motion', 'max_turn_rate_deg', m.max_turn_rate)
    m.acceleration = _get_float(cfg, 'motion', 'acceleration', m.acceleration)
    m.deceleration = _get_float(cfg, 'motion', 'deceleration', m.deceleration)
    m.turn_acceleration = _get_degrees(cfg, 'motion', 'turn_acceleration_deg', m.turn_acceleration)
    m.speed_epsilon = _get_float(cfg, 'motion', 'speed_epsilon', m.speed_epsilon)
    m.turn_epsilon = _get_degrees(cfg, 'motion', 'turn_epsilon_deg', m.turn_epsilon)
    m.max_dt = _get_float(cfg, 'motion', 'max_dt', m.max_dt)

    # [gait]
    g = config.gait
    g.name = cfg.get('gait', 'name', fallback=g.name)
    g.cycle_duration = _get_float(cfg, 'gait', 'cycle_duration', g.cycle_duration)
    g.step_height = _get_float(cfg, 'gait', 'step_height', g.step_height)
    g.stride_factor = _get_float(cfg, 'gait', 'stride_factor', g.stride_factor)
    g.idle_stride = _get_float(cfg, 'gait', 'idle_stride', g.idle_stride)
    g.relax_rate = _get_float(cfg, 'gait', 'relax_rate', g.relax_rate)
    g.body_oscillation_height = _get_float(cfg, 'gait', 'body_oscillation_height', g.body_oscillation_height)
    g.body_tilt_factor = _get_float(cfg, 'gait', 'body_tilt_factor', g.body_tilt_factor)
    g.linear_stride_speed = _get_float(cfg, 'gait', 'linear_stride_speed', g.linear_stride_speed)
    g.turn_stride_rate = _get_degrees(cfg, 'gait', 'turn_stride_rate_deg', g.turn_stride_rate)
    g.turn_in_place_speed = _get_float(cfg, 'gait', 'turn_in_place_speed', g.turn_in_place_speed)
    g.turn_in_place_rate = _get_degrees(cfg, 'gait', 'turn_in_place_rate_deg', g.turn_in_place_rate)
    if cfg.has_section('gait'):
        for key in cfg.options('gait'):
            if key.startswith('duty_factor.'):
                g.duty_factors[key.split('.', 1)[1]] = _get_float(cfg, 'gait', key, None)

    # [ground]
    gr = config.ground
    gr.clearance = _get_float(cfg, 'ground', 'clearance', gr.clearance)
    gr.fallback_clearance = _get_float(cfg, 'ground', 'fallback_clearance', gr.fallback_clearance)
    try:
        gr.stance_only = cfg.getboolean('ground', 'stance_only', fallback=gr.stance_only)
    except ValueError as e:
        raise ConfigurationError(f"[ground] stance_only: {e}") from e

    logger.info(f"Loaded {leg_count}-legged configuration from {config_path}")
    return config

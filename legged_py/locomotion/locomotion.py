import logging
import math
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from legged_py.config import (LocomotionConfig, build_gait_table, build_leg_geometries,
                              preset_for)
from legged_py.errors import ConfigurationError
from legged_py.kinematics.fk import body_to_leg, foot_position, leg_to_body, yaw_matrix
from legged_py.kinematics.geometry import LegGeometry
from legged_py.kinematics.ik import JointAngles, LegKinematicsSolver
from legged_py.locomotion.body_animation import BodyAnimation, BodyAnimator
from legged_py.locomotion.body_motion import BodyMotionIntegrator, BodyPose
from legged_py.locomotion.gait_base import DEFAULT_GAITS, GaitPattern, default_gait_table
from legged_py.locomotion.gait_scheduler import GaitScheduler, LegPhase
from legged_py.locomotion.ground import GroundAdaptation, GroundQuery
from legged_py.locomotion.trajectory import FootTarget, FootTrajectoryGenerator

logger = logging.getLogger(__name__)

SUPPORTED_LEG_COUNTS = (4, 6)


@dataclass
class LegState:
    leg: int
    name: str
    foot_target: np.ndarray     # Body frame
    joint_angles: JointAngles
    group: int
    phase: float
    stance: bool
    grounded: bool
    lift: float = 0.0


@dataclass(frozen=True)
class PerLegOutput:
    leg: int
    hip_angle: float
    femur_angle: float
    tibia_angle: float
    foot_world_position: np.ndarray

    @property
    def angles(self) -> JointAngles:
        return self.hip_angle, self.femur_angle, self.tibia_angle


class LocomotionController:
    """
    Runs one kinematic walking controller for a 4- or 6-legged body.

    Every ``tick`` integrates the body motion, advances the gait clock, moves
    each foot target along its stance or swing path and solves the leg IK.
    All state is owned here and changes only inside ``tick``, ``change_gait``
    and ``adapt_to_ground``.

    :param legs: Leg geometries, in the leg order the gait table uses.
    :param gait_table: Gait name -> GaitPattern. Defaults to the built-in
                       gaits for the leg count.
    :param initial_gait: Defaults to the configured gait, then tripod (6 legs)
                         or trot (4 legs), then the first gait of the table.
    :param ground: Optional GroundQuery (or ``f(x, z)`` callable) applied
                   on every tick.
    """

    def __init__(self, legs: Sequence[LegGeometry], gait_table: Optional[Mapping[str, GaitPattern]] = None,
                 initial_gait: Optional[str] = None, config: Optional[LocomotionConfig] = None,
                 ground: Optional[GroundQuery] = None):
        self.legs = tuple(legs)
        leg_count = len(self.legs)
        if leg_count not in SUPPORTED_LEG_COUNTS:
            raise ConfigurationError(f"Expected 4 or 6 legs, got {leg_count}")
        if any(not isinstance(leg, LegGeometry) for leg in self.legs):
            raise ConfigurationError("Every leg must be a LegGeometry")

        self.config = config if config is not None else preset_for(leg_count)
        if self.config.leg_count and self.config.leg_count != leg_count:
            raise ConfigurationError(
                f"Configuration describes {self.config.leg_count} legs but {leg_count} geometries were given")

        if gait_table is None:
            gait_table = build_gait_table(self.config) if self.config.leg_count else default_gait_table(leg_count)
        if initial_gait is None:
            initial_gait = self.config.gait.name or DEFAULT_GAITS.get(leg_count)
            if initial_gait not in gait_table and not self.config.gait.name:
                initial_gait = next(iter(gait_table), None)

        self.solver = LegKinematicsSolver()
        self.scheduler = GaitScheduler(leg_count, gait_table, initial_gait, self.config.gait.cycle_duration)
        self.integrator = BodyMotionIntegrator(self.config.motion,
                                               BodyPose(position=np.array([0.0, self.config.stance.body_height, 0.0])))
        self.trajectory = FootTrajectoryGenerator(self.config.gait)
        self.animator = BodyAnimator(self.config.gait)

        max_dt = self.config.motion.max_dt
        if not (math.isfinite(max_dt) and max_dt > 0.0):
            raise ConfigurationError(f"max_dt must be positive, got {max_dt}")

        self._ground = None
        if ground is not None:
            self.set_ground(ground)

        self.default_foot_positions = [self._default_foot(leg) for leg in self.legs]
        self._leg_states = self._initial_states()

        logger.info(f"Locomotion controller ready: {leg_count} legs, gait '{self.gait}'")

    @classmethod
    def from_config(cls, config: LocomotionConfig, ground: Optional[GroundQuery] = None) -> 'LocomotionController':
        return cls(build_leg_geometries(config), build_gait_table(config), config.gait_name, config, ground)

    # --- Setup helpers ---

    def _default_foot(self, leg: LegGeometry) -> np.ndarray:
        foot = leg.mount + leg.outward * self.config.stance.standoff
        foot[1] = -self.config.stance.body_height
        if not self.solver.is_reachable(body_to_leg(foot, leg), leg):
            logger.warning(f"Default foot position of leg '{leg.name}' is outside its reach and will be clamped")
        return foot

    def _initial_states(self) -> List[LegState]:
        states = []
        for phase, leg, default in zip(self.scheduler.phases(), self.legs, self.default_foot_positions):
            target = default.copy()
            states.append(LegState(phase.leg, leg.name, target, self._solve(target, leg),
                                   phase.group, phase.phase, phase.stance, phase.grounded))
        return states

    # --- Introspection ---

    @property
    def pose(self) -> BodyPose:
        return self.integrator.pose

    @property
    def leg_states(self) -> Tuple[LegState, ...]:
        return tuple(self._leg_states)

    @property
    def gait(self) -> str:
        return self.scheduler.gait

    @property
    def available_gaits(self) -> Tuple[str, ...]:
        return self.scheduler.available_gaits

    @property
    def cycle_timer(self) -> float:
        return self.scheduler.cycle_timer

    @property
    def is_moving(self) -> bool:
        return self.integrator.moving

    @property
    def body_animation(self) -> BodyAnimation:
        """Current bob and lean of the body relative to its pose."""
        return self.animator.state

    def body_to_world(self, point_body) -> np.ndarray:
        """Places a point of the (animated) body frame in the world."""
        if self.animator.enabled:
            point_body = self.animator.state.to_nominal(point_body)
        return self.pose.to_world(point_body)

    @property
    def ground(self) -> Optional[GroundAdaptation]:
        return self._ground

    def set_ground(self, query: Optional[GroundQuery]):
        """Installs (or with None removes) the ground query applied on every tick."""
        if query is None:
            self._ground = None
            return
        self._ground = GroundAdaptation(query, self.config.ground, self.config.fallback_clearance)

    # --- Commands ---

    def change_gait(self, gait: str) -> bool:
        changed = self.scheduler.change_gait(gait)
        if changed:
            self._sync_phases(self.scheduler.phases())
        return changed

    def clamp_dt(self, dt: float) -> float:
        max_dt = self.config.motion.max_dt
        try:
            value = float(dt)
        except (TypeError, ValueError):
            value = math.nan
        if not math.isfinite(value):
            logger.debug(f"Non-finite dt {dt!r} replaced by 0")
            return 0.0
        if value < 0.0 or value > max_dt:
            clamped = min(max(value, 0.0), max_dt)
            logger.debug(f"dt {value:.4f} clamped to {clamped:.4f}")
            return clamped
        return value

    def tick(self, dt: float, forward_cmd: float = 0.0, turn_cmd: float = 0.0) -> List[PerLegOutput]:
        """
        Advances the controller by ``dt`` seconds.

        :param forward_cmd: Normalised forward speed command in [-1, 1].
        :param turn_cmd: Normalised turn rate command in [-1, 1]. Positive turns
                         the body toward +X (clockwise seen from above).
        :return: Joint angles and achieved foot world position of every leg.
        """
        dt = self.clamp_dt(dt)

        motion = self.integrator.integrate(forward_cmd, turn_cmd, dt)
        phases = self.scheduler.advance(dt)
        self.animator.update(motion, self.scheduler.cycle_fraction(), dt)

        # Body displacement of this tick, seen from the body's new heading.
        local_delta = yaw_matrix(-self.pose.heading) @ motion.position_delta
        cycle_duration = self.scheduler.cycle_duration

        for state, phase, leg, default in zip(self._leg_states, phases, self.legs, self.default_foot_positions):
            target = self.trajectory.next_target(phase, state.foot_target, default, motion,
                                                 local_delta, dt, cycle_duration)
            if self._ground is not None:
                target = self._ground.adapt(target, self.pose)
            self._apply(state, leg, target)

        self._sync_phases(phases)
        return self.outputs()

    def adapt_to_ground(self, query: Optional[GroundQuery] = None) -> List[PerLegOutput]:
        """
        Applies ground adaptation to the current foot targets once, outside
        the regular tick. Uses ``query`` or the installed ground query.
        """
        if query is None:
            if self._ground is None:
                raise ConfigurationError("No ground query given and none installed")
            adaptation = self._ground
        else:
            adaptation = GroundAdaptation(query, self.config.ground, self.config.fallback_clearance)

        for state, leg in zip(self._leg_states, self.legs):
            target = FootTarget(state.foot_target, state.lift, state.stance)
            self._apply(state, leg, adaptation.adapt(target, self.pose))
        return self.outputs()

    # --- Output ---

    def _solve(self, target, leg: LegGeometry) -> JointAngles:
        # Foot targets live in the nominal body frame, the legs hang off the animated one.
        if self.animator.enabled:
            target = self.animator.state.to_animated(target)
        return self.solver.solve_body(target, leg)

    def _apply(self, state: LegState, leg: LegGeometry, target: FootTarget):
        state.foot_target = target.position
        state.lift = target.lift
        state.joint_angles = self._solve(target.position, leg)

    def _sync_phases(self, phases: Sequence[LegPhase]):
        for state, phase in zip(self._leg_states, phases):
            state.group = phase.group
            state.phase = phase.phase
            state.stance = phase.stance
            state.grounded = phase.grounded

    def foot_world_positions(self) -> List[np.ndarray]:
        """World position of every foot as actually reached by the solved angles."""
        return [self.body_to_world(leg_to_body(foot_position(state.joint_angles, leg), leg))
                for state, leg in zip(self._leg_states, self.legs)]

    def target_world_positions(self) -> List[np.ndarray]:
        """World position of every foot target, before IK clamping."""
        return [self.pose.to_world(state.foot_target) for state in self._leg_states]

    def outputs(self) -> List[PerLegOutput]:
        return [PerLegOutput(state.leg, *state.joint_angles, foot_world)
                for state, foot_world in zip(self._leg_states, self.foot_world_positions())]


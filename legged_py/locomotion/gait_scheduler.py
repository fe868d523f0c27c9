"""
Gait Scheduler
==============

Drives the gait cycle clock and decides, for every leg, where it is in the
cycle and whether it is in stance or swing.

Phase-offset gaits use ``phase = (timer / cycle_duration + offset) mod 1`` per
group. Sequential gaits (the quadruped walk) split the cycle into one step
window per group and let exactly one group swing at a time.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Mapping, Tuple

from legged_py.errors import ConfigurationError, UnknownGaitError
from legged_py.locomotion.gait_base import GaitPattern, validate_gait_table

logger = logging.getLogger(__name__)

# Cycle fractions are snapped to this many decimals so groups whose offsets
# differ by the duty threshold never round across it together.
PHASE_DECIMALS = 12


@dataclass(frozen=True)
class LegPhase:
    leg: int
    group: int
    phase: float
    stance: bool
    grounded: bool
    duty_factor: float
    stance_fraction: float


class GaitScheduler:

    def __init__(self, leg_count: int, gait_table: Mapping[str, GaitPattern], initial_gait: str,
                 cycle_duration: float = 0.8):
        if not (math.isfinite(cycle_duration) and cycle_duration > 0.0):
            raise ConfigurationError(f"Cycle duration must be positive, got {cycle_duration}")

        self.leg_count = leg_count
        self.cycle_duration = float(cycle_duration)
        self._gait_table = dict(gait_table)
        self._group_tables = validate_gait_table(self._gait_table, leg_count)

        if initial_gait not in self._gait_table:
            raise UnknownGaitError(initial_gait, self._gait_table)

        self.cycle_timer = 0.0
        self._pattern = self._gait_table[initial_gait]
        self._leg_groups = self._group_tables[initial_gait]
        self.step_index = 0

    @property
    def gait(self) -> str:
        return self._pattern.name

    @property
    def pattern(self) -> GaitPattern:
        return self._pattern

    @property
    def available_gaits(self) -> Tuple[str, ...]:
        return tuple(self._gait_table)

    @property
    def leg_groups(self) -> Tuple[int, ...]:
        """Group index of every leg under the active pattern."""
        return self._leg_groups

    def change_gait(self, gait: str) -> bool:
        """
        Switches to another pattern and restarts the cycle. Returns False when
        ``gait`` is already active, in which case nothing changes.
        """
        if gait == self.gait:
            return False
        if gait not in self._gait_table:
            raise UnknownGaitError(gait, self._gait_table)

        self._pattern = self._gait_table[gait]
        self._leg_groups = self._group_tables[gait]
        self.cycle_timer = 0.0
        self.step_index = 0
        logger.info(f"Gait changed to '{gait}'")
        return True

    def advance(self, dt: float) -> List[LegPhase]:
        """Moves the cycle clock forward and returns the phase of every leg."""
        if dt > 0.0:
            self.cycle_timer = (self.cycle_timer + dt) % self.cycle_duration
        return self.phases()

    def cycle_fraction(self) -> float:
        return round(self.cycle_timer / self.cycle_duration, PHASE_DECIMALS)

    def group_phase(self, group: int) -> float:
        return (self.cycle_fraction() + self._pattern.offsets[group]) % 1.0

    def phases(self) -> List[LegPhase]:
        if self._pattern.sequential:
            return self._sequential_phases()

        threshold = self._pattern.stance_threshold
        group_phases = [self.group_phase(g) for g in range(len(self._pattern.groups))]

        result = []
        for leg, group in enumerate(self._leg_groups):
            phase = group_phases[group]
            stance = phase >= threshold
            result.append(LegPhase(leg, group, phase, stance, stance, self._pattern.duty_factor,
                                   self._pattern.stance_fraction))
        return result

    def _sequential_phases(self) -> List[LegPhase]:
        pattern = self._pattern
        num_groups = len(pattern.groups)
        threshold = pattern.stance_threshold
        step_duration = self.cycle_duration / num_groups

        step_index = min(int(self.cycle_timer // step_duration), num_groups - 1)
        progress = min((self.cycle_timer - step_index * step_duration) / step_duration, 1.0)

        if step_index != self.step_index:
            logger.debug(f"Step event: group {step_index} lifts off")
            self.step_index = step_index

        result = []
        for leg, group in enumerate(self._leg_groups):
            if group == step_index:
                phase = progress * threshold
                stance = False
            else:
                # Steps completed since this group last touched down.
                steps_since = (step_index - group) % num_groups
                stance_progress = ((steps_since - 1) + progress) / (num_groups - 1)
                phase = min(threshold + stance_progress * pattern.duty_factor, math.nextafter(1.0, 0.0))
                stance = True
            result.append(LegPhase(leg, group, phase, stance, stance, pattern.duty_factor,
                                   pattern.stance_fraction))
        return result

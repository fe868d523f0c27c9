"""
Gait Patterns
=============

A gait pattern partitions the legs into groups that swing together, each
with a phase offset inside the gait cycle.

Leg numbering used by the built-in tables:
- 6 legs: 0 FR, 1 FL, 2 MR, 3 ML, 4 RR, 5 RL
- 4 legs: 0 FR, 1 FL, 2 BR, 3 BL
"""

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from legged_py.errors import ConfigurationError


@dataclass(frozen=True)
class GaitPattern:
    """
    :param groups: Ordered leg groups. Groups listed first swing first.
    :param offsets: Phase offset of each group in [0, 1). Defaults to i / len(groups).
    :param duty_factor: Fraction of the cycle a leg spends in stance.
    :param sequential: One group at a time steps through its swing in list
                       order instead of following the phase-offset formula.
    """
    name: str
    groups: Tuple[Tuple[int, ...], ...]
    offsets: Optional[Tuple[float, ...]] = None
    duty_factor: float = 0.5
    sequential: bool = False

    def __post_init__(self):
        groups = tuple(tuple(int(leg) for leg in group) for group in self.groups)
        object.__setattr__(self, 'groups', groups)

        if not groups or any(len(group) == 0 for group in groups):
            raise ConfigurationError(f"Gait '{self.name}': every group needs at least one leg")

        if self.offsets is None:
            offsets = tuple(i / len(groups) for i in range(len(groups)))
        else:
            offsets = tuple(float(o) for o in self.offsets)
        if len(offsets) != len(groups):
            raise ConfigurationError(f"Gait '{self.name}': {len(offsets)} offsets for {len(groups)} groups")
        if any(not (0.0 <= o < 1.0) for o in offsets):
            raise ConfigurationError(f"Gait '{self.name}': phase offsets must lie in [0, 1)")
        object.__setattr__(self, 'offsets', offsets)

        if not (math.isfinite(self.duty_factor) and 0.0 < self.duty_factor < 1.0):
            raise ConfigurationError(f"Gait '{self.name}': duty factor must lie in (0, 1), got {self.duty_factor}")
        if self.sequential and len(groups) < 2:
            raise ConfigurationError(f"Gait '{self.name}': a sequential gait needs at least two groups")

    @property
    def stance_threshold(self) -> float:
        """Phases at or above this value are stance."""
        return 1.0 - self.duty_factor

    @property
    def stance_fraction(self) -> float:
        """
        Share of the cycle each leg actually spends on the ground. Sequential
        patterns keep a leg down for every window but its own.
        """
        if self.sequential:
            return (len(self.groups) - 1) / len(self.groups)
        return self.duty_factor

    @property
    def leg_count(self) -> int:
        return sum(len(group) for group in self.groups)

    def leg_groups(self, leg_count: int) -> Tuple[int, ...]:
        """
        Maps every leg to its group index. Raises if the groups are not an exact
        partition of ``range(leg_count)``.
        """
        table = [None] * leg_count
        for group_idx, group in enumerate(self.groups):
            for leg in group:
                if not 0 <= leg < leg_count:
                    raise ConfigurationError(f"Gait '{self.name}': leg {leg} does not exist on a {leg_count}-legged body")
                if table[leg] is not None:
                    raise ConfigurationError(f"Gait '{self.name}': leg {leg} belongs to more than one group")
                table[leg] = group_idx

        missing = [leg for leg, group in enumerate(table) if group is None]
        if missing:
            raise ConfigurationError(f"Gait '{self.name}': legs {missing} are not assigned to any group")
        return tuple(table)


HEXAPOD_GAITS = {
    # Two alternating tripods: FR, ML, RR against FL, MR, RL.
    'tripod': GaitPattern('tripod', ((0, 3, 4), (1, 2, 5))),
    # One leg at a time.
    'wave': GaitPattern('wave', ((0,), (1,), (2,), (3,), (4,), (5,))),
    # Three pairs, a third of a cycle apart.
    'ripple': GaitPattern('ripple', ((0, 3), (4, 1), (2, 5))),
}

QUADRUPED_GAITS = {
    # Diagonal pairs.
    'trot': GaitPattern('trot', ((0, 3), (1, 2))),
    # Same-side pairs.
    'pace': GaitPattern('pace', ((0, 2), (1, 3))),
    # Front pair against back pair.
    'bound': GaitPattern('bound', ((0, 1), (2, 3))),
    'walk': GaitPattern('walk', ((0,), (1,), (2,), (3,)), sequential=True),
}

DEFAULT_GAITS = {6: 'tripod', 4: 'trot'}


def default_gait_table(leg_count: int) -> Dict[str, GaitPattern]:
    if leg_count == 6:
        return dict(HEXAPOD_GAITS)
    if leg_count == 4:
        return dict(QUADRUPED_GAITS)
    raise ConfigurationError(f"No built-in gaits for a {leg_count}-legged body (expected 4 or 6)")


def validate_gait_table(gait_table: Mapping[str, GaitPattern], leg_count: int) -> Dict[str, Tuple[int, ...]]:
    """
    Checks every pattern against the leg count and returns the leg -> group
    table of each one.
    """
    if not gait_table:
        raise ConfigurationError("Gait table is empty")

    leg_groups = {}
    for name, pattern in gait_table.items():
        if not isinstance(pattern, GaitPattern):
            raise ConfigurationError(f"Gait '{name}' is not a GaitPattern")
        leg_groups[name] = pattern.leg_groups(leg_count)
    return leg_groups

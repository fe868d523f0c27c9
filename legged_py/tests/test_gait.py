import numpy as np
import pytest

from legged_py.config import GaitConfig, LocomotionConfig, build_gait_table, quadruped_config
from legged_py.errors import ConfigurationError, UnknownGaitError
from legged_py.locomotion.gait_base import (HEXAPOD_GAITS, QUADRUPED_GAITS, GaitPattern,
                                            default_gait_table, validate_gait_table)
from legged_py.locomotion.gait_scheduler import GaitScheduler


def hexapod_scheduler(gait='tripod', cycle=0.8):
    return GaitScheduler(6, HEXAPOD_GAITS, gait, cycle)


def quadruped_scheduler(gait='walk', cycle=1.0):
    return GaitScheduler(4, QUADRUPED_GAITS, gait, cycle)


@pytest.mark.parametrize("table, leg_count", [(HEXAPOD_GAITS, 6), (QUADRUPED_GAITS, 4)])
def test_every_leg_belongs_to_exactly_one_group(table, leg_count):
    for pattern in table.values():
        members = sorted(leg for group in pattern.groups for leg in group)
        assert members == list(range(leg_count))


def test_built_in_tables():
    assert set(default_gait_table(6)) == {'tripod', 'wave', 'ripple'}
    assert set(default_gait_table(4)) == {'trot', 'pace', 'bound', 'walk'}
    with pytest.raises(ConfigurationError):
        default_gait_table(5)


def test_default_offsets_are_evenly_spaced():
    assert HEXAPOD_GAITS['ripple'].offsets == pytest.approx((0.0, 1 / 3, 2 / 3))
    assert HEXAPOD_GAITS['tripod'].offsets == (0.0, 0.5)


@pytest.mark.parametrize("groups", [
    ((0, 1, 2), (2, 3, 4, 5)),      # Leg 2 twice
    ((0, 1, 2), (3, 4)),            # Leg 5 missing
    ((0, 1, 2), (3, 4, 5, 6)),      # Leg 6 does not exist
])
def test_invalid_partitions_are_rejected(groups):
    with pytest.raises(ConfigurationError):
        GaitPattern('bad', groups).leg_groups(6)


def test_quadruped_table_does_not_fit_hexapod():
    with pytest.raises(ConfigurationError):
        validate_gait_table(QUADRUPED_GAITS, 6)


@pytest.mark.parametrize("kwargs", [
    {'offsets': (0.0,)},
    {'offsets': (0.0, 1.0)},
    {'duty_factor': 1.0},
    {'duty_factor': 0.0},
])
def test_invalid_pattern_parameters(kwargs):
    with pytest.raises(ConfigurationError):
        GaitPattern('bad', ((0, 1), (2, 3)), **kwargs)


def test_tripod_phase_example():
    scheduler = hexapod_scheduler()

    phases = scheduler.advance(0.0)
    assert scheduler.group_phase(0) == 0.0
    assert scheduler.group_phase(1) == 0.5
    assert [p.stance for p in phases] == [False, True, True, False, False, True]

    phases = scheduler.advance(0.4)
    assert scheduler.group_phase(0) == 0.5
    assert scheduler.group_phase(1) == 0.0
    assert [p.stance for p in phases] == [True, False, False, True, True, False]


def test_tripod_always_has_three_legs_in_stance():
    scheduler = hexapod_scheduler()
    for _ in range(500):
        phases = scheduler.advance(0.0137)
        assert sum(p.stance for p in phases) == 3


def test_timer_wraps_and_phases_stay_in_unit_interval():
    scheduler = hexapod_scheduler('ripple')
    for _ in range(200):
        phases = scheduler.advance(0.031)
        assert 0.0 <= scheduler.cycle_timer < scheduler.cycle_duration
        assert all(0.0 <= p.phase < 1.0 for p in phases)


def test_change_to_same_gait_is_a_no_op():
    scheduler = hexapod_scheduler()
    scheduler.advance(0.3)
    groups = scheduler.leg_groups

    assert scheduler.change_gait('tripod') is False
    assert scheduler.cycle_timer == pytest.approx(0.3)
    assert scheduler.leg_groups == groups


def test_change_gait_resets_timer_and_groups():
    scheduler = hexapod_scheduler()
    scheduler.advance(0.3)

    assert scheduler.change_gait('ripple') is True
    assert scheduler.gait == 'ripple'
    assert scheduler.cycle_timer == 0.0
    assert scheduler.leg_groups == (0, 1, 2, 0, 1, 2)


def test_unknown_gait_is_rejected():
    scheduler = hexapod_scheduler()
    with pytest.raises(UnknownGaitError) as excinfo:
        scheduler.change_gait('gallop')
    assert 'tripod' in str(excinfo.value)
    assert scheduler.gait == 'tripod'

    with pytest.raises(UnknownGaitError):
        GaitScheduler(6, HEXAPOD_GAITS, 'gallop')


def test_non_positive_cycle_duration_is_rejected():
    with pytest.raises(ConfigurationError):
        GaitScheduler(6, HEXAPOD_GAITS, 'tripod', 0.0)


def test_negative_dt_does_not_move_the_clock():
    scheduler = hexapod_scheduler()
    scheduler.advance(0.2)
    scheduler.advance(-0.1)
    assert scheduler.cycle_timer == pytest.approx(0.2)


def test_walk_moves_one_leg_at_a_time_in_order():
    scheduler = quadruped_scheduler()
    expected_swing = [0, 1, 2, 3]

    for step, leg in enumerate(expected_swing):
        phases = scheduler.advance(0.1 if step == 0 else 0.25)
        swinging = [p.leg for p in phases if not p.stance]
        assert swinging == [leg]
        assert scheduler.step_index == leg
        assert [p.grounded for p in phases] == [p.leg != leg for p in phases]


def test_walk_phases_follow_the_step_window():
    scheduler = quadruped_scheduler()
    phases = scheduler.advance(0.125)
    threshold = scheduler.pattern.stance_threshold

    assert phases[0].phase == pytest.approx(0.5 * threshold)
    for p in phases[1:]:
        assert threshold <= p.phase < 1.0


def test_trot_swings_diagonal_pairs():
    scheduler = GaitScheduler(4, QUADRUPED_GAITS, 'trot', 1.0)
    phases = scheduler.advance(0.1)
    assert [p.leg for p in phases if not p.stance] == [0, 3]


def test_duty_factor_moves_the_stance_threshold():
    config = quadruped_config()
    config.gait.duty_factors['pace'] = 0.75
    table = build_gait_table(config)
    scheduler = GaitScheduler(4, table, 'pace', 1.0)

    phases = scheduler.advance(0.3)
    # Group 0 at phase 0.3 is past the 0.25 threshold, group 1 at 0.8 too.
    assert all(p.stance for p in phases)
    assert scheduler.pattern.stance_threshold == pytest.approx(0.25)


def test_duty_factor_for_unknown_gait_is_rejected():
    config = LocomotionConfig(gait=GaitConfig(duty_factors={'gallop': 0.6}))
    config.stance.mounts = quadruped_config().stance.mounts
    with pytest.raises(ConfigurationError):
        build_gait_table(config)


def test_wave_keeps_half_the_legs_down():
    scheduler = hexapod_scheduler('wave')
    counts = {sum(p.stance for p in scheduler.advance(0.013)) for _ in range(200)}
    assert counts == {3}
    assert np.isclose(scheduler.pattern.duty_factor, 0.5)


def test_stance_fraction_of_each_pattern():
    assert QUADRUPED_GAITS['walk'].stance_fraction == pytest.approx(0.75)
    assert QUADRUPED_GAITS['trot'].stance_fraction == 0.5
    assert HEXAPOD_GAITS['wave'].stance_fraction == 0.5

    phases = quadruped_scheduler().advance(0.1)
    assert all(p.stance_fraction == pytest.approx(0.75) for p in phases)

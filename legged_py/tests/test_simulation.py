import csv

import matplotlib
matplotlib.use('Agg')

from legged_py.simulation.run_gait_simulation import BODY_TYPES, main, parse_args  # noqa: E402


def test_parse_args_defaults():
    args = parse_args([])
    assert args.body == 'hexapod'
    assert args.rate == 60.0
    assert set(BODY_TYPES) == {'hexapod', 'quadruped'}


def test_headless_run_writes_csv(tmp_path):
    out = tmp_path / 'run.csv'
    assert main(['--duration', '0.5', '--csv', str(out), '--log-level', 'WARNING']) == 0

    with open(out, newline='') as f:
        rows = list(csv.reader(f))
    header, data = rows[0], rows[1:]

    assert header[:6] == ['time', 'x', 'z', 'heading', 'speed', 'turn_rate']
    assert 'RL_tibia' in header
    assert len(data) == 30
    assert float(data[-1][2]) > 0.0


def test_quadruped_walk_with_ground(tmp_path):
    out = tmp_path / 'walk.csv'
    args = ['--body', 'quadruped', '--gait', 'walk', '--ground', '0.0', '--turn', '0.5',
            '--duration', '1.0', '--rate', '50', '--csv', str(out), '--log-level', 'WARNING']
    assert main(args) == 0

    with open(out, newline='') as f:
        rows = list(csv.reader(f))
    assert len(rows) == 51
    assert 'BL_hip' in rows[0]


def test_unknown_gait_fails_cleanly():
    assert main(['--gait', 'gallop', '--duration', '0.1', '--log-level', 'ERROR']) == 2


def test_plot_file_is_written(tmp_path):
    image = tmp_path / 'legs.png'
    assert main(['--duration', '0.2', '--plot-file', str(image), '--log-level', 'WARNING']) == 0
    assert image.exists()
    assert image.stat().st_size > 0

"""
Headless Gait Simulation
========================

Runs the locomotion controller at a fixed tick rate with a constant command,
optionally writing per-tick joint angles to CSV and plotting the legs.

    legged-sim --body quadruped --gait walk --duration 5 --forward 0.5
    legged-sim --config configs/hexapod.ini --turn 1.0 --csv turn.csv
"""

import argparse
import csv
import logging
import sys

import numpy as np

from legged_py.config import load_config, preset_for
from legged_py.errors import ConfigurationError
from legged_py.kinematics.fk import body_fk
from legged_py.locomotion.ground import FlatGround
from legged_py.locomotion.locomotion import LocomotionController

logger = logging.getLogger(__name__)

BODY_TYPES = {'hexapod': 6, 'quadruped': 4}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Run the kinematic locomotion controller without a renderer.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("--body", choices=sorted(BODY_TYPES), default="hexapod",
                        help="Built-in body to simulate (ignored with --config).")
    parser.add_argument("--config", type=str, default=None, help="INI file to load instead of a built-in body.")
    parser.add_argument("--gait", type=str, default=None, help="Gait to walk with (default depends on the body).")
    parser.add_argument("--duration", type=float, default=5.0, help="Simulated time in seconds.")
    parser.add_argument("--rate", type=float, default=60.0, help="Control ticks per second.")
    parser.add_argument("--forward", type=float, default=0.5, help="Forward command in [-1, 1].")
    parser.add_argument("--turn", type=float, default=0.0, help="Turn command in [-1, 1].")
    parser.add_argument("--ground", type=float, default=None,
                        help="Adapt stance feet to a flat ground at this height.")
    parser.add_argument("--csv", type=str, default=None, help="Write per-tick joint angles to this file.")
    parser.add_argument("--plot", action="store_true", help="Show a live 3D plot of the legs.")
    parser.add_argument("--plot-file", type=str, default=None, help="Save the final frame to an image file.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    if args.duration < 0:
        parser.error("--duration must not be negative")
    if args.rate <= 0:
        parser.error("--rate must be positive")
    return args


def build_controller(args) -> LocomotionController:
    config = load_config(args.config) if args.config else preset_for(BODY_TYPES[args.body])
    if args.gait:
        config.gait.name = args.gait
    ground = FlatGround(args.ground) if args.ground is not None else None
    return LocomotionController.from_config(config, ground=ground)


def csv_header(controller):
    header = ['time', 'x', 'z', 'heading', 'speed', 'turn_rate']
    for leg in controller.legs:
        header += [f'{leg.name}_hip', f'{leg.name}_femur', f'{leg.name}_tibia', f'{leg.name}_stance']
    return header


def csv_row(t, controller, outputs):
    pose = controller.pose
    row = [f'{t:.4f}', f'{pose.position[0]:.5f}', f'{pose.position[2]:.5f}',
           f'{pose.heading:.5f}', f'{pose.speed:.5f}', f'{pose.turn_rate:.5f}']
    for out, state in zip(outputs, controller.leg_states):
        row += [f'{out.hip_angle:.5f}', f'{out.femur_angle:.5f}', f'{out.tibia_angle:.5f}', int(state.stance)]
    return row


def body_outline(controller) -> np.ndarray:
    """Hip mounts in world frame, ordered around the body."""
    mounts = np.array([leg.mount for leg in controller.legs])
    order = np.argsort(np.arctan2(mounts[:, 0], mounts[:, 2]))
    return np.array([controller.body_to_world(mounts[i]) for i in order])


def draw(plotter, controller):
    pose = controller.pose
    angles = [state.joint_angles for state in controller.leg_states]
    chains = body_fk(angles, controller.legs, pose.position, pose.heading, controller.body_animation.to_nominal)
    plotter.update(chains, body_outline(controller), center=pose.position)


def run(controller, duration, rate, forward, turn, writer=None, plotter=None):
    """
    Ticks the controller for ``duration`` seconds and returns the last outputs.
    """
    dt = 1.0 / rate
    steps = int(round(duration * rate))
    outputs = controller.outputs()

    for step in range(1, steps + 1):
        outputs = controller.tick(dt, forward, turn)
        if writer is not None:
            writer.writerow(csv_row(step * dt, controller, outputs))
        if plotter is not None and plotter.interactive:
            draw(plotter, controller)

    return outputs


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        controller = build_controller(args)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    plotter = None
    if args.plot or args.plot_file:
        from legged_py.simulation.live_plotter import LivePlotter
        stance = controller.config.stance
        plotter = LivePlotter(len(controller.legs), extent=2.0 * stance.standoff + 1.0,
                              height=stance.body_height * 1.5, interactive=args.plot)

    csv_file = open(args.csv, 'w', newline='') if args.csv else None
    try:
        writer = None
        if csv_file is not None:
            writer = csv.writer(csv_file)
            writer.writerow(csv_header(controller))

        run(controller, args.duration, args.rate, args.forward, args.turn, writer, plotter)
    finally:
        if csv_file is not None:
            csv_file.close()

    pose = controller.pose
    logger.info(f"Finished at x={pose.position[0]:.3f} z={pose.position[2]:.3f} "
                f"heading={np.degrees(pose.heading):.1f} deg, gait '{controller.gait}'")

    if plotter is not None:
        draw(plotter, controller)
        if args.plot_file:
            plotter.save(args.plot_file)
            logger.info(f"Saved plot to {args.plot_file}")
        plotter.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())

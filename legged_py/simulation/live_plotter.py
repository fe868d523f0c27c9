"""
Live 3D Plotter for the Locomotion Simulation
=============================================

Draws the body outline and the joint chain of every leg with Matplotlib. It
can run in interactive (non-blocking) mode alongside the simulation loop, or
render off-screen and save the last frame to an image.

World Y is up, so points are drawn as (x, z, y) to keep Matplotlib's vertical
axis pointing up.
"""

import matplotlib.pyplot as plt
import numpy as np


def to_plot_axes(points) -> np.ndarray:
    points = np.atleast_2d(np.asarray(points, dtype=float))
    return points[:, [0, 2, 1]]


class LivePlotter:
    def __init__(self, leg_count, extent=2.0, height=1.5, interactive=True):
        """
        Initializes the 3D plot.

        :param leg_count: Number of leg chains to draw.
        :param extent: Half-width of the horizontal view around the body (m).
        :param height: Top of the vertical view (m).
        :param interactive: Show the window and redraw without blocking.
        """
        self.interactive = interactive
        self.extent = extent
        if interactive:
            plt.ion()

        self.fig = plt.figure(figsize=(8, 7))
        self.ax = self.fig.add_subplot(111, projection='3d')

        self.lines = [self.ax.plot([], [], [], 'o-', markersize=3, color=f'C{i % 10}')[0] for i in range(leg_count)]
        self.body_line, = self.ax.plot([], [], [], '-', color='gray')

        self.ax.set_xlabel('X (m)')
        self.ax.set_ylabel('Z (m)')
        self.ax.set_zlabel('Y (m)')
        self.ax.set_title('Kinematic Gait Visualization')
        self.ax.set_zlim([0.0, height])
        self.ax.view_init(elev=20., azim=-75)

        if interactive:
            self.fig.show()

    def update(self, all_leg_points, body_outline=None, center=(0.0, 0.0, 0.0)):
        """
        Updates the plot with new joint positions.

        :param all_leg_points: One (N, 3) array of world joint positions per leg.
        :param body_outline: World positions of the hip mounts, drawn as a closed loop.
        :param center: World point the horizontal view follows.
        """
        for line, leg_points in zip(self.lines, all_leg_points):
            if leg_points is None or len(leg_points) < 2:
                continue
            pts = to_plot_axes(leg_points)
            line.set_data(pts[:, 0], pts[:, 1])
            line.set_3d_properties(pts[:, 2])

        if body_outline is not None and len(body_outline) > 1:
            pts = to_plot_axes(np.vstack([body_outline, body_outline[:1]]))
            self.body_line.set_data(pts[:, 0], pts[:, 1])
            self.body_line.set_3d_properties(pts[:, 2])

        self.ax.set_xlim([center[0] - self.extent, center[0] + self.extent])
        self.ax.set_ylim([center[2] - self.extent, center[2] + self.extent])

        if self.interactive:
            self.fig.canvas.draw()
            self.fig.canvas.flush_events()

    def save(self, path):
        self.fig.savefig(path)

    def close(self):
        plt.close(self.fig)

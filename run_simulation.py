"""
Main Locomotion Simulation Runner
=================================

Thin entry point for the headless gait simulation. Accepts the same options
as the ``legged-sim`` command.
"""

import sys
import os

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from legged_py.simulation.run_gait_simulation import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())

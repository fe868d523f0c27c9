"""
Locomotion Errors
=================

Exceptions raised while configuring the locomotion controller. Nothing in the
per-tick path raises: runtime numeric problems are clamped away instead.
"""


class ConfigurationError(ValueError):
    """Raised when the controller would otherwise run with an invalid setup."""


class UnknownGaitError(ConfigurationError):
    """Raised when a gait name is not part of the configured gait table."""

    def __init__(self, gait, available):
        self.gait = gait
        self.available = tuple(available)
        super().__init__(f"Unknown gait '{gait}'. Available gaits: {', '.join(self.available)}")

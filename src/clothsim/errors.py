"""
Exception taxonomy.

Degenerate springs (zero separation) and degenerate drag directions (zero
relative wind) are not exceptions: the kernels skip them and report counts
through ``StepStats``.
"""


class ClothError(Exception):
    """Base class for all clothsim errors."""


class InvalidConfiguration(ClothError, ValueError):
    """Construction parameters cannot produce a grid."""


class InvalidTimestep(ClothError, ValueError):
    """``step()`` was called with a non-positive or non-finite timestep."""

from typing import NamedTuple

import numpy as np
import numpy.typing as npt

from clothsim.models import Particle, SpringDamper, Triangle

FACE = npt.NDArray[np.int32]
VEC = npt.NDArray[np.float64]
MASK = npt.NDArray[np.bool_]
PROJ = npt.NDArray[np.float32]
VIEW = npt.NDArray[np.float64]
GEN_GRID = tuple[list[Particle], list[SpringDamper], list[Triangle]]


class Geometry(NamedTuple):
    """Row-major per-particle positions/normals plus the triangle index list."""

    positions: VEC
    normals: VEC
    indices: FACE


class StepStats(NamedTuple):
    degenerate_springs: int = 0
    degenerate_drag: int = 0
    collisions: int = 0


class EnergyReport(NamedTuple):
    kinetic: float
    spring: float
    gravitational: float

    @property
    def total(self) -> float:
        return self.kinetic + self.spring + self.gravitational

"""
Cloth Physics Simulation Package

A mass-spring cloth simulation: a square grid of point masses joined by
damped springs, driven by gravity and aerodynamic drag, integrated with
Verlet and resting on a ground plane.
"""

from .config import ClothConfig
from .errors import ClothError, InvalidConfiguration, InvalidTimestep
from .mesh.grid import generate_grid, no_pins, top_corners, top_edge
from .models import Particle, SpringDamper, Triangle, Vector3
from .solver_numpy import ClothGrid, create_cloth
from .types import EnergyReport, Geometry, StepStats

__version__ = "0.1.0"

__all__ = [
    "ClothConfig",
    "ClothError",
    "ClothGrid",
    "EnergyReport",
    "Geometry",
    "InvalidConfiguration",
    "InvalidTimestep",
    "Particle",
    "SpringDamper",
    "StepStats",
    "Triangle",
    "Vector3",
    "create_cloth",
    "generate_grid",
    "no_pins",
    "top_corners",
    "top_edge",
]

# models.py
from __future__ import annotations

from collections.abc import Iterator


class Vector3:
    """Small xyz record used at the API boundary; the solver works on numpy arrays."""

    __slots__ = ["x", "y", "z"]

    def __init__(self, x: float, y: float, z: float) -> None:
        self.x, self.y, self.z = x, y, z

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __repr__(self) -> str:
        return f"Vector3({self.x}, {self.y}, {self.z})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return (self.x, self.y, self.z) == (other.x, other.y, other.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __truediv__(self, scalar: float) -> Vector3:
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def copy(self) -> Vector3:
        return Vector3(self.x, self.y, self.z)


DEFAULT_NORMAL = Vector3(0.0, 1.0, 0.0)


class Particle:
    """Point mass of the cloth grid, addressed by its row-major index."""

    def __init__(
        self,
        x: float,
        y: float,
        z: float,
        mass: float = 1.0,
        fixed: bool = False,
        index: int = 0,
    ) -> None:
        self.position = Vector3(x, y, z)
        self.prev_position = Vector3(x, y, z)
        self.velocity = Vector3(0.0, 0.0, 0.0)
        self.force = Vector3(0.0, 0.0, 0.0)
        self.normal = DEFAULT_NORMAL.copy()
        self.mass = mass
        self.fixed = fixed  # If True, integration and collision never move this particle
        self.index = index

    def acceleration(self) -> Vector3:
        return self.force / self.mass

    def momentum(self) -> Vector3:
        return self.velocity * self.mass


class SpringDamper:
    """Damped linear constraint between particles ``a`` and ``b``."""

    __slots__ = ["a", "b", "spring_constant", "damping_constant", "rest_length", "diagonal"]

    def __init__(
        self,
        a: int,
        b: int,
        rest_length: float,
        spring_constant: float = 1.0,
        damping_constant: float = 1.0,
        diagonal: bool = False,
    ) -> None:
        self.a = a
        self.b = b
        self.rest_length = rest_length
        self.spring_constant = spring_constant
        self.damping_constant = damping_constant
        self.diagonal = diagonal


class Triangle:
    """Face over three particle indices; winding sets the normal direction."""

    __slots__ = ["a", "b", "c"]

    def __init__(self, a: int, b: int, c: int) -> None:
        self.a = a
        self.b = b
        self.c = c

    def __iter__(self) -> Iterator[int]:
        yield self.a
        yield self.b
        yield self.c

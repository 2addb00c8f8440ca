# grid.py
"""
Square cloth grid generation:
1. Row-major particles on a horizontal sheet
2. Structural springs (left/up) and shear springs (both diagonals), one per edge
3. Two triangles per quad with +y normals for the flat sheet
"""

from collections.abc import Callable
import logging
import math
import numbers

from clothsim.config import DEFAULT_INITIAL_HEIGHT, DEFAULT_SPACING, SQRT2
from clothsim.errors import InvalidConfiguration
from clothsim.models import Particle, SpringDamper, Triangle
from clothsim.types import GEN_GRID

logger = logging.getLogger(__name__)

FixedPredicate = Callable[[int, int], bool]


# ===============================
# FIXED PARTICLE POLICIES
# ===============================


def top_edge() -> FixedPredicate:
    """Pin the whole first row."""
    return lambda row, col: row == 0


def top_corners(size: int) -> FixedPredicate:
    """Pin both ends of the first row."""
    return lambda row, col: row == 0 and (col == 0 or col == size - 1)


def no_pins() -> FixedPredicate:
    return lambda row, col: False


# ===============================
# TOPOLOGY
# ===============================


def structural_count(size: int) -> int:
    return 2 * size * (size - 1)


def shear_count(size: int) -> int:
    return 2 * (size - 1) ** 2


def triangle_count(size: int) -> int:
    return 2 * (size - 1) ** 2


def validate_grid_params(size: int, mass: float, spacing: float, initial_height: float) -> None:
    if isinstance(size, bool) or not isinstance(size, numbers.Integral):
        raise InvalidConfiguration(f"size must be an integer, got {size!r}")
    if size < 2:
        raise InvalidConfiguration(f"size must be >= 2, got {size}")
    if not math.isfinite(mass) or mass <= 0:
        raise InvalidConfiguration(f"mass must be > 0, got {mass!r}")
    if not math.isfinite(spacing) or spacing <= 0:
        raise InvalidConfiguration(f"spacing must be > 0, got {spacing!r}")
    if not math.isfinite(initial_height):
        raise InvalidConfiguration(f"initial_height must be finite, got {initial_height!r}")


def generate_grid(
    size: int,
    mass: float,
    spacing: float = DEFAULT_SPACING,
    initial_height: float = DEFAULT_INITIAL_HEIGHT,
    fixed: FixedPredicate | None = None,
    spring_constant: float = 1.0,
    damping_constant: float = 1.0,
) -> GEN_GRID:
    """
    Generate a size x size cloth sheet in the y = initial_height plane.

    Particle (i, j) sits at (j * spacing, initial_height, i * spacing) and
    gets index i * size + j. Springs only reach back to particles that
    already exist, so every edge is emitted exactly once.

    Args:
        size: Grid dimension (>= 2)
        mass: Mass of every particle (> 0)
        spacing: Distance between axis-adjacent particles (> 0)
        initial_height: y coordinate of the sheet
        fixed: Predicate over (row, col) selecting pinned particles,
            defaults to the whole first row
        spring_constant: Stiffness given to every spring
        damping_constant: Damping given to every spring

    Returns:
        (particles, springs, triangles) tuple

    Raises:
        InvalidConfiguration: if size, mass or spacing are out of range
    """
    validate_grid_params(size, mass, spacing, initial_height)
    size = int(size)
    if fixed is None:
        fixed = top_edge()

    particles: list[Particle] = []
    springs: list[SpringDamper] = []
    triangles: list[Triangle] = []

    diagonal_rest = SQRT2 * spacing

    def idx(i: int, j: int) -> int:
        return i * size + j

    def connect(neighbour: int, current: int, diagonal: bool) -> None:
        springs.append(
            SpringDamper(
                neighbour,
                current,
                rest_length=diagonal_rest if diagonal else spacing,
                spring_constant=spring_constant,
                damping_constant=damping_constant,
                diagonal=diagonal,
            )
        )

    for i in range(size):
        for j in range(size):
            current = idx(i, j)
            particles.append(
                Particle(
                    j * spacing,
                    initial_height,
                    i * spacing,
                    mass=mass,
                    fixed=bool(fixed(i, j)),
                    index=current,
                )
            )

            # Springs to the already created neighbours
            if j > 0:
                connect(idx(i, j - 1), current, diagonal=False)
            if i > 0:
                connect(idx(i - 1, j), current, diagonal=False)
            if i > 0 and j > 0:
                connect(idx(i - 1, j - 1), current, diagonal=True)
            if i > 0 and j < size - 1:
                connect(idx(i - 1, j + 1), current, diagonal=True)

            # Quad (i,j) (i,j-1) (i-1,j-1) (i-1,j), wound for +y normals
            if i > 0 and j > 0:
                triangles.append(Triangle(current, idx(i - 1, j - 1), idx(i, j - 1)))
                triangles.append(Triangle(current, idx(i - 1, j), idx(i - 1, j - 1)))

    n_fixed = sum(1 for p in particles if p.fixed)
    logger.debug(
        "Generated %d particles (%d fixed), %d springs, %d triangles",
        len(particles),
        n_fixed,
        len(springs),
        len(triangles),
    )

    return particles, springs, triangles

# solver_numpy.py
"""
Mass-spring cloth solver: damped springs, per-triangle aerodynamic drag,
Verlet integration and single-pass ground collision.

Particle state lives in flat (N, 3) arrays indexed by the row-major particle
index; springs and triangles are index arrays into them.
"""

from collections.abc import Iterable
import logging
import math

from numba import njit, prange  # type: ignore
import numpy as np

from clothsim.config import DEFAULT_INITIAL_HEIGHT, DEFAULT_SPACING, ClothConfig
from clothsim.errors import InvalidConfiguration, InvalidTimestep
from clothsim.mesh.grid import FixedPredicate, generate_grid, top_edge
from clothsim.models import Particle, SpringDamper, Triangle, Vector3
from clothsim.types import FACE, MASK, VEC, EnergyReport, Geometry, StepStats

logger = logging.getLogger(__name__)

EPS_LENGTH = 1e-9
EPS_SPEED = 1e-9

# ===============================
# PHYSICS KERNELS
# ===============================


@njit(fastmath=True, cache=True)  # type: ignore
def accumulate_spring_forces(
    pos: VEC,
    vel: VEC,
    force: VEC,
    spring_i: FACE,
    spring_j: FACE,
    rest_lengths: VEC,
    spring_k: VEC,
    spring_c: VEC,
) -> int:
    """Add spring-damper forces; returns the number of zero-length springs skipped."""
    degenerate = 0
    for s in range(len(spring_i)):
        a = spring_i[s]
        b = spring_j[s]

        ex = pos[b, 0] - pos[a, 0]
        ey = pos[b, 1] - pos[a, 1]
        ez = pos[b, 2] - pos[a, 2]

        length = np.sqrt(ex * ex + ey * ey + ez * ez)
        if length < EPS_LENGTH:
            degenerate += 1
            continue

        ex /= length
        ey /= length
        ez /= length

        v_close = (
            (vel[a, 0] - vel[b, 0]) * ex
            + (vel[a, 1] - vel[b, 1]) * ey
            + (vel[a, 2] - vel[b, 2]) * ez
        )
        f = -spring_k[s] * (rest_lengths[s] - length) - spring_c[s] * v_close

        force[a, 0] += f * ex
        force[a, 1] += f * ey
        force[a, 2] += f * ez
        force[b, 0] -= f * ex
        force[b, 1] -= f * ey
        force[b, 2] -= f * ez

    return degenerate


@njit(fastmath=True, cache=True)  # type: ignore
def accumulate_drag_forces(
    pos: VEC,
    vel: VEC,
    force: VEC,
    faces: FACE,
    face_normals: VEC,
    wind: VEC,
    air_density: float,
    drag_coefficient: float,
) -> int:
    """
    Add aerodynamic drag split equally over each triangle's vertices.

    Writes the unit face normals into ``face_normals``. Returns the number of
    triangles skipped for zero relative wind speed or zero area.
    """
    degenerate = 0
    for f in range(len(faces)):
        i1 = faces[f, 0]
        i2 = faces[f, 1]
        i3 = faces[f, 2]

        ux = pos[i2, 0] - pos[i1, 0]
        uy = pos[i2, 1] - pos[i1, 1]
        uz = pos[i2, 2] - pos[i1, 2]
        wx = pos[i3, 0] - pos[i1, 0]
        wy = pos[i3, 1] - pos[i1, 1]
        wz = pos[i3, 2] - pos[i1, 2]

        nx = uy * wz - uz * wy
        ny = uz * wx - ux * wz
        nz = ux * wy - uy * wx
        cross_len = np.sqrt(nx * nx + ny * ny + nz * nz)
        if cross_len < EPS_LENGTH * EPS_LENGTH:
            degenerate += 1
            continue

        nx /= cross_len
        ny /= cross_len
        nz /= cross_len
        face_normals[f, 0] = nx
        face_normals[f, 1] = ny
        face_normals[f, 2] = nz

        # Relative wind velocity
        vx = (vel[i1, 0] + vel[i2, 0] + vel[i3, 0]) / 3.0 - wind[0]
        vy = (vel[i1, 1] + vel[i2, 1] + vel[i3, 1]) / 3.0 - wind[1]
        vz = (vel[i1, 2] + vel[i2, 2] + vel[i3, 2]) / 3.0 - wind[2]
        speed_sq = vx * vx + vy * vy + vz * vz
        speed = np.sqrt(speed_sq)
        if speed < EPS_SPEED:
            degenerate += 1
            continue

        # Signed cross-sectional area, negative when the wind hits the back face
        area = 0.5 * cross_len * (vx * nx + vy * ny + vz * nz) / speed

        share = -0.5 * air_density * drag_coefficient * speed_sq * area / 3.0
        for k in (i1, i2, i3):
            force[k, 0] += share * nx
            force[k, 1] += share * ny
            force[k, 2] += share * nz

    return degenerate


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def integrate_verlet(
    pos: VEC,
    prev_pos: VEC,
    vel: VEC,
    force: VEC,
    masses: VEC,
    fixed_mask: MASK,
    dt: float,
) -> None:
    """Störmer-Verlet position update with an explicit velocity update."""
    dt_sq = dt * dt
    for i in prange(len(pos)):
        if fixed_mask[i]:
            continue

        inv_m = 1.0 / masses[i]
        for d in range(3):
            acc = force[i, d] * inv_m
            new = 2.0 * pos[i, d] - prev_pos[i, d] + acc * dt_sq
            prev_pos[i, d] = pos[i, d]
            pos[i, d] = new
            vel[i, d] += acc * dt


@njit(fastmath=True, cache=True)  # type: ignore
def compute_vertex_normals(
    pos: VEC,
    faces: FACE,
    face_normals: VEC,
    normals: VEC,
    fixed_mask: MASK,
) -> None:
    """Area-unweighted sum of face normals per vertex, then normalized."""
    for i in range(len(normals)):
        if not fixed_mask[i]:
            normals[i, 0] = 0.0
            normals[i, 1] = 0.0
            normals[i, 2] = 0.0

    for f in range(len(faces)):
        i1 = faces[f, 0]
        i2 = faces[f, 1]
        i3 = faces[f, 2]

        ux = pos[i2, 0] - pos[i1, 0]
        uy = pos[i2, 1] - pos[i1, 1]
        uz = pos[i2, 2] - pos[i1, 2]
        wx = pos[i3, 0] - pos[i1, 0]
        wy = pos[i3, 1] - pos[i1, 1]
        wz = pos[i3, 2] - pos[i1, 2]

        nx = uy * wz - uz * wy
        ny = uz * wx - ux * wz
        nz = ux * wy - uy * wx
        length = np.sqrt(nx * nx + ny * ny + nz * nz)
        if length < EPS_LENGTH * EPS_LENGTH:
            continue

        nx /= length
        ny /= length
        nz /= length
        face_normals[f, 0] = nx
        face_normals[f, 1] = ny
        face_normals[f, 2] = nz

        for k in (i1, i2, i3):
            normals[k, 0] += nx
            normals[k, 1] += ny
            normals[k, 2] += nz

    for i in range(len(normals)):
        length = np.sqrt(normals[i, 0] ** 2 + normals[i, 1] ** 2 + normals[i, 2] ** 2)
        if length > EPS_LENGTH:
            normals[i, 0] /= length
            normals[i, 1] /= length
            normals[i, 2] /= length


@njit(fastmath=True, cache=True)  # type: ignore
def resolve_ground_collisions(
    pos: VEC,
    prev_pos: VEC,
    vel: VEC,
    masses: VEC,
    fixed_mask: MASK,
    ground_y: float,
    restitution: float,
    friction: float,
    dt: float,
) -> int:
    """
    Single-pass impulse response against the plane y = ground_y.

    Returns the number of particles that were below the plane.
    """
    hits = 0
    for i in range(len(pos)):
        if fixed_mask[i] or pos[i, 1] >= ground_y:
            continue
        hits += 1
        m = masses[i]

        # Ground normal is +y, so v_close is simply the y velocity
        v_close = vel[i, 1]
        j_normal = 0.0
        if v_close < 0.0:
            j_normal = -(1.0 + restitution) * m * v_close
        vel[i, 1] += j_normal / m

        # Coulomb friction, never reversing the tangential velocity
        vtx = vel[i, 0]
        vtz = vel[i, 2]
        vt_len = np.sqrt(vtx * vtx + vtz * vtz)
        if vt_len > EPS_SPEED and j_normal > 0.0:
            j_friction = min(friction * j_normal, m * vt_len)
            vel[i, 0] -= j_friction / m * vtx / vt_len
            vel[i, 2] -= j_friction / m * vtz / vt_len

        # Contact point where the last step crossed the plane
        dy = prev_pos[i, 1] - pos[i, 1]
        s = 1.0
        if dy > EPS_LENGTH:
            s = (prev_pos[i, 1] - ground_y) / dy
            s = min(1.0, max(0.0, s))

        cx = prev_pos[i, 0] + s * (pos[i, 0] - prev_pos[i, 0])
        cz = prev_pos[i, 2] + s * (pos[i, 2] - prev_pos[i, 2])

        pos[i, 0] = cx + 0.5 * dt * vel[i, 0]
        pos[i, 1] = ground_y + 0.5 * dt * vel[i, 1]
        pos[i, 2] = cz + 0.5 * dt * vel[i, 2]

        # Keep the implicit Verlet velocity consistent with the response
        for d in range(3):
            prev_pos[i, d] = pos[i, d] - dt * vel[i, d]

    return hits


# ===============================
# HELPERS
# ===============================


def as_vec3(value: Vector3 | Iterable[float] | np.ndarray) -> VEC:
    arr = np.asarray(list(value) if isinstance(value, Vector3) else value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {arr.shape}")
    return arr


# ===============================
# CLOTH GRID
# ===============================


class ClothGrid:
    """
    Square cloth of point masses.

    Owns the particle arena and the fixed spring/triangle topology. Calls to
    ``step`` mutate state in place and must not overlap.
    """

    def __init__(
        self,
        size: int,
        particles: list[Particle],
        springs: list[SpringDamper],
        triangles: list[Triangle],
        config: ClothConfig | None = None,
    ) -> None:
        self.config = (config or ClothConfig()).validate()

        if len(particles) != size * size:
            raise InvalidConfiguration(
                f"expected {size * size} particles for size {size}, got {len(particles)}"
            )
        self.size = size

        # Particle arena
        self.pos = np.array([list(p.position) for p in particles], dtype=np.float64)
        self.prev_pos = np.array([list(p.prev_position) for p in particles], dtype=np.float64)
        self.vel = np.array([list(p.velocity) for p in particles], dtype=np.float64)
        self.normals = np.array([list(p.normal) for p in particles], dtype=np.float64)
        self.force = np.zeros_like(self.pos)
        self.masses = np.array([p.mass for p in particles], dtype=np.float64)
        self.fixed_mask = np.array([p.fixed for p in particles], dtype=np.bool_)

        # Springs
        self.spring_i = np.array([s.a for s in springs], dtype=np.int32)
        self.spring_j = np.array([s.b for s in springs], dtype=np.int32)
        self.rest_lengths = np.array([s.rest_length for s in springs], dtype=np.float64)
        self.spring_k = np.array([s.spring_constant for s in springs], dtype=np.float64)
        self.spring_c = np.array([s.damping_constant for s in springs], dtype=np.float64)
        self.spring_diagonal = np.array([s.diagonal for s in springs], dtype=np.bool_)

        # Triangles, fixed for the lifetime of the grid
        self.faces = np.array([list(t) for t in triangles], dtype=np.int32).reshape(-1, 3)
        self.face_normals = np.zeros((len(self.faces), 3), dtype=np.float64)
        self.face_normals[:, 1] = 1.0

        # Diagnostics
        self.is_exploded = False
        self.steps_stable = 0
        self.time = 0.0

        logger.info(
            "Cloth initialized: %dx%d grid, %d particles (%d fixed), %d springs "
            "(%d structural, %d shear), %d triangles",
            size,
            size,
            len(self.pos),
            int(self.fixed_mask.sum()),
            self.spring_count,
            self.structural_count,
            self.shear_count,
            self.triangle_count,
        )

    # ------------------------
    # Topology
    # ------------------------

    @property
    def particle_count(self) -> int:
        return len(self.pos)

    @property
    def spring_count(self) -> int:
        return len(self.spring_i)

    @property
    def structural_count(self) -> int:
        return int((~self.spring_diagonal).sum())

    @property
    def shear_count(self) -> int:
        return int(self.spring_diagonal.sum())

    @property
    def triangle_count(self) -> int:
        return len(self.faces)

    def index(self, row: int, col: int) -> int:
        if not (0 <= row < self.size and 0 <= col < self.size):
            raise IndexError(f"({row}, {col}) is outside a {self.size}x{self.size} grid")
        return row * self.size + col

    def particle(self, row: int, col: int) -> Particle:
        """Snapshot of particle (row, col); edits do not reach the grid."""
        i = self.index(row, col)
        p = Particle(*self.pos[i], mass=float(self.masses[i]), fixed=bool(self.fixed_mask[i]), index=i)
        p.prev_position = Vector3(*self.prev_pos[i])
        p.velocity = Vector3(*self.vel[i])
        p.force = Vector3(*self.force[i])
        p.normal = Vector3(*self.normals[i])
        return p

    # ------------------------
    # Simulation
    # ------------------------

    def step(
        self,
        dt: float,
        wind: Vector3 | Iterable[float] | np.ndarray = (0.0, 0.0, 0.0),
    ) -> StepStats:
        """Advance the simulation by one timestep."""
        if not math.isfinite(dt) or dt <= 0:
            raise InvalidTimestep(f"dt must be a positive finite number, got {dt!r}")
        if self.is_exploded:
            return StepStats()

        cfg = self.config
        wind_vec = as_vec3(wind)

        # Forces
        self.force.fill(0.0)
        self.force[:, 1] += self.masses * cfg.gravity

        degenerate_springs = accumulate_spring_forces(
            self.pos,
            self.vel,
            self.force,
            self.spring_i,
            self.spring_j,
            self.rest_lengths,
            self.spring_k,
            self.spring_c,
        )
        degenerate_drag = accumulate_drag_forces(
            self.pos,
            self.vel,
            self.force,
            self.faces,
            self.face_normals,
            wind_vec,
            cfg.air_density,
            cfg.drag_coefficient,
        )

        # Integration
        integrate_verlet(
            self.pos,
            self.prev_pos,
            self.vel,
            self.force,
            self.masses,
            self.fixed_mask,
            dt,
        )

        compute_vertex_normals(self.pos, self.faces, self.face_normals, self.normals, self.fixed_mask)

        collisions = resolve_ground_collisions(
            self.pos,
            self.prev_pos,
            self.vel,
            self.masses,
            self.fixed_mask,
            cfg.ground_height,
            cfg.restitution,
            cfg.friction_coefficient,
            dt,
        )

        self.time += dt
        stats = StepStats(int(degenerate_springs), int(degenerate_drag), int(collisions))
        if degenerate_springs or degenerate_drag:
            logger.debug(
                "Skipped %d zero-length springs, %d triangles without drag",
                degenerate_springs,
                degenerate_drag,
            )

        # Check for explosion
        if not np.isfinite(self.pos).all():
            self.is_exploded = True
            logger.warning(
                "Simulation became unstable at t=%.4fs after %d stable steps",
                self.time,
                self.steps_stable,
            )
        else:
            self.steps_stable += 1
            if self.steps_stable % 100 == 0:
                logger.debug("Stable for %d steps | t=%.3fs", self.steps_stable, self.time)

        return stats

    def translate_fixed_particles(self, delta: Vector3 | Iterable[float] | np.ndarray) -> None:
        """Rigidly move every fixed particle; free particles follow through the springs."""
        d = as_vec3(delta)
        self.pos[self.fixed_mask] += d
        self.prev_pos[self.fixed_mask] += d

    # ------------------------
    # Output
    # ------------------------

    def export_geometry(self) -> Geometry:
        """Copy of positions, normals and triangle indices for a renderer."""
        return Geometry(self.pos.copy(), self.normals.copy(), self.faces.copy())

    def energy(self) -> EnergyReport:
        kinetic = 0.5 * float(np.sum(self.masses * np.sum(self.vel**2, axis=1)))

        e = self.pos[self.spring_j] - self.pos[self.spring_i]
        stretch = np.linalg.norm(e, axis=1) - self.rest_lengths
        spring = 0.5 * float(np.sum(self.spring_k * stretch**2))

        height = self.pos[:, 1] - self.config.ground_height
        gravitational = -float(np.sum(self.masses * self.config.gravity * height))

        return EnergyReport(kinetic, spring, gravitational)


def create_cloth(
    size: int,
    mass: float,
    spacing: float = DEFAULT_SPACING,
    initial_height: float = DEFAULT_INITIAL_HEIGHT,
    fixed: FixedPredicate | None = None,
    config: ClothConfig | None = None,
) -> ClothGrid:
    """
    Build a cloth grid.

    Raises:
        InvalidConfiguration: size < 2, non-positive mass or spacing, or an
            invalid ``config``. No grid is returned in that case.
    """
    config = (config or ClothConfig()).validate()
    particles, springs, triangles = generate_grid(
        size,
        mass,
        spacing=spacing,
        initial_height=initial_height,
        fixed=fixed if fixed is not None else top_edge(),
        spring_constant=config.spring_constant,
        damping_constant=config.damping_constant,
    )
    return ClothGrid(int(size), particles, springs, triangles, config)

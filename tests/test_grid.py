import math

import numpy as np
import pytest

from clothsim import (
    ClothConfig,
    InvalidConfiguration,
    create_cloth,
    generate_grid,
    no_pins,
    top_corners,
    top_edge,
)
from clothsim.mesh.grid import shear_count, structural_count, triangle_count


@pytest.mark.parametrize("size", [2, 3, 4, 7, 10])
def test_constraint_and_triangle_counts(size: int) -> None:
    cloth = create_cloth(size, 1.0)

    assert cloth.structural_count == 2 * size * (size - 1) == structural_count(size)
    assert cloth.shear_count == 2 * (size - 1) ** 2 == shear_count(size)
    assert cloth.spring_count == cloth.structural_count + cloth.shear_count
    assert cloth.triangle_count == 2 * (size - 1) ** 2 == triangle_count(size)


def test_two_by_two_wiring() -> None:
    _, springs, triangles = generate_grid(2, 1.0, spacing=1.0)

    edges = [(s.a, s.b, s.diagonal) for s in springs]
    assert edges == [
        (0, 1, False),
        (0, 2, False),
        (1, 2, True),
        (2, 3, False),
        (1, 3, False),
        (0, 3, True),
    ]
    assert [tuple(t) for t in triangles] == [(3, 0, 2), (3, 1, 0)]


@pytest.mark.parametrize("size", [2, 5, 8])
def test_no_duplicate_springs(size: int) -> None:
    _, springs, _ = generate_grid(size, 1.0)
    pairs = {tuple(sorted((s.a, s.b))) for s in springs}
    assert len(pairs) == len(springs)
    assert all(s.a != s.b for s in springs)


def test_particle_layout_is_row_major() -> None:
    particles, _, _ = generate_grid(3, 0.5, spacing=0.25, initial_height=2.0, fixed=no_pins())

    for i in range(3):
        for j in range(3):
            p = particles[i * 3 + j]
            assert p.index == i * 3 + j
            assert tuple(p.position) == pytest.approx((j * 0.25, 2.0, i * 0.25))
            assert tuple(p.prev_position) == tuple(p.position)
            assert p.mass == 0.5
            assert not p.fixed


def test_rest_lengths_match_initial_separation() -> None:
    particles, springs, _ = generate_grid(4, 1.0, spacing=0.3)

    for s in springs:
        expected = 0.3 * math.sqrt(2.0) if s.diagonal else 0.3
        assert s.rest_length == pytest.approx(expected)
        separation = np.linalg.norm(np.subtract(list(particles[s.b].position), list(particles[s.a].position)))
        assert separation == pytest.approx(s.rest_length)


def test_springs_take_config_constants() -> None:
    cloth = create_cloth(3, 1.0, config=ClothConfig(spring_constant=7.0, damping_constant=0.25))
    assert np.all(cloth.spring_k == 7.0)
    assert np.all(cloth.spring_c == 0.25)


def test_flat_sheet_faces_point_up() -> None:
    particles, _, triangles = generate_grid(4, 1.0)

    for t in triangles:
        p1, p2, p3 = (np.array(list(particles[k].position)) for k in t)
        n = np.cross(p2 - p1, p3 - p1)
        n /= np.linalg.norm(n)
        assert n == pytest.approx([0.0, 1.0, 0.0])


def test_every_particle_is_covered_by_a_triangle() -> None:
    _, _, triangles = generate_grid(5, 1.0)
    used = {k for t in triangles for k in t}
    assert used == set(range(25))


def test_fixed_policies() -> None:
    size = 4
    edge, _, _ = generate_grid(size, 1.0, fixed=top_edge())
    corners, _, _ = generate_grid(size, 1.0, fixed=top_corners(size))
    free, _, _ = generate_grid(size, 1.0, fixed=no_pins())
    custom, _, _ = generate_grid(size, 1.0, fixed=lambda row, col: row == col)

    assert [p.index for p in edge if p.fixed] == [0, 1, 2, 3]
    assert [p.index for p in corners if p.fixed] == [0, 3]
    assert not any(p.fixed for p in free)
    assert [p.index for p in custom if p.fixed] == [0, 5, 10, 15]


def test_default_policy_pins_top_edge() -> None:
    cloth = create_cloth(3, 1.0)
    assert cloth.fixed_mask.tolist() == [True, True, True] + [False] * 6


@pytest.mark.parametrize("size", [1, 0, -3])
def test_size_below_two_is_rejected(size: int) -> None:
    with pytest.raises(InvalidConfiguration):
        create_cloth(size, 1.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"mass": 0.0},
        {"mass": -1.0},
        {"mass": float("nan")},
        {"spacing": 0.0},
        {"spacing": -0.1},
        {"initial_height": float("inf")},
    ],
)
def test_bad_grid_parameters_are_rejected(kwargs: dict) -> None:
    params = {"size": 3, "mass": 1.0, **kwargs}
    with pytest.raises(InvalidConfiguration):
        create_cloth(**params)


def test_non_integer_size_is_rejected() -> None:
    with pytest.raises(InvalidConfiguration):
        create_cloth(2.5, 1.0)  # type: ignore[arg-type]


@pytest.mark.parametrize("size", [np.int32(3), np.int64(3), np.uint8(3)])
def test_numpy_integer_size_is_accepted(size) -> None:
    cloth = create_cloth(size, 1.0)

    assert cloth.size == 3
    assert type(cloth.size) is int
    assert cloth.particle_count == 9
    assert cloth.triangle_count == 8


def test_boolean_size_is_rejected() -> None:
    with pytest.raises(InvalidConfiguration):
        create_cloth(True, 1.0)  # type: ignore[arg-type]


def test_invalid_configuration_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        create_cloth(1, 1.0)


def test_bad_config_is_rejected_at_construction() -> None:
    with pytest.raises(InvalidConfiguration):
        create_cloth(3, 1.0, config=ClothConfig(restitution=1.5))

import logging
import math

import pytest

from clothsim import ClothConfig, InvalidConfiguration, Particle, SpringDamper, Triangle, Vector3
from clothsim.logging_config import setup_logging


def test_vector_scaling() -> None:
    a = Vector3(1.0, 2.0, 3.0)

    assert a * 2 == Vector3(2.0, 4.0, 6.0)
    assert a / 2 == Vector3(0.5, 1.0, 1.5)
    assert list(a) == [1.0, 2.0, 3.0]
    assert a != (1.0, 2.0, 3.0)


def test_vector_copy_is_independent() -> None:
    a = Vector3(1.0, 1.0, 1.0)
    b = a.copy()
    b.x = 5.0

    assert a == Vector3(1.0, 1.0, 1.0)
    assert b == Vector3(5.0, 1.0, 1.0)


def test_particle_derived_quantities() -> None:
    p = Particle(0.0, 1.0, 2.0, mass=2.0)
    p.force = Vector3(0.0, -19.6, 4.0)
    p.velocity = Vector3(1.0, 0.0, -1.0)

    assert p.acceleration() == Vector3(0.0, -9.8, 2.0)
    assert p.momentum() == Vector3(2.0, 0.0, -2.0)
    assert p.normal == Vector3(0.0, 1.0, 0.0)
    assert p.prev_position == p.position
    assert p.prev_position is not p.position


def test_records() -> None:
    s = SpringDamper(0, 3, rest_length=math.sqrt(2), diagonal=True)
    t = Triangle(4, 1, 0)

    assert (s.a, s.b, s.spring_constant, s.damping_constant) == (0, 3, 1.0, 1.0)
    assert s.diagonal
    assert list(t) == [4, 1, 0]


def test_default_config_is_valid() -> None:
    config = ClothConfig()
    assert config.validate() is config
    assert config.gravity < 0


@pytest.mark.parametrize(
    "changes",
    [
        {"restitution": 1.5},
        {"restitution": -0.1},
        {"spring_constant": -1.0},
        {"damping_constant": -0.5},
        {"air_density": -1.0},
        {"friction_coefficient": -0.2},
        {"gravity": float("nan")},
        {"drag_coefficient": float("inf")},
    ],
)
def test_invalid_config(changes: dict) -> None:
    with pytest.raises(InvalidConfiguration):
        ClothConfig().replace(**changes).validate()


def test_config_replace_returns_copy() -> None:
    base = ClothConfig()
    windless = base.replace(air_density=0.0)

    assert windless.air_density == 0.0
    assert base.air_density == 1.225
    with pytest.raises(AttributeError):
        base.gravity = 0.0  # type: ignore[misc]


def test_setup_logging_does_not_duplicate_handlers(tmp_path) -> None:
    logger = logging.getLogger("clothsim")
    try:
        setup_logging(logging.DEBUG)
        setup_logging(logging.DEBUG, log_file=str(tmp_path / "cloth.log"))

        assert len(logger.handlers) == 2
        assert logger.level == logging.DEBUG
        logger.debug("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in (tmp_path / "cloth.log").read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)

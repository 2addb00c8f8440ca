import pytest

from clothsim import ClothConfig


@pytest.fixture
def ballistic_config() -> ClothConfig:
    """No springs, no damping, no air: every particle moves on its own."""
    return ClothConfig(spring_constant=0.0, damping_constant=0.0, air_density=0.0)


@pytest.fixture
def conservative_config() -> ClothConfig:
    """Springs only: no gravity, drag or damping."""
    return ClothConfig(spring_constant=10.0, damping_constant=0.0, gravity=0.0, air_density=0.0)

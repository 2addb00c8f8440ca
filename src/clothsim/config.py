"""
Simulation constants.

Every tunable physical constant lives on ``ClothConfig`` so each grid can be
configured independently. The module-level defaults cover the grid layout
parameters passed to ``create_cloth``.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
import math
from typing import Any

from clothsim.errors import InvalidConfiguration

DEFAULT_SPACING: float = 0.1
DEFAULT_INITIAL_HEIGHT: float = 5.0
SQRT2: float = math.sqrt(2.0)


@dataclass(frozen=True)
class ClothConfig:
    spring_constant: float = 1.0
    damping_constant: float = 1.0
    gravity: float = -9.8  # m/s^2 along y
    air_density: float = 1.225  # kg/m^3
    drag_coefficient: float = 1.0
    restitution: float = 0.5
    friction_coefficient: float = 0.3
    ground_height: float = 0.0

    def validate(self) -> ClothConfig:
        """Raise ``InvalidConfiguration`` if any constant is unusable."""
        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value):
                raise InvalidConfiguration(f"{f.name} must be finite, got {value!r}")

        for name in (
            "spring_constant",
            "damping_constant",
            "air_density",
            "drag_coefficient",
            "friction_coefficient",
        ):
            if getattr(self, name) < 0:
                raise InvalidConfiguration(f"{name} must be >= 0, got {getattr(self, name)!r}")

        if not 0.0 <= self.restitution <= 1.0:
            raise InvalidConfiguration(
                f"restitution must be within [0, 1], got {self.restitution!r}"
            )
        return self

    def replace(self, **changes: Any) -> ClothConfig:
        return replace(self, **changes)

"""
Solver Configuration
====================
Tunable parameters shared by both integrators, plus the package defaults.

A `SolverConfig` is passed to a solver at construction and is the only place
the tick length, substep count, global damping and fluid force scale live.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

DEFAULT_DT = 0.055
DEFAULT_SUBSTEPS = 10
DEFAULT_DAMPING = 0.1
FLUID_FORCE_SCALE_RANGE = (0.01, 1.0)


class IntegratorType(StrEnum):
    EXPLICIT = "explicit"
    IMPLICIT = "implicit"


@dataclass
class SolverConfig:
    integrator: IntegratorType = IntegratorType.IMPLICIT
    dt: float = DEFAULT_DT
    substeps: int = DEFAULT_SUBSTEPS
    damping: float = DEFAULT_DAMPING
    fluid_force_scale: float = 1.0

    def __post_init__(self) -> None:
        self.integrator = IntegratorType(self.integrator)
        if self.dt <= 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.substeps < 1:
            raise ValueError(f"substeps must be at least 1, got {self.substeps}")
        if self.damping < 0.0:
            raise ValueError(f"damping must be non-negative, got {self.damping}")
        low, high = FLUID_FORCE_SCALE_RANGE
        if not low <= self.fluid_force_scale <= high:
            raise ValueError(
                f"fluid_force_scale must lie in [{low}, {high}], got {self.fluid_force_scale}"
            )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["integrator"] = self.integrator.value
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> SolverConfig:
        known = {k: v for k, v in data.items() if k in SolverConfig.__dataclass_fields__}
        return SolverConfig(**known)

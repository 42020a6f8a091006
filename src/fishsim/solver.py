"""
Solver interface and selection.

Both integrators implement the same four-phase contract; neither derives
from the other. Pick one by name through `SolverConfig.integrator`.
"""
from __future__ import annotations

from typing import Protocol

from fishsim.body import FishBody
from fishsim.config import IntegratorType, SolverConfig
from fishsim.solver_explicit import ExplicitSolver
from fishsim.solver_implicit import ImplicitSolver


class Solver(Protocol):
    config: SolverConfig

    def step(self, body: FishBody, dt: float | None = None) -> None: ...

    def pre_solve(self, body: FishBody) -> None: ...

    def apply_forces(self, body: FishBody) -> None: ...

    def integrate(self, body: FishBody, dt: float) -> None: ...

    def post_solve(self, body: FishBody) -> None: ...


SOLVERS: dict[IntegratorType, type[ExplicitSolver] | type[ImplicitSolver]] = {
    IntegratorType.EXPLICIT: ExplicitSolver,
    IntegratorType.IMPLICIT: ImplicitSolver,
}


def make_solver(config: SolverConfig | None = None) -> Solver:
    config = config if config is not None else SolverConfig()
    return SOLVERS[config.integrator](config)

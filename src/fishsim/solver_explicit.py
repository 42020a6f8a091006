# solver_explicit.py
"""
Sub-stepped explicit integrator.
"""
from __future__ import annotations

import logging

from numba import njit  # type: ignore
import numpy as np

from fishsim.body import FishBody
from fishsim.config import IntegratorType, SolverConfig
from fishsim.forces import (
    accumulate_spring_forces,
    apply_fluid_forces,
    check_finite,
    reset_forces,
)

logger = logging.getLogger(__name__)


@njit(cache=True)  # type: ignore
def integrate_euler(
    pos: np.ndarray,
    vel: np.ndarray,
    force: np.ndarray,
    mass: np.ndarray,
    damping: float,
    dt: float,
) -> None:
    """
    Semi-implicit Euler with a global damping term.

    The damping force uses the velocity the node would have after an
    undamped update, and is folded into `force` before the real update.
    The order matters for how strongly it damps; keep it.
    """
    for i in range(len(pos)):
        inv_m = 1.0 / mass[i]
        for axis in range(3):
            new_velocity = vel[i, axis] + force[i, axis] * inv_m * dt
            force[i, axis] += -damping * new_velocity
            vel[i, axis] += force[i, axis] * inv_m * dt
            pos[i, axis] += vel[i, axis] * dt


class ExplicitSolver:
    """
    Explicit spring-mass integrator.

    Every tick is split into `config.substeps` equal substeps, each running
    pre_solve -> apply_forces -> integrate -> post_solve. Spring and fluid
    forces are both evaluated at the start of the substep.

    Example:
        >>> solver = ExplicitSolver(SolverConfig(integrator="explicit"))
        >>> for _ in range(100):
        ...     solver.step(body)
    """

    kind = IntegratorType.EXPLICIT

    def __init__(self, config: SolverConfig | None = None) -> None:
        self.config = config if config is not None else SolverConfig(integrator=self.kind)

    @property
    def fluid_force_scale(self) -> float:
        return self.config.fluid_force_scale

    def step(self, body: FishBody, dt: float | None = None) -> None:
        """Advance `body` by one tick of length `dt` (config.dt by default)."""
        if dt is None:
            dt = self.config.dt
        steps = self.config.substeps
        h = dt / steps
        for _ in range(steps):
            self.pre_solve(body)
            self.apply_forces(body)
            self.integrate(body, h)
            self.post_solve(body)
        logger.debug("Explicit step: %d substeps of %.5f", steps, h)
        check_finite(body.graph)

    def pre_solve(self, body: FishBody) -> None:
        reset_forces(body.graph)

    def apply_forces(self, body: FishBody) -> None:
        accumulate_spring_forces(body.graph)
        apply_fluid_forces(body, self.fluid_force_scale)

    def integrate(self, body: FishBody, dt: float) -> None:
        g = body.graph
        integrate_euler(g.positions, g.velocities, g.forces, g.masses, self.config.damping, dt)

    def post_solve(self, body: FishBody) -> None:
        pass

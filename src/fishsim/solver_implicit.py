# solver_implicit.py
"""
Implicit integrator built on the graph's sparse symmetric system.
"""
from __future__ import annotations

import logging

from numba import njit  # type: ignore
import numpy as np

from fishsim.body import FishBody
from fishsim.config import IntegratorType, SolverConfig
from fishsim.errors import DegenerateSpringError, DimensionMismatchError
from fishsim.forces import apply_fluid_forces, check_finite, force_scalar, is_degenerate, reset_forces
from fishsim.graph import MassSpringGraph
from fishsim.linalg import solve_ldlt

logger = logging.getLogger(__name__)


@njit(cache=True)  # type: ignore
def assemble_system(
    pos: np.ndarray,
    vel: np.ndarray,
    force: np.ndarray,
    mass: np.ndarray,
    left: np.ndarray,
    right: np.ndarray,
    rest: np.ndarray,
    stiffness: np.ndarray,
    damping: np.ndarray,
    dt: float,
    A: np.ndarray,
    G: np.ndarray,
) -> int:
    """
    Fill A v = G for the velocities at the end of the tick.

    Each spring is linearised as a zero-rest-length spring of stiffness
    n_ij, so one scalar matrix serves all three axes and G carries one
    column per axis. `force` holds only the external (fluid) forces.
    Returns the first degenerate edge or -1.
    """
    for e in range(len(left)):
        i = left[e]
        j = right[e]
        if is_degenerate(pos[i], pos[j]):
            return e
        n_ij = force_scalar(pos[i], pos[j], vel[i], vel[j], stiffness[e], damping[e], rest[e])

        A[i, i] += n_ij * dt
        A[j, j] += n_ij * dt
        A[i, j] -= n_ij * dt
        A[j, i] = A[i, j]

        for axis in range(3):
            r = pos[j, axis] - pos[i, axis]
            G[i, axis] += n_ij * r
            G[j, axis] -= n_ij * r

    for i in range(len(mass)):
        m_dt = mass[i] / dt
        A[i, i] += m_dt
        for axis in range(3):
            G[i, axis] += force[i, axis] + m_dt * vel[i, axis]
    return -1


class ImplicitSolver:
    """
    Implicit spring-mass integrator, one linear solve per tick.

    Only the springs are treated implicitly. Fluid forces are accumulated in
    apply_forces and enter the right-hand side as explicit terms. The
    global damping of the config is not used here; the spring damping
    already enters the system through n_ij.
    """

    kind = IntegratorType.IMPLICIT

    def __init__(self, config: SolverConfig | None = None) -> None:
        self.config = config if config is not None else SolverConfig(integrator=self.kind)

    @property
    def fluid_force_scale(self) -> float:
        return self.config.fluid_force_scale

    def step(self, body: FishBody, dt: float | None = None) -> None:
        if dt is None:
            dt = self.config.dt
        self.pre_solve(body)
        self.apply_forces(body)
        self.integrate(body, dt)
        self.post_solve(body)
        check_finite(body.graph)

    def pre_solve(self, body: FishBody) -> None:
        reset_forces(body.graph)

    def apply_forces(self, body: FishBody) -> None:
        apply_fluid_forces(body, self.fluid_force_scale)

    def integrate(self, body: FishBody, dt: float) -> None:
        g = body.graph
        self._check_dimensions(g)
        rows, cols = g.adjacency_shape
        if rows == 0:
            return

        A = np.zeros((rows, cols), dtype=np.float64)
        G = np.zeros((rows, 3), dtype=np.float64)
        bad = assemble_system(
            g.positions,
            g.velocities,
            g.forces,
            g.masses,
            g.edge_left,
            g.edge_right,
            g.rest_lengths,
            g.stiffness,
            g.damping,
            dt,
            A,
            G,
        )
        if bad >= 0:
            raise DegenerateSpringError(bad, int(g.edge_left[bad]), int(g.edge_right[bad]))

        velocity = solve_ldlt(A, G, g.envelope())
        logger.debug("Implicit solve: %d nodes, bandwidth %d", rows, g.bandwidth())

        g.velocities[:] = velocity
        g.positions += velocity * dt

    def post_solve(self, body: FishBody) -> None:
        pass

    @staticmethod
    def _check_dimensions(g: MassSpringGraph) -> None:
        n = g.node_count
        if g.adjacency_shape != (n, n):
            raise DimensionMismatchError(f"Adjacency shape {g.adjacency_shape} does not match {n} nodes")
        for name in ("positions", "velocities", "forces"):
            if getattr(g, name).shape != (n, 3):
                raise DimensionMismatchError(f"{name} has shape {getattr(g, name).shape}, expected ({n}, 3)")
        if g.edge_count and max(g.edge_left.max(), g.edge_right.max()) >= n:
            raise DimensionMismatchError("Spring endpoint index exceeds the node count")

# forces.py
"""
Spring and fluid force accumulation shared by both integrators.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from numba import njit  # type: ignore
import numpy as np

from fishsim.errors import DegenerateSpringError, SimulationDivergedError
from fishsim.graph import MassSpringGraph, Node

if TYPE_CHECKING:
    from fishsim.body import FishBody

# Springs shorter than this are treated as coincident endpoints
MIN_SPRING_LENGTH = 1e-12

# ===============================
# PHYSICS KERNELS
# ===============================


@njit(cache=True)  # type: ignore
def is_degenerate(pos_i: np.ndarray, pos_j: np.ndarray) -> bool:
    """True when the endpoints coincide. NaN coordinates are not degenerate."""
    rx = pos_j[0] - pos_i[0]
    ry = pos_j[1] - pos_i[1]
    rz = pos_j[2] - pos_i[2]
    return np.sqrt(rx * rx + ry * ry + rz * rz) < MIN_SPRING_LENGTH


@njit(cache=True)  # type: ignore
def force_scalar(
    pos_i: np.ndarray,
    pos_j: np.ndarray,
    vel_i: np.ndarray,
    vel_j: np.ndarray,
    c: float,
    k: float,
    rest: float,
) -> float:
    """
    Spring force per unit separation, n_ij.

    The force on i is n_ij * (pos_j - pos_i). Callers check `is_degenerate`
    first; non-finite inputs propagate into the result.
    """
    rx = pos_j[0] - pos_i[0]
    ry = pos_j[1] - pos_i[1]
    rz = pos_j[2] - pos_i[2]
    r_len = np.sqrt(rx * rx + ry * ry + rz * rz)

    stretch = r_len - rest
    ux = vel_j[0] - vel_i[0]
    uy = vel_j[1] - vel_i[1]
    uz = vel_j[2] - vel_i[2]
    r_dot = (ux * rx + uy * ry + uz * rz) / r_len

    return (c * stretch + k * r_dot) / r_len


@njit(cache=True)  # type: ignore
def spring_force_scalars_kernel(
    pos: np.ndarray,
    vel: np.ndarray,
    left: np.ndarray,
    right: np.ndarray,
    rest: np.ndarray,
    stiffness: np.ndarray,
    damping: np.ndarray,
    out: np.ndarray,
) -> int:
    """Fill `out` with n_ij per edge. Returns the first degenerate edge or -1."""
    for e in range(len(left)):
        i = left[e]
        j = right[e]
        if is_degenerate(pos[i], pos[j]):
            return e
        n = force_scalar(pos[i], pos[j], vel[i], vel[j], stiffness[e], damping[e], rest[e])
        out[e] = n
    return -1


@njit(cache=True)  # type: ignore
def accumulate_spring_forces_kernel(
    pos: np.ndarray,
    vel: np.ndarray,
    force: np.ndarray,
    left: np.ndarray,
    right: np.ndarray,
    rest: np.ndarray,
    stiffness: np.ndarray,
    damping: np.ndarray,
) -> int:
    """
    Add every spring's force into both endpoints.

    Each spring is visited once; the force on `right` is the negation of the
    force on `left`, which is the same as summing over every node's
    neighbors. Returns the first degenerate edge or -1.
    """
    for e in range(len(left)):
        i = left[e]
        j = right[e]
        if is_degenerate(pos[i], pos[j]):
            return e
        n = force_scalar(pos[i], pos[j], vel[i], vel[j], stiffness[e], damping[e], rest[e])
        for axis in range(3):
            f = n * (pos[j, axis] - pos[i, axis])
            force[i, axis] += f
            force[j, axis] -= f
    return -1


# ===============================
# GRAPH LEVEL HELPERS
# ===============================


def _raise_degenerate(graph: MassSpringGraph, edge_index: int) -> None:
    raise DegenerateSpringError(
        edge_index, int(graph.edge_left[edge_index]), int(graph.edge_right[edge_index])
    )


def spring_force(graph: MassSpringGraph, i: Node | int, j: Node | int) -> np.ndarray:
    """Force exerted on node `i` by the spring joining it to `j`."""
    s_ij = graph.edge(i, j)
    a, b = s_ij.left.index, s_ij.right.index
    if isinstance(i, Node):
        i = i.index
    if int(i) != a:
        a, b = b, a

    pos, vel = graph.positions, graph.velocities
    if is_degenerate(pos[a], pos[b]):
        _raise_degenerate(graph, s_ij.index)
    n = force_scalar(pos[a], pos[b], vel[a], vel[b], s_ij.stiffness, s_ij.damping, s_ij.rest_length)
    return n * (pos[b] - pos[a])


def spring_force_scalars(graph: MassSpringGraph) -> np.ndarray:
    out = np.zeros(graph.edge_count, dtype=np.float64)
    bad = spring_force_scalars_kernel(
        graph.positions,
        graph.velocities,
        graph.edge_left,
        graph.edge_right,
        graph.rest_lengths,
        graph.stiffness,
        graph.damping,
        out,
    )
    if bad >= 0:
        _raise_degenerate(graph, bad)
    return out


def accumulate_spring_forces(graph: MassSpringGraph) -> None:
    if graph.edge_count == 0:
        return
    bad = accumulate_spring_forces_kernel(
        graph.positions,
        graph.velocities,
        graph.forces,
        graph.edge_left,
        graph.edge_right,
        graph.rest_lengths,
        graph.stiffness,
        graph.damping,
    )
    if bad >= 0:
        _raise_degenerate(graph, bad)


def reset_forces(graph: MassSpringGraph) -> None:
    graph.forces[:] = 0.0


def apply_fluid_forces(body: FishBody, scale: float) -> None:
    for face in body.fluid_faces:
        face.apply_force(scale)


def check_finite(graph: MassSpringGraph) -> None:
    if not (np.isfinite(graph.positions).all() and np.isfinite(graph.velocities).all()):
        bad = np.flatnonzero(
            ~(np.isfinite(graph.positions).all(axis=1) & np.isfinite(graph.velocities).all(axis=1))
        )
        raise SimulationDivergedError(
            f"Simulation became unstable: non-finite state at nodes {bad.tolist()}"
        )

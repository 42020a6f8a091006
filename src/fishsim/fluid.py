# fluid.py
"""
Fluid drag on the fish surface.

A face resists motion along its outward normal: when the face moves into
the water it is pushed back, when it moves away nothing happens. This is
what lets a flapping tail produce net thrust.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import numpy as np

from fishsim import vector
from fishsim.graph import MassSpringGraph

MIN_FACE_AREA = 1e-8


class FluidFace(Protocol):
    def apply_force(self, scale: float) -> None:
        """Add this face's fluid force, times `scale`, into its nodes' forces."""
        ...


class TriangleFluidFace:
    def __init__(
        self,
        graph: MassSpringGraph,
        i: int,
        j: int,
        k: int,
        drag: float = 1.0,
        flow: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> None:
        self.graph = graph
        self.nodes = np.array([i, j, k], dtype=np.int64)
        self.drag = drag
        self.flow = np.asarray(flow, dtype=np.float64)

    def area(self) -> float:
        p = self.graph.positions[self.nodes]
        return 0.5 * vector.length(np.cross(p[1] - p[0], p[2] - p[0]))

    def normal(self) -> np.ndarray:
        p = self.graph.positions[self.nodes]
        return vector.normal(p[1] - p[0], p[2] - p[0])

    def compute_force(self) -> np.ndarray:
        """Total drag on the face, before scaling and splitting."""
        area = self.area()
        if area < MIN_FACE_AREA:
            return np.zeros(3)

        n = self.normal()
        u = self.graph.velocities[self.nodes].mean(axis=0) - self.flow
        magnitude = min(0.0, -self.drag * area * float(np.dot(n, u)) * vector.length(u))
        return magnitude * n

    def apply_force(self, scale: float) -> None:
        share = self.compute_force() * (scale / 3.0)
        self.graph.forces[self.nodes] += share

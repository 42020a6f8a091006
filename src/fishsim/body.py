from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fishsim.fluid import FluidFace
from fishsim.graph import MassSpringGraph

if TYPE_CHECKING:
    from fishsim.muscle import Muscle


@dataclass
class FishBody:
    """Everything a solver needs to advance one fish: the spring graph and
    the surfaces that push against the water."""

    graph: MassSpringGraph
    fluid_faces: list[FluidFace] = field(default_factory=list)
    muscles: dict[str, Muscle] = field(default_factory=dict)

    @property
    def node_count(self) -> int:
        return self.graph.node_count

    def momentum(self):
        g = self.graph
        return (g.masses[:, None] * g.velocities).sum(axis=0)

    def center_of_mass(self):
        g = self.graph
        return (g.masses[:, None] * g.positions).sum(axis=0) / g.masses.sum()

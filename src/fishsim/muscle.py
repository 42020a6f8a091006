# muscle.py
"""
Muscles shorten their springs' rest lengths between ticks; the springs then
pull the body into the contracted shape.
"""
from __future__ import annotations

from collections.abc import Iterable
import math

from fishsim.graph import Edge


class Muscle:
    def __init__(self, edges: Iterable[Edge], max_contraction: float = 0.3) -> None:
        if not 0.0 <= max_contraction < 1.0:
            raise ValueError(f"max_contraction must lie in [0, 1), got {max_contraction}")
        self.edges = list(edges)
        self.max_contraction = max_contraction
        self.base_lengths = [e.rest_length for e in self.edges]
        self.level = 0.0

    def contract(self, level: float) -> None:
        """Set activation in [0, 1]; 1 shortens every spring by max_contraction."""
        self.level = min(1.0, max(0.0, level))
        factor = 1.0 - self.max_contraction * self.level
        for edge, base in zip(self.edges, self.base_lengths):
            edge.rest_length = base * factor

    def relax(self) -> None:
        self.contract(0.0)


def swim_activation(t: float, frequency: float, phase: float = 0.0) -> float:
    """Sinusoidal activation in [0, 1] with period 1 / frequency."""
    return 0.5 * (1.0 + math.sin(2.0 * math.pi * frequency * t + phase))

# models.py
from __future__ import annotations

from collections.abc import Sequence
import math


class MassPoint:
    """Authoring record for a point mass, turned into a graph node on build."""

    def __init__(
        self,
        x: float,
        y: float,
        z: float,
        mass: float = 1.0,
        velocity: Sequence[float] | None = None,
    ) -> None:
        self.pos = (float(x), float(y), float(z))
        self.vel = tuple(float(v) for v in velocity) if velocity is not None else (0.0, 0.0, 0.0)
        self.mass = mass

    def distance_to(self, other: MassPoint) -> float:
        return math.dist(self.pos, other.pos)

    def __repr__(self) -> str:
        x, y, z = self.pos
        return f"MassPoint({x:.3f}, {y:.3f}, {z:.3f}, mass={self.mass})"


class Spring:
    def __init__(
        self,
        a: MassPoint,
        b: MassPoint,
        stiffness: float = 100.0,
        damping: float = 0.0,
        rest_length: float | None = None,
        kind: str = "structural",
    ) -> None:
        self.a = a
        self.b = b
        self.stiffness = stiffness
        self.damping = damping
        self.kind = kind  # "structural", "diagonal" or "muscle"
        if rest_length is None:
            self.rest_length = a.distance_to(b)
        else:
            self.rest_length = rest_length

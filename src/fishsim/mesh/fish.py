# fish.py
"""
Procedural fish bodies:
1. A straight spring chain (handy for experiments and tests)
2. A tapered box lattice with muscles along both flanks

Nodes are numbered nose to tail so every spring joins nodes at most one
cross-section apart, which keeps the implicit system narrowly banded.
"""

import logging
import math

import numpy as np

from fishsim.body import FishBody
from fishsim.fluid import TriangleFluidFace
from fishsim.graph import MassSpringGraph
from fishsim.models import MassPoint, Spring
from fishsim.muscle import Muscle
from fishsim.types import FACE, GEN_CHAIN, GEN_FISH, MUSCLE_SIDES

logger = logging.getLogger(__name__)

# Corners of a cross-section, counter-clockwise in the (y, z) plane.
# y > 0 is the fish's left flank.
RING_CORNERS = ((1.0, 1.0), (-1.0, 1.0), (-1.0, -1.0), (1.0, -1.0))
LEFT_CORNERS = (0, 3)


def generate_chain(
    count: int,
    spacing: float = 1.0,
    rest_length: float | None = None,
    mass: float = 1.0,
    stiffness: float = 100.0,
    damping: float = 0.0,
) -> GEN_CHAIN:
    """
    Nodes on the x axis joined by springs between consecutive nodes.

    Args:
        count: Number of nodes (at least 2)
        spacing: Initial distance between neighbors
        rest_length: Spring rest length; defaults to `spacing`
        mass: Mass of every node
        stiffness: Spring stiffness c
        damping: Spring damping k

    Returns:
        (points, springs) tuple
    """
    if count < 2:
        raise ValueError(f"A chain needs at least 2 nodes, got {count}")
    points = [MassPoint(i * spacing, 0.0, 0.0, mass=mass) for i in range(count)]
    springs = [
        Spring(a, b, stiffness=stiffness, damping=damping, rest_length=rest_length)
        for a, b in zip(points, points[1:])
    ]
    return points, springs


def generate_fish(
    length: float = 4.0,
    segments: int = 4,
    width: float = 0.5,
    height: float = 0.8,
    mass: float = 1.0,
    stiffness: float = 20.0,
    damping: float = 0.5,
) -> GEN_FISH:
    """
    Generate a fish-shaped spring lattice.

    The nose sits at x = length and the tail at x = 0. Between them are
    `segments` rectangular cross-sections of four nodes, tapered with a
    sine profile so the body is widest in the middle.

    Spring types:
    - structural: nose/tail fans and the edges of every cross-section
    - muscle: longitudinal springs along the flanks (left and right)
    - diagonal: both diagonals of every quad plus interior braces, softer

    Args:
        length: Nose to tail distance
        segments: Number of cross-sections (at least 1)
        width: Half width of the widest cross-section
        height: Half height of the widest cross-section
        mass: Mass of every node
        stiffness: Stiffness of structural and muscle springs
        damping: Damping of every spring

    Returns:
        (points, springs, faces, muscle_sides) where muscle_sides maps
        "left"/"right" to indices into `springs`
    """
    if segments < 1:
        raise ValueError(f"A fish needs at least one cross-section, got {segments}")

    points: list[MassPoint] = []
    springs: list[Spring] = []
    faces: list[list[int]] = []
    muscle_sides: MUSCLE_SIDES = {"left": [], "right": []}

    seg_len = length / (segments + 1)

    # 1. NOSE
    points.append(MassPoint(length, 0.0, 0.0, mass=mass))

    # 2. CROSS-SECTIONS
    for r in range(1, segments + 1):
        taper = math.sin(math.pi * r / (segments + 1))
        x = length - r * seg_len
        for cy, cz in RING_CORNERS:
            points.append(MassPoint(x, cy * width * taper, cz * height * taper, mass=mass))

    # 3. TAIL
    tail_idx = len(points)
    points.append(MassPoint(0.0, 0.0, 0.0, mass=mass))

    def ring(r: int, s: int) -> int:
        return 1 + (r - 1) * 4 + s % 4

    # 4. FACES (outward winding)
    for s in range(4):
        faces.append([0, ring(1, s), ring(1, s + 1)])

    for r in range(1, segments):
        for s in range(4):
            i1, i2 = ring(r, s), ring(r, s + 1)
            i3, i4 = ring(r + 1, s), ring(r + 1, s + 1)
            faces.append([i1, i3, i2])
            faces.append([i2, i3, i4])

    for s in range(4):
        faces.append([ring(segments, s + 1), ring(segments, s), tail_idx])

    # 5. SPRINGS
    added_springs: set[tuple[int, int]] = set()

    def add_unique_spring(i: int, j: int, stiffness: float, spring_type: str) -> int:
        """Add spring if not already present; returns its index."""
        pair = (min(i, j), max(i, j))
        if pair in added_springs:
            return -1
        springs.append(
            Spring(points[i], points[j], stiffness=stiffness, damping=damping, kind=spring_type)
        )
        added_springs.add(pair)
        return len(springs) - 1

    # 5a. Nose and tail fans
    for s in range(4):
        add_unique_spring(0, ring(1, s), stiffness, "structural")
        add_unique_spring(ring(segments, s), tail_idx, stiffness, "structural")

    # 5b. Cross-section edges and braces
    for r in range(1, segments + 1):
        for s in range(4):
            add_unique_spring(ring(r, s), ring(r, s + 1), stiffness, "structural")
        add_unique_spring(ring(r, 0), ring(r, 2), 0.5 * stiffness, "diagonal")
        add_unique_spring(ring(r, 1), ring(r, 3), 0.5 * stiffness, "diagonal")

    # 5c. Longitudinal muscles, quad diagonals and interior braces
    for r in range(1, segments):
        for s in range(4):
            idx = add_unique_spring(ring(r, s), ring(r + 1, s), stiffness, "muscle")
            side = "left" if s in LEFT_CORNERS else "right"
            muscle_sides[side].append(idx)

            add_unique_spring(ring(r, s), ring(r + 1, s + 1), 0.5 * stiffness, "diagonal")
            add_unique_spring(ring(r, s + 1), ring(r + 1, s), 0.5 * stiffness, "diagonal")
            add_unique_spring(ring(r, s), ring(r + 1, s + 2), 0.5 * stiffness, "diagonal")

    logger.info(
        "Generated fish: %d points, %d springs, %d faces", len(points), len(springs), len(faces)
    )

    np_faces = np.array(faces, dtype=np.int32)
    return points, springs, np_faces, muscle_sides


def build_body(
    points: list[MassPoint],
    springs: list[Spring],
    faces: FACE | None = None,
    muscle_sides: MUSCLE_SIDES | None = None,
    drag: float = 1.0,
    max_contraction: float = 0.3,
) -> FishBody:
    """Assemble the graph, fluid faces and muscles into a FishBody."""
    graph = MassSpringGraph.from_points(points, springs)

    fluid_faces = []
    if faces is not None:
        for i, j, k in faces:
            fluid_faces.append(TriangleFluidFace(graph, int(i), int(j), int(k), drag=drag))

    edges = graph.edges
    muscles = {}
    for side, indices in (muscle_sides or {}).items():
        muscles[side] = Muscle((edges[idx] for idx in indices), max_contraction=max_contraction)

    return FishBody(graph=graph, fluid_faces=fluid_faces, muscles=muscles)

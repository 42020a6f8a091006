# graph.py
"""
Mass-spring graph stored as an arena of dense arrays.

Nodes and edges are lightweight views addressed by index. The graph owns the
topology and the per-node state arrays; the physics lives in the solvers.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
import logging

import numpy as np

from fishsim.errors import TopologyError
from fishsim.models import MassPoint, Spring
from fishsim.types import INDEX, VEC3

logger = logging.getLogger(__name__)


class Node:
    __slots__ = ["_graph", "index"]

    def __init__(self, graph: MassSpringGraph, index: int) -> None:
        self._graph = graph
        self.index = index

    @property
    def position(self) -> VEC3:
        return self._graph.positions[self.index]

    @position.setter
    def position(self, value: Sequence[float]) -> None:
        self._graph.positions[self.index] = value

    @property
    def velocity(self) -> VEC3:
        return self._graph.velocities[self.index]

    @velocity.setter
    def velocity(self, value: Sequence[float]) -> None:
        self._graph.velocities[self.index] = value

    @property
    def force(self) -> VEC3:
        return self._graph.forces[self.index]

    @force.setter
    def force(self, value: Sequence[float]) -> None:
        self._graph.forces[self.index] = value

    @property
    def mass(self) -> float:
        return float(self._graph.masses[self.index])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self._graph is other._graph and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self._graph), self.index))

    def __repr__(self) -> str:
        return f"Node({self.index})"


class Edge:
    __slots__ = ["_graph", "index"]

    def __init__(self, graph: MassSpringGraph, index: int) -> None:
        self._graph = graph
        self.index = index

    @property
    def left(self) -> Node:
        return Node(self._graph, int(self._graph.edge_left[self.index]))

    @property
    def right(self) -> Node:
        return Node(self._graph, int(self._graph.edge_right[self.index]))

    @property
    def rest_length(self) -> float:
        """Target length; muscles move it between ticks."""
        return float(self._graph.rest_lengths[self.index])

    @rest_length.setter
    def rest_length(self, value: float) -> None:
        self._graph.rest_lengths[self.index] = value

    @property
    def stiffness(self) -> float:
        return float(self._graph.stiffness[self.index])

    @property
    def damping(self) -> float:
        return float(self._graph.damping[self.index])

    @property
    def kind(self) -> str:
        return self._graph.edge_kinds[self.index]

    def length(self) -> float:
        """Current distance between the endpoints."""
        g = self._graph
        r = g.positions[g.edge_right[self.index]] - g.positions[g.edge_left[self.index]]
        return float(np.linalg.norm(r))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Edge):
            return NotImplemented
        return self._graph is other._graph and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self._graph), "edge", self.index))

    def __repr__(self) -> str:
        return f"Edge({self.index}: {self.left.index} -> {self.right.index})"


class MassSpringGraph:
    """
    Point masses joined by damped springs.

    Node indices are dense and follow insertion order, so they double as
    row indices of the implicit solver's system matrix.
    """

    def __init__(self) -> None:
        self.positions = np.zeros((0, 3), dtype=np.float64)
        self.velocities = np.zeros((0, 3), dtype=np.float64)
        self.forces = np.zeros((0, 3), dtype=np.float64)
        self.masses = np.zeros(0, dtype=np.float64)

        self.edge_left = np.zeros(0, dtype=np.int64)
        self.edge_right = np.zeros(0, dtype=np.int64)
        self.rest_lengths = np.zeros(0, dtype=np.float64)
        self.stiffness = np.zeros(0, dtype=np.float64)
        self.damping = np.zeros(0, dtype=np.float64)
        self.edge_kinds: list[str] = []

        self._neighbors: list[set[int]] = []
        self._edge_lookup: dict[tuple[int, int], int] = {}
        self._adjacency: np.ndarray | None = None
        self._envelope: INDEX | None = None
        self.topology_version = 0

    # ------------------------
    # Construction
    # ------------------------

    @classmethod
    def from_points(cls, points: Iterable[MassPoint], springs: Iterable[Spring]) -> MassSpringGraph:
        graph = cls()
        p_to_idx: dict[int, int] = {}
        for p in points:
            node = graph.add_node(p.pos, mass=p.mass, velocity=p.vel)
            p_to_idx[id(p)] = node.index

        for s in springs:
            try:
                a, b = p_to_idx[id(s.a)], p_to_idx[id(s.b)]
            except KeyError:
                raise TopologyError("Spring references a point that is not part of the body") from None
            graph.add_edge(a, b, s.stiffness, s.damping, s.rest_length, kind=s.kind)

        logger.debug("Built graph with %d nodes and %d springs", graph.node_count, graph.edge_count)
        return graph

    def add_node(
        self,
        position: Sequence[float],
        mass: float = 1.0,
        velocity: Sequence[float] | None = None,
    ) -> Node:
        if mass <= 0.0:
            raise ValueError(f"Node mass must be positive, got {mass}")
        vel = np.zeros(3) if velocity is None else np.asarray(velocity, dtype=np.float64)

        self.positions = np.vstack([self.positions, np.asarray(position, dtype=np.float64)])
        self.velocities = np.vstack([self.velocities, vel])
        self.forces = np.vstack([self.forces, np.zeros(3)])
        self.masses = np.append(self.masses, float(mass))
        self._neighbors.append(set())
        self._invalidate()
        return Node(self, self.node_count - 1)

    def add_edge(
        self,
        a: Node | int,
        b: Node | int,
        stiffness: float,
        damping: float = 0.0,
        rest_length: float | None = None,
        kind: str = "structural",
    ) -> Edge:
        i, j = self._index(a), self._index(b)
        if i == j:
            raise TopologyError(f"Spring would join node {i} to itself")
        key = (min(i, j), max(i, j))
        if key in self._edge_lookup:
            raise TopologyError(f"Nodes {i} and {j} are already joined by a spring")
        if stiffness <= 0.0:
            raise ValueError(f"Spring stiffness must be positive, got {stiffness}")
        if damping < 0.0:
            raise ValueError(f"Spring damping must be non-negative, got {damping}")
        if rest_length is None:
            rest_length = float(np.linalg.norm(self.positions[j] - self.positions[i]))

        self.edge_left = np.append(self.edge_left, i)
        self.edge_right = np.append(self.edge_right, j)
        self.rest_lengths = np.append(self.rest_lengths, float(rest_length))
        self.stiffness = np.append(self.stiffness, float(stiffness))
        self.damping = np.append(self.damping, float(damping))
        self.edge_kinds.append(kind)

        index = self.edge_count - 1
        self._edge_lookup[key] = index
        self._neighbors[i].add(j)
        self._neighbors[j].add(i)
        self._invalidate()
        return Edge(self, index)

    # ------------------------
    # Queries
    # ------------------------

    @property
    def node_count(self) -> int:
        return len(self.masses)

    @property
    def edge_count(self) -> int:
        return len(self.edge_left)

    @property
    def nodes(self) -> list[Node]:
        return [Node(self, i) for i in range(self.node_count)]

    @property
    def edges(self) -> list[Edge]:
        return [Edge(self, e) for e in range(self.edge_count)]

    def node(self, index: int) -> Node:
        return Node(self, self._index(index))

    def neighbors(self, node: Node | int) -> set[Node]:
        return {Node(self, j) for j in self._neighbors[self._index(node)]}

    def edge(self, a: Node | int, b: Node | int) -> Edge:
        """Spring joining `a` and `b`; raises TopologyError if there is none."""
        i, j = self._index(a), self._index(b)
        try:
            return Edge(self, self._edge_lookup[(min(i, j), max(i, j))])
        except KeyError:
            raise TopologyError(f"No spring between nodes {i} and {j}") from None

    @property
    def adjacency_shape(self) -> tuple[int, int]:
        n = self.node_count
        return n, n

    def adjacency_matrix(self) -> np.ndarray:
        if self._adjacency is None:
            adj = np.zeros(self.adjacency_shape, dtype=np.bool_)
            adj[self.edge_left, self.edge_right] = True
            adj[self.edge_right, self.edge_left] = True
            self._adjacency = adj
        return self._adjacency

    def envelope(self) -> INDEX:
        """
        First populated column of each row of the lower triangle.

        Row i of the implicit system couples to its neighbors only, so
        entries left of min(i, min(neighbors(i))) are structurally zero.
        """
        if self._envelope is None:
            first = np.arange(self.node_count, dtype=np.int64)
            for i, nbrs in enumerate(self._neighbors):
                if nbrs:
                    first[i] = min(i, min(nbrs))
            self._envelope = first
        return self._envelope

    def bandwidth(self) -> int:
        if self.node_count == 0:
            return 0
        return int(np.max(np.arange(self.node_count) - self.envelope()))

    # ------------------------
    # Internals
    # ------------------------

    def _index(self, node: Node | int) -> int:
        if isinstance(node, Node):
            if node._graph is not self:
                raise TopologyError(f"{node!r} belongs to a different graph")
            index = node.index
        else:
            index = int(node)
        if not 0 <= index < self.node_count:
            raise TopologyError(f"Node {index} is not part of this graph")
        return index

    def _invalidate(self) -> None:
        self._adjacency = None
        self._envelope = None
        self.topology_version += 1

from collections.abc import Sequence

import pytest

from fishsim.body import FishBody
from fishsim.graph import MassSpringGraph


def chain_body(
    positions: Sequence[Sequence[float]],
    stiffness: float = 100.0,
    damping: float = 0.0,
    rest_length: float = 1.0,
    mass: float = 1.0,
) -> FishBody:
    graph = MassSpringGraph()
    nodes = [graph.add_node(p, mass=mass) for p in positions]
    for a, b in zip(nodes, nodes[1:]):
        graph.add_edge(a, b, stiffness, damping, rest_length)
    return FishBody(graph)


@pytest.fixture
def make_chain():
    return chain_body


@pytest.fixture
def stretched_pair() -> FishBody:
    """Two unit masses 1.5 apart on a spring that rests at 1.0."""
    return chain_body([(0.0, 0.0, 0.0), (1.5, 0.0, 0.0)], stiffness=100.0, damping=5.0)


@pytest.fixture
def three_node_chain() -> FishBody:
    return chain_body(
        [(0.0, 0.0, 0.0), (1.5, 0.0, 0.0), (3.0, 0.0, 0.0)], stiffness=100.0, damping=5.0
    )

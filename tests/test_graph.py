import numpy as np
import pytest

from fishsim.errors import TopologyError
from fishsim.graph import MassSpringGraph
from fishsim.mesh.fish import generate_chain


@pytest.fixture
def graph() -> MassSpringGraph:
    points, springs = generate_chain(4, spacing=1.0, stiffness=50.0, damping=1.0)
    return MassSpringGraph.from_points(points, springs)


def test_indices_follow_insertion_order(graph):
    assert [n.index for n in graph.nodes] == [0, 1, 2, 3]
    np.testing.assert_allclose(graph.nodes[2].position, [2.0, 0.0, 0.0])


def test_neighbors_are_symmetric(graph):
    for node in graph.nodes:
        for other in graph.neighbors(node):
            assert node in graph.neighbors(other)
    assert graph.neighbors(1) == {graph.node(0), graph.node(2)}


def test_edge_lookup_in_either_order(graph):
    e = graph.edge(1, 2)
    assert graph.edge(2, 1) == e
    assert (e.left.index, e.right.index) == (1, 2)
    assert e.stiffness == 50.0
    assert e.damping == 1.0
    assert e.rest_length == pytest.approx(1.0)


def test_missing_edge_is_a_lookup_error(graph):
    with pytest.raises(TopologyError):
        graph.edge(0, 2)
    with pytest.raises(LookupError):
        graph.edge(0, 3)


def test_adjacency_matches_node_count(graph):
    assert graph.adjacency_shape == (4, 4)
    adj = graph.adjacency_matrix()
    assert adj.shape == (4, 4)
    assert adj[0, 1] and adj[1, 0]
    assert not adj[0, 2]
    np.testing.assert_array_equal(adj, adj.T)


def test_adding_topology_invalidates_cached_views(graph):
    version = graph.topology_version
    assert not graph.adjacency_matrix()[0, 3]
    graph.add_edge(0, 3, stiffness=10.0)
    assert graph.topology_version > version
    assert graph.adjacency_matrix()[0, 3]
    assert graph.envelope()[3] == 0


def test_envelope_and_bandwidth(graph):
    np.testing.assert_array_equal(graph.envelope(), [0, 0, 1, 2])
    assert graph.bandwidth() == 1


def test_rejects_duplicate_and_self_springs(graph):
    with pytest.raises(TopologyError):
        graph.add_edge(2, 1, stiffness=1.0)
    with pytest.raises(TopologyError):
        graph.add_edge(2, 2, stiffness=1.0)
    with pytest.raises(TopologyError):
        graph.add_edge(0, 9, stiffness=1.0)


def test_rejects_invalid_coefficients(graph):
    with pytest.raises(ValueError):
        graph.add_edge(0, 2, stiffness=0.0)
    with pytest.raises(ValueError):
        graph.add_edge(0, 2, stiffness=1.0, damping=-1.0)
    with pytest.raises(ValueError):
        graph.add_node((0.0, 0.0, 0.0), mass=0.0)


def test_node_views_write_through(graph):
    node = graph.node(3)
    node.velocity = (1.0, 2.0, 3.0)
    np.testing.assert_allclose(graph.velocities[3], [1.0, 2.0, 3.0])
    node.force += np.array([0.5, 0.0, 0.0])
    assert graph.forces[3, 0] == 0.5


def test_rest_length_is_mutable(graph):
    e = graph.edge(0, 1)
    e.rest_length = 0.7
    assert graph.rest_lengths[e.index] == pytest.approx(0.7)
    assert e.length() == pytest.approx(1.0)


def test_nodes_of_another_graph_are_rejected(graph):
    other = MassSpringGraph()
    stranger = other.add_node((0.0, 0.0, 0.0))
    with pytest.raises(TopologyError):
        graph.neighbors(stranger)

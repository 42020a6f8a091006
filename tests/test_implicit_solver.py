import numpy as np
import pytest

from fishsim.body import FishBody
from fishsim.config import SolverConfig
from fishsim.errors import (
    DegenerateSpringError,
    DimensionMismatchError,
    SimulationDivergedError,
    SimulationError,
)
from fishsim.graph import MassSpringGraph
from fishsim.linalg import profile, solve_ldlt
from fishsim.mesh.fish import build_body, generate_fish
from fishsim.solver_explicit import ExplicitSolver
from fishsim.solver_implicit import ImplicitSolver, assemble_system


def implicit(**kwargs) -> ImplicitSolver:
    return ImplicitSolver(SolverConfig(integrator="implicit", **kwargs))


def test_pre_solve_clears_forces(three_node_chain):
    three_node_chain.graph.forces[:] = 3.0
    implicit().pre_solve(three_node_chain)
    assert np.array_equal(three_node_chain.graph.forces, np.zeros((3, 3)))


def test_apply_forces_leaves_springs_to_the_system(stretched_pair):
    solver = implicit()
    solver.pre_solve(stretched_pair)
    solver.apply_forces(stretched_pair)
    assert not stretched_pair.graph.forces.any()


def test_free_node_follows_newton():
    graph = MassSpringGraph()
    graph.add_node((0.0, 0.0, 0.0), mass=2.0, velocity=(1.0, 0.0, -1.0))
    body = FishBody(graph)
    graph.forces[0] = (4.0, 2.0, 0.0)

    implicit().integrate(body, 0.1)

    np.testing.assert_allclose(graph.velocities[0], [1.2, 0.1, -1.0])
    np.testing.assert_allclose(graph.positions[0], [0.12, 0.01, -0.1])


def test_assembled_system_is_symmetric_and_solved_exactly():
    points, springs, faces, sides = generate_fish(segments=3)
    body = build_body(points, springs, faces, sides)
    g = body.graph
    g.velocities[:] = np.random.default_rng(1).normal(scale=0.1, size=g.velocities.shape)
    n = g.node_count
    dt = 0.055

    A = np.zeros((n, n))
    G = np.zeros((n, 3))
    bad = assemble_system(
        g.positions, g.velocities, g.forces, g.masses, g.edge_left, g.edge_right,
        g.rest_lengths, g.stiffness, g.damping, dt, A, G,
    )
    assert bad == -1
    np.testing.assert_allclose(A, A.T)
    assert np.all(profile(A) >= g.envelope())

    expected = np.linalg.solve(A, G)
    np.testing.assert_allclose(solve_ldlt(A, G, g.envelope()), expected, atol=1e-10)

    implicit().integrate(body, dt)
    np.testing.assert_allclose(g.velocities, expected, atol=1e-10)


def test_three_node_chain_settles(three_node_chain):
    solver = implicit()
    g = three_node_chain.graph
    for _ in range(200):
        solver.step(three_node_chain, 0.055)

    for edge in g.edges:
        assert edge.length() == pytest.approx(1.0, abs=0.01)
    assert np.abs(g.velocities).max() < 0.01
    np.testing.assert_allclose(three_node_chain.center_of_mass(), [1.5, 0.0, 0.0], atol=1e-9)


def test_undamped_pair_conserves_momentum(make_chain):
    body = make_chain([(0.0, 0.0, 0.0), (1.05, 0.0, 0.0)], stiffness=100.0, damping=0.0)
    solver = implicit()
    for _ in range(100):
        solver.step(body)
        np.testing.assert_allclose(body.momentum(), np.zeros(3), atol=1e-9)
        assert abs(body.graph.edge(0, 1).length() - 1.0) < 0.15


def test_stays_bounded_where_explicit_runs_away(make_chain):
    # A large global damping coefficient overshoots every explicit substep
    # (h * damping > 2). The implicit scheme never applies it.
    config = dict(damping=500.0)
    positions = [(0.0, 0.0, 0.0), (1.5, 0.0, 0.0)]

    body = make_chain(positions, stiffness=100.0, damping=5.0)
    solver = ExplicitSolver(SolverConfig(integrator="explicit", **config))
    runaway = False
    try:
        for _ in range(50):
            solver.step(body)
            if np.abs(body.graph.positions).max() > 1e6:
                runaway = True
                break
    except SimulationError:
        runaway = True
    assert runaway

    body = make_chain(positions, stiffness=100.0, damping=5.0)
    solver = implicit(**config)
    for _ in range(50):
        solver.step(body)
        assert np.abs(body.graph.positions).max() < 10.0
    assert body.graph.edge(0, 1).length() == pytest.approx(1.0, abs=0.05)


def test_coincident_nodes_raise(make_chain):
    body = make_chain([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 0.0, 0.0)])
    with pytest.raises(DegenerateSpringError) as excinfo:
        implicit().step(body)
    assert excinfo.value.edge_index == 1


def test_state_arrays_out_of_step_with_topology(three_node_chain):
    g = three_node_chain.graph
    g.velocities = g.velocities[:2]
    with pytest.raises(DimensionMismatchError):
        implicit().integrate(three_node_chain, 0.055)


@pytest.mark.parametrize("solver_cls", [ExplicitSolver, ImplicitSolver])
def test_empty_body_steps_without_error(solver_cls):
    body = FishBody(MassSpringGraph())
    solver_cls().step(body)
    assert body.graph.positions.shape == (0, 3)
    assert body.graph.velocities.shape == (0, 3)


@pytest.mark.parametrize("solver_cls", [ExplicitSolver, ImplicitSolver])
def test_non_finite_state_is_divergence_not_degeneracy(solver_cls, stretched_pair):
    stretched_pair.graph.positions[1, 0] = np.nan
    with pytest.raises(SimulationDivergedError):
        solver_cls().step(stretched_pair)

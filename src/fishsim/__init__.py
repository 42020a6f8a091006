"""
Fish Body Simulation Package

A mass-spring model of a swimming fish, advanced by either a sub-stepped
explicit integrator or an implicit integrator that solves the spring
network's sparse symmetric system once per tick.
"""

from .body import FishBody
from .config import IntegratorType, SolverConfig
from .errors import (
    DegenerateSpringError,
    DimensionMismatchError,
    SimulationDivergedError,
    SimulationError,
    SingularSystemError,
    TopologyError,
)
from .fluid import FluidFace, TriangleFluidFace
from .graph import Edge, MassSpringGraph, Node
from .models import MassPoint, Spring
from .solver import Solver, make_solver
from .solver_explicit import ExplicitSolver
from .solver_implicit import ImplicitSolver

__version__ = "0.1.0"

__all__ = [
    "DegenerateSpringError",
    "DimensionMismatchError",
    "Edge",
    "ExplicitSolver",
    "FishBody",
    "FluidFace",
    "ImplicitSolver",
    "IntegratorType",
    "MassPoint",
    "MassSpringGraph",
    "Node",
    "SimulationDivergedError",
    "SimulationError",
    "SingularSystemError",
    "Solver",
    "SolverConfig",
    "Spring",
    "TopologyError",
    "TriangleFluidFace",
    "make_solver",
]

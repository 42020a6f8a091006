"""
Exception hierarchy for the simulation core.

Every error here is fatal for the tick that raised it: the body state is
considered corrupted and has to be rebuilt by the caller.
"""


class SimulationError(Exception):
    """Base class for all fishsim errors."""


class TopologyError(SimulationError, LookupError):
    """A spring was requested between nodes that are not connected, or the
    graph was asked to hold an invalid edge."""


class DegenerateSpringError(SimulationError, ZeroDivisionError):
    """A spring's endpoints coincide, so its direction is undefined."""

    def __init__(self, edge_index: int, left: int, right: int) -> None:
        super().__init__(
            f"Spring {edge_index} ({left} -> {right}) has zero length; "
            "endpoints must not coincide"
        )
        self.edge_index = edge_index
        self.left = left
        self.right = right


class DimensionMismatchError(SimulationError, ValueError):
    """Array or matrix sizes disagree with the graph's node count."""


class SingularSystemError(SimulationError, ArithmeticError):
    """A zero pivot was hit while factoring the implicit system."""

    def __init__(self, row: int) -> None:
        super().__init__(f"Zero pivot in row {row} of the implicit system")
        self.row = row


class SimulationDivergedError(SimulationError, FloatingPointError):
    """Positions or velocities became NaN or infinite."""

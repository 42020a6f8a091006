import argparse
import logging
import math
import sys
from collections.abc import Callable, Sequence

import numpy as np

from fishsim.body import FishBody
from fishsim.config import DEFAULT_DAMPING, DEFAULT_DT, DEFAULT_SUBSTEPS, IntegratorType, SolverConfig
from fishsim.errors import SimulationError
from fishsim.logging_config import setup_logging
from fishsim.mesh.fish import build_body, generate_fish
from fishsim.muscle import swim_activation
from fishsim.solver import Solver, make_solver

logger = logging.getLogger(__name__)

REPORT_EVERY = 100


class FishSimulation:
    """
    Drives one fish body tick by tick.

    Before each tick the left and right muscles are driven in anti-phase,
    then the configured solver advances the body. Diagnostics track how long
    the run has stayed finite and the fastest node seen so far.
    """

    def __init__(
        self,
        body: FishBody,
        config: SolverConfig | None = None,
        swim_frequency: float = 1.0,
    ) -> None:
        self.body = body
        self.config = config if config is not None else SolverConfig()
        self.solver: Solver = make_solver(self.config)
        self.swim_frequency = swim_frequency

        self.time = 0.0
        self.steps_stable = 0
        self.max_velocity = 0.0

        logger.info(
            "Simulation initialized: %s solver, %d nodes, %d springs, %d fluid faces, dt=%.4f",
            self.config.integrator.value,
            body.graph.node_count,
            body.graph.edge_count,
            len(body.fluid_faces),
            self.config.dt,
        )

    def actuate(self) -> None:
        if self.swim_frequency <= 0.0:
            return
        left = self.body.muscles.get("left")
        right = self.body.muscles.get("right")
        if left is not None:
            left.contract(swim_activation(self.time, self.swim_frequency))
        if right is not None:
            right.contract(swim_activation(self.time, self.swim_frequency, phase=math.pi))

    def tick(self) -> None:
        """Advance one tick; a SimulationError leaves the body unusable."""
        self.actuate()
        self.solver.step(self.body, self.config.dt)
        self.time += self.config.dt

        speed = float(np.max(np.linalg.norm(self.body.graph.velocities, axis=1), initial=0.0))
        self.max_velocity = max(self.max_velocity, speed)
        self.steps_stable += 1
        if self.steps_stable % REPORT_EVERY == 0:
            logger.info(
                "Stable for %d steps | t=%.2f | Max vel: %.4f",
                self.steps_stable,
                self.time,
                self.max_velocity,
            )

    def run(self, ticks: int, callback: Callable[["FishSimulation"], None] | None = None) -> None:
        for _ in range(ticks):
            self.tick()
            if callback is not None:
                callback(self)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="fishsim", description="Run a headless fish body simulation")
    parser.add_argument("--solver", choices=[t.value for t in IntegratorType], default=IntegratorType.IMPLICIT.value)
    parser.add_argument("--ticks", type=int, default=500)
    parser.add_argument("--dt", type=float, default=DEFAULT_DT)
    parser.add_argument("--substeps", type=int, default=DEFAULT_SUBSTEPS)
    parser.add_argument("--damping", type=float, default=DEFAULT_DAMPING)
    parser.add_argument("--fluid-scale", type=float, default=1.0)
    parser.add_argument("--segments", type=int, default=4)
    parser.add_argument("--swim-frequency", type=float, default=1.0)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        config = SolverConfig(
            integrator=args.solver,
            dt=args.dt,
            substeps=args.substeps,
            damping=args.damping,
            fluid_force_scale=args.fluid_scale,
        )
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    points, springs, faces, muscle_sides = generate_fish(segments=args.segments)
    body = build_body(points, springs, faces, muscle_sides)
    sim = FishSimulation(body, config, swim_frequency=args.swim_frequency)
    start = body.center_of_mass()

    try:
        sim.run(args.ticks)
    except SimulationError as e:
        logger.error("Simulation failed after %d stable steps: %s", sim.steps_stable, e)
        return 1

    travelled = body.center_of_mass() - start
    logger.info(
        "Finished %d ticks (t=%.2f) | displacement: (%.4f, %.4f, %.4f) | max vel: %.4f",
        sim.steps_stable,
        sim.time,
        *travelled,
        sim.max_velocity,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

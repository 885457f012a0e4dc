"""
Step orchestrator: one simulation tick

    persistent elements -> transient input -> advect -> diffuse -> project
    -> conserve mass

A step either completes or leaves the state flagged as corrupted; there is
no mid-step rollback.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional
from ..geometry.grid import Grid, zero_boundary
from ..numerics.advection import SemiLagrangianAdvector
from ..numerics.diffusion import ImplicitDiffuser
from ..numerics.projection import PressureProjector, ProjectionResult
from ..numerics.conservation import MassConservator, channel_mass
from .perturbation import PerturbationEngine
from .simulation_state import SimulationState, SimulationCorruptedError

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Bookkeeping of one completed step"""
    time: float
    dt: float
    projection: ProjectionResult
    injected_mass: np.ndarray
    target_mass: np.ndarray
    mass: np.ndarray
    mass_scales: np.ndarray


class FluidSolver2D:
    """
    Runs the solver stages over a SimulationState

    Stages are bound to one grid; parameters are read from the state on
    every step so callers may retune them between steps.
    """

    def __init__(self, grid: Grid):
        self.grid = grid
        self.advector = SemiLagrangianAdvector(grid)
        self.diffuser = ImplicitDiffuser(grid)
        self.projector = PressureProjector(grid)
        self.conservator = MassConservator()
        self.perturbations = PerturbationEngine(grid)

    @classmethod
    def for_state(cls, state: SimulationState) -> 'FluidSolver2D':
        return cls(state.grid)

    def step(self, state: SimulationState, dt: Optional[float] = None) -> StepResult:
        """
        Advance the state by one tick

        Args:
            state: State to advance in place
            dt: Time step (state.params.dt if None)

        Raises:
            SimulationCorruptedError: If the state was already corrupted or
                this step produced non-finite values
            ValueError: On a negative dt or a state on another grid
        """
        if state.corrupted:
            raise SimulationCorruptedError("State is corrupted; reset it before stepping")
        if state.grid.shape != self.grid.shape:
            raise ValueError(
                f"Solver built for {self.grid.width}x{self.grid.height}, "
                f"state is {state.width}x{state.height}"
            )

        params = state.params
        if dt is None:
            dt = params.dt
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")

        self.diffuser.iterations = params.diffusion_iterations
        self.projector.tolerance = params.tolerance
        self.projector.max_iterations = params.max_iterations
        self.conservator.epsilon = params.mass_epsilon
        self.perturbations.sponge_rate = params.sponge_rate

        mass_before = channel_mass(state.dye.current)

        # Perturbations write straight into the current buffers
        injected = self.perturbations.apply_elements(
            state.velocity.current, state.dye.current, state.ordered_elements(), dt
        )
        injected = injected + self.perturbations.apply_transient(
            state.velocity.current, state.dye.current, state.take_pending()
        )
        target = mass_before + injected

        self.advector.advect(state.velocity, state.dye, dt)

        self.diffuser.diffuse_velocity(state.velocity, dt, params.viscosity)
        self.diffuser.diffuse_dye(state.dye, dt, params.diffusion_rate,
                                  params.dye_diffusion_iterations)

        projection = self.projector.project(state.velocity, dt)

        scales = self.conservator.conserve(state.dye.current, target)
        zero_boundary(state.velocity.current)

        if not state.check_finite():
            state.corrupted = True
            logger.error("Step %d produced non-finite values; state corrupted",
                         state.step_count + 1)
            raise SimulationCorruptedError(
                f"Non-finite values after step {state.step_count + 1}"
            )

        state.time += dt
        state.step_count += 1
        mass = state.refresh_mass()

        return StepResult(
            time=state.time,
            dt=dt,
            projection=projection,
            injected_mass=injected,
            target_mass=target,
            mass=mass.copy(),
            mass_scales=scales,
        )

"""
Function surface consumed by the GUI/host layer

Each SimulationState carries the FluidSolver2D bound to its grid in
`state.solver`; it is rebuilt whenever the state is reallocated.
"""

import numpy as np
from typing import List, Optional
from .config import SimulationParams, MIN_ELEMENT_RADIUS
from .physics.elements import DyeSource, Force, PersistentElement
from .physics.fluid_solver import FluidSolver2D, StepResult
from .physics.simulation_state import SimulationState


def create(width: int, height: int,
           params: Optional[SimulationParams] = None) -> SimulationState:
    """
    Allocate a new simulation

    Raises:
        ValueError: If width/height < 3 or parameters are unusable
    """
    state = SimulationState(width, height, params)
    state.solver = FluidSolver2D.for_state(state)
    return state


def _solver(state: SimulationState) -> FluidSolver2D:
    solver = getattr(state, 'solver', None)
    if solver is None or solver.grid.shape != state.grid.shape:
        solver = FluidSolver2D.for_state(state)
        state.solver = solver
    return solver


def step(state: SimulationState, dt: Optional[float] = None) -> StepResult:
    """Advance one tick (state.params.dt if dt is None)"""
    return _solver(state).step(state, dt)


def apply_force(state: SimulationState, pos, radius: float, direction, strength: float):
    """Queue a one-off velocity impulse, applied at the start of the next step"""
    state.queue_input(Force(_clamp_pos(state, pos), _clamp_radius(radius),
                            tuple(direction), float(strength)))


def inject_dye(state: SimulationState, pos, radius: float, color, intensity: float):
    """Queue a one-off dye deposit, applied at the start of the next step"""
    state.queue_input(DyeSource(_clamp_pos(state, pos), _clamp_radius(radius),
                                tuple(float(c) for c in color), float(intensity)))


def add_persistent_element(state: SimulationState, element: PersistentElement) -> int:
    return state.add_element(element)


def remove_persistent_element(state: SimulationState, element_id: int) -> PersistentElement:
    return state.remove_element(element_id)


def remove_elements_near(state: SimulationState, pos, radius: float) -> List[int]:
    """Eraser tool: remove every element within radius of pos"""
    return state.remove_elements_near(pos, radius)


def resize(state: SimulationState, width: int, height: int) -> SimulationState:
    """Resolution change: reallocate the state and rebuild its solver"""
    state.resize(width, height)
    state.solver = FluidSolver2D.for_state(state)
    return state


def sample_dye_for_render(state: SimulationState) -> np.ndarray:
    """Read-only point-in-time copy of the dye field"""
    return state.dye_snapshot()


def _clamp_pos(state: SimulationState, pos):
    x = float(np.clip(pos[0], 0.0, state.width))
    y = float(np.clip(pos[1], 0.0, state.height))
    return (x, y)


def _clamp_radius(radius: float) -> float:
    return max(float(radius), MIN_ELEMENT_RADIUS)

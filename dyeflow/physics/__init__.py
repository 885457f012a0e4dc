"""Perturbations, simulation state and the step orchestrator"""

from .elements import DyeSource, Force, Attractor, PersistentElement
from .perturbation import PerturbationEngine, Footprint, attractor_velocity, sponge_damping
from .simulation_state import SimulationState, SimulationCorruptedError
from .fluid_solver import FluidSolver2D, StepResult

__all__ = [
    'DyeSource',
    'Force',
    'Attractor',
    'PersistentElement',
    'PerturbationEngine',
    'Footprint',
    'attractor_velocity',
    'sponge_damping',
    'SimulationState',
    'SimulationCorruptedError',
    'FluidSolver2D',
    'StepResult'
]

"""
Real-time 2D incompressible fluid solver with RGB dye transport

Semi-Lagrangian advection, implicit diffusion, adaptive pressure projection
and per-channel mass conservation on a uniform grid, plus the persistent
dye sources, forces and attractors placed by an interactive front-end.
"""

__version__ = "0.1.0"

from .config import SimulationParams
from .physics import (
    SimulationState,
    SimulationCorruptedError,
    FluidSolver2D,
    DyeSource,
    Force,
    Attractor,
)
from .api import (
    create,
    step,
    apply_force,
    inject_dye,
    add_persistent_element,
    remove_persistent_element,
    remove_elements_near,
    sample_dye_for_render,
)

__all__ = [
    'SimulationParams',
    'SimulationState',
    'SimulationCorruptedError',
    'FluidSolver2D',
    'DyeSource',
    'Force',
    'Attractor',
    'create',
    'step',
    'apply_force',
    'inject_dye',
    'add_persistent_element',
    'remove_persistent_element',
    'remove_elements_near',
    'sample_dye_for_render',
]

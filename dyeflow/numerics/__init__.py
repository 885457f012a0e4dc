"""Numerical stages of the fluid step"""

from .advection import SemiLagrangianAdvector
from .diffusion import ImplicitDiffuser, diffusion_coefficient
from .projection import PressureProjector, ProjectionResult, divergence
from .conservation import MassConservator, channel_mass
from .time_integration import AdaptiveTimeStep, integrate

__all__ = [
    'SemiLagrangianAdvector',
    'ImplicitDiffuser',
    'diffusion_coefficient',
    'PressureProjector',
    'ProjectionResult',
    'divergence',
    'MassConservator',
    'channel_mass',
    'AdaptiveTimeStep',
    'integrate'
]

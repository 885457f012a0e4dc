"""
Initial conditions for dyeflow simulations
"""

import numpy as np
from typing import Optional, Tuple
from ..config import SimulationParams
from ..geometry.grid import zero_boundary
from ..physics.simulation_state import SimulationState
from .. import api


def taylor_green_vortex(width: int, height: int,
                        amplitude: float = 1.0,
                        params: Optional[SimulationParams] = None) -> SimulationState:
    """
    Single Taylor-Green cell fitted to the walled box

    Built from the stream function psi = A sin(pi x / W) sin(pi y / H), so the
    flow is divergence-free and tangent to the walls.

    Args:
        width: Grid width in cells
        height: Grid height in cells
        amplitude: Velocity amplitude
        params: Solver parameters

    Returns:
        Initial simulation state
    """
    state = api.create(width, height, params)
    x, y = state.grid.cell_centers()
    kx = np.pi / width
    ky = np.pi / height

    velocity = np.zeros((height, width, 2))
    velocity[..., 0] = amplitude * np.sin(kx * x) * np.cos(ky * y)
    velocity[..., 1] = -amplitude * (kx / ky) * np.cos(kx * x) * np.sin(ky * y)
    state.load_velocity(zero_boundary(velocity))
    return state


def vortex_pair(width: int, height: int,
                separation: Optional[float] = None,
                strength: float = 5.0,
                params: Optional[SimulationParams] = None) -> SimulationState:
    """
    Counter-rotating vortex pair

    Args:
        width: Grid width in cells
        height: Grid height in cells
        separation: Distance between vortex centers (width / 4 if None)
        strength: Vortex strength
        params: Solver parameters

    Returns:
        Initial simulation state
    """
    state = api.create(width, height, params)
    x, y = state.grid.cell_centers()
    if separation is None:
        separation = width / 4.0

    cx, cy = width / 2.0, height / 2.0
    velocity = np.zeros((height, width, 2))

    for sign, x0 in [(1, cx - separation / 2), (-1, cx + separation / 2)]:
        dx = x - x0
        dy = y - cy
        r_squared = dx**2 + dy**2 + 1.0  # Regularization

        velocity[..., 0] += sign * strength * dy / r_squared
        velocity[..., 1] -= sign * strength * dx / r_squared

    state.load_velocity(zero_boundary(velocity))
    return state


def shear_flow(width: int, height: int,
               shear_rate: float = 1.0,
               perturbation: float = 0.1,
               seed: Optional[int] = None,
               params: Optional[SimulationParams] = None) -> SimulationState:
    """
    Shear layer with small random perturbation
    """
    state = api.create(width, height, params)
    _, y = state.grid.cell_centers()
    rng = np.random.default_rng(seed)

    velocity = np.zeros((height, width, 2))
    velocity[..., 0] = shear_rate * np.sin(2 * np.pi * y / height)
    velocity += perturbation * rng.standard_normal(velocity.shape)

    state.load_velocity(zero_boundary(velocity))
    return state


def dye_disc(state: SimulationState,
             center: Tuple[float, float],
             radius: float,
             color: Tuple[float, float, float] = (1.0, 1.0, 1.0)) -> SimulationState:
    """
    Fill a disc of cells with dye, adding to what is there

    Args:
        state: State to modify
        center: Disc center in grid coordinates
        radius: Disc radius in cells
        color: Concentration per channel

    Returns:
        The same state, for chaining
    """
    x, y = state.grid.cell_centers()
    inside = (x - center[0])**2 + (y - center[1])**2 <= radius**2

    dye = state.dye.snapshot()
    dye[inside] += np.clip(np.asarray(color, dtype=float), 0.0, None)
    state.load_dye(dye)
    return state

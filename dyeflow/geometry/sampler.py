"""
Bilinear sampling of cell fields with half-cell boundary clamping

This is the single place where sample positions are clamped: positions are
limited to [0.5, width-0.5] x [0.5, height-0.5], i.e. to the span between the
outermost cell centers, so interpolation never leaves valid data and an
out-of-domain position reads the nearest edge cell.
"""

import numpy as np
from scipy.ndimage import map_coordinates
from typing import Tuple
from .grid import Grid


def clamp_position(grid: Grid, x, y) -> Tuple[np.ndarray, np.ndarray]:
    """
    Clamp positions (scalars or arrays) to the sampleable region
    """
    x_c = np.clip(x, 0.5, grid.width - 0.5)
    y_c = np.clip(y, 0.5, grid.height - 0.5)
    return x_c, y_c


def sample_field(field: np.ndarray, x, y) -> np.ndarray:
    """
    Bilinearly interpolate a (height, width, channels) field

    Args:
        field: Cell field
        x: Sample x positions in grid coordinates (any shape)
        y: Sample y positions, same shape as x

    Returns:
        Array of shape x.shape + (channels,)
    """
    height, width, channels = field.shape
    grid = Grid(width, height)
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    scalar = x_arr.ndim == 0
    x_c, y_c = clamp_position(grid, np.atleast_1d(x_arr), np.atleast_1d(y_arr))

    # Cell centers sit at integer + 0.5, array indices at integers
    coords = np.stack([y_c - 0.5, x_c - 0.5])

    out = np.empty(x_c.shape + (channels,), dtype=np.float64)
    for c in range(channels):
        out[..., c] = map_coordinates(
            np.ascontiguousarray(field[..., c]), coords, order=1, mode='nearest'
        )
    return out[0] if scalar else out


def sample_velocity(velocity: np.ndarray, pos: Tuple[float, float]) -> np.ndarray:
    """Interpolated (vx, vy) at a single position"""
    return sample_field(velocity, pos[0], pos[1])


def sample_dye(dye: np.ndarray, pos: Tuple[float, float]) -> np.ndarray:
    """Interpolated (r, g, b) at a single position"""
    return sample_field(dye, pos[0], pos[1])

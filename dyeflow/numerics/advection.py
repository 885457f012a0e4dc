"""
Semi-Lagrangian advection of velocity and dye
"""

import numpy as np
from ..geometry.grid import Grid, PingPongBuffer, zero_boundary
from ..geometry.sampler import sample_field


class SemiLagrangianAdvector:
    """
    Backtrace every cell center along the previous-step velocity

    For each cell p the source position is p' = p - v(p) * dt, and the new
    value is the field sampled at p'. Both fields are read from the frozen
    `current` arrays and written to the `back` arrays, then swapped.
    """

    def __init__(self, grid: Grid):
        self.grid = grid
        self.x_centers, self.y_centers = grid.cell_centers()

    def backtrace(self, velocity: np.ndarray, dt: float):
        """
        Source positions of every cell

        Returns:
            (src_x, src_y), each of shape (height, width), unclamped
        """
        src_x = self.x_centers - dt * velocity[..., 0]
        src_y = self.y_centers - dt * velocity[..., 1]
        return src_x, src_y

    def advect(self, velocity: PingPongBuffer, dye: PingPongBuffer, dt: float):
        """
        Advect velocity and dye by one step

        Args:
            velocity: Velocity buffer, advanced in place (ownership swapped)
            dye: Dye buffer, advanced in place (ownership swapped)
            dt: Time step
        """
        v_old = velocity.current
        src_x, src_y = self.backtrace(v_old, dt)

        velocity.back[...] = sample_field(v_old, src_x, src_y)
        # Walls carry no velocity; dye may touch the edges
        zero_boundary(velocity.back)

        dye.back[...] = sample_field(dye.current, src_x, src_y)

        velocity.swap()
        dye.swap()

"""
Implicit diffusion by Jacobi relaxation
"""

import numpy as np
from ..geometry.grid import Grid, PingPongBuffer, zero_boundary


def diffusion_coefficient(grid: Grid, dt: float, rate: float) -> float:
    """a = dt * rate * width * height"""
    return dt * rate * grid.width * grid.height


class ImplicitDiffuser:
    """
    Relax (1 + 4a) x - a * sum(neighbours) = x_old over the interior cells

    Each sweep reads only the previous sweep's array, so per-cell updates
    are independent and the scheme is stable for any a >= 0.
    """

    def __init__(self, grid: Grid, iterations: int = 4):
        self.grid = grid
        self.iterations = iterations

    def relax(self, buffer: PingPongBuffer, a: float, iterations: int = None,
              walls: bool = True):
        """
        Diffuse a buffered field in place

        Args:
            buffer: Field to diffuse; result ends up in buffer.current
            a: Diffusion coefficient (see diffusion_coefficient)
            iterations: Relaxation sweeps (defaults to self.iterations)
            walls: Zero the edge cells after each sweep (velocity); otherwise
                edge cells keep their pre-diffusion values (dye)
        """
        if iterations is None:
            iterations = self.iterations
        if iterations <= 0:
            return

        x_old = buffer.snapshot()
        denom = 1.0 + 4.0 * a

        for _ in range(iterations):
            prev = buffer.current
            nxt = buffer.back

            neighbours = (prev[1:-1, :-2] + prev[1:-1, 2:] +
                          prev[:-2, 1:-1] + prev[2:, 1:-1])
            nxt[1:-1, 1:-1] = (x_old[1:-1, 1:-1] + a * neighbours) / denom

            if walls:
                zero_boundary(nxt)
            else:
                nxt[0, :] = x_old[0, :]
                nxt[-1, :] = x_old[-1, :]
                nxt[:, 0] = x_old[:, 0]
                nxt[:, -1] = x_old[:, -1]

            buffer.swap()

    def diffuse_velocity(self, velocity: PingPongBuffer, dt: float, viscosity: float):
        a = diffusion_coefficient(self.grid, dt, viscosity)
        self.relax(velocity, a, walls=True)

    def diffuse_dye(self, dye: PingPongBuffer, dt: float, diffusion_rate: float,
                    iterations: int = 2):
        """Separate low-coefficient pass for dye; edges are not walls for dye"""
        a = diffusion_coefficient(self.grid, dt, diffusion_rate)
        if a <= 0.0:
            return
        self.relax(dye, a, iterations=iterations, walls=False)

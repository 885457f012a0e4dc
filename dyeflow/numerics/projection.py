"""
Pressure projection with adaptive early exit

The discrete problem per interior cell is

    sum(p_neighbours) - 4 p = div,   div = 0.5 * (dvx/dx + dvy/dy)  (central)

with Neumann (copied) pressure at the walls. Jacobi sweeps are used, so every
cell update reads only the previous sweep. With a constant diagonal the
residual obeys r_{k+1} = (N / 4) r_k where N is the symmetric neighbour
operator with unit row sums scaled by 4, hence the RMS residual never grows
from one sweep to the next.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List
from ..geometry.grid import Grid, PingPongBuffer, zero_boundary, copy_boundary

logger = logging.getLogger(__name__)


@dataclass
class ProjectionResult:
    """Outcome of one projection"""
    iterations: int
    initial_residual: float
    residual: float
    converged: bool
    residual_history: List[float] = field(default_factory=list)


def divergence(velocity: np.ndarray) -> np.ndarray:
    """
    Central-difference divergence, zero on the edge cells

    Args:
        velocity: (height, width, 2) field

    Returns:
        (height, width) divergence
    """
    div = np.zeros(velocity.shape[:2], dtype=np.float64)
    div[1:-1, 1:-1] = 0.5 * ((velocity[1:-1, 2:, 0] - velocity[1:-1, :-2, 0]) +
                             (velocity[2:, 1:-1, 1] - velocity[:-2, 1:-1, 1]))
    return div


class PressureProjector:
    """
    Iterative Poisson solve making velocity (approximately) divergence-free
    """

    def __init__(self, grid: Grid, tolerance: float = 1e-3, max_iterations: int = 20):
        """
        Args:
            grid: Simulation grid
            tolerance: RMS residual below which relaxation stops early
            max_iterations: Upper bound on relaxation sweeps
        """
        self.grid = grid
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.pressure = PingPongBuffer(grid, 1)

    def residual(self, pressure: np.ndarray, div: np.ndarray) -> float:
        """RMS of div - laplacian(p) over the interior cells"""
        lap = (pressure[1:-1, :-2] + pressure[1:-1, 2:] +
               pressure[:-2, 1:-1] + pressure[2:, 1:-1] -
               4.0 * pressure[1:-1, 1:-1])
        r = div[1:-1, 1:-1] - lap
        return float(np.sqrt(np.mean(r * r)))

    def solve_pressure(self, div: np.ndarray, max_iterations: int = None) -> ProjectionResult:
        """
        Relax the pressure estimate from zero

        The pressure ends up in self.pressure.current[..., 0].
        """
        if max_iterations is None:
            max_iterations = self.max_iterations

        self.pressure.fill(0.0)
        p = self.pressure.current[..., 0]
        initial = self.residual(p, div)
        residual = initial
        history = []

        iterations = 0
        converged = initial < self.tolerance
        while not converged and iterations < max_iterations:
            prev = self.pressure.current[..., 0]
            nxt = self.pressure.back[..., 0]

            nxt[1:-1, 1:-1] = (prev[1:-1, :-2] + prev[1:-1, 2:] +
                               prev[:-2, 1:-1] + prev[2:, 1:-1] -
                               div[1:-1, 1:-1]) / 4.0
            copy_boundary(nxt)
            self.pressure.swap()
            iterations += 1

            residual = self.residual(self.pressure.current[..., 0], div)
            history.append(residual)
            converged = residual < self.tolerance

        return ProjectionResult(
            iterations=iterations,
            initial_residual=initial,
            residual=residual,
            converged=converged,
            residual_history=history,
        )

    def project(self, velocity: PingPongBuffer, dt: float) -> ProjectionResult:
        """
        Subtract the pressure gradient from velocity, in place

        A zero-length step carries no pressure impulse, so dt <= 0 leaves
        velocity untouched.
        """
        if dt <= 0.0:
            return ProjectionResult(0, 0.0, 0.0, True)

        v = velocity.current
        div = divergence(v)
        result = self.solve_pressure(div)

        p = self.pressure.current[..., 0]
        # Degenerate cells get no correction rather than NaN
        p = np.where(np.isfinite(p), p, 0.0)

        v[1:-1, 1:-1, 0] -= 0.5 * (p[1:-1, 2:] - p[1:-1, :-2])
        v[1:-1, 1:-1, 1] -= 0.5 * (p[2:, 1:-1] - p[:-2, 1:-1])
        zero_boundary(v)

        if result.converged:
            logger.debug("Pressure converged after %d sweeps (residual %.3e)",
                         result.iterations, result.residual)
        else:
            logger.debug("Pressure hit %d sweeps without converging (residual %.3e)",
                         result.iterations, result.residual)
        return result

"""
Caller-side time stepping helpers
"""

import logging
import numpy as np
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class AdaptiveTimeStep:
    """
    Adaptive time stepping based on the CFL condition
    """

    def __init__(self, cfl_number: float = 0.5, min_dt: float = 1e-4, max_dt: float = 0.1):
        """
        Args:
            cfl_number: Cells a parcel may travel per step
            min_dt: Minimum allowed time step
            max_dt: Maximum allowed time step
        """
        if min_dt <= 0 or max_dt < min_dt:
            raise ValueError(f"Invalid dt bounds: min_dt={min_dt}, max_dt={max_dt}")
        self.cfl_number = cfl_number
        self.min_dt = min_dt
        self.max_dt = max_dt

    def compute_dt(self, state) -> float:
        """
        Largest step keeping the fastest parcel within cfl_number cells
        """
        max_vel = float(np.max(state.speed()))

        if max_vel < 1e-10:
            return self.max_dt

        # Grid spacing is one cell
        dt = self.cfl_number / max_vel
        return float(np.clip(dt, self.min_dt, self.max_dt))


def integrate(solver, state, n_steps: int,
              dt: Optional[float] = None,
              adaptive: Optional[AdaptiveTimeStep] = None,
              callback: Optional[Callable] = None) -> List:
    """
    Drive a bounded sequence of steps

    Args:
        solver: FluidSolver2D
        state: SimulationState advanced in place
        n_steps: Number of steps
        dt: Fixed step (defaults to state.params.dt)
        adaptive: If given, overrides dt with a CFL-bounded step each time
        callback: Called as callback(state, result) after each step

    Returns:
        List of StepResult, one per step
    """
    results = []
    for _ in range(n_steps):
        step_dt = dt
        if adaptive is not None:
            step_dt = adaptive.compute_dt(state)

        result = solver.step(state, step_dt)
        results.append(result)

        if callback is not None:
            callback(state, result)

    logger.debug("Integrated %d steps to t=%.4f", n_steps, state.time)
    return results

"""
Solver parameters and numeric constants
"""

from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, Mapping


# Numeric floor used wherever a denominator could vanish
EPSILON = 1e-10

# Smallest distance (in cells) used by the attractor point-sink formula
ATTRACTOR_MIN_RADIUS = 1.0

# Sponge band starts at this fraction of the attractor radius
SPONGE_INNER_FRACTION = 0.8

# Black dye sources drain at this fraction of their intensity
DRAIN_SCALE = 0.3

# Smallest radius a decoded or clamped element may carry
MIN_ELEMENT_RADIUS = 1e-3

MIN_GRID_SIZE = 3


@dataclass
class SimulationParams:
    """
    Scalar parameters of a simulation run

    Defaults match the interactive solver tuned for 100x100 to 200x200 grids.
    """
    dt: float = 0.1
    viscosity: float = 0.001
    diffusion_rate: float = 0.0001
    tolerance: float = 1e-3           # Pressure residual for early exit
    max_iterations: int = 20          # Pressure relaxation sweeps
    diffusion_iterations: int = 4     # Velocity relaxation sweeps
    dye_diffusion_iterations: int = 2
    cell_size: float = 8.0            # Canvas pixels per cell
    sponge_rate: float = 2.0          # Attractor sponge damping per unit time
    mass_epsilon: float = EPSILON

    def validate(self, width: int, height: int):
        """
        Reject configurations with no sensible degraded mode

        Args:
            width: Grid width in cells
            height: Grid height in cells

        Raises:
            ValueError: If the grid or any parameter is unusable
        """
        if width < MIN_GRID_SIZE or height < MIN_GRID_SIZE:
            raise ValueError(
                f"Grid must be at least {MIN_GRID_SIZE}x{MIN_GRID_SIZE} cells, "
                f"got {width}x{height}"
            )
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.diffusion_iterations <= 0:
            raise ValueError(
                f"diffusion_iterations must be positive, got {self.diffusion_iterations}"
            )
        if self.dye_diffusion_iterations < 0:
            raise ValueError(
                f"dye_diffusion_iterations must be non-negative, got {self.dye_diffusion_iterations}"
            )
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        for name in ('dt', 'viscosity', 'diffusion_rate', 'sponge_rate', 'mass_epsilon'):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SimulationParams':
        """
        Build parameters from a plain mapping (e.g. a parsed config file)

        Raises:
            ValueError: If the mapping carries keys that are not parameters
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown simulation parameters: {sorted(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

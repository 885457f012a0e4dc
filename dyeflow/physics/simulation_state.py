"""
Simulation state: grid, fields, persistent elements and run bookkeeping
"""

import logging
import numpy as np
from typing import Dict, Iterator, List, Optional, Tuple
from ..config import SimulationParams
from ..geometry.grid import Grid, PingPongBuffer, VELOCITY_CHANNELS, DYE_CHANNELS
from ..numerics.conservation import channel_mass
from .elements import PersistentElement, ELEMENT_TYPES, rescale_element

logger = logging.getLogger(__name__)


class SimulationCorruptedError(RuntimeError):
    """A step produced non-finite values; the state must be reset"""


class SimulationState:
    """
    Explicitly owned state of one simulation run

    Holds the velocity and dye fields (double-buffered), the ordered
    persistent elements, queued transient input, the scalar parameters and
    the per-channel dye mass recorded after the last step.
    """

    def __init__(self, width: int, height: int,
                 params: Optional[SimulationParams] = None):
        """
        Args:
            width: Grid width in cells (>= 3)
            height: Grid height in cells (>= 3)
            params: Solver parameters (defaults if None)

        Raises:
            ValueError: On an unsolvable grid or bad parameters
        """
        self.params = params if params is not None else SimulationParams()
        self.params.validate(width, height)

        self.elements: Dict[int, PersistentElement] = {}
        self.solver = None  # FluidSolver2D bound by dyeflow.api
        self._next_id = 1
        self._allocate(width, height)
        logger.info("Created %dx%d simulation state", width, height)

    def _allocate(self, width: int, height: int):
        self.grid = Grid(width, height, self.params.cell_size)
        self.velocity = PingPongBuffer(self.grid, VELOCITY_CHANNELS)
        self.dye = PingPongBuffer(self.grid, DYE_CHANNELS)
        self.pending: List[PersistentElement] = []
        self.total_dye_mass = np.zeros(DYE_CHANNELS)
        self.time = 0.0
        self.step_count = 0
        self.corrupted = False

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    @property
    def velocity_field(self) -> np.ndarray:
        return self.velocity.current

    @property
    def dye_field(self) -> np.ndarray:
        return self.dye.current

    # Cell access

    def velocity_at(self, x: int, y: int) -> np.ndarray:
        """Live (vx, vy) reference of one cell"""
        return self.velocity.at(x, y)

    def dye_at(self, x: int, y: int) -> Tuple[float, float, float]:
        """Copy of one cell's (r, g, b)"""
        r, g, b = self.dye.at(x, y)
        return float(r), float(g), float(b)

    def dye_snapshot(self) -> np.ndarray:
        """Read-only copy of the dye field, safe to hold across steps"""
        snap = self.dye.snapshot()
        snap.flags.writeable = False
        return snap

    def velocity_snapshot(self) -> np.ndarray:
        snap = self.velocity.snapshot()
        snap.flags.writeable = False
        return snap

    def load_velocity(self, data: np.ndarray):
        self.velocity.load(data)

    def load_dye(self, data: np.ndarray):
        if np.any(np.asarray(data) < 0):
            raise ValueError("Dye concentrations must be non-negative")
        self.dye.load(data)
        self.refresh_mass()

    def refresh_mass(self) -> np.ndarray:
        self.total_dye_mass = channel_mass(self.dye.current)
        return self.total_dye_mass

    # Derived quantities

    def speed(self) -> np.ndarray:
        v = self.velocity.current
        return np.sqrt(v[..., 0]**2 + v[..., 1]**2)

    def kinetic_energy(self) -> float:
        v = self.velocity.current
        return float(0.5 * np.sum(v * v))

    # Persistent elements

    def add_element(self, element: PersistentElement) -> int:
        """
        Append a persistent element

        Returns:
            Identifier unique within this state
        """
        if not isinstance(element, ELEMENT_TYPES):
            raise TypeError(f"Not a persistent element: {element!r}")
        element_id = self._next_id
        self._next_id += 1
        self.elements[element_id] = element
        logger.debug("Added %s #%d at (%.1f, %.1f)", type(element).__name__,
                     element_id, element.pos[0], element.pos[1])
        return element_id

    def remove_element(self, element_id: int) -> PersistentElement:
        """
        Raises:
            KeyError: If no element has this identifier
        """
        if element_id not in self.elements:
            raise KeyError(f"No persistent element with id {element_id}")
        logger.debug("Removed element #%d", element_id)
        return self.elements.pop(element_id)

    def remove_elements_near(self, pos, radius: float) -> List[int]:
        """Erase every element positioned within radius of pos"""
        px, py = pos
        doomed = [eid for eid, e in self.elements.items()
                  if np.hypot(e.pos[0] - px, e.pos[1] - py) <= radius]
        for eid in doomed:
            self.remove_element(eid)
        return doomed

    def clear_elements(self):
        self.elements.clear()

    def ordered_elements(self) -> Iterator[PersistentElement]:
        """Elements in creation order"""
        return iter(list(self.elements.values()))

    def replace_elements(self, elements):
        """Drop all elements and add the given ones in order"""
        self.clear_elements()
        return [self.add_element(e) for e in elements]

    # Transient input

    def queue_input(self, item: PersistentElement):
        self.pending.append(item)

    def take_pending(self) -> List[PersistentElement]:
        pending, self.pending = self.pending, []
        return pending

    # Lifecycle

    def reset(self):
        """Zero the fields and clear corruption; persistent elements stay"""
        self.velocity.fill(0.0)
        self.dye.fill(0.0)
        self.pending = []
        self.total_dye_mass = np.zeros(DYE_CHANNELS)
        self.time = 0.0
        self.step_count = 0
        self.corrupted = False
        logger.info("Reset %dx%d simulation state", self.width, self.height)

    def resize(self, width: int, height: int):
        """
        Reallocate the whole state at a new resolution

        Fields start empty; persistent elements are mapped onto the new grid.
        """
        self.params.validate(width, height)
        sx = width / self.width
        sy = height / self.height
        rescaled = [rescale_element(e, sx, sy) for e in self.elements.values()]
        self._allocate(width, height)
        self.replace_elements(rescaled)
        logger.info("Reallocated simulation state at %dx%d", width, height)

    def check_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.velocity.current)) and
                    np.all(np.isfinite(self.dye.current)))

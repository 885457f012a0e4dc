"""
Grid storage: uniform 2D cell grid and double-buffered cell fields

Fields are numpy arrays of shape (height, width, channels) in C order, so the
flat view is row-major with index = y * width + x and the channels of one
cell stored contiguously ((vx, vy) for velocity, (r, g, b) for dye).
"""

import numpy as np
from dataclasses import dataclass
from typing import Tuple

VELOCITY_CHANNELS = 2
DYE_CHANNELS = 3


@dataclass(frozen=True)
class Grid:
    """
    Immutable grid geometry

    Cell (x, y) covers [x, x+1] x [y, y+1] in grid coordinates, so its center
    sits at (x + 0.5, y + 0.5). cell_size is only the canvas scale.
    """
    width: int
    height: int
    cell_size: float = 1.0

    @property
    def n_cells(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index(self, x: int, y: int) -> int:
        """Flat row-major index of cell (x, y)"""
        if not self.contains(x, y):
            raise IndexError(f"Cell ({x}, {y}) outside {self.width}x{self.height} grid")
        return y * self.width + x

    def cell_centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Cell-center coordinate grids

        Returns:
            (x_centers, y_centers), each of shape (height, width)
        """
        xs = np.arange(self.width, dtype=float) + 0.5
        ys = np.arange(self.height, dtype=float) + 0.5
        x_grid, y_grid = np.meshgrid(xs, ys, indexing='xy')
        return x_grid, y_grid

    def boundary_mask(self) -> np.ndarray:
        """Boolean (height, width) mask of the edge cells"""
        mask = np.zeros(self.shape, dtype=bool)
        mask[0, :] = True
        mask[-1, :] = True
        mask[:, 0] = True
        mask[:, -1] = True
        return mask

    def zeros(self, channels: int) -> np.ndarray:
        return np.zeros((self.height, self.width, channels), dtype=np.float64)


def zero_boundary(field: np.ndarray) -> np.ndarray:
    """Wall condition: force every edge cell of a field to zero, in place"""
    field[0, :] = 0.0
    field[-1, :] = 0.0
    field[:, 0] = 0.0
    field[:, -1] = 0.0
    return field


def copy_boundary(field: np.ndarray) -> np.ndarray:
    """Neumann condition: edge cells take the value of their interior neighbour, in place"""
    field[0, :] = field[1, :]
    field[-1, :] = field[-2, :]
    field[:, 0] = field[:, 1]
    field[:, -1] = field[:, -2]
    return field


class PingPongBuffer:
    """
    Two equally shaped arrays with swappable roles

    Stages read the frozen `current` array and write `back`; `swap()` then
    hands ownership of the freshly written data to `current`. The arrays
    are never aliased within a sweep.
    """

    def __init__(self, grid: Grid, channels: int):
        self.grid = grid
        self.channels = channels
        self._front = grid.zeros(channels)
        self._back = grid.zeros(channels)

    @property
    def current(self) -> np.ndarray:
        return self._front

    @property
    def back(self) -> np.ndarray:
        return self._back

    def swap(self):
        self._front, self._back = self._back, self._front

    def flat(self) -> np.ndarray:
        """Row-major (n_cells, channels) view of the current array"""
        return self._front.reshape(-1, self.channels)

    def at(self, x: int, y: int) -> np.ndarray:
        """
        Reference to one cell of the current array

        Raises:
            IndexError: If (x, y) lies outside the grid
        """
        if not self.grid.contains(x, y):
            raise IndexError(
                f"Cell ({x}, {y}) outside {self.grid.width}x{self.grid.height} grid"
            )
        return self._front[y, x]

    def snapshot(self) -> np.ndarray:
        """Independent copy of the current array"""
        return self._front.copy()

    def fill(self, value: float = 0.0):
        self._front.fill(value)
        self._back.fill(value)

    def load(self, data: np.ndarray):
        """Replace the current contents, validating the shape"""
        data = np.asarray(data, dtype=np.float64)
        expected = (self.grid.height, self.grid.width, self.channels)
        if data.shape != expected:
            raise ValueError(f"Expected field of shape {expected}, got {data.shape}")
        self._front[...] = data

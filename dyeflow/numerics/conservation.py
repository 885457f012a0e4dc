"""
Per-channel dye mass conservation
"""

import numpy as np
from ..config import EPSILON


def channel_mass(dye: np.ndarray) -> np.ndarray:
    """Total of each channel over all cells, shape (channels,)"""
    return dye.sum(axis=(0, 1))


class MassConservator:
    """
    Rescale each dye channel so its total matches a target mass
    """

    def __init__(self, epsilon: float = EPSILON):
        self.epsilon = epsilon

    def conserve(self, dye: np.ndarray, target: np.ndarray) -> np.ndarray:
        """
        Restore channel totals in place

        Args:
            dye: (height, width, channels) field
            target: Desired total per channel

        Returns:
            Scale factor applied to each channel (1.0 where skipped)
        """
        current = channel_mass(dye)
        scales = np.ones_like(current)
        for c in range(dye.shape[-1]):
            # Empty channel: nothing to rescale
            if current[c] <= self.epsilon:
                continue
            if current[c] == target[c]:
                continue
            scales[c] = max(float(target[c]), 0.0) / current[c]
            dye[..., c] *= scales[c]
        return scales

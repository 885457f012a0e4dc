"""
Perturbation engine: transient input and persistent elements as field updates

All contributions are accumulated (+=) so that overlapping footprints add up
independently of application order. The attractor sponge is multiplicative
and is applied after every additive contribution of the step.
"""

import logging
import numpy as np
from typing import Iterable, List, Tuple
from ..config import ATTRACTOR_MIN_RADIUS, SPONGE_INNER_FRACTION, DRAIN_SCALE, MIN_ELEMENT_RADIUS
from ..geometry.grid import Grid
from .elements import DyeSource, Force, Attractor, PersistentElement

logger = logging.getLogger(__name__)


class Footprint:
    """
    Cells within `radius` of `pos`

    Attributes:
        window: (row_slice, col_slice) bounding box into the field arrays
        dx, dy: Offsets of each window cell center from pos
        dist: Distance of each window cell center from pos
        weights: Falloff 1 - d^2 / r^2 inside the radius, 0 outside
    """

    def __init__(self, grid: Grid, pos, radius: float):
        px = float(np.clip(pos[0], 0.0, grid.width))
        py = float(np.clip(pos[1], 0.0, grid.height))
        radius = max(float(radius), MIN_ELEMENT_RADIUS)

        x0 = int(np.clip(np.floor(px - radius - 0.5), 0, grid.width - 1))
        x1 = int(np.clip(np.ceil(px + radius - 0.5), 0, grid.width - 1))
        y0 = int(np.clip(np.floor(py - radius - 0.5), 0, grid.height - 1))
        y1 = int(np.clip(np.ceil(py + radius - 0.5), 0, grid.height - 1))
        self.window = (slice(y0, y1 + 1), slice(x0, x1 + 1))

        xs = np.arange(x0, x1 + 1, dtype=float) + 0.5
        ys = np.arange(y0, y1 + 1, dtype=float) + 0.5
        cx, cy = np.meshgrid(xs, ys, indexing='xy')
        self.dx = cx - px
        self.dy = cy - py
        self.dist = np.sqrt(self.dx**2 + self.dy**2)
        self.radius = radius
        self.pos = (px, py)

        d2 = self.dist**2
        self.weights = np.where(self.dist <= radius, 1.0 - d2 / radius**2, 0.0)

        # Sub-cell radius: deposit into the containing cell
        if not np.any(self.weights > 0.0):
            self.weights = np.zeros_like(d2)
            self.weights[np.unravel_index(np.argmin(d2), d2.shape)] = 1.0


def attractor_velocity(footprint: Footprint, strength: float) -> np.ndarray:
    """
    Point-sink velocity over a footprint

    Magnitude strength / (2 pi r^2) toward the center, with r clamped to
    ATTRACTOR_MIN_RADIUS, and zero outside the radius.

    Returns:
        (rows, cols, 2) contribution for footprint.window
    """
    dist = footprint.dist
    r = np.maximum(dist, ATTRACTOR_MIN_RADIUS)
    magnitude = strength / (2.0 * np.pi * r**2)
    inside = dist < footprint.radius

    safe = np.where(dist > 0.0, dist, 1.0)
    ux = np.where(dist > 0.0, -footprint.dx / safe, 0.0)
    uy = np.where(dist > 0.0, -footprint.dy / safe, 0.0)

    contribution = np.zeros(dist.shape + (2,))
    contribution[..., 0] = np.where(inside, magnitude * ux, 0.0)
    contribution[..., 1] = np.where(inside, magnitude * uy, 0.0)
    return contribution


def sponge_damping(footprint: Footprint, rate: float, dt: float) -> np.ndarray:
    """
    Multiplicative damping factors for the attractor rim

    Within [0.8 R, R) velocity decays as exp(-rate * f^2 * dt) with f the
    normalized depth into the band; 1 everywhere else.
    """
    inner = footprint.radius * SPONGE_INNER_FRACTION
    band = footprint.radius - inner
    dist = footprint.dist
    in_band = (dist > inner) & (dist < footprint.radius)
    depth = np.where(in_band, (dist - inner) / band, 0.0)
    return np.exp(-rate * depth**2 * dt)


class PerturbationEngine:
    """
    Converts forces, dye injection and attractors into field updates
    """

    def __init__(self, grid: Grid, sponge_rate: float = 2.0):
        self.grid = grid
        self.sponge_rate = sponge_rate

    def apply_force(self, velocity: np.ndarray, pos, radius: float,
                    direction, strength: float, scale: float = 1.0):
        """Add direction * strength * falloff * scale around pos"""
        fp = Footprint(self.grid, pos, radius)
        push = np.asarray(direction, dtype=float) * strength * scale
        velocity[fp.window] += fp.weights[..., None] * push

    def inject_dye(self, dye: np.ndarray, pos, radius: float, color,
                   intensity: float, scale: float = 1.0) -> np.ndarray:
        """
        Add intensity * falloff * color * scale around pos

        Returns:
            Mass added per channel
        """
        fp = Footprint(self.grid, pos, radius)
        color = np.clip(np.asarray(color, dtype=float), 0.0, None)
        added = fp.weights[..., None] * (intensity * scale) * color
        dye[fp.window] += added
        return added.sum(axis=(0, 1))

    def drain_dye(self, dye: np.ndarray, pos, radius: float,
                  amount: float) -> np.ndarray:
        """
        Remove up to amount * falloff from every channel, never below zero

        Returns:
            Mass change per channel (non-positive)
        """
        fp = Footprint(self.grid, pos, radius)
        region = dye[fp.window]
        before = region.sum(axis=(0, 1))
        region[...] = np.maximum(region - fp.weights[..., None] * amount, 0.0)
        return region.sum(axis=(0, 1)) - before

    def apply_element(self, velocity: np.ndarray, dye: np.ndarray,
                      element: PersistentElement, scale: float,
                      sponges: List[Tuple[Footprint, float]]) -> np.ndarray:
        """
        Additive part of one element; attractor sponges are collected

        Args:
            scale: Multiplier on the element's rate (dt for persistent
                elements, 1 for one-off transient input)
            sponges: Receives (footprint, dt) for each attractor

        Returns:
            Dye mass change per channel
        """
        injected = np.zeros(dye.shape[-1])

        if isinstance(element, DyeSource):
            if element.is_drain:
                injected += self.drain_dye(dye, element.pos, element.radius,
                                           element.intensity * DRAIN_SCALE * scale)
            else:
                injected += self.inject_dye(dye, element.pos, element.radius,
                                            element.color, element.intensity, scale)
        elif isinstance(element, Force):
            self.apply_force(velocity, element.pos, element.radius,
                             element.direction, element.strength, scale)
        elif isinstance(element, Attractor):
            fp = Footprint(self.grid, element.pos, element.radius)
            velocity[fp.window] += attractor_velocity(fp, element.strength) * scale
            sponges.append((fp, scale))
        else:
            raise TypeError(f"Unknown persistent element type: {type(element).__name__}")

        return injected

    def apply_elements(self, velocity: np.ndarray, dye: np.ndarray,
                       elements: Iterable[PersistentElement], dt: float) -> np.ndarray:
        """
        Re-apply persistent elements for one step, in creation order

        Returns:
            Dye mass change per channel
        """
        injected = np.zeros(dye.shape[-1])
        sponges = []
        for element in elements:
            injected += self.apply_element(velocity, dye, element, dt, sponges)

        for fp, step_dt in sponges:
            velocity[fp.window] *= sponge_damping(fp, self.sponge_rate, step_dt)[..., None]

        return injected

    def apply_transient(self, velocity: np.ndarray, dye: np.ndarray,
                        inputs: Iterable[PersistentElement]) -> np.ndarray:
        """
        Apply queued one-off input as impulses

        Black dye adds nothing here; draining is a persistent-source behavior.
        """
        injected = np.zeros(dye.shape[-1])
        for item in inputs:
            if isinstance(item, DyeSource):
                injected += self.inject_dye(dye, item.pos, item.radius,
                                            item.color, item.intensity)
            elif isinstance(item, Force):
                self.apply_force(velocity, item.pos, item.radius,
                                 item.direction, item.strength)
            else:
                raise TypeError(f"Unsupported transient input: {type(item).__name__}")
        return injected

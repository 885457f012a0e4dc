"""
Persistent elements placed by the front-end

The set is closed: DyeSource, Force and Attractor. Dispatch on the variant
happens in exactly one place, PerturbationEngine.apply_element.
"""

from dataclasses import dataclass, replace
from typing import Tuple, Union

Vec2 = Tuple[float, float]
Color = Tuple[float, float, float]


@dataclass(frozen=True)
class DyeSource:
    """Continuous dye emitter; a black color drains dye instead"""
    pos: Vec2
    radius: float
    color: Color
    intensity: float

    tag = 'd'

    @property
    def is_drain(self) -> bool:
        return all(c == 0.0 for c in self.color)


@dataclass(frozen=True)
class Force:
    """Constant push along `direction` (grid cells per unit time)"""
    pos: Vec2
    radius: float
    direction: Vec2
    strength: float

    tag = 'f'


@dataclass(frozen=True)
class Attractor:
    """
    Point sink pulling fluid toward `pos`, with a sponge band at its rim

    `strength` is a rate: each step of length dt adds
    strength * dt / (2 pi r^2) toward the center.
    """
    pos: Vec2
    radius: float
    strength: float

    tag = 'a'


PersistentElement = Union[DyeSource, Force, Attractor]

ELEMENT_TYPES = (DyeSource, Force, Attractor)


def rescale_element(element: PersistentElement, sx: float, sy: float) -> PersistentElement:
    """
    Map an element onto a resized grid

    Positions scale per axis, radius with the width (the share format does
    the same), directions are left in cell units.
    """
    x, y = element.pos
    return replace(element, pos=(x * sx, y * sy), radius=element.radius * sx)

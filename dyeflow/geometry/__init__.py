"""Grid storage and sampling"""

from .grid import Grid, PingPongBuffer, zero_boundary, copy_boundary, VELOCITY_CHANNELS, DYE_CHANNELS
from .sampler import clamp_position, sample_field, sample_velocity, sample_dye

__all__ = [
    'Grid',
    'PingPongBuffer',
    'zero_boundary',
    'copy_boundary',
    'VELOCITY_CHANNELS',
    'DYE_CHANNELS',
    'clamp_position',
    'sample_field',
    'sample_velocity',
    'sample_dye'
]

"""Initial conditions and the share-state codec"""

from .initial_conditions import (
    taylor_green_vortex,
    shear_flow,
    vortex_pair,
    dye_disc
)
from .share_state import (
    encode_share_state,
    decode_share_state,
    encode_share_fragment,
    decode_share_fragment,
    load_share_state,
    ShareStateError
)

__all__ = [
    'taylor_green_vortex',
    'shear_flow',
    'vortex_pair',
    'dye_disc',
    'encode_share_state',
    'decode_share_state',
    'encode_share_fragment',
    'decode_share_fragment',
    'load_share_state',
    'ShareStateError'
]

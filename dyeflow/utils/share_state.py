"""
Share-state codec for URL-based sharing of persistent elements

Payload: {"v": 1, "w": width, "h": height, "e": [element, ...]} with
positions normalized per axis and radii by the width, serialized as UTF-8 JSON and
base64url-encoded without padding. Decoding never raises: malformed input
is logged and yields no elements.
"""

import base64
import binascii
import json
import logging
import math
from typing import Any, Dict, List, Optional, Tuple
from ..config import MIN_ELEMENT_RADIUS
from ..physics.elements import DyeSource, Force, Attractor, PersistentElement

logger = logging.getLogger(__name__)

SHARE_VERSION = 1
FRAGMENT_KEY = 's'


class ShareStateError(ValueError):
    """Payload could not be interpreted"""


def _clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def element_to_dict(element: PersistentElement, width: int, height: int) -> Dict[str, Any]:
    x, y = element.pos
    entry = {
        't': element.tag,
        'x': _clamp01(x / width),
        'y': _clamp01(y / height),
        'r': element.radius / width,
    }
    if isinstance(element, DyeSource):
        entry['c'] = [float(c) for c in element.color]
        entry['i'] = float(element.intensity)
    elif isinstance(element, Force):
        entry['d'] = [float(d) for d in element.direction]
        entry['s'] = float(element.strength)
    elif isinstance(element, Attractor):
        entry['s'] = float(element.strength)
    else:
        raise TypeError(f"Unknown persistent element type: {type(element).__name__}")
    return entry


def _finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"non-finite number {value!r}")
    return number


def _reject_constant(name: str):
    raise ShareStateError(f"Non-standard JSON constant {name}")


def element_from_dict(entry: Dict[str, Any], width: int, height: int) -> PersistentElement:
    """
    Raises:
        ShareStateError: On an unknown tag or missing, invalid or non-finite fields
    """
    try:
        tag = entry['t']
        # Centers stay on a real cell
        pos = (min(max(_finite(entry['x']) * width, 0.0), float(width - 1)),
               min(max(_finite(entry['y']) * height, 0.0), float(height - 1)))
        radius = max(_finite(_finite(entry['r']) * width), MIN_ELEMENT_RADIUS)

        if tag == 'd':
            r, g, b = (_finite(c) for c in entry['c'])
            return DyeSource(pos, radius, (r, g, b), _finite(entry['i']))
        if tag == 'f':
            dx, dy = (_finite(d) for d in entry['d'])
            return Force(pos, radius, (dx, dy), _finite(entry['s']))
        if tag == 'a':
            return Attractor(pos, radius, _finite(entry['s']))
    except (KeyError, TypeError, ValueError) as e:
        raise ShareStateError(f"Invalid element {entry!r}: {e}") from e
    raise ShareStateError(f"Unknown element tag {tag!r}")


def encode_share_state(elements: List[PersistentElement], width: int, height: int) -> str:
    """
    Serialize elements to a base64url string (no padding)
    """
    payload = {
        'v': SHARE_VERSION,
        'w': int(width),
        'h': int(height),
        'e': [element_to_dict(e, width, height) for e in elements],
    }
    raw = json.dumps(payload, separators=(',', ':')).encode('utf-8')
    return base64.urlsafe_b64encode(raw).decode('ascii').rstrip('=')


def parse_share_state(encoded: str) -> Dict[str, Any]:
    """
    Decode and validate the payload envelope

    Raises:
        ShareStateError: On invalid base64, invalid JSON or an unknown version
    """
    if not isinstance(encoded, str):
        raise ShareStateError(f"Expected a string payload, got {type(encoded).__name__}")
    text = encoded.strip()
    padded = text + '=' * (-len(text) % 4)
    try:
        raw = base64.b64decode(padded.encode('ascii'), altchars=b'-_', validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as e:
        raise ShareStateError(f"Invalid base64 payload: {e}") from e

    try:
        payload = json.loads(raw.decode('utf-8'), parse_constant=_reject_constant)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ShareStateError(f"Invalid JSON payload: {e}") from e

    if not isinstance(payload, dict):
        raise ShareStateError("Payload is not an object")
    if payload.get('v') != SHARE_VERSION:
        raise ShareStateError(f"Unsupported share-state version {payload.get('v')!r}")
    if not isinstance(payload.get('e', []), list):
        raise ShareStateError("Element list is not an array")
    return payload


def decode_share_state(encoded: str, width: int, height: int) -> List[PersistentElement]:
    """
    Decode elements onto a width x height grid, failing soft

    Positions are mapped onto the current grid, not the one recorded in the
    payload. Any failure is logged and yields an empty list.
    """
    try:
        payload = parse_share_state(encoded)
        return [element_from_dict(entry, width, height) for entry in payload.get('e', [])]
    except ShareStateError as e:
        logger.warning("Ignoring share state: %s", e)
        return []


def encode_share_fragment(elements: List[PersistentElement], width: int, height: int) -> str:
    """URL fragment form, 's=<payload>'; 's=' when there is nothing to share"""
    if not elements:
        return f"{FRAGMENT_KEY}="
    return f"{FRAGMENT_KEY}={encode_share_state(elements, width, height)}"


def find_share_payload(fragment: str) -> Optional[str]:
    """Extract the 's' parameter from '#s=...&k=v' style fragments"""
    trimmed = fragment[1:] if fragment.startswith('#') else fragment
    for part in trimmed.split('&'):
        key, sep, value = part.partition('=')
        if sep and key == FRAGMENT_KEY and value:
            return value
    return None


def decode_share_fragment(fragment: str, width: int, height: int) -> List[PersistentElement]:
    payload = find_share_payload(fragment)
    if payload is None:
        return []
    return decode_share_state(payload, width, height)


def load_share_state(state, encoded: str) -> Tuple[int, ...]:
    """
    Replace a state's persistent elements with decoded ones

    Returns:
        Identifiers of the new elements (empty on a malformed payload)
    """
    elements = decode_share_state(encoded, state.width, state.height)
    ids = tuple(state.replace_elements(elements))
    logger.info("Applied share state: %d elements", len(ids))
    return ids

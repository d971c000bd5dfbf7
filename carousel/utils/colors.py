"""
CSS colour parsing for Pillow drawing.

Returns RGBA tuples; ``None`` means "paint nothing" (transparent, none,
or an alpha of zero).
"""

import re
from typing import Optional, Tuple

from PIL import ImageColor

RGBA = Tuple[int, int, int, int]

_TRANSPARENT = {"transparent", "none", ""}
_RGB_FUNC = re.compile(r"^rgba?\(\s*([^)]*)\)$")


def _channel(value: str) -> int:
    value = value.strip()
    if value.endswith('%'):
        return round(float(value[:-1]) * 255 / 100)
    return int(round(float(value)))


def _alpha(value: str) -> int:
    value = value.strip()
    if value.endswith('%'):
        return round(float(value[:-1]) * 255 / 100)
    return round(float(value) * 255)


def parse_color(value: Optional[str]) -> Optional[RGBA]:
    """Parse a CSS colour string.

    Handles ``#rgb``, ``#rgba``, ``#rrggbb``, ``#rrggbbaa``, ``rgb()``,
    ``rgba()`` with a 0..1 or percentage alpha, and named colours.
    Raises ``ValueError`` for anything else.
    """
    if value is None:
        return None
    v = value.strip().lower()
    if v in _TRANSPARENT:
        return None

    match = _RGB_FUNC.match(v)
    if match:
        parts = [p for p in re.split(r"[\s,/]+", match.group(1)) if p]
        if len(parts) not in (3, 4):
            raise ValueError(f"Invalid colour: {value!r}")
        r, g, b = (max(0, min(255, _channel(p))) for p in parts[:3])
        a = max(0, min(255, _alpha(parts[3]))) if len(parts) == 4 else 255
    else:
        rgba = ImageColor.getcolor(v, "RGBA")
        r, g, b, a = rgba

    if a == 0:
        return None
    return (r, g, b, a)


def is_transparent(value: Optional[str]) -> bool:
    return parse_color(value) is None

"""
Color parsing and normalization helpers.
"""
import math
import re
from typing import Any, Dict, List, NamedTuple, Optional

_HEX3_RE = re.compile(r"^#[0-9a-fA-F]{3}$")
_HEX6_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
_RGB_RE = re.compile(
    r"^rgba?\s*\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([\d.]+)\s*)?\)$",
    re.IGNORECASE,
)
_GRADIENT_STOP_RE = re.compile(r"^(.+):(\d+(?:\.\d+)?)%?$")


class RGBAColor(NamedTuple):
    """Color channels in the 0-1 range."""
    r: float
    g: float
    b: float
    a: Optional[float] = None


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def _format_alpha(alpha: float) -> str:
    return str(int(alpha)) if float(alpha).is_integer() else repr(float(alpha))


def parse_color_to_rgba(color: str) -> Optional[RGBAColor]:
    """
    Parse ``#rgb``, ``#rrggbb``, ``rgb(r,g,b)`` or ``rgba(r,g,b,a)``.

    Returns None when the format is not recognised.
    """
    color = color.strip()
    if color.startswith("#"):
        digits = color[1:]
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        if len(digits) == 6 and _HEX6_RE.match("#" + digits):
            return RGBAColor(
                int(digits[0:2], 16) / 255,
                int(digits[2:4], 16) / 255,
                int(digits[4:6], 16) / 255,
            )
        return None

    match = _RGB_RE.match(color)
    if not match:
        return None
    r, g, b = (_clamp(int(match.group(i)), 0, 255) / 255 for i in (1, 2, 3))
    if match.group(4) is None:
        return RGBAColor(r, g, b)
    try:
        alpha = float(match.group(4))
    except ValueError:
        return None
    return RGBAColor(r, g, b, _clamp(alpha, 0, 1))


def normalize_color(color: str) -> str:
    """
    Canonicalise a color string.

    ``#abc`` becomes ``#aabbcc``, hex is lowercased, ``rgb()`` becomes hex
    and ``rgba()`` keeps its alpha with whitespace removed. Anything else
    (named colors, unknown formats) is returned trimmed but otherwise as-is,
    so normalising a normalised value is a no-op.
    """
    color = color.strip()

    if _HEX3_RE.match(color):
        r, g, b = color[1], color[2], color[3]
        return f"#{r}{r}{g}{g}{b}{b}".lower()

    if _HEX6_RE.match(color):
        return color.lower()

    match = _RGB_RE.match(color)
    if match:
        r, g, b = (int(_clamp(int(match.group(i)), 0, 255)) for i in (1, 2, 3))
        if match.group(4) is not None:
            try:
                alpha = _clamp(float(match.group(4)), 0, 1)
            except ValueError:
                return color
            return f"rgba({r},{g},{b},{_format_alpha(alpha)})"
        return f"#{r:02x}{g:02x}{b:02x}"

    return color


def rgba_to_hex(color: RGBAColor) -> str:
    """Convert channel floats back to ``#rrggbb`` (alpha is dropped)."""
    r, g, b = (int(math.floor(channel * 255 + 0.5)) for channel in (color.r, color.g, color.b))
    return f"#{r:02x}{g:02x}{b:02x}"


def parse_gradient(value: str) -> Optional[Dict[str, Any]]:
    """
    Parse ``"#0d1117:0%,#1f2937:50%,#58a6ff:100%@45"`` into stops and angle.

    At least two valid stops are required.
    """
    stops_part, _, angle_part = value.partition("@")
    if not stops_part:
        return None

    stops: List[Dict[str, Any]] = []
    for part in stops_part.split(","):
        match = _GRADIENT_STOP_RE.match(part.strip())
        if match:
            position = float(match.group(2)) / 100
            stops.append({
                "color": normalize_color(match.group(1)),
                "position": int(position) if position.is_integer() else position,
            })

    if len(stops) < 2:
        return None

    angle: float = 0
    if angle_part:
        try:
            angle = float(angle_part)
        except ValueError:
            return None
        if angle.is_integer():
            angle = int(angle)

    return {"stops": stops, "angle": angle}

"""Bullet markers per nesting depth."""
from typing import Tuple

# • ◦ ▪ –
BULLET_MARKERS: Tuple[str, ...] = ("•", "◦", "▪", "–")


def get_bullet_marker(depth: int) -> str:
    """Marker for ``depth`` (0-based); deeper levels reuse the last marker."""
    return BULLET_MARKERS[min(max(depth, 0), len(BULLET_MARKERS) - 1)]

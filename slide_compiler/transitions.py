"""
Slide transition styles and easing curves.

Styles and curves are written in kebab-case in frontmatter; underscores and
upper case are accepted and normalised.
"""
from typing import Dict, Optional, Tuple

VALID_TRANSITION_STYLES: Tuple[str, ...] = (
    "none",
    "dissolve",
    "smart-animate",
    "slide-from-left",
    "slide-from-right",
    "slide-from-top",
    "slide-from-bottom",
    "push-from-left",
    "push-from-right",
    "push-from-top",
    "push-from-bottom",
    "move-from-left",
    "move-from-right",
    "move-from-top",
    "move-from-bottom",
    "slide-out-to-left",
    "slide-out-to-right",
    "slide-out-to-top",
    "slide-out-to-bottom",
    "move-out-to-left",
    "move-out-to-right",
    "move-out-to-top",
    "move-out-to-bottom",
)

VALID_TRANSITION_CURVES: Tuple[str, ...] = (
    "ease-in",
    "ease-out",
    "ease-in-and-out",
    "linear",
    "gentle",
    "quick",
    "bouncy",
    "slow",
)

VALID_TIMING_TYPES: Tuple[str, ...] = ("on-click", "after-delay")

# Renderer API names, e.g. "slide-from-left" -> "SLIDE_FROM_LEFT"
TRANSITION_STYLE_TO_FIGMA: Dict[str, str] = {
    style: style.upper().replace("-", "_") for style in VALID_TRANSITION_STYLES
}
TRANSITION_CURVE_TO_FIGMA: Dict[str, str] = {
    curve: curve.upper().replace("-", "_") for curve in VALID_TRANSITION_CURVES
}


def _kebab(value: str) -> str:
    return value.strip().lower().replace("_", "-")


def is_valid_transition_style(value: str) -> bool:
    return value in VALID_TRANSITION_STYLES


def is_valid_transition_curve(value: str) -> bool:
    return value in VALID_TRANSITION_CURVES


def normalize_transition_style(value: str) -> Optional[str]:
    normalized = _kebab(value)
    return normalized if is_valid_transition_style(normalized) else None


def normalize_transition_curve(value: str) -> Optional[str]:
    normalized = _kebab(value)
    return normalized if is_valid_transition_curve(normalized) else None


def normalize_timing_type(value: str) -> Optional[str]:
    normalized = _kebab(value)
    return normalized if normalized in VALID_TIMING_TYPES else None

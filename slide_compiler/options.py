"""
Compile options and the per-slide context threaded through every pass.
"""
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Mapping, Optional

from .diagnostics import WarningCollector


@dataclass(frozen=True)
class CompileOptions:
    """
    Canvas geometry and layout limits used while compiling a deck.

    The defaults match the 1920x1080 canvas the renderer draws on.
    """
    slide_width: int = 1920
    slide_height: int = 1080
    container_padding: int = 100
    column_gap: int = 32
    max_column_gap: int = 200
    column_min_width: int = 320
    min_columns: int = 2
    max_columns: int = 4
    image_extensions: FrozenSet[str] = frozenset({".png", ".jpg", ".jpeg", ".gif"})
    # template name -> defaults, e.g. {"titlePrefix": {"nodeId": "1:2"}}
    templates: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    @property
    def content_width(self) -> int:
        return self.slide_width - self.container_padding * 2

    def template_defaults(self, name: str) -> Optional[Mapping[str, Any]]:
        return self.templates.get(name)


@dataclass(frozen=True)
class SlideContext:
    """
    Explicit state for compiling one slide region.

    ``env`` is the markdown-it environment shared by every parse of the
    slide so footnote references are recorded in source order, including
    the ones found inside directives.
    """
    index: int
    options: CompileOptions
    warnings: WarningCollector
    env: Dict[str, Any] = field(default_factory=dict)
    in_columns: bool = False

    def nested(self, **changes) -> "SlideContext":
        return replace(self, **changes)

    def warn(self, code: str, message: str) -> None:
        self.warnings.warn(code, message)


def round_px(value: float) -> int:
    """Round half up, the way the renderer rounds pixel values."""
    return int(math.floor(value + 0.5))


def as_number(value: Any) -> Optional[float]:
    """
    Coerce a YAML/attribute value to a number.

    Integral values come back as ``int`` so they serialise as ``20`` rather
    than ``20.0``. Booleans and unparsable strings give ``None``.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number) if number.is_integer() else number

"""
Warnings and errors raised while compiling a deck.

Recoverable problems are collected as :class:`CompileWarning` records and
returned next to the document. Only input-level failures raise.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Warning codes
FRONTMATTER = "frontmatter"
CONFIG = "config"
DIRECTIVE = "directive"
COLUMNS = "columns"
FOOTNOTE = "footnote"
IMAGE = "image"
LIST = "list"


class CompileError(ValueError):
    """The input cannot be compiled into any document."""


class EmptyDocumentError(CompileError):
    """The input holds no slide-bearing content."""


@dataclass(frozen=True)
class CompileWarning:
    code: str
    message: str
    slide: Optional[int] = None

    def __str__(self) -> str:
        if self.slide is None:
            return f"[{self.code}] {self.message}"
        return f"[{self.code}] slide {self.slide}: {self.message}"

    def to_dict(self) -> dict:
        data = {"code": self.code, "message": self.message}
        if self.slide is not None:
            data["slide"] = self.slide
        return data


class WarningCollector:
    """
    Gathers warnings for a single compile call.

    Each warning is also sent to the module logger so hosts that only watch
    logs still see it.
    """

    def __init__(self):
        self._items: List[CompileWarning] = []
        self._slide: Optional[int] = None

    def warn(self, code: str, message: str) -> None:
        item = CompileWarning(code=code, message=message, slide=self._slide)
        self._items.append(item)
        logger.warning("%s", item)

    @contextmanager
    def for_slide(self, index: int) -> Iterator["WarningCollector"]:
        previous = self._slide
        self._slide = index
        try:
            yield self
        finally:
            self._slide = previous

    def as_tuple(self) -> Tuple[CompileWarning, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

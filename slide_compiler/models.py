"""
Data models for the compiled slide IR.

Every model is a frozen dataclass produced once per compile call. ``to_dict``
emits the JSON wire format consumed by the renderer: camelCase keys, unset
optional fields omitted.
"""
import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterator, List, NamedTuple, Optional, Tuple

from .diagnostics import CompileWarning


@dataclass(frozen=True)
class TextSpan:
    """
    A run of text sharing one combination of formatting flags.
    """
    text: str
    bold: bool = False
    italic: bool = False
    strike: bool = False
    code: bool = False
    superscript: bool = False
    href: Optional[str] = None

    @property
    def marks(self) -> Tuple[bool, bool, bool, bool, bool, Optional[str]]:
        return (self.bold, self.italic, self.strike, self.code, self.superscript, self.href)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text}
        for flag in ("bold", "italic", "strike", "code"):
            if getattr(self, flag):
                data[flag] = True
        if self.href:
            data["href"] = self.href
        if self.superscript:
            data["superscript"] = True
        return data


def _spans_to_list(spans: Tuple[TextSpan, ...]) -> List[Dict[str, Any]]:
    return [span.to_dict() for span in spans]


@dataclass(frozen=True)
class BulletItem:
    """
    One list item and the nested list it owns.
    """
    text: str
    spans: Tuple[TextSpan, ...] = ()
    children: Tuple["BulletItem", ...] = ()
    children_ordered: Optional[bool] = None
    children_start: Optional[int] = None

    def depth(self) -> int:
        """Height of the subtree below this item (0 for a leaf)."""
        if not self.children:
            return 0
        return 1 + max(child.depth() for child in self.children)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text, "spans": _spans_to_list(self.spans)}
        if self.children:
            data["childrenOrdered"] = bool(self.children_ordered)
            data["childrenStart"] = self.children_start if self.children_start is not None else 1
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass(frozen=True)
class FootnoteItem:
    id: str
    content: str
    spans: Tuple[TextSpan, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "content": self.content, "spans": _spans_to_list(self.spans)}


@dataclass(frozen=True)
class ImageSize:
    width: Optional[float] = None
    height: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in (("width", self.width), ("height", self.height)) if v is not None}


@dataclass(frozen=True)
class ImagePosition:
    x: Optional[float] = None
    y: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in (("x", self.x), ("y", self.y)) if v is not None}


@dataclass(frozen=True)
class TextOverride:
    """Replacement text for a named text layer of a linked Figma node."""
    text: str
    spans: Tuple[TextSpan, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text}
        if self.spans:
            data["spans"] = _spans_to_list(self.spans)
        return data


@dataclass(frozen=True)
class FigmaLink:
    url: str
    file_key: Optional[str] = None
    node_id: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    text_overrides: Tuple[Tuple[str, TextOverride], ...] = ()
    hide_link: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url}
        if self.file_key is not None:
            data["fileKey"] = self.file_key
        if self.node_id is not None:
            data["nodeId"] = self.node_id
        if self.x is not None:
            data["x"] = self.x
        if self.y is not None:
            data["y"] = self.y
        if self.text_overrides:
            data["textOverrides"] = {name: value.to_dict() for name, value in self.text_overrides}
        if self.hide_link is not None:
            data["hideLink"] = self.hide_link
        return data


# ---------------------------------------------------------------------------
# Slide blocks
# ---------------------------------------------------------------------------

class SlideBlock:
    """Base of the closed set of block variants, tagged by ``kind``."""
    kind: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class ParagraphBlock(SlideBlock):
    kind: ClassVar[str] = "paragraph"
    text: str
    spans: Tuple[TextSpan, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text, "spans": _spans_to_list(self.spans)}


@dataclass(frozen=True)
class HeadingBlock(SlideBlock):
    kind: ClassVar[str] = "heading"
    level: int
    text: str
    spans: Tuple[TextSpan, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "level": self.level,
            "text": self.text,
            "spans": _spans_to_list(self.spans),
        }


@dataclass(frozen=True)
class BulletsBlock(SlideBlock):
    kind: ClassVar[str] = "bullets"
    items: Tuple[BulletItem, ...]
    ordered: bool = False
    start: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "items": [item.to_dict() for item in self.items],
            "ordered": self.ordered,
            "start": self.start,
        }


@dataclass(frozen=True)
class CodeBlock(SlideBlock):
    kind: ClassVar[str] = "code"
    code: str
    language: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind}
        if self.language:
            data["language"] = self.language
        data["code"] = self.code
        return data


@dataclass(frozen=True)
class ImageBlock(SlideBlock):
    kind: ClassVar[str] = "image"
    url: str
    alt: Optional[str] = None
    source: Optional[str] = None  # "local" | "remote"; None for placeholders
    size: Optional[ImageSize] = None
    position: Optional[ImagePosition] = None

    @property
    def is_placeholder(self) -> bool:
        return self.source is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind, "url": self.url}
        if self.alt:
            data["alt"] = self.alt
        if self.source:
            data["source"] = self.source
        if self.size is not None:
            data["size"] = self.size.to_dict()
        if self.position is not None:
            data["position"] = self.position.to_dict()
        return data


@dataclass(frozen=True)
class BlockquoteBlock(SlideBlock):
    kind: ClassVar[str] = "blockquote"
    text: str
    spans: Tuple[TextSpan, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text, "spans": _spans_to_list(self.spans)}


@dataclass(frozen=True)
class TableBlock(SlideBlock):
    kind: ClassVar[str] = "table"
    headers: Tuple[Tuple[TextSpan, ...], ...]
    rows: Tuple[Tuple[Tuple[TextSpan, ...], ...], ...] = ()
    align: Tuple[Optional[str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "headers": [_spans_to_list(cell) for cell in self.headers],
            "rows": [[_spans_to_list(cell) for cell in row] for row in self.rows],
            "align": list(self.align),
        }


@dataclass(frozen=True)
class FigmaBlock(SlideBlock):
    kind: ClassVar[str] = "figma"
    link: FigmaLink

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "link": self.link.to_dict()}


@dataclass(frozen=True)
class FootnotesBlock(SlideBlock):
    kind: ClassVar[str] = "footnotes"
    items: Tuple[FootnoteItem, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "items": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class CalloutBlock(SlideBlock):
    kind: ClassVar[str] = "callout"
    type: str  # note | tip | warning | caution
    text: str
    spans: Tuple[TextSpan, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "type": self.type,
            "text": self.text,
            "spans": _spans_to_list(self.spans),
        }


@dataclass(frozen=True)
class ColumnsBlock(SlideBlock):
    kind: ClassVar[str] = "columns"
    columns: Tuple[Tuple[SlideBlock, ...], ...]
    gap: int = 32
    widths: Optional[Tuple[int, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind,
            "columns": [[block.to_dict() for block in column] for column in self.columns],
            "gap": self.gap,
        }
        if self.widths is not None:
            data["widths"] = list(self.widths)
        return data


# ---------------------------------------------------------------------------
# Slides and documents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SlideContent:
    """
    One compiled slide: its blocks plus the resolved configuration.

    Configuration sections are kept in their wire form. ``title_prefix``
    is ``None`` when unset; ``title_prefix_disabled`` marks an explicit
    ``titlePrefix: false`` which serialises as ``null``.
    """
    type: str = "content"
    title: Optional[str] = None
    blocks: Tuple[SlideBlock, ...] = ()
    background: Optional[Dict[str, Any]] = None
    styles: Dict[str, Any] = field(default_factory=lambda: {"headings": {}})
    slide_number: Optional[Dict[str, Any]] = None
    title_prefix: Optional[Dict[str, Any]] = None
    title_prefix_disabled: bool = False
    cover: bool = False
    align: Optional[str] = None
    valign: Optional[str] = None
    footnotes: Tuple[FootnoteItem, ...] = ()
    transition: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.title is not None:
            data["title"] = self.title
        data["blocks"] = [block.to_dict() for block in self.blocks]
        if self.background is not None:
            data["background"] = self.background
        data["styles"] = self.styles
        if self.slide_number is not None:
            data["slideNumber"] = self.slide_number
        if self.title_prefix_disabled:
            data["titlePrefix"] = None
        elif self.title_prefix is not None:
            data["titlePrefix"] = self.title_prefix
        if self.cover:
            data["cover"] = True
        if self.align is not None:
            data["align"] = self.align
        if self.valign is not None:
            data["valign"] = self.valign
        if self.footnotes:
            data["footnotes"] = [item.to_dict() for item in self.footnotes]
        if self.transition is not None:
            data["transition"] = self.transition
        return data


@dataclass(frozen=True)
class Document:
    """Ordered slides in source order."""
    slides: Tuple[SlideContent, ...] = ()

    def __len__(self) -> int:
        return len(self.slides)

    def __iter__(self) -> Iterator[SlideContent]:
        return iter(self.slides)

    def __getitem__(self, index: int) -> SlideContent:
        return self.slides[index]

    def to_list(self) -> List[Dict[str, Any]]:
        return [slide.to_dict() for slide in self.slides]

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_list(), indent=indent, ensure_ascii=False)


class CompileResult(NamedTuple):
    document: Document
    warnings: Tuple[CompileWarning, ...] = ()

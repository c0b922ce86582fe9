"""
Compilation of ``:::`` directive blocks.

The ``directive`` block rule hands over one token per directive; this module
turns it into slide blocks:

* ``:::columns`` with ``:::column`` separators -> ``ColumnsBlock``
* ``:::figma`` -> ``FigmaBlock`` (an external link card)
* ``:::note`` / ``:::tip`` / ``:::warning`` / ``:::caution`` -> ``CalloutBlock``

Unknown directive names drop their fences and compile the body as ordinary
blocks.
"""
import logging
import re
import shlex
import textwrap
from enum import Enum
from typing import Dict, List, Optional, Tuple

from markdown_it.token import Token

from . import diagnostics
from .bullets import get_bullet_marker
from .links import extract_hostname, is_remote_url, is_valid_figma_hostname, parse_figma_url
from .markdown_plugins.directive_block import OPENER_RE, is_column_separator
from .models import CalloutBlock, ColumnsBlock, FigmaBlock, FigmaLink, SlideBlock, TextOverride, TextSpan
from .options import CompileOptions, SlideContext, round_px
from .segmenter import CodeFenceTracker
from .spans import join_spans, spans_to_text, tokens_to_spans

logger = logging.getLogger(__name__)

_FR_RE = re.compile(r"^(\d+(?:\.\d+)?)fr$")
_PERCENT_RE = re.compile(r"^(\d+(?:\.\d+)?)%$")
_PX_RE = re.compile(r"^(\d+(?:\.\d+)?)(?:px)?$")
_INT_RE = re.compile(r"^[+-]?\d+$")
_ATTR_KEY_RE = re.compile(r"^[A-Za-z][\w.-]*$")


class DirectiveName(str, Enum):
    COLUMNS = "columns"
    FIGMA = "figma"
    NOTE = "note"
    TIP = "tip"
    WARNING = "warning"
    CAUTION = "caution"


def parse_attributes(attr_string: str) -> Tuple[Dict[str, str], List[str]]:
    """
    Split a directive's attribute string into ``key=value`` pairs and bare
    words. Quoted values may contain spaces.
    """
    try:
        parts = shlex.split(attr_string)
    except ValueError:
        # unbalanced quotes
        parts = attr_string.split()
    attrs: Dict[str, str] = {}
    positional: List[str] = []
    for part in parts:
        key, sep, value = part.partition("=")
        if sep and _ATTR_KEY_RE.match(key):
            attrs[key] = value
        else:
            positional.append(part)
    return attrs, positional


def _trim_blank_lines(text: str) -> str:
    return text.strip("\n").rstrip()


def split_columns(content: str) -> Tuple[str, List[str]]:
    """
    Split a ``:::columns`` body on its top-level ``:::column`` lines.

    Returns ``(preamble, columns)``; the preamble is whatever precedes the
    first separator. Separators inside nested directives or code fences do
    not split.
    """
    preamble: List[str] = []
    columns: List[List[str]] = []
    fences = CodeFenceTracker()
    depth = 0

    for line in content.split("\n"):
        target = columns[-1] if columns else preamble
        if fences.feed(line):
            target.append(line)
            continue

        stripped = line.strip()
        opener = OPENER_RE.match(stripped)
        if opener and is_column_separator(opener.group(1)):
            if depth == 0:
                columns.append([])
                continue
        elif opener:
            depth += 1
        elif stripped == ":::" and depth > 0:
            depth -= 1
        target.append(line)

    return _trim_blank_lines("\n".join(preamble)), [_trim_blank_lines("\n".join(column)) for column in columns]


def parse_column_gap(raw: Optional[str], options: CompileOptions, context: SlideContext) -> int:
    if raw is None:
        return options.column_gap
    if not _INT_RE.match(raw.strip()):
        context.warn(diagnostics.COLUMNS, f"invalid columns gap {raw!r}, using {options.column_gap}")
        return options.column_gap
    value = int(raw)
    clamped = min(max(value, 0), options.max_column_gap)
    if clamped != value:
        context.warn(diagnostics.COLUMNS, f"columns gap {value} clamped to {clamped}")
    return clamped


def parse_column_widths(
    raw: Optional[str], count: int, gap: int, options: CompileOptions, context: SlideContext
) -> Optional[Tuple[int, ...]]:
    """
    Resolve ``width=1fr/2fr`` style values to pixel widths.

    Widths are scaled proportionally so they fill the content width left
    after the gaps. Any problem falls back to an even split (``None``).
    """
    if not raw:
        return None

    parts = [part.strip() for part in raw.split("/")]
    if len(parts) != count:
        context.warn(diagnostics.COLUMNS, f"width count ({len(parts)}) doesn't match column count ({count}), using even split")
        return None

    available = options.content_width - gap * (count - 1)
    total_fr = sum(float(m.group(1)) for m in map(_FR_RE.match, parts) if m)

    widths: List[float] = []
    for part in parts:
        width = None
        fr = _FR_RE.match(part)
        percent = _PERCENT_RE.match(part)
        px = _PX_RE.match(part)
        if fr:
            if float(fr.group(1)) > 0:
                width = float(fr.group(1)) / total_fr * available
        elif percent:
            value = float(percent.group(1))
            if 0 < value <= 100:
                width = value / 100 * available
        elif px:
            if float(px.group(1)) > 0:
                width = float(px.group(1))
        if width is None:
            context.warn(diagnostics.COLUMNS, f"invalid column width {part!r}, using even split")
            return None
        widths.append(width)

    total = sum(widths)
    scaled = [round_px(width * available / total) for width in widths[:-1]]
    scaled.append(available - sum(scaled))

    narrowest = min(scaled)
    if narrowest < options.column_min_width:
        context.warn(
            diagnostics.COLUMNS,
            f"column width {narrowest}px is below minimum ({options.column_min_width}px), using even split",
        )
        return None
    return tuple(scaled)


def parse_figma_properties(content: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Read the ``key=value`` lines of a ``:::figma`` body.

    Returns ``(properties, text_overrides)``. A ``text.<layer>=`` value
    continues on the indented lines that follow it.
    """
    properties: Dict[str, str] = {}
    overrides: Dict[str, str] = {}
    lines = content.split("\n")
    index = 0
    while index < len(lines):
        stripped = lines[index].strip()
        index += 1
        if not stripped:
            continue
        if is_remote_url(stripped):
            properties["link"] = stripped
            continue
        key, sep, value = stripped.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        if not key.startswith("text."):
            properties[key] = value.strip()
            continue

        continuation = []
        while index < len(lines) and (lines[index][:1] in (" ", "\t") or not lines[index].strip()):
            continuation.append(lines[index])
            index += 1
        text = value.strip()
        if continuation:
            rest = textwrap.dedent("\n".join(continuation)).strip("\n")
            text = f"{text}\n{rest}" if text else rest
        overrides[key[len("text."):]] = text.strip("\n")
    return properties, overrides


class DirectiveCompiler:
    """
    Compiles directive tokens back into blocks through the owning parser.

    ``parser`` must provide ``md``, ``parse(text, context)`` and
    ``compile_blocks(text, context)``.
    """

    def __init__(self, parser):
        self.parser = parser

    def compile(self, token: Token, context: SlideContext) -> List[SlideBlock]:
        name = token.info.lower()
        if not token.meta.get("closed", True):
            context.warn(diagnostics.DIRECTIVE, f":::{name} is never closed, it runs to the end of the slide")

        try:
            directive = DirectiveName(name)
        except ValueError:
            logger.debug("Unknown directive :::%s, compiling its content as plain blocks", name)
            return self.parser.compile_blocks(token.content, context)

        if directive is DirectiveName.COLUMNS:
            return self.compile_columns(token, context)
        if directive is DirectiveName.FIGMA:
            return self.compile_figma(token, context)
        return self.compile_callout(token, context, directive.value)

    # -- columns -------------------------------------------------------------

    def compile_columns(self, token: Token, context: SlideContext) -> List[SlideBlock]:
        options = context.options
        attrs, _ = parse_attributes(token.meta.get("attrs", ""))
        preamble, columns = split_columns(token.content)

        if context.in_columns:
            logger.debug("Flattening :::columns nested inside a column")
            return [
                block
                for text in [preamble] + columns
                for block in self.parser.compile_blocks(text, context)
            ]

        if len(columns) < options.min_columns:
            context.warn(
                diagnostics.COLUMNS,
                f":::columns has {len(columns)} column(s), minimum is {options.min_columns}; rendering as linear content",
            )
            text = "\n\n".join(part for part in [preamble] + columns if part)
            return self.parser.compile_blocks(text, context)

        if len(columns) > options.max_columns:
            context.warn(
                diagnostics.COLUMNS,
                f":::columns has {len(columns)} columns, maximum is {options.max_columns}; extra columns dropped",
            )
            columns = columns[:options.max_columns]

        if preamble.strip():
            logger.debug("Ignoring content before the first :::column")

        gap = parse_column_gap(attrs.get("gap"), options, context)
        widths = parse_column_widths(attrs.get("width"), len(columns), gap, options, context)

        column_context = context.nested(in_columns=True)
        compiled = tuple(tuple(self.parser.compile_blocks(text, column_context)) for text in columns)
        return [ColumnsBlock(columns=compiled, gap=gap, widths=widths)]

    # -- figma ---------------------------------------------------------------

    def compile_figma(self, token: Token, context: SlideContext) -> List[SlideBlock]:
        attrs, positional = parse_attributes(token.meta.get("attrs", ""))
        properties, overrides = parse_figma_properties(token.content)
        for key, value in attrs.items():
            properties.setdefault(key, value)
        for word in positional:
            if is_remote_url(word):
                properties.setdefault("link", word)

        link = properties.get("link")
        if not link:
            context.warn(diagnostics.DIRECTIVE, ":::figma block missing 'link' property, skipping")
            return []

        hostname = extract_hostname(link)
        if hostname is None:
            context.warn(diagnostics.DIRECTIVE, f"invalid URL format: {link}")
            return []
        if not is_valid_figma_hostname(hostname):
            context.warn(diagnostics.DIRECTIVE, f"rejected Figma URL with invalid hostname {hostname!r}: {link}")
            return []

        parts = parse_figma_url(link)
        if not parts.file_key:
            context.warn(diagnostics.DIRECTIVE, f"Figma URL is missing a file key: {link}")
        if not parts.node_id:
            context.warn(diagnostics.DIRECTIVE, f"Figma URL is missing a node-id: {link}")

        hide_link = properties.get("hideLink")
        figma_link = FigmaLink(
            url=link,
            file_key=parts.file_key,
            node_id=parts.node_id,
            x=self._coordinate(properties, "x", context),
            y=self._coordinate(properties, "y", context),
            text_overrides=tuple(
                (layer, self.text_override(text, context)) for layer, text in overrides.items()
            ),
            hide_link={"true": True, "false": False}.get(hide_link.lower()) if hide_link else None,
        )
        return [FigmaBlock(link=figma_link)]

    @staticmethod
    def _coordinate(properties: Dict[str, str], key: str, context: SlideContext) -> Optional[float]:
        raw = properties.get(key)
        if not raw:
            return None
        try:
            value = float(raw)
        except ValueError:
            context.warn(diagnostics.DIRECTIVE, f"figma {key}={raw!r} is not a number")
            return None
        return int(value) if value.is_integer() else value

    def text_override(self, markdown: str, context: SlideContext) -> TextOverride:
        """
        Flatten a markdown snippet into one text run for a Figma text layer.

        Each paragraph, heading or list item becomes a line; list items are
        prefixed with the bullet marker of their depth and blockquote lines
        are wrapped in double quotes.
        """
        lines = []
        list_depth = 0
        quote_depth = 0
        for token in self.parser.parse(markdown, context):
            if token.type in ("bullet_list_open", "ordered_list_open"):
                list_depth += 1
            elif token.type in ("bullet_list_close", "ordered_list_close"):
                list_depth -= 1
            elif token.type == "blockquote_open":
                quote_depth += 1
            elif token.type == "blockquote_close":
                quote_depth -= 1
            elif token.type == "inline":
                spans = tokens_to_spans(token.children, context.env)
                if list_depth:
                    spans = (TextSpan(get_bullet_marker(list_depth - 1) + " "),) + spans
                elif quote_depth:
                    spans = (TextSpan('"'),) + spans + (TextSpan('"'),)
                lines.append(spans)
            elif token.type in ("fence", "code_block"):
                lines.append((TextSpan(token.content.rstrip("\n"), code=True),))

        spans = join_spans(lines, "\n")
        return TextOverride(text=spans_to_text(spans), spans=spans)

    # -- callouts ------------------------------------------------------------

    def compile_callout(self, token: Token, context: SlideContext, callout_type: str) -> List[SlideBlock]:
        groups = [
            tokens_to_spans(child.children, context.env)
            for child in self.parser.parse(token.content, context)
            if child.type == "inline"
        ]
        spans = join_spans(groups, " ")
        return [CalloutBlock(type=callout_type, text=spans_to_text(spans), spans=spans)]

"""
Markdown parser that compiles one slide region into slide blocks.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.front_matter import front_matter_plugin

from . import diagnostics
from .directives import DirectiveCompiler
from .images import compile_image
from .markdown_plugins import directive_plugin, footnote_ref_plugin
from .models import (
    BlockquoteBlock,
    BulletItem,
    BulletsBlock,
    CodeBlock,
    ColumnsBlock,
    FigmaBlock,
    HeadingBlock,
    ImageBlock,
    ParagraphBlock,
    SlideBlock,
    TableBlock,
    TextSpan,
)
from .options import CompileOptions, SlideContext
from .spans import join_spans, spans_to_text, tokens_to_spans

logger = logging.getLogger(__name__)

MAX_HEADING_LEVEL = 4
_TEXT_ALIGN_RE = re.compile(r"text-align:\s*(left|center|right)")


@dataclass
class SlideHeader:
    """Title state of the slide being compiled; the first H1 or H2 wins."""
    type: str = "content"
    title: Optional[str] = None


@dataclass
class ParsedSlide:
    type: str
    title: Optional[str]
    blocks: List[SlideBlock]
    frontmatter: Optional[str] = None


@dataclass
class _ItemDraft:
    spans: list = field(default_factory=list)
    children: List["_ItemDraft"] = field(default_factory=list)
    children_ordered: Optional[bool] = None
    children_start: Optional[int] = None

    def freeze(self) -> BulletItem:
        spans = join_spans(self.spans, "\n")
        return BulletItem(
            text=spans_to_text(spans),
            spans=spans,
            children=tuple(child.freeze() for child in self.children),
            children_ordered=self.children_ordered,
            children_start=self.children_start,
        )


def _close_index(tokens: Sequence[Token], start: int) -> int:
    """Index of the token closing the one opened at ``start``."""
    level = 0
    for index in range(start, len(tokens)):
        level += tokens[index].nesting
        if level <= 0:
            return index
    return len(tokens) - 1


def _list_start(token: Token) -> int:
    start = token.attrGet("start")
    try:
        return int(start) if start is not None else 1
    except (TypeError, ValueError):
        return 1


def _keep_link(url: str) -> str:
    # Paths are passed on as written; the asset loader resolves them.
    return url


def _item_tree_spans(items: Sequence[BulletItem]) -> List[Tuple[TextSpan, ...]]:
    groups = []
    for item in items:
        groups.append(item.spans)
        groups.extend(_item_tree_spans(item.children))
    return groups


def _flatten_block(block: SlideBlock) -> List[Tuple[TextSpan, ...]]:
    """Span groups standing in for a block that cannot live inside a list item."""
    spans = getattr(block, 'spans', None)
    if spans:
        return [spans]
    if isinstance(block, CodeBlock):
        return [(TextSpan(block.code, code=True),)] if block.code else []
    if isinstance(block, BulletsBlock):
        return _item_tree_spans(block.items)
    if isinstance(block, ColumnsBlock):
        return [group for column in block.columns for child in column for group in _flatten_block(child)]
    if isinstance(block, FigmaBlock):
        return [(TextSpan(block.link.url, href=block.link.url),)]
    if isinstance(block, ImageBlock) and block.alt:
        return [(TextSpan(block.alt),)]
    return []


class MarkdownParser:
    """
    Slide-level markdown compiler built on markdown-it-py.
    """

    def __init__(self, options: Optional[CompileOptions] = None):
        self.options = options or CompileOptions()

        self.md = (
            MarkdownIt('commonmark', {'html': True})
            .enable(['table', 'strikethrough'])
            .use(front_matter_plugin)          # per-slide `---` YAML block
            .use(directive_plugin)             # :::columns, :::figma, callouts
            .use(footnote_ref_plugin)          # [^id] references
        )
        # no percent-encoding of image src / link href
        self.md.normalizeLink = _keep_link
        self.directives = DirectiveCompiler(self)

    def parse(self, text: str, context: SlideContext) -> List[Token]:
        return self.md.parse(text, context.env)

    def parse_slide(self, text: str, context: SlideContext) -> ParsedSlide:
        """
        Compile a whole slide region.

        A fenced frontmatter block at the top is returned raw for the config
        resolver; the first H1 (or H2 when there is no H1 before it) becomes
        the slide title.
        """
        tokens = self.parse(text, context)
        frontmatter = None
        if tokens and tokens[0].type == 'front_matter':
            frontmatter = tokens[0].content
            tokens = tokens[1:]

        header = SlideHeader()
        blocks = self.compile_tokens(tokens, context, header)
        return ParsedSlide(type=header.type, title=header.title, blocks=blocks, frontmatter=frontmatter)

    def compile_blocks(self, text: str, context: SlideContext) -> List[SlideBlock]:
        """Compile a nested body (directive content); headings are always blocks."""
        if not text.strip():
            return []
        return self.compile_tokens(self.parse(text, context), context)

    def compile_tokens(
        self, tokens: Sequence[Token], context: SlideContext, header: Optional[SlideHeader] = None
    ) -> List[SlideBlock]:
        blocks: List[SlideBlock] = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            end = _close_index(tokens, index) if token.nesting == 1 else index
            block = None

            if token.type == 'heading_open':
                block = self._heading(token, tokens[index + 1], context, header)
            elif token.type == 'paragraph_open':
                block = self._paragraph(tokens[index + 1], context)
            elif token.type in ('bullet_list_open', 'ordered_list_open'):
                block = self._bullets(tokens[index:end + 1], context)
            elif token.type in ('fence', 'code_block'):
                block = self._code(token)
            elif token.type == 'blockquote_open':
                block = self._blockquote(tokens[index + 1:end], context)
            elif token.type == 'table_open':
                block = self._table(tokens[index + 1:end], context)
            elif token.type == 'directive':
                blocks.extend(self.directives.compile(token, context))
            else:
                # hr, html_block, stray front_matter
                logger.debug("Skipping block token %s", token.type)

            if block is not None:
                blocks.append(block)
            index = end + 1
        return blocks

    # ------------------------------------------------------------------
    # Block builders
    # ------------------------------------------------------------------

    def _heading(
        self, open_token: Token, inline: Token, context: SlideContext, header: Optional[SlideHeader]
    ) -> Optional[SlideBlock]:
        level = int(open_token.tag[1:])
        spans = tokens_to_spans(inline.children, context.env)
        text = spans_to_text(spans)

        if header is not None and header.title is None and not context.in_columns:
            if level == 1:
                header.type, header.title = 'title', text
                return None
            if level == 2:
                header.type, header.title = 'content', text
                return None

        return HeadingBlock(level=min(level, MAX_HEADING_LEVEL), text=text, spans=spans)

    def _paragraph(self, inline: Token, context: SlideContext) -> Optional[SlideBlock]:
        children = inline.children or []
        significant = [
            child for child in children
            if child.type not in ('softbreak', 'hardbreak') and not (child.type == 'text' and not child.content.strip())
        ]
        if len(significant) == 1 and significant[0].type == 'image':
            image = significant[0]
            return compile_image(image.attrGet('src') or '', image.content, context)

        spans = tokens_to_spans(children, context.env)
        if not spans_to_text(spans).strip():
            return None
        return ParagraphBlock(text=spans_to_text(spans), spans=spans)

    def _bullets(self, tokens: Sequence[Token], context: SlideContext) -> BulletsBlock:
        """Build the item tree with an explicit stack of open lists and items."""
        root: List[_ItemDraft] = []
        lists: List[List[_ItemDraft]] = []
        items: List[_ItemDraft] = []

        for token in tokens:
            if token.type in ('bullet_list_open', 'ordered_list_open'):
                if items:
                    parent = items[-1]
                    ordered = token.type == 'ordered_list_open'
                    if parent.children_ordered is None:
                        parent.children_ordered = ordered
                        parent.children_start = _list_start(token)
                    elif parent.children_ordered != ordered:
                        context.warn(
                            diagnostics.LIST,
                            "list item has both ordered and unordered sub-lists; "
                            "they are merged under the first list's numbering",
                        )
                    lists.append(parent.children)
                else:
                    lists.append(root)
            elif token.type in ('bullet_list_close', 'ordered_list_close'):
                lists.pop()
            elif token.type == 'list_item_open':
                item = _ItemDraft()
                lists[-1].append(item)
                items.append(item)
            elif token.type == 'list_item_close':
                items.pop()
            elif token.type == 'inline' and items:
                items[-1].spans.append(tokens_to_spans(token.children, context.env))
            elif token.type in ('fence', 'code_block') and items:
                code = self._code(token).code
                if code:
                    items[-1].spans.append((TextSpan(code, code=True),))
                context.warn(diagnostics.LIST, "code block inside a list item is kept as inline code")
            elif token.type == 'directive' and items:
                for block in self.directives.compile(token, context):
                    items[-1].spans.extend(_flatten_block(block))
                context.warn(
                    diagnostics.DIRECTIVE,
                    f":::{token.info} inside a list item is flattened into the item's text",
                )

        first = tokens[0]
        ordered = first.type == 'ordered_list_open'
        return BulletsBlock(
            items=tuple(item.freeze() for item in root),
            ordered=ordered,
            start=_list_start(first) if ordered else 1,
        )

    def _code(self, token: Token) -> CodeBlock:
        code = token.content
        if code.endswith('\n'):
            code = code[:-1]
        info = token.info.strip() if token.type == 'fence' else ''
        language = info.split()[0] if info else None
        return CodeBlock(code=code, language=language)

    def _blockquote(self, tokens: Sequence[Token], context: SlideContext) -> BlockquoteBlock:
        groups = [tokens_to_spans(token.children, context.env) for token in tokens if token.type == 'inline']
        spans = join_spans(groups, '\n')
        return BlockquoteBlock(text=spans_to_text(spans), spans=spans)

    def _table(self, tokens: Sequence[Token], context: SlideContext) -> TableBlock:
        headers = ()
        rows = []
        align: List[Optional[str]] = []
        row: list = []
        in_head = False

        for token in tokens:
            if token.type == 'thead_open':
                in_head = True
            elif token.type == 'thead_close':
                in_head = False
            elif token.type == 'tr_open':
                row = []
            elif token.type == 'tr_close':
                if in_head:
                    headers = tuple(row)
                else:
                    rows.append(tuple(row))
            elif token.type == 'th_open':
                match = _TEXT_ALIGN_RE.search(token.attrGet('style') or '')
                align.append(match.group(1) if match else None)
            elif token.type == 'inline':
                row.append(tokens_to_spans(token.children, context.env))

        return TableBlock(headers=headers, rows=tuple(rows), align=tuple(align))

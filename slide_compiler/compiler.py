"""
Compile a whole markdown deck into a ``Document``.
"""
import logging
from typing import Any, Dict, Optional, Union

from .config import (
    ConfigParser,
    extract_global_frontmatter,
    load_frontmatter,
    resolve_config,
    split_implicit_frontmatter,
)
from .diagnostics import CompileError, EmptyDocumentError, WarningCollector
from .footnotes import FootnoteRegistry
from .markdown_parser import MarkdownParser, ParsedSlide
from .models import CompileResult, Document, FootnotesBlock, SlideContent
from .options import CompileOptions, SlideContext
from .segmenter import normalize_newlines, split_slides

logger = logging.getLogger(__name__)


class SlideCompiler:
    """
    Turns deck markdown into slides.

    Every call to :meth:`compile` builds its own parser, warning collector
    and footnote registry, so one compiler can be shared between threads.
    """

    def __init__(self, options: Optional[CompileOptions] = None):
        self.options = options or CompileOptions()

    def compile(self, source: Union[str, bytes]) -> CompileResult:
        text = normalize_newlines(self._decode(source))

        warnings = WarningCollector()
        config_parser = ConfigParser(self.options, warnings.warn)

        global_config: Dict[str, Any] = {}
        global_source, body = extract_global_frontmatter(text)
        if global_source is not None:
            raw = load_frontmatter(global_source, warnings.warn)
            if raw:
                global_config = config_parser.parse(raw, is_global=True)
        cover = global_config.pop("cover", True)

        regions = split_slides(body)
        if not regions:
            raise EmptyDocumentError("document contains no slide content")

        parser = MarkdownParser(self.options)
        footnotes = FootnoteRegistry()
        slides = []
        for index, region in enumerate(regions):
            with warnings.for_slide(index + 1):
                context = SlideContext(index=index, options=self.options, warnings=warnings)
                slides.append(
                    self._compile_slide(region, context, parser, footnotes, config_parser, global_config, cover)
                )

        logger.debug("Compiled %d slide(s) with %d warning(s)", len(slides), len(warnings))
        return CompileResult(Document(tuple(slides)), warnings.as_tuple())

    @staticmethod
    def _decode(source: Union[str, bytes]) -> str:
        if isinstance(source, (bytes, bytearray)):
            try:
                source = bytes(source).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise CompileError(f"input is not valid UTF-8: {exc}") from exc
        elif not isinstance(source, str):
            raise CompileError(f"expected str or bytes, got {type(source).__name__}")
        return source.lstrip("\ufeff")

    def _compile_slide(
        self,
        region: str,
        context: SlideContext,
        parser: MarkdownParser,
        footnotes: FootnoteRegistry,
        config_parser: ConfigParser,
        global_config: Dict[str, Any],
        cover: bool,
    ) -> SlideContent:
        implicit_source, body = split_implicit_frontmatter(region)
        body = footnotes.prepare(body, context)
        parsed = parser.parse_slide(body, context)

        frontmatter = implicit_source if implicit_source is not None else parsed.frontmatter
        slide_config = None
        if frontmatter is not None:
            raw = load_frontmatter(frontmatter, context.warn)
            if raw:
                slide_config = config_parser.parse(raw)

        items = footnotes.collect(parser.md, context)
        blocks = list(parsed.blocks)
        if items:
            blocks.append(FootnotesBlock(items=items))

        config = resolve_config(global_config, slide_config)
        return self._build_slide(parsed, blocks, items, config, cover=cover and context.index == 0)

    @staticmethod
    def _build_slide(parsed: ParsedSlide, blocks, footnote_items, config: Dict[str, Any], cover: bool) -> SlideContent:
        return SlideContent(
            type=parsed.type,
            title=parsed.title,
            blocks=tuple(blocks),
            background=config.get("background"),
            styles=config.get("styles") or {"headings": {}},
            slide_number=config.get("slideNumber"),
            title_prefix=config.get("titlePrefix"),
            title_prefix_disabled="titlePrefix" in config and config["titlePrefix"] is None,
            cover=cover,
            align=config.get("align"),
            valign=config.get("valign"),
            footnotes=footnote_items,
            transition=config.get("transition"),
        )


def compile_markdown(source: Union[str, bytes], options: Optional[CompileOptions] = None) -> CompileResult:
    """
    Compile deck markdown.

    Returns ``(document, warnings)``. Raises :class:`CompileError` when the
    input cannot be decoded and :class:`EmptyDocumentError` when it holds no
    slides.
    """
    return SlideCompiler(options).compile(source)

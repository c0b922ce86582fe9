"""
Footnote definitions, references and the per-slide footnotes list.

Definitions (``[^id]: text`` plus indented continuation lines) are taken
out of the slide source before it is parsed so they never show up as
paragraphs. The ``footnote_ref`` inline rule then records references in
the parser env, and :meth:`FootnoteRegistry.collect` turns the referenced
definitions into ``FootnoteItem`` records in first-reference order.
"""
import logging
import re
from typing import Dict, List, Set, Tuple

from markdown_it import MarkdownIt

from . import diagnostics
from .models import FootnoteItem
from .options import SlideContext
from .segmenter import CodeFenceTracker
from .spans import inline_spans, spans_to_text

logger = logging.getLogger(__name__)

_DEFINITION_RE = re.compile(r"^ {0,3}\[\^([^\]\s]+)\]:[ \t]*(.*)$")


def extract_definitions(text: str, context: SlideContext) -> Tuple[Dict[str, str], str]:
    """
    Pull footnote definitions out of ``text``.

    Returns ``(definitions, remaining_text)``. A label defined twice keeps
    the later body.
    """
    definitions: Dict[str, List[str]] = {}
    remaining: List[str] = []
    fences = CodeFenceTracker()
    current = None

    for line in text.split("\n"):
        if fences.feed(line):
            current = None
            remaining.append(line)
            continue

        match = _DEFINITION_RE.match(line)
        if match:
            label, body = match.groups()
            if label in definitions:
                context.warn(diagnostics.FOOTNOTE, f"footnote [^{label}] is defined more than once, keeping the last")
            definitions[label] = [body.strip()]
            current = label
            continue

        if current is not None and line.strip() and line[:1] in (" ", "\t"):
            definitions[current].append(line.strip())
            continue

        current = None
        remaining.append(line)

    joined = {label: " ".join(part for part in parts if part) for label, parts in definitions.items()}
    return joined, "\n".join(remaining)


class FootnoteRegistry:
    """
    Tracks footnote ids across one document so they stay unique.

    A label already used on an earlier slide is shown as ``label-2``,
    ``label-3`` and so on.
    """

    def __init__(self):
        self.used_ids: Set[str] = set()

    def _display_id(self, label: str) -> str:
        if label not in self.used_ids:
            return label
        counter = 2
        while f"{label}-{counter}" in self.used_ids:
            counter += 1
        return f"{label}-{counter}"

    def prepare(self, text: str, context: SlideContext) -> str:
        """Extract definitions and seed the parser env; returns the remaining source."""
        definitions, remaining = extract_definitions(text, context)
        context.env["footnote_defs"] = definitions
        context.env["footnote_ids"] = {label: self._display_id(label) for label in definitions}
        context.env.setdefault("footnote_refs", [])
        return remaining

    def collect(self, md: MarkdownIt, context: SlideContext) -> Tuple[FootnoteItem, ...]:
        definitions: Dict[str, str] = context.env.get("footnote_defs", {})
        display_ids: Dict[str, str] = context.env.get("footnote_ids", {})

        labels: List[str] = []
        for label in context.env.get("footnote_refs", []):
            if label not in labels:
                labels.append(label)

        # References inside footnote bodies are displayed but not collected
        body_env = {"footnote_defs": definitions, "footnote_ids": display_ids}

        items = []
        for label in labels:
            if label not in definitions:
                context.warn(diagnostics.FOOTNOTE, f"reference to undefined footnote [^{label}]")
                continue
            display = display_ids.get(label, label)
            if display != label:
                context.warn(diagnostics.FOOTNOTE, f"footnote id {label!r} is already used in this deck, renamed to {display!r}")
            self.used_ids.add(display)
            spans = inline_spans(md, definitions[label], body_env)
            items.append(FootnoteItem(id=display, content=spans_to_text(spans), spans=spans))

        for label in definitions:
            if label not in labels:
                logger.debug("Footnote [^%s] is defined but never referenced", label)

        return tuple(items)

"""
Inline formatting: markdown-it inline tokens to flat ``TextSpan`` runs.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from markdown_it import MarkdownIt
from markdown_it.token import Token

from .models import TextSpan

logger = logging.getLogger(__name__)

# token type -> (mark name, opening?)
_MARK_TOKENS = {
    "strong_open": ("bold", True),
    "strong_close": ("bold", False),
    "em_open": ("italic", True),
    "em_close": ("italic", False),
    "s_open": ("strike", True),
    "s_close": ("strike", False),
    "link_open": ("href", True),
    "link_close": ("href", False),
}


class _SpanBuilder:
    """Accumulates spans, merging a run into the previous one when the flags match."""

    def __init__(self):
        self.spans: List[TextSpan] = []

    def add(self, span: TextSpan) -> None:
        if not span.text:
            return
        if self.spans and self.spans[-1].marks == span.marks:
            previous = self.spans.pop()
            span = TextSpan(previous.text + span.text, *span.marks)
        self.spans.append(span)

    def extend(self, spans: Iterable[TextSpan]) -> None:
        for span in spans:
            self.add(span)

    def build(self) -> Tuple[TextSpan, ...]:
        return tuple(self.spans)


def _active_marks(stack: Sequence[Tuple[str, Any]]) -> Dict[str, Any]:
    marks: Dict[str, Any] = {}
    for name, value in stack:
        marks[name] = value
    return marks


def tokens_to_spans(children: Optional[Sequence[Token]], env: Optional[Dict[str, Any]] = None) -> Tuple[TextSpan, ...]:
    """
    Flatten inline tokens into spans.

    Open/close pairs push and pop an explicit marks stack; every text leaf
    takes the union of the marks open at that point. Images are skipped;
    a paragraph made of a single image is handled by the block compiler.
    """
    env = env if env is not None else {}
    display_ids = env.get("footnote_ids", {})
    stack: List[Tuple[str, Any]] = []
    builder = _SpanBuilder()

    def emit(text: str, **extra) -> None:
        marks = _active_marks(stack)
        marks.update(extra)
        builder.add(TextSpan(text, **marks))

    for token in children or ():
        if token.type in _MARK_TOKENS:
            name, opening = _MARK_TOKENS[token.type]
            if opening:
                stack.append((name, token.attrGet("href") if name == "href" else True))
            else:
                for index in range(len(stack) - 1, -1, -1):
                    if stack[index][0] == name:
                        del stack[index]
                        break
        elif token.type in ("text", "html_inline"):
            emit(token.content)
        elif token.type == "code_inline":
            emit(token.content, code=True)
        elif token.type in ("softbreak", "hardbreak"):
            emit("\n")
        elif token.type == "footnote_ref":
            label = token.meta["label"]
            if token.meta.get("defined"):
                emit(f"[{display_ids.get(label, label)}]", superscript=True)
            else:
                emit(token.content)
        elif token.type == "image":
            continue
        else:
            logger.debug("Ignoring inline token %s", token.type)

    return builder.build()


def spans_to_text(spans: Iterable[TextSpan]) -> str:
    return "".join(span.text for span in spans)


def join_spans(groups: Iterable[Sequence[TextSpan]], separator: str = "\n") -> Tuple[TextSpan, ...]:
    """Concatenate span groups with a plain ``separator`` run between them."""
    builder = _SpanBuilder()
    for index, group in enumerate(groups):
        if index:
            builder.add(TextSpan(separator))
        builder.extend(group)
    return builder.build()


def inline_spans(md: MarkdownIt, text: str, env: Optional[Dict[str, Any]] = None) -> Tuple[TextSpan, ...]:
    """Run ``text`` through the inline parser only and return its spans."""
    env = env if env is not None else {}
    tokens = md.parseInline(text, env)
    if not tokens:
        return ()
    return tokens_to_spans(tokens[0].children, env)

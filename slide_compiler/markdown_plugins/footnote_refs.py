import re

from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline

_REF_RE = re.compile(r"\[\^([^\]\s]+)\]")


def footnote_ref_plugin(md: MarkdownIt):
    """Markdown-it-py plugin that turns ``[^label]`` into ``footnote_ref`` tokens.

    Definitions are pulled out of the source before parsing and handed in
    through ``env["footnote_defs"]``; the token records whether its label was
    defined so the span formatter can decide how to display it. Every
    reference is appended to ``env["footnote_refs"]`` in source order.
    """

    def _footnote_ref(state: StateInline, silent: bool):
        if not state.src.startswith('[^', state.pos):
            return False

        match = _REF_RE.match(state.src, state.pos)
        if not match or match.end() > state.posMax:
            return False

        if not silent:
            label = match.group(1)
            token = state.push('footnote_ref', '', 0)
            token.content = match.group(0)
            token.meta = {
                'label': label,
                'defined': label in state.env.get('footnote_defs', {}),
            }
            state.env.setdefault('footnote_refs', []).append(label)

        state.pos = match.end()
        return True

    # Before link so `[^a]` is never read as a link label
    md.inline.ruler.before('link', 'footnote_ref', _footnote_ref)

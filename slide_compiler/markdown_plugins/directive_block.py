import re

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock

OPENER_RE = re.compile(r"^:::\s*([A-Za-z][\w-]*)(.*)$")
_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")


def is_column_separator(name: str) -> bool:
    return name.lower() == 'column'


def directive_plugin(md: MarkdownIt):
    """Markdown-it-py plugin for ``:::name attrs`` ... ``:::`` directive fences.

    The whole directive becomes one ``directive`` token: ``info`` holds the
    name, ``meta`` the raw attribute string and whether a closing fence was
    found, and ``content`` the inner source which the compiler parses again
    on its own. Nested directives are matched by depth and code fences inside
    the body are skipped, so a ``:::`` inside a code sample never closes the
    directive. ``:::column`` is a separator inside ``:::columns`` and is never
    an opener.
    """

    def _line_text(state: StateBlock, line: int) -> str:
        start = state.bMarks[line] + state.tShift[line]
        return state.src[start:state.eMarks[line]].rstrip()

    def _directive_block(state: StateBlock, start_line: int, end_line: int, silent: bool):
        # Indented code block, not a directive
        if state.sCount[start_line] - state.blkIndent >= 4:
            return False

        match = OPENER_RE.match(_line_text(state, start_line))
        if not match or is_column_separator(match.group(1)):
            return False

        if silent:
            return True

        depth = 1
        fence = None
        closed = False
        next_line = start_line + 1
        while next_line < end_line:
            text = _line_text(state, next_line)
            if text and state.sCount[next_line] < state.blkIndent:
                # dedented out of the enclosing list item / blockquote
                break

            fence_match = _FENCE_RE.match(text)
            if fence is not None:
                if fence_match and fence_match.group(1)[0] == fence[0] and len(fence_match.group(1)) >= len(fence):
                    fence = None
            elif fence_match:
                fence = fence_match.group(1)
            elif text == ':::':
                depth -= 1
                if depth == 0:
                    closed = True
                    break
            else:
                nested = OPENER_RE.match(text)
                if nested and not is_column_separator(nested.group(1)):
                    depth += 1
            next_line += 1

        token = state.push('directive', 'div', 0)
        token.info = match.group(1)
        token.markup = ':::'
        token.meta = {'attrs': match.group(2).strip(), 'closed': closed}
        token.content = state.getLines(start_line + 1, next_line, state.sCount[start_line], True)
        token.map = [start_line, next_line + 1 if closed else next_line]

        state.line = next_line + 1 if closed else next_line
        return True

    md.block.ruler.before(
        'fence',
        'directive',
        _directive_block,
        {'alt': ['paragraph', 'reference', 'blockquote', 'list']},
    )

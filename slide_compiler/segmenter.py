"""
Splitting a deck into slide regions on ``---`` separator lines.
"""
import re
from typing import List, Optional

_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")
_KEY_VALUE_RE = re.compile(r"^[a-zA-Z][\w-]*:\s*.+$")
_LEADING_BLANK_LINES_RE = re.compile(r"\A(?:[ \t]*\n)+")


class CodeFenceTracker:
    """
    Follows fenced code blocks line by line.

    ``feed`` returns True for every line that belongs to a fence, the
    opening and closing lines included.
    """

    def __init__(self):
        self.fence: Optional[str] = None

    @property
    def inside(self) -> bool:
        return self.fence is not None

    def feed(self, line: str) -> bool:
        match = _FENCE_RE.match(line.strip())
        if match:
            if self.fence is None:
                self.fence = match.group(1)
            elif line.strip().startswith(self.fence):
                self.fence = None
            return True
        return self.fence is not None


def has_meaningful_content(lines: List[str]) -> bool:
    return any(line.strip() for line in lines)


def looks_like_implicit_frontmatter(lines: List[str]) -> bool:
    """True when every non-blank line so far is a ``key: value`` pair."""
    saw_key = False
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if not _KEY_VALUE_RE.match(stripped):
            return False
        saw_key = True
    return saw_key


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_slides(text: str) -> List[str]:
    """
    Split ``text`` into slide regions.

    A line that is exactly ``---`` (outside code fences) separates slides
    unless it opens a slide's frontmatter (nothing meaningful before it in
    the region), closes the frontmatter it opened, or closes an implicit
    frontmatter block made only of ``key: value`` lines. Regions are
    stripped of surrounding blank lines; empty regions are dropped.
    """
    regions: List[str] = []
    current: List[str] = []
    in_frontmatter = False
    opening_line = 0
    fences = CodeFenceTracker()

    def flush():
        nonlocal in_frontmatter
        if in_frontmatter:
            # an opening fence that never closed is a plain rule
            del current[opening_line]
            in_frontmatter = False
        region = "\n".join(current).rstrip()
        region = _LEADING_BLANK_LINES_RE.sub("", region)
        if region.strip():
            regions.append(region)
        current.clear()

    for line in normalize_newlines(text).split("\n"):
        if fences.feed(line):
            current.append(line)
            continue

        if line.strip() != "---":
            current.append(line)
            continue

        if in_frontmatter:
            in_frontmatter = False
            current.append(line)
        elif not has_meaningful_content(current):
            in_frontmatter = True
            opening_line = len(current)
            current.append(line)
        elif looks_like_implicit_frontmatter(current):
            current.append(line)
        else:
            flush()

    flush()
    return regions

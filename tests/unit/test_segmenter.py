"""Tests for splitting a deck into slide regions."""

import pytest

from slide_compiler.segmenter import CodeFenceTracker, looks_like_implicit_frontmatter, split_slides


@pytest.mark.parametrize("separators", [0, 1, 2, 5])
def test_n_separators_give_n_plus_one_slides(separators):
    text = "\n---\n".join(f"# Slide {n}\n\nBody {n}" for n in range(separators + 1))
    assert len(split_slides(text)) == separators + 1


def test_separator_inside_code_fence_is_content():
    text = "# A\n\n```yaml\n---\nkey: value\n```\n---\n# B"
    regions = split_slides(text)
    assert regions == ["# A\n\n```yaml\n---\nkey: value\n```", "# B"]


def test_fenced_slide_frontmatter_is_not_a_separator():
    regions = split_slides("# A\n---\n---\nbackground: red\n---\n# B")
    assert regions == ["# A", "---\nbackground: red\n---\n# B"]


def test_implicit_frontmatter_is_not_a_separator():
    regions = split_slides("# A\n---\nbackground: red\nalign: center\n---\n# B")
    assert regions == ["# A", "background: red\nalign: center\n---\n# B"]


def test_empty_regions_are_skipped():
    assert split_slides("# A\n---\n\n---\n# B") == ["# A", "# B"]
    assert split_slides("\n\n") == []


def test_windows_newlines():
    assert split_slides("# A\r\n---\r\n# B\r\n") == ["# A", "# B"]


def test_looks_like_implicit_frontmatter():
    assert looks_like_implicit_frontmatter(["background: red", "", "align: left"])
    assert not looks_like_implicit_frontmatter(["# Title"])
    assert not looks_like_implicit_frontmatter(["", "  "])


def test_code_fence_tracker():
    tracker = CodeFenceTracker()
    lines = ["text", "````md", "```", "````", "after"]
    assert [tracker.feed(line) for line in lines] == [False, True, True, True, False]
    assert not tracker.inside

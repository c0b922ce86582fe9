"""Tests for inline formatting into text spans."""

from slide_compiler.models import TextSpan
from slide_compiler.spans import inline_spans, join_spans, spans_to_text


def test_marks_map_to_flags(parser):
    spans = inline_spans(parser.md, "plain **bold** and *it* ~~gone~~ `code`")
    assert spans == (
        TextSpan("plain "),
        TextSpan("bold", bold=True),
        TextSpan(" and "),
        TextSpan("it", italic=True),
        TextSpan(" "),
        TextSpan("gone", strike=True),
        TextSpan(" "),
        TextSpan("code", code=True),
    )


def test_overlapping_marks_are_flattened(parser):
    assert inline_spans(parser.md, "***both***") == (TextSpan("both", bold=True, italic=True),)
    assert inline_spans(parser.md, "**bold *both***") == (
        TextSpan("bold ", bold=True),
        TextSpan("both", bold=True, italic=True),
    )


def test_links_carry_href(parser):
    assert inline_spans(parser.md, "see [the **site**](https://example.com)") == (
        TextSpan("see "),
        TextSpan("the ", href="https://example.com"),
        TextSpan("site", bold=True, href="https://example.com"),
    )


def test_link_href_is_kept_as_written(parser):
    assert inline_spans(parser.md, "[docs](https://example.com/über)") == (
        TextSpan("docs", href="https://example.com/über"),
    )


def test_breaks_become_newlines(parser):
    assert inline_spans(parser.md, "one\ntwo") == (TextSpan("one\ntwo"),)


def test_inline_html_kept_as_text(parser):
    assert spans_to_text(inline_spans(parser.md, "a <b>b</b>")) == "a <b>b</b>"


def test_defined_footnote_reference_is_superscript(parser):
    env = {"footnote_defs": {"a": "note"}, "footnote_ids": {"a": "a"}}
    spans = inline_spans(parser.md, "see[^a]", env)
    assert spans == (TextSpan("see"), TextSpan("[a]", superscript=True))
    assert env["footnote_refs"] == ["a"]


def test_undefined_footnote_reference_stays_literal(parser):
    env = {}
    assert inline_spans(parser.md, "see [^zz]", env) == (TextSpan("see [^zz]"),)
    assert env["footnote_refs"] == ["zz"]


def test_join_spans_coalesces_plain_runs():
    joined = join_spans([(TextSpan("a"),), (TextSpan("b", bold=True),), (TextSpan("c"),)], " ")
    assert joined == (TextSpan("a "), TextSpan("b", bold=True), TextSpan(" c"))


def test_span_serialisation_omits_unset_flags():
    assert TextSpan("x").to_dict() == {"text": "x"}
    assert TextSpan("x", bold=True, href="https://a.b").to_dict() == {"text": "x", "bold": True, "href": "https://a.b"}

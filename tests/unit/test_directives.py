"""Tests for :::columns, :::figma and callout directives."""

import pytest

from slide_compiler import compile_markdown
from slide_compiler.directives import parse_attributes, parse_figma_properties, split_columns
from slide_compiler.models import (
    CalloutBlock,
    CodeBlock,
    ColumnsBlock,
    FigmaBlock,
    FigmaLink,
    ParagraphBlock,
    TextOverride,
    TextSpan,
)

FIGMA_URL = "https://www.figma.com/file/abc123/Deck?node-id=1-2"


def paragraph(text):
    return ParagraphBlock(text=text, spans=(TextSpan(text),))


def compile_one(markdown):
    document, warnings = compile_markdown(markdown)
    assert len(document) == 1
    return document[0].blocks, [w.code for w in warnings]


def columns_markdown(count, attrs=""):
    body = "\n".join(f":::column\nCol {n}" for n in range(1, count + 1))
    return f"# T\n\n:::columns {attrs}\n{body}\n:::"


class TestColumns:

    def test_two_columns(self):
        blocks, warnings = compile_one(columns_markdown(2))
        assert blocks == (ColumnsBlock(columns=((paragraph("Col 1"),), (paragraph("Col 2"),)), gap=32),)
        assert warnings == []

    def test_gap_is_clamped(self):
        (block,), warnings = compile_one(columns_markdown(2, "gap=999"))
        assert block.gap == 200
        assert warnings == ["columns"]

    def test_invalid_gap_keeps_default(self):
        (block,), warnings = compile_one(columns_markdown(2, "gap=wide"))
        assert block.gap == 32
        assert warnings == ["columns"]

    def test_five_columns_are_truncated_to_four(self):
        (block,), warnings = compile_one(columns_markdown(5))
        assert [column[0].text for column in block.columns] == ["Col 1", "Col 2", "Col 3", "Col 4"]
        assert warnings == ["columns"]

    def test_single_column_renders_linear_content(self):
        blocks, warnings = compile_one(columns_markdown(1))
        assert blocks == (paragraph("Col 1"),)
        assert warnings == ["columns"]

    def test_fr_widths_fill_available_width(self):
        (block,), warnings = compile_one(columns_markdown(2, "width=1fr/2fr"))
        # 1720 content width minus one 32px gap
        assert block.widths == (563, 1125)
        assert sum(block.widths) == 1688
        assert warnings == []

    def test_percent_widths_are_normalised(self):
        (block,), _ = compile_one(columns_markdown(2, "gap=0 width=30%/30%"))
        assert block.widths == (860, 860)

    @pytest.mark.parametrize("width", ["1fr", "1fr/abc", "100/1000"])
    def test_bad_widths_fall_back_to_even_split(self, width):
        (block,), warnings = compile_one(columns_markdown(2, f"width={width}"))
        assert block.widths is None
        assert "widths" not in block.to_dict()
        assert warnings == ["columns"]

    def test_nested_columns_are_flattened(self):
        markdown = "\n".join([
            ":::columns",
            ":::column",
            ":::columns",
            ":::column",
            "X",
            ":::column",
            "Y",
            ":::",
            ":::column",
            "Z",
            ":::",
        ])
        (block,), _ = compile_one(markdown)
        assert block.columns == ((paragraph("X"), paragraph("Y")), (paragraph("Z"),))

    def test_headings_inside_columns_are_blocks(self):
        markdown = ":::columns\n:::column\n# Left\n:::column\n## Right\n:::"
        document, _ = compile_markdown(markdown)
        slide = document[0]
        assert slide.title is None
        assert [column[0].kind for column in slide.blocks[0].columns] == ["heading", "heading"]

    def test_split_columns_ignores_separators_in_code(self):
        preamble, columns = split_columns("intro\n:::column\n```\n:::column\n```\n:::column\nB")
        assert preamble == "intro"
        assert columns == ["```\n:::column\n```", "B"]


class TestFigma:

    def test_link_card(self):
        markdown = f":::figma\nlink={FIGMA_URL}\nx=160\ny=300.5\nhideLink=true\n:::"
        blocks, warnings = compile_one(markdown)
        assert blocks == (
            FigmaBlock(link=FigmaLink(url=FIGMA_URL, file_key="abc123", node_id="1:2", x=160, y=300.5, hide_link=True)),
        )
        assert warnings == []

    def test_bare_url_on_opening_line(self):
        url = "https://www.figma.com/design/KEY/Name?node-id=3-4"
        (block,), _ = compile_one(f":::figma {url}\n:::")
        assert block.link.to_dict() == {"url": url, "fileKey": "KEY", "nodeId": "3:4"}

    @pytest.mark.parametrize("body", [
        "x=10",
        "link=https://figma.com.evil.com/file/abc?node-id=1-2",
        "link=not-a-url",
    ])
    def test_invalid_links_drop_the_block(self, body):
        document, warnings = compile_markdown(f"Text\n\n:::figma\n{body}\n:::")
        assert document[0].blocks == (paragraph("Text"),)
        assert [w.code for w in warnings] == ["directive"]

    def test_missing_node_id_keeps_block(self):
        (block,), warnings = compile_one(":::figma\nhttps://www.figma.com/file/abc123/Deck\n:::")
        assert block.link.node_id is None
        assert warnings == ["directive"]

    def test_text_overrides(self):
        markdown = "\n".join([
            ":::figma",
            f"link={FIGMA_URL}",
            "text.title=Quarterly **results**",
            "text.body=",
            "  - First",
            "    - Nested",
            "",
            "  > Quote",
            ":::",
        ])
        (block,), _ = compile_one(markdown)
        assert block.link.text_overrides == (
            ("title", TextOverride("Quarterly results", (TextSpan("Quarterly "), TextSpan("results", bold=True)))),
            ("body", TextOverride('• First\n◦ Nested\n"Quote"', (TextSpan('• First\n◦ Nested\n"Quote"'),))),
        )
        assert block.to_dict()["link"]["textOverrides"]["title"]["text"] == "Quarterly results"

    def test_parse_figma_properties(self):
        properties, overrides = parse_figma_properties(f"{FIGMA_URL}\nx = 5\ntext.a=one\n  two\nnoise")
        assert properties == {"link": FIGMA_URL, "x": "5"}
        assert overrides == {"a": "one\ntwo"}


class TestCallouts:

    @pytest.mark.parametrize("kind", ["note", "tip", "warning", "caution"])
    def test_callout_types(self, kind):
        (block,), _ = compile_one(f":::{kind}\nHeads up\n:::")
        assert block == CalloutBlock(type=kind, text="Heads up", spans=(TextSpan("Heads up"),))

    def test_paragraphs_join_with_a_space(self):
        (block,), _ = compile_one(":::note\nFirst para.\n\nSecond *para*.\n:::")
        assert block.text == "First para. Second para."
        assert block.spans == (TextSpan("First para. Second "), TextSpan("para", italic=True), TextSpan("."))

    def test_unclosed_directive_warns(self):
        (block,), warnings = compile_one(":::tip\nStill compiled")
        assert block.text == "Still compiled"
        assert warnings == ["directive"]


class TestUnknownDirectives:

    def test_content_passes_through(self):
        blocks, warnings = compile_one(":::details\nHidden **text**\n:::")
        assert blocks == (ParagraphBlock(text="Hidden text", spans=(TextSpan("Hidden "), TextSpan("text", bold=True))),)
        assert warnings == []

    def test_code_fences_inside_are_opaque(self):
        blocks, _ = compile_one(":::box\n```\n:::\n```\n:::")
        assert blocks == (CodeBlock(code=":::"),)


def test_parse_attributes():
    assert parse_attributes('gap=10 width="1fr/2fr" extra') == ({"gap": "10", "width": "1fr/2fr"}, ["extra"])
    assert parse_attributes('title="unbalanced') == ({"title": '"unbalanced'}, [])

"""Tests for image blocks and the alt-text sizing grammar."""

import pytest

from slide_compiler.images import compile_image, parse_image_alt
from slide_compiler.models import ImagePosition, ImageSize


def test_percentages_resolve_against_canvas(context):
    parsed = parse_image_alt("w:50% x:50% y:50% Label", context)
    assert parsed.size == ImageSize(width=960)
    assert parsed.position == ImagePosition(x=960, y=540)
    assert parsed.label == "Label"


def test_local_image_block(context, collector):
    block = compile_image("photo.png", "w:50% x:50% y:50% Label", context)
    assert block.to_dict() == {
        "kind": "image",
        "url": "photo.png",
        "alt": "Label",
        "source": "local",
        "size": {"width": 960},
        "position": {"x": 960, "y": 540},
    }
    assert len(collector) == 0


@pytest.mark.parametrize("alt, size", [
    ("w:400px h:300", ImageSize(width=400, height=300)),
    ("h:50%", ImageSize(height=540)),
    ("w:33.3%", ImageSize(width=639)),
])
def test_size_units(context, alt, size):
    assert parse_image_alt(alt, context).size == size


def test_no_tokens_keeps_alt(context):
    parsed = parse_image_alt("A team photo", context)
    assert parsed.label == "A team photo"
    assert parsed.size is None
    assert parsed.position is None


def test_malformed_token_stays_in_label(context, collector):
    parsed = parse_image_alt("w:abc Hi", context)
    assert parsed.label == "w:abc Hi"
    assert parsed.size is None
    assert [w.code for w in collector] == ["image"]


@pytest.mark.parametrize("url", ["https://example.com/a.JPG", "https://example.com/image?id=3"])
def test_remote_images(context, url):
    block = compile_image(url, "", context)
    assert block.source == "remote"
    assert block.alt is None


def test_unsupported_format_is_placeholder(context, collector):
    block = compile_image("assets/diagram.svg", "", context)
    assert block.is_placeholder
    assert block.alt == "diagram.svg"
    assert "source" not in block.to_dict()
    assert [w.code for w in collector] == ["image"]


def test_placeholder_keeps_label(context):
    block = compile_image("clip.webp", "w:100 Clip", context)
    assert block.alt == "Clip"
    assert block.size == ImageSize(width=100)

"""Tests for color, link, transition and bullet helpers."""

import pytest

from slide_compiler.bullets import BULLET_MARKERS, get_bullet_marker
from slide_compiler.colors import RGBAColor, normalize_color, parse_color_to_rgba, parse_gradient, rgba_to_hex
from slide_compiler.links import (
    FigmaUrlParts,
    extract_hostname,
    is_figma_component_url,
    is_remote_url,
    is_valid_figma_url,
    parse_figma_url,
    url_extension,
)
from slide_compiler.transitions import (
    TRANSITION_CURVE_TO_FIGMA,
    TRANSITION_STYLE_TO_FIGMA,
    normalize_timing_type,
    normalize_transition_curve,
    normalize_transition_style,
)


class TestColors:

    @pytest.mark.parametrize("raw, expected", [
        ("#abc", "#aabbcc"),
        ("#ABC", "#aabbcc"),
        ("#1A2B3C", "#1a2b3c"),
        ("rgb(255, 0, 0)", "#ff0000"),
        ("rgba(0, 0, 0, 0.5)", "rgba(0,0,0,0.5)"),
        ("  red ", "red"),
    ])
    def test_normalize_color(self, raw, expected):
        assert normalize_color(raw) == expected

    @pytest.mark.parametrize("value", ["#abc", "#1A2B3C", "rgb(1, 2, 3)", "rgba(10, 20, 30, 1)", "tomato"])
    def test_normalize_is_a_fixed_point(self, value):
        once = normalize_color(value)
        assert normalize_color(once) == once

    def test_parse_color_to_rgba(self):
        assert parse_color_to_rgba("#ff0000") == RGBAColor(1.0, 0.0, 0.0)
        assert parse_color_to_rgba("rgba(255, 255, 255, 0.25)") == RGBAColor(1.0, 1.0, 1.0, 0.25)
        assert parse_color_to_rgba("not-a-color") is None

    def test_rgba_to_hex(self):
        assert rgba_to_hex(parse_color_to_rgba("#336699")) == "#336699"

    def test_parse_gradient(self):
        assert parse_gradient("#000:0%,#fff:100%@45") == {
            "stops": [
                {"color": "#000000", "position": 0},
                {"color": "#ffffff", "position": 1},
            ],
            "angle": 45,
        }

    def test_parse_gradient_defaults_angle(self):
        assert parse_gradient("#111111:0%,#222222:50%")["angle"] == 0

    def test_parse_gradient_needs_two_stops(self):
        assert parse_gradient("#000:0%") is None
        assert parse_gradient("#000:0%,#fff:100%@sideways") is None


class TestLinks:

    def test_parse_file_url(self):
        parts = parse_figma_url("https://www.figma.com/file/abc123/Deck?node-id=1234-5678")
        assert parts == FigmaUrlParts(file_key="abc123", node_id="1234:5678")

    @pytest.mark.parametrize("kind", ["design", "slides"])
    def test_parse_other_url_kinds(self, kind):
        parts = parse_figma_url(f"https://figma.com/{kind}/KEY?node-id=1%3A2")
        assert parts == FigmaUrlParts(file_key="KEY", node_id="1:2")

    def test_url_without_node_id(self):
        assert parse_figma_url("https://www.figma.com/file/abc") == FigmaUrlParts(file_key="abc", node_id=None)

    @pytest.mark.parametrize("url", [
        "https://figma.com.evil.com/file/abc?node-id=1-2",
        "https://evilfigma.com/file/abc?node-id=1-2",
        "not a url",
    ])
    def test_rejects_foreign_hosts(self, url):
        assert not is_valid_figma_url(url)
        assert parse_figma_url(url) == FigmaUrlParts()

    def test_extract_hostname(self):
        assert extract_hostname("https://user@www.Figma.com:443/file/x") == "www.figma.com"
        assert extract_hostname("figma.com/file/x") is None

    def test_component_url(self):
        assert is_figma_component_url("https://www.figma.com/design/k/n?node-id=1-2")
        assert not is_figma_component_url("https://www.figma.com/design/k/n")

    def test_remote_and_extension(self):
        assert is_remote_url("HTTPS://example.com/a.png")
        assert not is_remote_url("./a.png")
        assert url_extension("img/photo.PNG?v=2") == ".png"
        assert url_extension("https://example.com/image") == ""


class TestTransitionsAndBullets:

    def test_normalize_transition_style(self):
        assert normalize_transition_style("SLIDE_FROM_LEFT") == "slide-from-left"
        assert normalize_transition_style("dissolve") == "dissolve"
        assert normalize_transition_style("spin") is None

    def test_normalize_curve_and_timing(self):
        assert normalize_transition_curve("ease_in_and_out") == "ease-in-and-out"
        assert normalize_transition_curve("wobbly") is None
        assert normalize_timing_type("AFTER_DELAY") == "after-delay"

    def test_renderer_names(self):
        assert TRANSITION_STYLE_TO_FIGMA["smart-animate"] == "SMART_ANIMATE"
        assert TRANSITION_CURVE_TO_FIGMA["ease-in"] == "EASE_IN"

    def test_bullet_markers(self):
        assert [get_bullet_marker(depth) for depth in range(4)] == list(BULLET_MARKERS)
        assert get_bullet_marker(10) == BULLET_MARKERS[-1]
        assert get_bullet_marker(-1) == BULLET_MARKERS[0]

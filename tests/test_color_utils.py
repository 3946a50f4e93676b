"""Tests for color conversion, analysis and manipulation."""

import itertools
import time

import pytest

from theme_extraction.color_utils import (
    adjust_saturation,
    are_colors_similar,
    color_distance,
    contrast_level_threshold,
    darken,
    generate_hover_color,
    get_analogous,
    get_complementary,
    get_contrast_ratio,
    get_perceived_brightness,
    get_triadic,
    hex_to_rgb,
    hsl_to_rgb,
    hue_distance,
    is_light_color,
    is_valid_css_color,
    lighten,
    meets_contrast_requirement,
    parse_css_color,
    rgb_to_hex,
    rgb_to_hsl,
)
from theme_extraction.exceptions import InvalidHex
from theme_extraction.models import BLACK, WHITE, HSLColor, RGBColor

GRID = range(0, 256, 17)
SAMPLE_COLORS = [
    RGBColor(r=r, g=g, b=b)
    for r, g, b in [(0, 0, 0), (255, 255, 255), (220, 20, 60), (1, 2, 3), (128, 128, 128),
                    (37, 99, 235), (250, 140, 20), (16, 160, 80), (254, 1, 127)]
]


class TestHexConversion:
    """hex <-> RGB conversion."""

    @pytest.mark.parametrize("color", SAMPLE_COLORS)
    def test_round_trip(self, color):
        assert hex_to_rgb(rgb_to_hex(color)) == color

    def test_round_trip_over_grid(self):
        for r, g, b in itertools.product(GRID, repeat=3):
            color = RGBColor(r=r, g=g, b=b)
            assert hex_to_rgb(rgb_to_hex(color)) == color

    def test_hex_is_uppercase_six_digits(self):
        assert rgb_to_hex(RGBColor(r=10, g=171, b=255)) == "#0AABFF"

    @pytest.mark.parametrize("value,expected", [
        ("#ffffff", (255, 255, 255)),
        ("FFFFFF", (255, 255, 255)),
        ("#abc", (170, 187, 204)),
        ("ABC", (170, 187, 204)),
        ("#DC143c", (220, 20, 60)),
    ])
    def test_accepted_forms(self, value, expected):
        assert hex_to_rgb(value).as_tuple() == expected

    @pytest.mark.parametrize("value", ["", "#", "#abcd", "#12345", "1234567", "ggg", "#zzzzzz", " #fff", None, 255])
    def test_invalid_hex(self, value):
        with pytest.raises(InvalidHex):
            hex_to_rgb(value)

    def test_invalid_hex_is_value_error(self):
        with pytest.raises(ValueError):
            hex_to_rgb("not-a-color")


class TestHslConversion:
    """RGB <-> HSL conversion."""

    def test_round_trip_within_one_unit(self):
        for r, g, b in itertools.product(GRID, repeat=3):
            color = RGBColor(r=r, g=g, b=b)
            back = hsl_to_rgb(rgb_to_hsl(color))
            assert abs(back.r - r) <= 1 and abs(back.g - g) <= 1 and abs(back.b - b) <= 1

    def test_known_values(self):
        hsl = rgb_to_hsl(RGBColor(r=255, g=0, b=0))
        assert hsl.h == pytest.approx(0.0)
        assert hsl.s == pytest.approx(1.0)
        assert hsl.l == pytest.approx(0.5)
        assert hsl_to_rgb(HSLColor(h=120, s=1.0, l=0.5)) == RGBColor(r=0, g=255, b=0)

    def test_grays_have_no_saturation(self):
        hsl = rgb_to_hsl(RGBColor(r=128, g=128, b=128))
        assert hsl.s == 0.0

    def test_hue_wraps(self):
        assert HSLColor(h=370, s=0.5, l=0.5).h == pytest.approx(10.0)
        assert HSLColor(h=-90, s=0.5, l=0.5).h == pytest.approx(270.0)


class TestContrast:
    """WCAG luminance and contrast ratio."""

    def test_black_on_white_is_maximum(self):
        assert get_contrast_ratio(WHITE, BLACK) == 21.0
        assert meets_contrast_requirement(21.0, "AA")

    def test_same_color_is_minimum(self):
        assert get_contrast_ratio(WHITE, WHITE) == 1.0

    def test_symmetric(self):
        for a, b in itertools.combinations(SAMPLE_COLORS, 2):
            assert get_contrast_ratio(a, b) == get_contrast_ratio(b, a)

    def test_range(self):
        for a, b in itertools.product(SAMPLE_COLORS, repeat=2):
            assert 1.0 <= get_contrast_ratio(a, b) <= 21.0

    def test_crimson_on_white_passes_aa(self):
        ratio = get_contrast_ratio(RGBColor(r=220, g=20, b=60), WHITE)
        assert 4.5 <= ratio < 7.0

    @pytest.mark.parametrize("ratio,level,expected", [
        (4.5, "AA", True),
        (4.49, "AA", False),
        (7.0, "AAA", True),
        (6.99, "AAA", False),
        (5.0, "aa", True),
    ])
    def test_meets_requirement(self, ratio, level, expected):
        assert meets_contrast_requirement(ratio, level) is expected

    def test_unknown_level_raises(self):
        with pytest.raises(ValueError):
            contrast_level_threshold("AAAA")


class TestBrightness:
    """Perceived brightness and light/dark classification."""

    def test_extremes(self):
        assert get_perceived_brightness(WHITE) == pytest.approx(1.0)
        assert get_perceived_brightness(BLACK) == 0.0

    def test_is_light(self):
        assert is_light_color(WHITE)
        assert not is_light_color(BLACK)
        assert is_light_color(RGBColor(r=255, g=255, b=0))
        assert not is_light_color(RGBColor(r=0, g=0, b=255))


class TestDistance:
    """Euclidean RGB distance."""

    def test_zero_iff_equal(self):
        assert color_distance(WHITE, WHITE) == 0.0
        assert color_distance(WHITE, RGBColor(r=255, g=255, b=254)) > 0.0

    def test_symmetric_and_known(self):
        a = RGBColor(r=0, g=0, b=0)
        b = RGBColor(r=3, g=4, b=0)
        assert color_distance(a, b) == color_distance(b, a) == 5.0

    def test_similarity_threshold(self):
        assert are_colors_similar(WHITE, RGBColor(r=250, g=250, b=250))
        assert not are_colors_similar(WHITE, BLACK)


class TestManipulation:
    """Darken, lighten, saturation and hue operations."""

    @pytest.mark.parametrize("color", SAMPLE_COLORS)
    def test_zero_amount_is_identity(self, color):
        assert darken(color, 0) == color
        assert lighten(color, 0) == color

    @pytest.mark.parametrize("color", SAMPLE_COLORS)
    def test_darken_is_monotonic(self, color):
        amounts = [i / 20 for i in range(21)]
        brightness = [get_perceived_brightness(darken(color, a)) for a in amounts]
        assert all(later <= earlier for earlier, later in zip(brightness, brightness[1:]))

    def test_full_amounts_reach_extremes(self):
        color = RGBColor(r=220, g=20, b=60)
        assert darken(color, 1.0) == BLACK
        assert lighten(color, 1.0) == WHITE

    def test_amount_is_clamped(self):
        color = RGBColor(r=37, g=99, b=235)
        assert darken(color, 5) == BLACK
        assert darken(color, -1) == color

    @pytest.mark.parametrize("color", SAMPLE_COLORS)
    def test_complementary_twice_is_identity(self, color):
        assert get_complementary(get_complementary(color)) == color

    def test_complementary_of_red_is_cyan(self):
        assert get_complementary(RGBColor(r=255, g=0, b=0)) == RGBColor(r=0, g=255, b=255)

    def test_analogous_offsets(self):
        base = RGBColor(r=255, g=0, b=0)
        colors = get_analogous(base, count=4)
        hues = [rgb_to_hsl(c).h for c in colors]
        assert len(colors) == 4
        assert hues[0] == pytest.approx(30, abs=1)
        assert hues[1] == pytest.approx(330, abs=1)
        assert hues[2] == pytest.approx(60, abs=1)
        assert hues[3] == pytest.approx(300, abs=1)

    def test_analogous_preserves_saturation_and_lightness(self):
        base = RGBColor(r=37, g=99, b=235)
        base_hsl = rgb_to_hsl(base)
        for color in get_analogous(base, count=2):
            hsl = rgb_to_hsl(color)
            assert hsl.s == pytest.approx(base_hsl.s, abs=0.02)
            assert hsl.l == pytest.approx(base_hsl.l, abs=0.01)

    def test_triadic(self):
        hues = [rgb_to_hsl(c).h for c in get_triadic(RGBColor(r=255, g=0, b=0))]
        assert hues == [pytest.approx(120, abs=1), pytest.approx(240, abs=1)]

    def test_adjust_saturation_clamps(self):
        gray = adjust_saturation(RGBColor(r=220, g=20, b=60), -2.0)
        assert gray.r == gray.g == gray.b

    def test_hover_is_darker(self):
        color = RGBColor(r=220, g=20, b=60)
        assert get_perceived_brightness(generate_hover_color(color)) < get_perceived_brightness(color)

    def test_hue_distance(self):
        assert hue_distance(350, 10) == 20
        assert hue_distance(0, 180) == 180


class TestParseCssColor:
    """CSS color value parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("#fff", (255, 255, 255)),
        ("#FF000080", (255, 0, 0)),
        ("#f00c", (255, 0, 0)),
        ("rgb(255, 0, 0)", (255, 0, 0)),
        ("RGBA(0, 128, 255, 0.5)", (0, 128, 255)),
        ("rgb(0 128 255 / 50%)", (0, 128, 255)),
        ("rgb(100%, 0%, 0%)", (255, 0, 0)),
        ("hsl(0, 100%, 50%)", (255, 0, 0)),
        ("hsla(120deg, 100%, 50%, 1)", (0, 255, 0)),
        ("hsl(240 100% 50%)", (0, 0, 255)),
        ("crimson", (220, 20, 60)),
        ("RebeccaPurple", (102, 51, 153)),
        ("rgb( 12 ,  34 ,56 )", (12, 34, 56)),
        ("hsl(0\t100%\n50%)", (255, 0, 0)),
        ("  white ", (255, 255, 255)),
    ])
    def test_parses(self, value, expected):
        assert parse_css_color(value).as_tuple() == expected

    @pytest.mark.parametrize("value", [
        "transparent", "currentColor", "inherit", "none", "", "#12", "#0000",
        "rgba(0, 0, 0, 0)", "hsla(0, 0%, 0%, 0)", "rgb(foo)", "notacolor", None,
    ])
    def test_rejects(self, value):
        assert parse_css_color(value) is None
        assert not is_valid_css_color(value)

    @pytest.mark.parametrize("value", [
        "rgb(1" + " " * 2000 + "2" + " " * 2000 + "3 x)",
        "hsl(1" + " " * 2000 + "2" + " " * 2000 + "3 x)",
        "rgb(" + "1" * 2000 + "x)",
    ])
    def test_malformed_whitespace_runs_fail_fast(self, value):
        start = time.perf_counter()
        assert parse_css_color(value) is None
        assert time.perf_counter() - start < 0.5

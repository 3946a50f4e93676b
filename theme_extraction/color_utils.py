"""
Color conversion, analysis and manipulation helpers.

Pure functions over RGBColor/HSLColor values. Everything here is total
except hex_to_rgb (InvalidHex) and contrast_level_threshold (unknown level).
"""

import math
import re
from typing import List, Optional

from .exceptions import InvalidHex
from .models import AA_CONTRAST, AAA_CONTRAST, HSLColor, RGBColor
from .named_colors import CSS_NAMED_COLORS

# Midpoint of the normalized perceived-brightness scale
LIGHT_THRESHOLD = 0.5
# Lightness step used for hover states
HOVER_STEP = 0.08

_HEX_RE = re.compile(r'#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})')


# ============================================================================
# Conversion
# ============================================================================

def rgb_to_hex(color: RGBColor) -> str:
    """Convert RGB to an uppercase #RRGGBB string."""
    return f"#{color.r:02X}{color.g:02X}{color.b:02X}"


def hex_to_rgb(value: str) -> RGBColor:
    """
    Convert a hex string to RGB.

    Accepts 3- and 6-digit forms with or without a leading '#', in any case.

    Raises:
        InvalidHex: for anything else
    """
    if not isinstance(value, str):
        raise InvalidHex(value)
    match = _HEX_RE.fullmatch(value)
    if not match:
        raise InvalidHex(value)
    digits = match.group(1)
    if len(digits) == 3:
        digits = ''.join(c * 2 for c in digits)
    return RGBColor(r=int(digits[0:2], 16), g=int(digits[2:4], 16), b=int(digits[4:6], 16))


def rgb_to_hsl(color: RGBColor) -> HSLColor:
    """Convert RGB to HSL (h in degrees, s and l as fractions)."""
    r, g, b = color.r / 255.0, color.g / 255.0, color.b / 255.0
    high = max(r, g, b)
    low = min(r, g, b)
    l = (high + low) / 2.0

    if high == low:
        return HSLColor(h=0.0, s=0.0, l=l)

    d = high - low
    s = d / (2.0 - high - low) if l > 0.5 else d / (high + low)

    if high == r:
        h = (g - b) / d + (6.0 if g < b else 0.0)
    elif high == g:
        h = (b - r) / d + 2.0
    else:
        h = (r - g) / d + 4.0

    return HSLColor(h=h * 60.0, s=s, l=l)


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def hsl_to_rgb(color: HSLColor) -> RGBColor:
    """Convert HSL back to RGB, rounding each channel."""
    h = color.h / 360.0
    s = color.s
    l = color.l

    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = _hue_to_channel(p, q, h + 1 / 3)
        g = _hue_to_channel(p, q, h)
        b = _hue_to_channel(p, q, h - 1 / 3)

    return RGBColor(r=r * 255, g=g * 255, b=b * 255)


# ============================================================================
# Analysis
# ============================================================================

def _linear_channel(value: int) -> float:
    c = value / 255.0
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def get_luminance(color: RGBColor) -> float:
    """Relative luminance according to WCAG."""
    return (
        0.2126 * _linear_channel(color.r)
        + 0.7152 * _linear_channel(color.g)
        + 0.0722 * _linear_channel(color.b)
    )


def get_contrast_ratio(a: RGBColor, b: RGBColor) -> float:
    """WCAG contrast ratio between two colors, from 1.0 to 21.0."""
    lighter, darker = sorted((get_luminance(a), get_luminance(b)), reverse=True)
    ratio = (lighter + 0.05) / (darker + 0.05)
    # Absorb float noise so white on black is exactly 21.0
    return min(21.0, max(1.0, round(ratio, 10)))


def contrast_level_threshold(level: str) -> float:
    """Minimum normal-text ratio for a WCAG level ('AA' or 'AAA')."""
    normalized = str(level).upper()
    if normalized == "AA":
        return AA_CONTRAST
    if normalized == "AAA":
        return AAA_CONTRAST
    raise ValueError(f"Unknown contrast level: {level!r}")


def meets_contrast_requirement(ratio: float, level: str = "AA") -> bool:
    """Check a contrast ratio against the AA (4.5) or AAA (7.0) normal-text threshold."""
    return ratio >= contrast_level_threshold(level)


def get_perceived_brightness(color: RGBColor) -> float:
    """BT.601 weighted brightness normalized to [0, 1]."""
    return (0.299 * color.r + 0.587 * color.g + 0.114 * color.b) / 255.0


def is_light_color(color: RGBColor) -> bool:
    return get_perceived_brightness(color) > LIGHT_THRESHOLD


def get_saturation(color: RGBColor) -> float:
    return rgb_to_hsl(color).s


def color_distance(a: RGBColor, b: RGBColor) -> float:
    """Euclidean distance in RGB space."""
    return math.sqrt((a.r - b.r) ** 2 + (a.g - b.g) ** 2 + (a.b - b.b) ** 2)


def are_colors_similar(a: RGBColor, b: RGBColor, threshold: float = 30) -> bool:
    return color_distance(a, b) < threshold


# ============================================================================
# Manipulation
# ============================================================================

def _with_lightness(color: RGBColor, delta: float) -> RGBColor:
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(HSLColor(h=hsl.h, s=hsl.s, l=hsl.l + delta))


def darken(color: RGBColor, amount: float) -> RGBColor:
    """
    Lower HSL lightness by `amount` (a fraction in [0, 1]).

    Args:
        color: Base color
        amount: Lightness to remove; 0 returns the color unchanged

    Returns:
        Darker (or equal) color
    """
    amount = max(0.0, min(1.0, amount))
    if amount == 0:
        return color
    return _with_lightness(color, -amount)


def lighten(color: RGBColor, amount: float) -> RGBColor:
    """Raise HSL lightness by `amount` (a fraction in [0, 1])."""
    amount = max(0.0, min(1.0, amount))
    if amount == 0:
        return color
    return _with_lightness(color, amount)


def adjust_saturation(color: RGBColor, delta: float) -> RGBColor:
    """Shift HSL saturation by `delta`, clamped to [0, 1]."""
    if delta == 0:
        return color
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(HSLColor(h=hsl.h, s=hsl.s + delta, l=hsl.l))


def rotate_hue(color: RGBColor, degrees: float) -> RGBColor:
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(HSLColor(h=hsl.h + degrees, s=hsl.s, l=hsl.l))


def get_complementary(color: RGBColor) -> RGBColor:
    """Opposite hue on the color wheel, same saturation and lightness."""
    return rotate_hue(color, 180)


def get_analogous(color: RGBColor, count: int = 2, angle: float = 30) -> List[RGBColor]:
    """
    Colors adjacent on the color wheel.

    Offsets alternate +angle, -angle, +2*angle, -2*angle, ... until `count`
    colors are produced.
    """
    colors = []
    step = 1
    while len(colors) < count:
        colors.append(rotate_hue(color, angle * step))
        if len(colors) < count:
            colors.append(rotate_hue(color, -angle * step))
        step += 1
    return colors


def get_triadic(color: RGBColor) -> List[RGBColor]:
    return [rotate_hue(color, 120), rotate_hue(color, 240)]


def generate_hover_color(color: RGBColor, step: float = HOVER_STEP) -> RGBColor:
    """Hover variant: always a fixed-step darken so regenerations agree."""
    return darken(color, step)


def hue_distance(a: float, b: float) -> float:
    """Shortest angular distance between two hues in degrees."""
    diff = abs(a - b) % 360
    return min(diff, 360 - diff)


# ============================================================================
# CSS color parsing
# ============================================================================

_NUMBER = r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)'
# Comma or whitespace between channels; the alternatives must not overlap
_SEP = r'(?:\s*,\s*|\s+)'
_RGB_RE = re.compile(
    rf'rgba?\(\s*({_NUMBER}%?){_SEP}({_NUMBER}%?){_SEP}({_NUMBER}%?)\s*(?:[,/]\s*({_NUMBER}%?)\s*)?\)',
    re.IGNORECASE,
)
_HSL_RE = re.compile(
    rf'hsla?\(\s*({_NUMBER})(?:deg)?{_SEP}({_NUMBER})%?{_SEP}({_NUMBER})%?\s*(?:[,/]\s*({_NUMBER}%?)\s*)?\)',
    re.IGNORECASE,
)
_CSS_HEX_RE = re.compile(r'#([0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})')


def _channel(token: str) -> float:
    if token.endswith('%'):
        return float(token[:-1]) * 2.55
    return float(token)


def _alpha(token: Optional[str]) -> float:
    if token is None:
        return 1.0
    if token.endswith('%'):
        return float(token[:-1]) / 100.0
    return float(token)


def parse_css_color(value: str) -> Optional[RGBColor]:
    """
    Parse a CSS color value.

    Supports hex (3/4/6/8 digits), rgb(), rgba(), hsl(), hsla() and named
    colors. Returns None for transparent, keyword values such as
    currentColor/inherit, fully transparent alpha, and anything unparseable.
    """
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    if not text:
        return None

    hex_match = _CSS_HEX_RE.fullmatch(text)
    if hex_match:
        digits = hex_match.group(1)
        if len(digits) in (3, 4):
            digits = ''.join(c * 2 for c in digits)
        if len(digits) == 8 and int(digits[6:8], 16) == 0:
            return None
        return RGBColor(r=int(digits[0:2], 16), g=int(digits[2:4], 16), b=int(digits[4:6], 16))

    try:
        rgb_match = _RGB_RE.fullmatch(text)
        if rgb_match:
            if _alpha(rgb_match.group(4)) <= 0:
                return None
            return RGBColor(
                r=_channel(rgb_match.group(1)),
                g=_channel(rgb_match.group(2)),
                b=_channel(rgb_match.group(3)),
            )

        hsl_match = _HSL_RE.fullmatch(text)
        if hsl_match:
            if _alpha(hsl_match.group(4)) <= 0:
                return None
            return hsl_to_rgb(HSLColor(
                h=float(hsl_match.group(1)),
                s=float(hsl_match.group(2)) / 100.0,
                l=float(hsl_match.group(3)) / 100.0,
            ))
    except ValueError:
        return None

    named = CSS_NAMED_COLORS.get(text)
    if named is None:
        return None
    return RGBColor(r=named[0], g=named[1], b=named[2])


def is_valid_css_color(value: str) -> bool:
    return parse_css_color(value) is not None

"""
Value types shared by the analyzers and the theme generator.

Every model is frozen: an extraction run builds new instances and never
mutates the ones it was given.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import get_config

AA_CONTRAST = 4.5
AAA_CONTRAST = 7.0


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class RGBColor(_Frozen):
    """24-bit color; channels are clamped to [0, 255] on construction."""
    r: int
    g: int
    b: int

    @field_validator('r', 'g', 'b', mode='before')
    @classmethod
    def _clamp_channel(cls, value: Any) -> int:
        return int(round(max(0.0, min(255.0, float(value)))))

    @classmethod
    def of(cls, r: float, g: float, b: float) -> 'RGBColor':
        return cls(r=r, g=g, b=b)

    @property
    def hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def __str__(self) -> str:
        return self.hex


class HSLColor(_Frozen):
    """Hue in degrees [0, 360), saturation and lightness as fractions."""
    h: float
    s: float
    l: float

    @field_validator('h', mode='before')
    @classmethod
    def _wrap_hue(cls, value: Any) -> float:
        return float(value) % 360.0

    @field_validator('s', 'l', mode='before')
    @classmethod
    def _clamp_fraction(cls, value: Any) -> float:
        return max(0.0, min(1.0, float(value)))


class ColorFrequency(_Frozen):
    """An observed color and how often it occurred in the sample."""
    color: RGBColor
    count: int = Field(ge=0)
    percentage: float = Field(default=0.0, ge=0.0, le=100.0)

    @property
    def hex(self) -> str:
        return self.color.hex


WHITE = RGBColor(r=255, g=255, b=255)
BLACK = RGBColor(r=0, g=0, b=0)


# === Image analysis ===

class ExtractedColors(_Frozen):
    """Ranked palette of an image plus a readable foreground/background pair."""
    dominant: RGBColor
    palette: List[ColorFrequency] = Field(default_factory=list)
    suggested_foreground: RGBColor
    suggested_background: RGBColor
    vibrant: Optional[RGBColor] = None

    @model_validator(mode='after')
    def _check_readable_pair(self) -> 'ExtractedColors':
        from .color_utils import get_contrast_ratio

        ratio = get_contrast_ratio(self.suggested_foreground, self.suggested_background)
        if ratio < AA_CONTRAST:
            raise ValueError(
                f"suggested foreground {self.suggested_foreground.hex} on "
                f"{self.suggested_background.hex} has contrast {ratio:.2f}, below {AA_CONTRAST}"
            )
        return self

    @property
    def palette_colors(self) -> List[RGBColor]:
        return [entry.color for entry in self.palette]


class ImageAnalysis(_Frozen):
    """Whole-image statistics derived from the extracted colors."""
    colors: ExtractedColors
    average_brightness: float = Field(ge=0.0, le=1.0)
    is_light_image: bool
    width: int = 0
    height: int = 0
    sampled_pixels: int = 0
    format: Optional[str] = None


@dataclass(frozen=True)
class PixelBuffer:
    """Decoded RGBA pixels in row-major order.

    A plain dataclass rather than a model: buffers hold hundreds of
    thousands of tuples and are never serialized.
    """
    width: int
    height: int
    pixels: Tuple[Tuple[int, int, int, int], ...]
    format: Optional[str] = None

    @classmethod
    def from_rgb(cls, width: int, height: int, pixels: Iterable[Sequence[int]],
                 format: Optional[str] = None) -> 'PixelBuffer':
        """Build a buffer from RGB or RGBA tuples; RGB pixels are treated as opaque."""
        normalized = []
        for pixel in pixels:
            if len(pixel) == 3:
                normalized.append((pixel[0], pixel[1], pixel[2], 255))
            else:
                normalized.append(tuple(pixel[:4]))
        return cls(width=width, height=height, pixels=tuple(normalized), format=format)


# === Website analysis ===

class StyleCategory(str, Enum):
    """Semantic role a discovered color or font is believed to serve."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    ACCENT = "accent"
    BACKGROUND = "background"
    SURFACE = "surface"
    TEXT = "text"
    BORDER = "border"
    LINK = "link"


class VisualStyle(str, Enum):
    """Overall look of a reference site."""
    MODERN = "modern"
    TRADITIONAL = "traditional"
    BOLD = "bold"
    MINIMAL = "minimal"
    CORPORATE = "corporate"
    PLAYFUL = "playful"
    ELEGANT = "elegant"


class ColorCandidate(_Frozen):
    color: RGBColor
    confidence: float = Field(ge=0.0, le=1.0)
    occurrences: int = 1
    source: str = "css"


class FontCandidate(_Frozen):
    family: str
    confidence: float = Field(ge=0.0, le=1.0)
    occurrences: int = 1
    role: str = "body"


class ExtractedStyles(_Frozen):
    """Ranked color candidates per role, plus typography candidates."""
    colors: Dict[StyleCategory, List[ColorCandidate]] = Field(default_factory=dict)
    fonts: List[FontCandidate] = Field(default_factory=list)
    css_variables: Dict[str, RGBColor] = Field(default_factory=dict)
    visual_style: VisualStyle = VisualStyle.MODERN

    @field_validator('colors', mode='before')
    @classmethod
    def _all_categories(cls, value: Any) -> Dict[StyleCategory, Any]:
        value = dict(value or {})
        for category in StyleCategory:
            value.setdefault(category, [])
        return value

    @classmethod
    def empty(cls) -> 'ExtractedStyles':
        return cls(colors={})

    @property
    def is_empty(self) -> bool:
        return not self.fonts and not any(self.colors.values())

    def top(self, category: StyleCategory) -> Optional[ColorCandidate]:
        candidates = self.colors.get(category) or []
        return candidates[0] if candidates else None

    def top_font(self, role: Optional[str] = None) -> Optional[FontCandidate]:
        for font in self.fonts:
            if role is None or font.role == role:
                return font
        return None


# === Theme ===

class BrandColors(_Frozen):
    primary: RGBColor
    primary_hover: RGBColor
    # Label color for text rendered on a primary fill (buttons, badges)
    on_primary: RGBColor
    secondary: RGBColor
    accent: RGBColor


class SurfaceColors(_Frozen):
    background: RGBColor
    foreground: RGBColor
    muted: RGBColor
    muted_foreground: RGBColor
    card: RGBColor
    card_border: RGBColor


class SemanticColors(_Frozen):
    success: RGBColor
    warning: RGBColor
    error: RGBColor
    info: RGBColor


class ThemeColors(_Frozen):
    brand: BrandColors
    surface: SurfaceColors
    semantic: SemanticColors


class FontFamilies(_Frozen):
    sans: List[str]
    heading: List[str]


class Typography(_Frozen):
    font_family: FontFamilies


class ThemeSource(str, Enum):
    IMAGE = "image"
    WEBSITE = "website"
    MERGED = "merged"
    DEFAULT = "default"


class ThemeSuggestion(_Frozen):
    """Final color/typography bundle handed to the site configuration layer."""
    colors: ThemeColors
    typography: Typography
    visual_style: VisualStyle = VisualStyle.MODERN
    confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    source: ThemeSource = ThemeSource.DEFAULT

    def to_theme_config(self) -> Dict[str, Any]:
        """Theme-config shaped dict with hex strings and camelCase keys."""
        brand = self.colors.brand
        surface = self.colors.surface
        semantic = self.colors.semantic
        return {
            'colors': {
                'brand': {
                    'primary': brand.primary.hex,
                    'primaryHover': brand.primary_hover.hex,
                    'onPrimary': brand.on_primary.hex,
                    'secondary': brand.secondary.hex,
                    'accent': brand.accent.hex,
                },
                'surface': {
                    'background': surface.background.hex,
                    'foreground': surface.foreground.hex,
                    'muted': surface.muted.hex,
                    'mutedForeground': surface.muted_foreground.hex,
                    'card': surface.card.hex,
                    'cardBorder': surface.card_border.hex,
                },
                'semantic': {
                    'success': semantic.success.hex,
                    'warning': semantic.warning.hex,
                    'error': semantic.error.hex,
                    'info': semantic.info.hex,
                },
            },
            'typography': {
                'fontFamily': {
                    'sans': list(self.typography.font_family.sans),
                    'heading': list(self.typography.font_family.heading),
                },
            },
        }


# === Options ===

class ImageAnalysisOptions(_Frozen):
    max_palette_size: int = Field(default_factory=lambda: get_config().image.max_palette_size, ge=1)
    sample_stride: int = Field(default_factory=lambda: get_config().image.sample_stride, ge=1)
    bucket_width: int = Field(default_factory=lambda: get_config().image.bucket_width, ge=1, le=64)
    merge_distance: float = Field(default_factory=lambda: get_config().image.merge_distance, ge=0.0)
    # Pixels at or below this alpha are treated as transparent and skipped
    alpha_threshold: int = Field(default=16, ge=0, le=255)
    max_dimension: int = Field(default_factory=lambda: get_config().image.max_dimension, ge=1)


class WebsiteAnalysisOptions(_Frozen):
    max_colors_per_category: int = Field(default_factory=lambda: get_config().website.max_colors_per_category, ge=1)
    follow_linked_stylesheets: bool = Field(default_factory=lambda: get_config().website.follow_linked_stylesheets)
    max_stylesheets: int = Field(default_factory=lambda: get_config().website.max_stylesheets, ge=0)
    timeout_seconds: float = Field(default_factory=lambda: get_config().website.fetch_timeout, gt=0)
    user_agent: str = Field(default_factory=lambda: get_config().website.user_agent)


class ThemeGenerationOptions(_Frozen):
    preferred_contrast_level: str = Field(default_factory=lambda: get_config().generator.contrast_level)
    max_darken_steps: int = Field(default_factory=lambda: get_config().generator.max_darken_steps, ge=0)
    base_typography: Optional[str] = None
    prefer_dark_mode: bool = False
    target_style: Optional[VisualStyle] = None
    nudge_semantic_hues: bool = True

    @field_validator('preferred_contrast_level', mode='before')
    @classmethod
    def _known_level(cls, value: Any) -> str:
        level = str(value).upper()
        if level not in ("AA", "AAA"):
            raise ValueError(f"preferred_contrast_level must be 'AA' or 'AAA', got {value!r}")
        return level

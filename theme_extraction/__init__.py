"""Brand palette and site theme extraction from images and reference websites."""

from .color_utils import (
    rgb_to_hex,
    hex_to_rgb,
    rgb_to_hsl,
    hsl_to_rgb,
    get_luminance,
    get_contrast_ratio,
    meets_contrast_requirement,
    get_perceived_brightness,
    is_light_color,
    color_distance,
    darken,
    lighten,
    adjust_saturation,
    get_complementary,
    get_analogous,
    get_triadic,
    parse_css_color,
)
from .contrast import ColorContrastManager, ensure_contrast
from .exceptions import (
    ThemeExtractionError,
    InvalidHex,
    DecodeError,
    EmptyImageError,
    ParseError,
    FetchError,
    ConfigurationError,
)
from .image_analyzer import ImageAnalyzer, analyze_image, analyze_image_bytes, analyze_image_file
from .models import (
    RGBColor,
    HSLColor,
    ColorFrequency,
    ExtractedColors,
    ImageAnalysis,
    PixelBuffer,
    StyleCategory,
    VisualStyle,
    ExtractedStyles,
    ThemeSuggestion,
    ImageAnalysisOptions,
    WebsiteAnalysisOptions,
    ThemeGenerationOptions,
)
from .pipeline import (
    ExtractionResult,
    SiteAnalysis,
    SitesSummary,
    ThemeExtractionPipeline,
    analyze_sites,
    extract_theme,
    extract_theme_sync,
    summarize_sites,
)
from .theme_config import render_theme_config, theme_to_json
from .theme_generator import (
    DEFAULT_THEME,
    generate_theme,
    generate_theme_from_image,
    generate_theme_from_website,
    generate_default_theme,
    merge_theme_suggestions,
    validate_theme_contrast,
)
from .website_analyzer import WebsiteAnalyzer, analyze_website, classify_visual_style

__all__ = [
    "rgb_to_hex",
    "hex_to_rgb",
    "rgb_to_hsl",
    "hsl_to_rgb",
    "get_luminance",
    "get_contrast_ratio",
    "meets_contrast_requirement",
    "get_perceived_brightness",
    "is_light_color",
    "color_distance",
    "darken",
    "lighten",
    "adjust_saturation",
    "get_complementary",
    "get_analogous",
    "get_triadic",
    "parse_css_color",
    "ColorContrastManager",
    "ensure_contrast",
    "ThemeExtractionError",
    "InvalidHex",
    "DecodeError",
    "EmptyImageError",
    "ParseError",
    "FetchError",
    "ConfigurationError",
    "ImageAnalyzer",
    "analyze_image",
    "analyze_image_bytes",
    "analyze_image_file",
    "RGBColor",
    "HSLColor",
    "ColorFrequency",
    "ExtractedColors",
    "ImageAnalysis",
    "PixelBuffer",
    "StyleCategory",
    "VisualStyle",
    "ExtractedStyles",
    "ThemeSuggestion",
    "ImageAnalysisOptions",
    "WebsiteAnalysisOptions",
    "ThemeGenerationOptions",
    "ExtractionResult",
    "ThemeExtractionPipeline",
    "extract_theme",
    "extract_theme_sync",
    "SiteAnalysis",
    "SitesSummary",
    "analyze_sites",
    "summarize_sites",
    "render_theme_config",
    "theme_to_json",
    "DEFAULT_THEME",
    "generate_theme",
    "generate_theme_from_image",
    "generate_theme_from_website",
    "generate_default_theme",
    "merge_theme_suggestions",
    "validate_theme_contrast",
    "WebsiteAnalyzer",
    "analyze_website",
    "classify_visual_style",
]

"""
Theme generation from extracted image colors and website styles.

Every public function here returns a complete ThemeSuggestion. Missing
signal falls back to DEFAULT_THEME or to values derived from the primary
color, and every rendered text pair is run through the contrast-repair loop.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from .color_utils import (
    color_distance,
    darken,
    generate_hover_color,
    get_analogous,
    get_complementary,
    get_contrast_ratio,
    get_luminance,
    get_perceived_brightness,
    get_saturation,
    hex_to_rgb,
    hsl_to_rgb,
    hue_distance,
    is_light_color,
    lighten,
    meets_contrast_requirement,
    rgb_to_hsl,
    rotate_hue,
)
from .contrast import ColorContrastManager
from .logging_config import get_logger
from .models import (
    BrandColors,
    ExtractedColors,
    ExtractedStyles,
    FontFamilies,
    HSLColor,
    ImageAnalysis,
    RGBColor,
    SemanticColors,
    StyleCategory,
    SurfaceColors,
    ThemeColors,
    ThemeGenerationOptions,
    ThemeSource,
    ThemeSuggestion,
    Typography,
    VisualStyle,
    WHITE,
)

logger = get_logger(__name__)

# ============================================================================
# Constants
# ============================================================================

FONT_SUGGESTIONS: Dict[VisualStyle, Tuple[List[str], List[str]]] = {
    VisualStyle.MODERN: (["Inter", "system-ui", "sans-serif"], ["Inter", "system-ui", "sans-serif"]),
    VisualStyle.TRADITIONAL: (["Georgia", "Times New Roman", "serif"], ["Playfair Display", "Georgia", "serif"]),
    VisualStyle.BOLD: (["Montserrat", "system-ui", "sans-serif"], ["Oswald", "Impact", "sans-serif"]),
    VisualStyle.MINIMAL: (["Inter", "Helvetica Neue", "sans-serif"], ["Inter", "Helvetica Neue", "sans-serif"]),
    VisualStyle.CORPORATE: (["Open Sans", "Arial", "sans-serif"], ["Roboto", "Arial", "sans-serif"]),
    VisualStyle.PLAYFUL: (["Poppins", "Comic Sans MS", "sans-serif"], ["Fredoka One", "Poppins", "sans-serif"]),
    VisualStyle.ELEGANT: (["Lora", "Georgia", "serif"], ["Cormorant Garamond", "Georgia", "serif"]),
}

# Presets reach AA on white; the repair loop covers other backgrounds
SEMANTIC_PRESETS: Dict[str, RGBColor] = {
    'success': hex_to_rgb('#047857'),
    'warning': hex_to_rgb('#B45309'),
    'error': hex_to_rgb('#B91C1C'),
    'info': hex_to_rgb('#1D4ED8'),
}
# Largest hue shift applied to a semantic preset
SEMANTIC_NUDGE_DEGREES = 10.0

LIGHT_BACKGROUND = hex_to_rgb('#FFFFFF')
DARK_BACKGROUND = hex_to_rgb('#111827')
LIGHT_FOREGROUND = hex_to_rgb('#F9FAFB')
DARK_FOREGROUND = hex_to_rgb('#111827')

# Backgrounds outside this luminance gap keep black or white text above 7:1
MIN_LIGHT_BACKGROUND_LUMINANCE = 0.4
MAX_DARK_BACKGROUND_LUMINANCE = 0.05
# Primaries brighter than this are "very light" and get a dark background
VERY_LIGHT_PRIMARY = 0.85
# Brand colors below this saturation are raised to it, unless they are grays
MIN_BRAND_SATURATION = 0.3
GRAYSCALE_SATURATION = 0.05
# Palette colors closer than this to the primary are not used as secondary/accent
DISTINCT_COLOR_DISTANCE = 60.0

_PRIMARY = hex_to_rgb('#2563EB')

DEFAULT_THEME = ThemeSuggestion(
    colors=ThemeColors(
        brand=BrandColors(
            primary=_PRIMARY,
            primary_hover=generate_hover_color(_PRIMARY),
            on_primary=WHITE,
            secondary=hex_to_rgb('#1E40AF'),
            accent=hex_to_rgb('#0F766E'),
        ),
        surface=SurfaceColors(
            background=LIGHT_BACKGROUND,
            foreground=DARK_FOREGROUND,
            muted=hex_to_rgb('#F3F4F6'),
            muted_foreground=hex_to_rgb('#4B5563'),
            card=LIGHT_BACKGROUND,
            card_border=hex_to_rgb('#E5E7EB'),
        ),
        semantic=SemanticColors(**SEMANTIC_PRESETS),
    ),
    typography=Typography(font_family=FontFamilies(
        sans=FONT_SUGGESTIONS[VisualStyle.MODERN][0],
        heading=FONT_SUGGESTIONS[VisualStyle.MODERN][1],
    )),
    visual_style=VisualStyle.MODERN,
    confidence=0.3,
    source=ThemeSource.DEFAULT,
)

DARK_SURFACE = SurfaceColors(
    background=DARK_BACKGROUND,
    foreground=LIGHT_FOREGROUND,
    muted=hex_to_rgb('#1F2937'),
    muted_foreground=hex_to_rgb('#9CA3AF'),
    card=hex_to_rgb('#1F2937'),
    card_border=hex_to_rgb('#374151'),
)


# ============================================================================
# Contrast checks
# ============================================================================

def check_contrast(foreground: RGBColor, background: RGBColor, level: str = "AA") -> bool:
    """Check whether text in `foreground` is readable on `background`."""
    return meets_contrast_requirement(get_contrast_ratio(foreground, background), level)


def _rendered_pairs(theme: ThemeSuggestion) -> List[Tuple[str, RGBColor, RGBColor]]:
    brand = theme.colors.brand
    surface = theme.colors.surface
    semantic = theme.colors.semantic
    return [
        ('primary/background', brand.primary, surface.background),
        ('on_primary/primary', brand.on_primary, brand.primary),
        ('foreground/background', surface.foreground, surface.background),
        ('foreground/card', surface.foreground, surface.card),
        ('muted_foreground/muted', surface.muted_foreground, surface.muted),
        ('success/background', semantic.success, surface.background),
        ('warning/background', semantic.warning, surface.background),
        ('error/background', semantic.error, surface.background),
        ('info/background', semantic.info, surface.background),
    ]


def validate_theme_contrast(theme: ThemeSuggestion, level: str = "AA") -> List[Dict[str, Any]]:
    """
    List the text/background pairs of a theme that miss a WCAG level.

    Args:
        theme: Theme to check
        level: 'AA' or 'AAA'

    Returns:
        One dict per failing pair (empty when the theme is fully readable)
    """
    issues = []
    for name, foreground, background in _rendered_pairs(theme):
        ratio = get_contrast_ratio(foreground, background)
        if not meets_contrast_requirement(ratio, level):
            issues.append({
                'pair': name,
                'foreground': foreground.hex,
                'background': background.hex,
                'ratio': round(ratio, 2),
                'level': level.upper(),
            })
    return issues


# ============================================================================
# Building blocks
# ============================================================================

def ensure_vibrant(color: RGBColor, min_saturation: float = MIN_BRAND_SATURATION) -> RGBColor:
    """Raise the saturation of a washed-out brand color; grays are left alone."""
    hsl = rgb_to_hsl(color)
    if hsl.s <= GRAYSCALE_SATURATION or hsl.s >= min_saturation:
        return color
    return hsl_to_rgb(HSLColor(h=hsl.h, s=min_saturation, l=hsl.l))


def _usable_background(color: RGBColor) -> bool:
    luminance = get_luminance(color)
    return luminance >= MIN_LIGHT_BACKGROUND_LUMINANCE or luminance <= MAX_DARK_BACKGROUND_LUMINANCE


def _pick_background(primary: RGBColor, candidate: Optional[RGBColor], prefer_dark: bool) -> RGBColor:
    """Near-white or near-black page background that never collides with the primary."""
    if candidate is not None and _usable_background(candidate) and is_light_color(candidate) != prefer_dark:
        background = candidate
    elif prefer_dark:
        background = DARK_BACKGROUND
    else:
        background = LIGHT_BACKGROUND

    # A very light primary on a light page (or a very dark one on a dark page) is flipped
    primary_brightness = get_perceived_brightness(primary)
    if is_light_color(background) and primary_brightness > VERY_LIGHT_PRIMARY:
        logger.debug(f"Primary {primary.hex} is very light; switching to a dark background")
        background = DARK_BACKGROUND
    elif not is_light_color(background) and primary_brightness < 1 - VERY_LIGHT_PRIMARY:
        logger.debug(f"Primary {primary.hex} is very dark; switching to a light background")
        background = LIGHT_BACKGROUND
    return background


def _build_surface(
    background: RGBColor,
    foreground_hint: Optional[RGBColor],
    card_hint: Optional[RGBColor],
    border_hint: Optional[RGBColor],
    contrast: ColorContrastManager
) -> SurfaceColors:
    light = is_light_color(background)
    foreground = contrast.repair(foreground_hint or (DARK_FOREGROUND if light else LIGHT_FOREGROUND), background)

    if light:
        muted = darken(background, 0.04)
        card = background
        card_border = darken(background, 0.10)
        muted_hint = lighten(foreground, 0.25)
    else:
        muted = lighten(background, 0.06)
        card = lighten(background, 0.04)
        card_border = lighten(background, 0.14)
        muted_hint = darken(foreground, 0.25)

    if card_hint is not None and is_light_color(card_hint) == light:
        card = card_hint
    if not contrast.passes(foreground, card):
        card = background
    if border_hint is not None:
        card_border = border_hint

    return SurfaceColors(
        background=background,
        foreground=foreground,
        muted=muted,
        muted_foreground=contrast.repair(muted_hint, muted),
        card=card,
        card_border=card_border,
    )


def _nudge_toward(color: RGBColor, target_hue: float) -> RGBColor:
    source = rgb_to_hsl(color).h
    distance = hue_distance(source, target_hue)
    if distance == 0:
        return color
    shift = min(SEMANTIC_NUDGE_DEGREES, distance / 4)
    # Direction of the shorter arc
    if (target_hue - source) % 360 > 180:
        shift = -shift
    return rotate_hue(color, shift)


def _build_semantic(
    background: RGBColor,
    primary: Optional[RGBColor],
    nudge: bool,
    contrast: ColorContrastManager
) -> SemanticColors:
    colors = {}
    target_hue = None
    if nudge and primary is not None and get_saturation(primary) > GRAYSCALE_SATURATION:
        target_hue = rgb_to_hsl(primary).h
    for name, preset in SEMANTIC_PRESETS.items():
        color = _nudge_toward(preset, target_hue) if target_hue is not None else preset
        colors[name] = contrast.repair(color, background)
    return SemanticColors(**colors)


def _dedupe(families: Sequence[str]) -> List[str]:
    seen = set()
    result = []
    for family in families:
        key = family.lower()
        if key not in seen:
            seen.add(key)
            result.append(family)
    return result


def _build_typography(
    style: VisualStyle,
    options: ThemeGenerationOptions,
    styles: Optional[ExtractedStyles]
) -> Typography:
    sans, heading = FONT_SUGGESTIONS[style]
    if options.base_typography:
        body_family = heading_family = options.base_typography
    else:
        body_font = styles.top_font('body') if styles else None
        heading_font = (styles.top_font('heading') if styles else None) or body_font
        body_family = body_font.family if body_font else None
        heading_family = heading_font.family if heading_font else None

    if body_family:
        sans = [body_family] + sans[1:]
    if heading_family:
        heading = [heading_family] + heading[1:]
    return Typography(font_family=FontFamilies(sans=_dedupe(sans), heading=_dedupe(heading)))


def _image_style(primary: RGBColor) -> VisualStyle:
    hsl = rgb_to_hsl(primary)
    if hsl.s > 0.7:
        return VisualStyle.BOLD
    if hsl.s < 0.3:
        return VisualStyle.MINIMAL
    if hsl.l < 0.3:
        return VisualStyle.CORPORATE
    return VisualStyle.MODERN


def _distinct_palette_colors(colors: Optional[ExtractedColors], primary: RGBColor) -> List[RGBColor]:
    if colors is None:
        return []
    return [
        c for c in colors.palette_colors
        if color_distance(c, primary) >= DISTINCT_COLOR_DISTANCE and get_saturation(c) > 0.1
    ]


def _has_image_signal(colors: Optional[ExtractedColors]) -> bool:
    return colors is not None and bool(colors.palette)


def _has_style_signal(styles: Optional[ExtractedStyles]) -> bool:
    return styles is not None and not styles.is_empty


# ============================================================================
# Generation
# ============================================================================

def generate_default_theme(options: Optional[ThemeGenerationOptions] = None) -> ThemeSuggestion:
    """
    The fallback theme used when no input carries usable signal.

    With default options this is exactly DEFAULT_THEME. Dark mode, AAA,
    a typography override or a target style adapt a copy of it.
    """
    options = options or ThemeGenerationOptions()
    if (not options.prefer_dark_mode and options.preferred_contrast_level == "AA"
            and not options.base_typography and options.target_style is None):
        return DEFAULT_THEME

    contrast = ColorContrastManager(level=options.preferred_contrast_level, max_steps=options.max_darken_steps)
    base = DARK_SURFACE if options.prefer_dark_mode else DEFAULT_THEME.colors.surface
    surface = _build_surface(base.background, base.foreground, base.card, base.card_border, contrast)
    if contrast.passes(base.muted_foreground, base.muted):
        surface = surface.model_copy(update={'muted': base.muted, 'muted_foreground': base.muted_foreground})

    brand = DEFAULT_THEME.colors.brand
    primary = contrast.repair(brand.primary, surface.background)
    style = options.target_style or VisualStyle.MODERN
    return ThemeSuggestion(
        colors=ThemeColors(
            brand=BrandColors(
                primary=primary,
                primary_hover=generate_hover_color(primary),
                on_primary=contrast.text_on(primary),
                secondary=brand.secondary,
                accent=brand.accent,
            ),
            surface=surface,
            semantic=_build_semantic(surface.background, None, False, contrast),
        ),
        typography=_build_typography(style, options, None),
        visual_style=style,
        confidence=DEFAULT_THEME.confidence,
        source=ThemeSource.DEFAULT,
    )


def generate_theme(
    colors: Optional[ExtractedColors] = None,
    styles: Optional[ExtractedStyles] = None,
    options: Optional[ThemeGenerationOptions] = None
) -> ThemeSuggestion:
    """
    Synthesize a complete theme from image colors, website styles, or both.

    Website candidates take precedence over image guesses for every role
    they cover. Never raises; without usable signal the default theme is
    returned.

    Args:
        colors: Image analyzer output
        styles: Website analyzer output
        options: Generation options

    Returns:
        ThemeSuggestion whose rendered text pairs meet the requested level
    """
    options = options or ThemeGenerationOptions()
    has_image = _has_image_signal(colors)
    has_styles = _has_style_signal(styles)
    if not has_image and not has_styles:
        logger.info("No usable colors or styles; using default theme")
        return generate_default_theme(options)

    colors = colors if has_image else None
    styles = styles if has_styles else None
    contrast = ColorContrastManager(level=options.preferred_contrast_level, max_steps=options.max_darken_steps)

    def _top(category: StyleCategory) -> Optional[RGBColor]:
        candidate = styles.top(category) if styles else None
        return candidate.color if candidate else None

    # 1. Primary
    web_primary = _top(StyleCategory.PRIMARY)
    web_accent = _top(StyleCategory.ACCENT)
    primary_from_accent = web_primary is None and web_accent is not None
    if web_primary is not None:
        primary = web_primary
    elif web_accent is not None:
        primary = web_accent
    elif colors is not None:
        primary = colors.vibrant or colors.dominant
    else:
        primary = DEFAULT_THEME.colors.brand.primary
    primary = ensure_vibrant(primary)

    # 2. Secondary and accent
    distinct = _distinct_palette_colors(colors, primary)
    secondary = _top(StyleCategory.SECONDARY)
    if secondary is None:
        secondary = distinct.pop(0) if distinct else get_analogous(primary, count=2)[1]
    accent = None if primary_from_accent else web_accent
    if accent is None:
        accent = distinct.pop(0) if distinct else get_complementary(primary)

    # 3. Surfaces
    background = _pick_background(primary, _top(StyleCategory.BACKGROUND), options.prefer_dark_mode)
    surface = _build_surface(
        background,
        _top(StyleCategory.TEXT),
        _top(StyleCategory.SURFACE),
        _top(StyleCategory.BORDER),
        contrast,
    )

    # 4. Brand colors readable on the page
    primary = contrast.repair(primary, surface.background)
    brand = BrandColors(
        primary=primary,
        primary_hover=generate_hover_color(primary),
        on_primary=contrast.text_on(primary),
        secondary=secondary,
        accent=accent,
    )
    semantic = _build_semantic(surface.background, primary, options.nudge_semantic_hues, contrast)

    # 5. Typography and metadata
    if options.target_style is not None:
        style = options.target_style
    elif styles is not None:
        style = styles.visual_style
    else:
        style = _image_style(primary)

    scores = []
    if colors is not None:
        diverse = len(colors.palette) >= 3
        vibrant = get_saturation(primary) > 0.2
        scores.append((0.4 if diverse else 0.2) + (0.4 if vibrant else 0.2) + 0.2)
    if styles is not None:
        found_colors = web_primary is not None or _top(StyleCategory.SECONDARY) is not None
        found_fonts = bool(styles.fonts)
        scores.append((0.5 if found_colors else 0.2) + (0.3 if found_fonts else 0.1) + 0.2)
    confidence = min(1.0, sum(scores) / len(scores))

    if colors is not None and styles is not None:
        source = ThemeSource.MERGED
    elif styles is not None:
        source = ThemeSource.WEBSITE
    else:
        source = ThemeSource.IMAGE

    theme = ThemeSuggestion(
        colors=ThemeColors(brand=brand, surface=surface, semantic=semantic),
        typography=_build_typography(style, options, styles),
        visual_style=style,
        confidence=round(confidence, 3),
        source=source,
    )

    issues = validate_theme_contrast(theme, options.preferred_contrast_level)
    if issues:
        logger.warning(f"Theme misses {options.preferred_contrast_level} for {[i['pair'] for i in issues]}")
    logger.info(
        f"Generated {source.value} theme | primary={primary.hex} | background={surface.background.hex} | "
        f"foreground={surface.foreground.hex} | style={style.value} | confidence={theme.confidence:.2f}"
    )
    return theme


def generate_theme_from_image(
    analysis: ImageAnalysis,
    options: Optional[ThemeGenerationOptions] = None
) -> ThemeSuggestion:
    return generate_theme(colors=analysis.colors, options=options)


def generate_theme_from_website(
    styles: ExtractedStyles,
    options: Optional[ThemeGenerationOptions] = None
) -> ThemeSuggestion:
    return generate_theme(styles=styles, options=options)


def merge_theme_suggestions(suggestions: Sequence[ThemeSuggestion]) -> ThemeSuggestion:
    """
    Combine independently generated themes.

    Colors come from the most confident suggestion as a unit so its
    contrast guarantees carry over; website typography is preferred; the
    confidence is the mean of all inputs.
    """
    if not suggestions:
        return DEFAULT_THEME
    if len(suggestions) == 1:
        return suggestions[0].model_copy(update={'source': ThemeSource.MERGED})

    ranked = sorted(suggestions, key=lambda s: s.confidence, reverse=True)
    best = ranked[0]
    website = next((s for s in ranked if s.source == ThemeSource.WEBSITE), None)
    confidence = sum(s.confidence for s in ranked) / len(ranked)
    return ThemeSuggestion(
        colors=best.colors,
        typography=(website or best).typography,
        visual_style=best.visual_style,
        confidence=round(confidence, 3),
        source=ThemeSource.MERGED,
    )

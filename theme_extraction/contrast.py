"""
Color Contrast Manager for ensuring readable text on backgrounds.
Provides the bounded contrast-repair loop shared by the image analyzer
and the theme generator.
"""

from typing import Any, Dict, List, Optional

from .color_utils import (
    contrast_level_threshold,
    darken,
    get_contrast_ratio,
    hex_to_rgb,
    is_light_color,
    lighten,
)
from .logging_config import get_logger
from .models import BLACK, WHITE, RGBColor

logger = get_logger(__name__)

# Lightness moved per repair iteration
REPAIR_STEP = 0.05
DEFAULT_MAX_STEPS = 20


def best_extreme(background: RGBColor) -> RGBColor:
    """Pure black or white, whichever contrasts more with the background.

    The better of the two always reaches at least sqrt(21) ~ 4.58:1.
    """
    if get_contrast_ratio(BLACK, background) >= get_contrast_ratio(WHITE, background):
        return BLACK
    return WHITE


class ColorContrastManager:
    """Manages color contrast for readable text on various backgrounds."""

    def __init__(
        self,
        level: str = "AA",
        max_steps: int = DEFAULT_MAX_STEPS,
        step: float = REPAIR_STEP
    ):
        self.level = level.upper()
        self.min_contrast = contrast_level_threshold(self.level)
        self.max_steps = max(0, max_steps)
        self.step = step
        # Standard text colors, tried in order by readable_text_color
        self.standard_colors = {
            'white': WHITE,
            'black': BLACK,
            'dark_gray': hex_to_rgb('#111827'),
            'light_gray': hex_to_rgb('#F9FAFB'),
            'charcoal': hex_to_rgb('#1F2937'),
        }

    def passes(self, foreground: RGBColor, background: RGBColor) -> bool:
        return get_contrast_ratio(foreground, background) >= self.min_contrast

    def text_on(self, fill: RGBColor, preferred: RGBColor = WHITE) -> RGBColor:
        """Label color for a filled element: `preferred` when readable, else the best extreme."""
        if self.passes(preferred, fill):
            return preferred
        return best_extreme(fill)

    def repair(self, foreground: RGBColor, background: RGBColor) -> RGBColor:
        """
        Nudge a foreground until it reaches the target contrast.

        Darkens the foreground on light backgrounds and lightens it on dark
        ones, one fixed step per iteration, for at most `max_steps` steps.
        When the bound is exhausted the foreground is replaced by black or
        white, which satisfies AA against any background.

        Args:
            foreground: Proposed text color
            background: Color the text is rendered on

        Returns:
            A foreground meeting the level (AAA may fall short only where
            no color can reach 7:1, in which case the best extreme is returned)
        """
        if self.passes(foreground, background):
            return foreground

        adjust = darken if is_light_color(background) else lighten
        candidate = foreground
        for _ in range(self.max_steps):
            adjusted = adjust(candidate, self.step)
            if adjusted == candidate:
                # Already at the lightness limit
                break
            candidate = adjusted
            if self.passes(candidate, background):
                return candidate

        fallback = best_extreme(background)
        ratio = get_contrast_ratio(fallback, background)
        if ratio < self.min_contrast:
            logger.warning(
                f"No foreground reaches {self.level} on {background.hex}; "
                f"using {fallback.hex} at {ratio:.2f}:1"
            )
        else:
            logger.debug(f"Repair loop exhausted for {foreground.hex} on {background.hex}; using {fallback.hex}")
        return fallback

    def readable_text_color(
        self,
        background: RGBColor,
        palette: Optional[List[RGBColor]] = None
    ) -> Dict[str, Any]:
        """
        Get the best text color for a given background.

        Args:
            background: Background color
            palette: Optional palette colors to consider alongside the standard ones

        Returns:
            Dict with the recommended color, its ratio and the top alternatives
        """
        dark_bg = not is_light_color(background)
        if dark_bg:
            test_order = ['white', 'light_gray', 'charcoal', 'dark_gray', 'black']
        else:
            test_order = ['black', 'dark_gray', 'charcoal', 'light_gray', 'white']

        candidates = []
        for name in test_order:
            color = self.standard_colors[name]
            candidates.append({'color': color, 'name': name, 'contrast': get_contrast_ratio(color, background)})

        for color in palette or []:
            if color == background:
                continue
            contrast = get_contrast_ratio(color, background)
            if contrast >= self.min_contrast:
                candidates.append({'color': color, 'name': 'palette', 'contrast': contrast})

        # Stable sort keeps the preferred order among equal ratios
        candidates.sort(key=lambda c: c['contrast'], reverse=True)
        best = candidates[0]
        return {
            'background': background,
            'is_dark_bg': dark_bg,
            'recommended': best['color'],
            'contrast_ratio': best['contrast'],
            'passes': best['contrast'] >= self.min_contrast,
            'alternatives': candidates[:3],
        }


def ensure_contrast(
    foreground: RGBColor,
    background: RGBColor,
    level: str = "AA",
    max_steps: int = DEFAULT_MAX_STEPS
) -> RGBColor:
    """Run the contrast-repair loop with a throwaway manager."""
    return ColorContrastManager(level=level, max_steps=max_steps).repair(foreground, background)

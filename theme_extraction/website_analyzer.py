"""Website style extraction from already-fetched HTML and CSS text."""

import math
import re
from typing import Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup

from .color_utils import get_saturation, is_light_color, parse_css_color, rgb_to_hsl
from .css_parser import (
    Declaration,
    collect_variables,
    extract_colors,
    first_font_family,
    inline_declarations,
    iter_declarations,
    resolve_vars,
    specificity_weight,
    subject_of,
)
from .exceptions import ParseError
from .logging_config import get_logger
from .models import (
    ColorCandidate,
    ExtractedStyles,
    FontCandidate,
    RGBColor,
    StyleCategory,
    VisualStyle,
    WebsiteAnalysisOptions,
)
from .style_rules import (
    VARIABLE_WEIGHT,
    classify_declaration,
    classify_variable,
    is_heading_selector,
    is_heading_variable,
    property_kind,
    variable_tokens,
)

logger = get_logger(__name__)

# Share of all color sightings above which a color is considered document-wide
HIGH_FREQUENCY_SHARE = 0.15
HIGH_FREQUENCY_MIN_COUNT = 3
# Saturation above which a frequent color reads as a brand color rather than a neutral
BRAND_SATURATION = 0.25
META_THEME_WEIGHT = 3.0
# Score at which confidence reaches 1 - 1/e
CONFIDENCE_SCALE = 6.0

_TAILWIND_RE = re.compile(r'^(bg|text|border)-\[(#[0-9a-fA-F]{3,8})\]$')
_TAILWIND_PROPERTIES = {'bg': 'background-color', 'text': 'color', 'border': 'border-color'}
_BARE_HSL_RE = re.compile(r'^\s*-?\d+(?:\.\d+)?(?:deg)?\s+\d+(?:\.\d+)?%\s+\d+(?:\.\d+)?%\s*$')
_FONT_SHORTHAND_RE = re.compile(r'\d[\w.%]*(?:\s*/\s*[\w.%]+)?\s+(.+)$')
_FONT_VARIABLE_TOKENS = {'font', 'fonts', 'family', 'typeface', 'typography'}
_FONT_METRIC_TOKENS = {'size', 'weight', 'height', 'spacing', 'style', 'leading', 'tracking'}

TextInput = Union[str, bytes, None]


def _as_text(value: TextInput, label: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('utf-8', errors='replace')
    if isinstance(value, str):
        return value
    raise ParseError(f"{label} must be text", context={'type': type(value).__name__})


def _confidence(score: float) -> float:
    return round(1.0 - math.exp(-score / CONFIDENCE_SCALE), 3)


def _tag_signature(tag) -> str:
    """Selector-like label for an element, used to classify its inline styles."""
    signature = tag.name or ''
    for cls in tag.get('class') or []:
        signature += f'.{cls}'
    if tag.get('id'):
        signature += f"#{tag.get('id')}"
    return signature


class _ColorTally:
    """Accumulated score and sightings for one color in one role."""

    __slots__ = ('color', 'score', 'occurrences', 'source')

    def __init__(self, color: RGBColor, source: str):
        self.color = color
        self.score = 0.0
        self.occurrences = 0
        self.source = source


class WebsiteAnalyzer:
    """Rank color and font candidates per style role from HTML and CSS."""

    def __init__(self, options: Optional[WebsiteAnalysisOptions] = None):
        self.options = options or WebsiteAnalysisOptions()

    def analyze(self, html: TextInput, css: TextInput = "", base_url: Optional[str] = None) -> ExtractedStyles:
        """
        Extract styles from a page.

        Args:
            html: HTML document text (bytes are decoded as UTF-8)
            css: Concatenated external stylesheet text
            base_url: Page URL, used to resolve relative font links

        Returns:
            ExtractedStyles; empty when nothing usable was found

        Raises:
            ParseError: if the input is not text or the HTML parser gives up
        """
        html_text = _as_text(html, "html")
        css_text = _as_text(css, "css")
        if not html_text.strip() and not css_text.strip():
            logger.debug("No HTML or CSS supplied; returning empty styles")
            return ExtractedStyles.empty()

        try:
            soup = BeautifulSoup(html_text, 'html.parser')
        except Exception as e:
            raise ParseError("HTML could not be parsed", cause=e)

        declarations = list(iter_declarations(css_text))
        declarations.extend(self._document_declarations(soup))

        colors: Dict[StyleCategory, Dict[str, _ColorTally]] = {category: {} for category in StyleCategory}
        unclassified: Dict[str, _ColorTally] = {}
        sightings: Dict[str, _ColorTally] = {}
        fonts: Dict[Tuple[str, str], FontCandidate] = {}
        css_variables: Dict[str, RGBColor] = {}

        variables = collect_variables(declarations)
        for declaration in declarations:
            if declaration.property.startswith('--'):
                self._tally_variable(declaration, variables, colors, sightings, fonts, css_variables)
            elif declaration.property in ('font-family', 'font'):
                self._tally_font_declaration(declaration, variables, fonts)
            else:
                self._tally_declaration(declaration, variables, colors, unclassified, sightings)

        theme_color = self._meta_theme_color(soup)
        if theme_color is not None:
            self._add(colors[StyleCategory.PRIMARY], theme_color, META_THEME_WEIGHT, 'meta')
        for family in google_font_families(soup, base_url):
            self._add_font(fonts, family, 'body', 2)

        self._apply_frequency_bias(colors, sightings)
        if not colors[StyleCategory.PRIMARY]:
            self._promote_unclassified(colors, unclassified)

        styles = ExtractedStyles(
            colors={category: self._rank(tallies) for category, tallies in colors.items()},
            fonts=sorted(fonts.values(), key=lambda f: (-f.occurrences, f.role != 'body', f.family.lower())),
            css_variables=css_variables,
        )
        styles = styles.model_copy(update={'visual_style': classify_visual_style(styles)})

        summary = ", ".join(
            f"{category.value}={candidates[0].color.hex}"
            for category, candidates in styles.colors.items() if candidates
        )
        logger.info(
            f"Website styles | declarations={len(declarations)} | {summary or 'no colors'} | "
            f"fonts={len(styles.fonts)} | style={styles.visual_style.value}"
        )
        return styles

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def _document_declarations(self, soup: BeautifulSoup) -> List[Declaration]:
        """Declarations from <style> blocks, style attributes and Tailwind color classes."""
        declarations: List[Declaration] = []
        for style_tag in soup.find_all('style'):
            declarations.extend(iter_declarations(style_tag.get_text()))

        for tag in soup.find_all(style=True):
            declarations.extend(inline_declarations(_tag_signature(tag), tag.get('style') or ''))

        for tag in soup.find_all(class_=True):
            signature = None
            for cls in tag.get('class') or []:
                match = _TAILWIND_RE.match(cls)
                if not match:
                    continue
                signature = signature or _tag_signature(tag)
                declarations.append(Declaration(
                    selector=signature,
                    property=_TAILWIND_PROPERTIES[match.group(1)],
                    value=match.group(2),
                    origin='class',
                ))
        return declarations

    def _meta_theme_color(self, soup: BeautifulSoup) -> Optional[RGBColor]:
        meta = soup.find('meta', attrs={'name': re.compile(r'^theme-color$', re.IGNORECASE)})
        if meta is None:
            return None
        return parse_css_color(meta.get('content') or '')

    # ------------------------------------------------------------------
    # Tallying
    # ------------------------------------------------------------------

    def _add(self, tallies: Dict[str, _ColorTally], color: RGBColor, score: float, source: str,
             occurrences: int = 1) -> None:
        tally = tallies.get(color.hex)
        if tally is None:
            tally = tallies[color.hex] = _ColorTally(color, source)
        tally.score += score
        tally.occurrences += occurrences

    def _add_font(self, fonts: Dict[Tuple[str, str], FontCandidate], family: str, role: str,
                  occurrences: int = 1) -> None:
        key = (family.lower(), role)
        existing = fonts.get(key)
        total = occurrences + (existing.occurrences if existing else 0)
        fonts[key] = FontCandidate(
            family=existing.family if existing else family,
            confidence=_confidence(total * 2),
            occurrences=total,
            role=role,
        )

    def _tally_variable(self, declaration: Declaration, variables: Dict[str, str],
                        colors: Dict[StyleCategory, Dict[str, _ColorTally]],
                        sightings: Dict[str, _ColorTally],
                        fonts: Dict[Tuple[str, str], FontCandidate],
                        css_variables: Dict[str, RGBColor]) -> None:
        name = declaration.property
        value = resolve_vars(declaration.value, variables)

        tokens = variable_tokens(name)
        if tokens & _FONT_VARIABLE_TOKENS:
            if tokens & _FONT_METRIC_TOKENS:
                return
            family = first_font_family(value)
            if family:
                self._add_font(fonts, family, 'heading' if is_heading_variable(name) else 'body')
            return

        if _BARE_HSL_RE.match(value):
            # Tailwind/shadcn style "222 47% 11%" components
            value = f'hsl({value.strip()})'
        found = extract_colors(value)
        if not found:
            return
        color = found[0]
        css_variables[name] = color
        self._add(sightings, color, 0.0, 'variable')

        category = classify_variable(name)
        if category is not None:
            self._add(colors[category], color, VARIABLE_WEIGHT, 'variable')
            logger.debug(f"Variable {name} -> {category.value} {color.hex}")

    def _tally_font_declaration(self, declaration: Declaration, variables: Dict[str, str],
                                fonts: Dict[Tuple[str, str], FontCandidate]) -> None:
        value = resolve_vars(declaration.value, variables)
        if declaration.property == 'font':
            match = _FONT_SHORTHAND_RE.search(value)
            if not match:
                return
            value = match.group(1)
        family = first_font_family(value)
        if not family:
            return
        role = 'heading' if is_heading_selector(subject_of(declaration.selector)) else 'body'
        self._add_font(fonts, family, role)

    def _tally_declaration(self, declaration: Declaration, variables: Dict[str, str],
                           colors: Dict[StyleCategory, Dict[str, _ColorTally]],
                           unclassified: Dict[str, _ColorTally],
                           sightings: Dict[str, _ColorTally]) -> None:
        if property_kind(declaration.property) is None:
            return
        found = extract_colors(resolve_vars(declaration.value, variables))
        if not found:
            return

        subject = subject_of(declaration.selector)
        matched, category, weight = classify_declaration(subject, declaration.property)
        score = weight * specificity_weight(declaration.selector)
        source = declaration.origin
        for color in found:
            self._add(sightings, color, 0.0, source)
            if category is not None:
                self._add(colors[category], color, score, source)
            elif not matched:
                self._add(unclassified, color, score, source)

    def _apply_frequency_bias(self, colors: Dict[StyleCategory, Dict[str, _ColorTally]],
                              sightings: Dict[str, _ColorTally]) -> None:
        """Colors seen all over the document lean toward brand or neutral roles."""
        total = sum(t.occurrences for t in sightings.values())
        if not total:
            return
        for tally in sightings.values():
            if tally.occurrences < HIGH_FREQUENCY_MIN_COUNT or tally.occurrences / total < HIGH_FREQUENCY_SHARE:
                continue
            saturated = get_saturation(tally.color) > BRAND_SATURATION
            if saturated:
                category = StyleCategory.PRIMARY
            elif is_light_color(tally.color):
                category = StyleCategory.BACKGROUND
            else:
                category = StyleCategory.TEXT
            self._add(colors[category], tally.color, float(tally.occurrences), 'frequency', occurrences=0)
            logger.debug(f"Frequent color {tally.color.hex} ({tally.occurrences}/{total}) -> {category.value}")

    def _promote_unclassified(self, colors: Dict[StyleCategory, Dict[str, _ColorTally]],
                              unclassified: Dict[str, _ColorTally]) -> None:
        saturated = [t for t in unclassified.values() if get_saturation(t.color) > BRAND_SATURATION]
        if not saturated:
            return
        best = max(saturated, key=lambda t: (t.score, t.occurrences))
        colors[StyleCategory.PRIMARY][best.color.hex] = best
        logger.debug(f"No primary rule matched; promoting {best.color.hex}")

    def _rank(self, tallies: Dict[str, _ColorTally]) -> List[ColorCandidate]:
        ordered = sorted(tallies.values(), key=lambda t: (-t.score, -t.occurrences, t.color.hex))
        return [
            ColorCandidate(
                color=t.color,
                confidence=_confidence(t.score),
                occurrences=max(1, t.occurrences),
                source=t.source,
            )
            for t in ordered[:self.options.max_colors_per_category]
        ]


# ============================================================================
# HTML helpers
# ============================================================================

def _soup(html: TextInput) -> BeautifulSoup:
    text = _as_text(html, "html")
    try:
        return BeautifulSoup(text, 'html.parser')
    except Exception as e:
        raise ParseError("HTML could not be parsed", cause=e)


def extract_inline_css(html: TextInput) -> str:
    """Concatenate <style> block contents and style attribute declarations."""
    soup = _soup(html)
    parts = [tag.get_text() for tag in soup.find_all('style')]
    for tag in soup.find_all(style=True):
        parts.append(f"{_tag_signature(tag)} {{ {tag.get('style')} }}")
    return "\n".join(parts)


def extract_stylesheet_urls(html: TextInput, base_url: Optional[str] = None) -> List[str]:
    """
    Absolute URLs of <link rel="stylesheet"> elements, in document order.

    Relative hrefs are resolved against `base_url`; without one they are
    dropped. Duplicates are removed.
    """
    soup = _soup(html)
    urls = []
    for link in soup.find_all('link', href=True):
        rel = link.get('rel') or []
        if isinstance(rel, str):
            rel = rel.split()
        if 'stylesheet' not in [r.lower() for r in rel]:
            continue
        href = link['href'].strip()
        url = urljoin(base_url, href) if base_url else href
        if urlparse(url).scheme in ('http', 'https'):
            urls.append(url)
    return list(dict.fromkeys(urls))


def google_font_families(soup: BeautifulSoup, base_url: Optional[str] = None) -> List[str]:
    """Families requested through Google Fonts stylesheet links."""
    families = []
    for link in soup.find_all('link', href=True):
        href = urljoin(base_url, link['href']) if base_url else link['href']
        parsed = urlparse(href)
        if 'fonts.googleapis.com' not in parsed.netloc:
            continue
        for value in parse_qs(parsed.query).get('family', []):
            for entry in value.split('|'):
                name = entry.split(':')[0].strip()
                if name:
                    families.append(name)
    return list(dict.fromkeys(families))


# ============================================================================
# Visual style
# ============================================================================

_SERIF_HINTS = ('georgia', 'times', 'playfair', 'merriweather', 'lora', 'garamond', 'baskerville')
_SANS_HINTS = ('sans', 'inter', 'roboto', 'arial', 'helvetica', 'lato', 'montserrat')
_PLAYFUL_HINTS = ('comic', 'marker', 'handwriting', 'script', 'pacifico')


def classify_visual_style(styles: ExtractedStyles) -> VisualStyle:
    """
    Categorize the overall look of a site from its fonts and primary color.

    Serif headings read as traditional or elegant, a highly saturated
    primary as bold, muted colors with sans body text as minimal, and dark
    or muted primaries as corporate. Everything else is modern.
    """
    heading = styles.top_font('heading')
    body = styles.top_font('body') or heading
    heading_font = heading.family.lower() if heading else ''
    body_font = body.family.lower() if body else ''

    has_serif_heading = (
        ('serif' in heading_font and 'sans' not in heading_font)
        or any(hint in heading_font for hint in _SERIF_HINTS)
    )
    has_sans_body = any(hint in body_font for hint in _SANS_HINTS)

    primary = styles.top(StyleCategory.PRIMARY)
    hsl = rgb_to_hsl(primary.color) if primary else None
    high_saturation = hsl is not None and hsl.s > 0.7
    low_saturation = hsl is not None and hsl.s < 0.3
    very_dark = hsl is not None and hsl.l < 0.2
    very_light = hsl is not None and hsl.l > 0.8

    if has_serif_heading and not high_saturation:
        return VisualStyle.ELEGANT if low_saturation else VisualStyle.TRADITIONAL
    if high_saturation and not has_serif_heading:
        return VisualStyle.BOLD
    if low_saturation and has_sans_body:
        return VisualStyle.MINIMAL
    if any(hint in heading_font for hint in _PLAYFUL_HINTS):
        return VisualStyle.PLAYFUL
    if very_dark or (low_saturation and not very_light):
        return VisualStyle.CORPORATE
    return VisualStyle.MODERN


# Utility functions for external use
def analyze_website(
    html: TextInput,
    css: TextInput = "",
    base_url: Optional[str] = None,
    options: Optional[WebsiteAnalysisOptions] = None
) -> ExtractedStyles:
    return WebsiteAnalyzer(options).analyze(html, css, base_url)


def extract_styles_from_css(css: TextInput, options: Optional[WebsiteAnalysisOptions] = None) -> ExtractedStyles:
    """Analyze a bare stylesheet with no surrounding document."""
    return WebsiteAnalyzer(options).analyze("", css)


def merge_css(chunks: Iterable[str]) -> str:
    return "\n".join(chunk for chunk in chunks if chunk)

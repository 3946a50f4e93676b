"""
End-to-end theme extraction: fetch, analyze, generate.

Image and website analysis are independent and run concurrently. Failures
in either branch are recorded and the theme is still produced from
whatever signal remains.
"""

import asyncio
from collections import Counter
from functools import partial
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import FetchError, ImageError, ParseError
from .fetchers import PageFetcher, fetch_website
from .image_analyzer import ImageAnalyzer
from .logging_config import get_logger
from .models import (
    ExtractedStyles,
    ImageAnalysis,
    ImageAnalysisOptions,
    RGBColor,
    StyleCategory,
    ThemeGenerationOptions,
    ThemeSuggestion,
    VisualStyle,
    WebsiteAnalysisOptions,
)
from .theme_generator import generate_theme
from .website_analyzer import WebsiteAnalyzer

logger = get_logger(__name__)


class ExtractionResult(BaseModel):
    """Theme plus the intermediate analyses and any recorded failures."""
    model_config = ConfigDict(frozen=True)

    theme: ThemeSuggestion
    image_analysis: Optional[ImageAnalysis] = None
    styles: Optional[ExtractedStyles] = None
    errors: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class ThemeExtractionPipeline:
    """Orchestrates fetchers, analyzers and the theme generator for one request."""

    def __init__(
        self,
        image_options: Optional[ImageAnalysisOptions] = None,
        website_options: Optional[WebsiteAnalysisOptions] = None,
        generation_options: Optional[ThemeGenerationOptions] = None,
        fetcher: Optional[PageFetcher] = None
    ):
        self.image_options = image_options or ImageAnalysisOptions()
        self.website_options = website_options or WebsiteAnalysisOptions()
        self.generation_options = generation_options or ThemeGenerationOptions()
        self.fetcher = fetcher

    async def extract(
        self,
        image_bytes: Optional[bytes] = None,
        image_url: Optional[str] = None,
        website_url: Optional[str] = None,
        html: Optional[str] = None,
        css: Optional[str] = None
    ) -> ExtractionResult:
        """
        Run the full extraction.

        Args:
            image_bytes: Encoded reference image
            image_url: Where to download the reference image (ignored if bytes given)
            website_url: Reference site to fetch (ignored if html given)
            html: Already-fetched page markup
            css: Already-fetched stylesheet text

        Returns:
            ExtractionResult; `theme` is always populated
        """
        errors: List[str] = []
        owned = self.fetcher is None
        fetcher = self.fetcher or PageFetcher(
            timeout=self.website_options.timeout_seconds,
            user_agent=self.website_options.user_agent,
        )
        try:
            image_analysis, styles = await asyncio.gather(
                self._analyze_image(fetcher, image_bytes, image_url, errors),
                self._analyze_website(fetcher, website_url, html, css, errors),
            )
        finally:
            if owned:
                await fetcher.close()

        theme = generate_theme(
            colors=image_analysis.colors if image_analysis else None,
            styles=styles,
            options=self.generation_options,
        )
        if errors:
            logger.warning(f"Extraction finished with {len(errors)} error(s): {errors}")
        return ExtractionResult(theme=theme, image_analysis=image_analysis, styles=styles, errors=errors)

    async def _analyze_image(
        self,
        fetcher: PageFetcher,
        image_bytes: Optional[bytes],
        image_url: Optional[str],
        errors: List[str]
    ) -> Optional[ImageAnalysis]:
        if image_bytes is None and image_url:
            try:
                image_bytes = await fetcher.get_bytes(image_url)
            except FetchError as e:
                errors.append(str(e))
                return None
        if image_bytes is None:
            return None

        analyzer = ImageAnalyzer(self.image_options, max_repair_steps=self.generation_options.max_darken_steps)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, analyzer.analyze_bytes, image_bytes)
        except ImageError as e:
            logger.warning(f"Image analysis failed: {e}")
            errors.append(str(e))
            return None

    async def _analyze_website(
        self,
        fetcher: PageFetcher,
        website_url: Optional[str],
        html: Optional[str],
        css: Optional[str],
        errors: List[str]
    ) -> Optional[ExtractedStyles]:
        if html is None and css is None and not website_url:
            return None

        if html is None and website_url:
            html, fetched_css = await self._fetch(fetcher, website_url, errors)
            css = "\n".join(part for part in (css, fetched_css) if part)

        analyzer = WebsiteAnalyzer(self.website_options)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(analyzer.analyze, html or "", css or "", website_url))
        except ParseError as e:
            logger.warning(f"Website analysis failed: {e}")
            errors.append(str(e))
            return None

    async def _fetch(self, fetcher: PageFetcher, url: str, errors: List[str]) -> Tuple[str, str]:
        # An unreachable site is analyzed as an empty one
        try:
            return await fetch_website(url, self.website_options, fetcher=fetcher)
        except FetchError as e:
            errors.append(str(e))
            return "", ""


async def extract_theme(
    image_bytes: Optional[bytes] = None,
    image_url: Optional[str] = None,
    website_url: Optional[str] = None,
    html: Optional[str] = None,
    css: Optional[str] = None,
    options: Optional[ThemeGenerationOptions] = None
) -> ExtractionResult:
    pipeline = ThemeExtractionPipeline(generation_options=options)
    return await pipeline.extract(
        image_bytes=image_bytes,
        image_url=image_url,
        website_url=website_url,
        html=html,
        css=css,
    )


def extract_theme_sync(*args, **kwargs) -> ExtractionResult:
    """Blocking wrapper around extract_theme for scripts and tests."""
    return asyncio.run(extract_theme(*args, **kwargs))


# ============================================================================
# Multi-site analysis
# ============================================================================

# Sizes of the cross-site summaries
MAX_COMMON_COLORS = 5
MAX_COMMON_FONTS = 3


class SiteAnalysis(BaseModel):
    """Styles of one reference site, or the error that stopped its analysis."""
    model_config = ConfigDict(frozen=True)

    url: str
    styles: ExtractedStyles = Field(default_factory=ExtractedStyles.empty)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SitesSummary(BaseModel):
    """Per-site results plus what the successfully analyzed sites share."""
    model_config = ConfigDict(frozen=True)

    results: List[SiteAnalysis]
    common_colors: List[RGBColor] = Field(default_factory=list)
    common_fonts: List[str] = Field(default_factory=list)
    suggested_style: VisualStyle = VisualStyle.MODERN


async def _analyze_site(
    fetcher: PageFetcher,
    url: str,
    options: WebsiteAnalysisOptions
) -> SiteAnalysis:
    try:
        html, css = await fetch_website(url, options, fetcher=fetcher)
        loop = asyncio.get_running_loop()
        styles = await loop.run_in_executor(None, partial(WebsiteAnalyzer(options).analyze, html, css, url))
    except (FetchError, ParseError) as e:
        logger.warning(f"Site analysis failed for {url}: {e}")
        return SiteAnalysis(url=url, error=str(e))
    return SiteAnalysis(url=url, styles=styles)


def summarize_sites(results: Sequence[SiteAnalysis]) -> SitesSummary:
    """
    Collect what several analyzed sites have in common.

    Failed sites are kept in `results` but ignored for the summaries.
    Colors are the top primary and secondary of each site, fonts the top
    body and heading families, both deduplicated in first-seen order. The
    suggested style is the most frequent one (earliest wins ties).
    """
    colors: List[RGBColor] = []
    fonts: List[str] = []
    styles: List[VisualStyle] = []
    for result in results:
        if not result.ok:
            continue
        for category in (StyleCategory.PRIMARY, StyleCategory.SECONDARY):
            candidate = result.styles.top(category)
            if candidate is not None and candidate.color not in colors:
                colors.append(candidate.color)
        for role in ('body', 'heading'):
            font = result.styles.top_font(role)
            if font is not None and font.family.lower() not in [f.lower() for f in fonts]:
                fonts.append(font.family)
        styles.append(result.styles.visual_style)

    suggested = Counter(styles).most_common(1)[0][0] if styles else VisualStyle.MODERN
    return SitesSummary(
        results=list(results),
        common_colors=colors[:MAX_COMMON_COLORS],
        common_fonts=fonts[:MAX_COMMON_FONTS],
        suggested_style=suggested,
    )


async def analyze_sites(
    urls: Sequence[str],
    options: Optional[WebsiteAnalysisOptions] = None,
    fetcher: Optional[PageFetcher] = None
) -> SitesSummary:
    """
    Analyze several reference sites concurrently.

    A site that cannot be fetched or parsed is recorded with its error and
    does not affect the others.

    Args:
        urls: Site URLs, analyzed in parallel; results keep this order
        options: Website analysis and fetch settings
        fetcher: Existing fetcher to reuse (closed by its owner)

    Returns:
        SitesSummary with one SiteAnalysis per URL
    """
    options = options or WebsiteAnalysisOptions()
    owned = fetcher is None
    fetcher = fetcher or PageFetcher(timeout=options.timeout_seconds, user_agent=options.user_agent)
    try:
        results = await asyncio.gather(*(_analyze_site(fetcher, url, options) for url in urls))
    finally:
        if owned:
            await fetcher.close()

    summary = summarize_sites(results)
    failed = sum(1 for r in results if not r.ok)
    logger.info(
        f"Analyzed {len(results)} site(s) | failed={failed} | "
        f"colors={[c.hex for c in summary.common_colors]} | style={summary.suggested_style.value}"
    )
    return summary

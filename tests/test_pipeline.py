"""Tests for the fetchers and the end-to-end pipeline, using an in-memory HTTP session."""

import asyncio

import aiohttp
import pytest

from theme_extraction import fetchers
from theme_extraction.color_utils import hex_to_rgb
from theme_extraction.exceptions import FetchError
from theme_extraction.fetchers import PageFetcher, fetch_stylesheets, fetch_website
from theme_extraction.models import (
    ColorCandidate,
    ExtractedStyles,
    FontCandidate,
    StyleCategory,
    ThemeSource,
    VisualStyle,
    WebsiteAnalysisOptions,
)
from theme_extraction.pipeline import (
    SiteAnalysis,
    ThemeExtractionPipeline,
    analyze_sites,
    extract_theme_sync,
    summarize_sites,
)
from theme_extraction.theme_generator import DEFAULT_THEME

SITE = "https://acme.example/"


class FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self, errors="strict"):
        if isinstance(self._body, bytes):
            return self._body.decode("utf-8", errors=errors)
        return self._body

    async def read(self):
        if isinstance(self._body, str):
            return self._body.encode("utf-8")
        return self._body


class FakeSession:
    """Maps URLs to (status, body) pairs or to exceptions raised on request."""

    def __init__(self, routes):
        self.routes = routes
        self.requested = []
        self.closed = False

    def get(self, url, allow_redirects=True):
        self.requested.append(url)
        route = self.routes.get(url, (404, "not found"))
        if isinstance(route, Exception):
            raise route
        return FakeResponse(*route)

    async def close(self):
        self.closed = True


@pytest.fixture
def site_routes(sample_html, sample_css):
    return {
        SITE: (200, sample_html),
        "https://acme.example/css/site.css": (200, sample_css),
        "https://cdn.example.com/theme.css": (503, "unavailable"),
        "https://fonts.googleapis.com/css2?family=Inter:wght@400;700&family=Playfair+Display":
            (200, "@font-face { font-family: 'Inter'; src: url(inter.woff2); }"),
    }


class TestPageFetcher:
    """PageFetcher error mapping and session ownership."""

    @pytest.mark.asyncio
    async def test_get_text(self):
        fetcher = PageFetcher(session=FakeSession({SITE: (200, "<html></html>")}))
        assert await fetcher.get_text(SITE) == "<html></html>"

    @pytest.mark.asyncio
    async def test_non_200_status(self):
        fetcher = PageFetcher(session=FakeSession({}))
        with pytest.raises(FetchError) as exc_info:
            await fetcher.get_text(SITE)
        assert exc_info.value.status == 404
        assert exc_info.value.url == SITE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()])
    async def test_transport_errors(self, error):
        fetcher = PageFetcher(session=FakeSession({SITE: error}))
        with pytest.raises(FetchError) as exc_info:
            await fetcher.get_text(SITE)
        assert exc_info.value.cause is error
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_best_effort_variants(self):
        fetcher = PageFetcher(session=FakeSession({}))
        assert await fetcher.fetch_text(SITE) == ""
        assert await fetcher.fetch_bytes(SITE) is None

    @pytest.mark.asyncio
    async def test_oversized_image(self, monkeypatch):
        monkeypatch.setattr(fetchers, "MAX_IMAGE_BYTES", 4)
        fetcher = PageFetcher(session=FakeSession({SITE: (200, b"0123456789")}))
        with pytest.raises(FetchError):
            await fetcher.get_bytes(SITE)

    @pytest.mark.asyncio
    async def test_injected_session_is_not_closed(self):
        session = FakeSession({})
        async with PageFetcher(session=session):
            pass
        assert not session.closed

    @pytest.mark.asyncio
    async def test_fetch_stylesheets_skips_failures(self):
        session = FakeSession({"https://a.example/1.css": (200, "p { color: red }")})
        css = await fetch_stylesheets(PageFetcher(session=session),
                                      ["https://a.example/1.css", "https://a.example/2.css"])
        assert css == "p { color: red }"


class TestFetchWebsite:
    """fetch_website"""

    @pytest.mark.asyncio
    async def test_page_and_linked_sheets(self, site_routes, sample_html):
        session = FakeSession(site_routes)
        html, css = await fetch_website(SITE, fetcher=PageFetcher(session=session))
        assert html == sample_html
        assert "--brand-primary" in css
        assert "@font-face" in css
        assert "unavailable" not in css
        assert len(session.requested) == 4

    @pytest.mark.asyncio
    async def test_stylesheets_disabled(self, site_routes):
        session = FakeSession(site_routes)
        options = WebsiteAnalysisOptions(follow_linked_stylesheets=False)
        _, css = await fetch_website(SITE, options, fetcher=PageFetcher(session=session))
        assert css == ""
        assert session.requested == [SITE]

    @pytest.mark.asyncio
    async def test_stylesheet_limit(self, site_routes):
        session = FakeSession(site_routes)
        options = WebsiteAnalysisOptions(max_stylesheets=1)
        await fetch_website(SITE, options, fetcher=PageFetcher(session=session))
        assert session.requested == [SITE, "https://acme.example/css/site.css"]

    @pytest.mark.asyncio
    async def test_unreachable_page_raises(self):
        with pytest.raises(FetchError):
            await fetch_website(SITE, fetcher=PageFetcher(session=FakeSession({SITE: (500, "boom")})))


class TestPipeline:
    """ThemeExtractionPipeline.extract"""

    @pytest.mark.asyncio
    async def test_supplied_markup_and_image(self, sample_html, sample_css, crimson_png):
        session = FakeSession({})
        pipeline = ThemeExtractionPipeline(fetcher=PageFetcher(session=session))
        result = await pipeline.extract(image_bytes=crimson_png, html=sample_html, css=sample_css)
        assert result.ok
        assert result.theme.source == ThemeSource.MERGED
        assert result.theme.colors.brand.primary == hex_to_rgb("#0055AA")
        assert result.image_analysis.colors.dominant.as_tuple() == (220, 20, 60)
        assert session.requested == []

    @pytest.mark.asyncio
    async def test_fetched_site_and_image_url(self, site_routes, crimson_png):
        site_routes["https://acme.example/logo.png"] = (200, crimson_png)
        pipeline = ThemeExtractionPipeline(fetcher=PageFetcher(session=FakeSession(site_routes)))
        result = await pipeline.extract(image_url="https://acme.example/logo.png", website_url=SITE)
        assert result.ok
        assert result.styles is not None
        assert result.image_analysis is not None
        assert result.theme.colors.brand.primary == hex_to_rgb("#0055AA")

    @pytest.mark.asyncio
    async def test_unreachable_site_yields_default(self):
        pipeline = ThemeExtractionPipeline(fetcher=PageFetcher(session=FakeSession({})))
        result = await pipeline.extract(website_url=SITE)
        assert not result.ok
        assert len(result.errors) == 1
        assert SITE in result.errors[0]
        assert result.theme == DEFAULT_THEME

    @pytest.mark.asyncio
    async def test_bad_image_is_recorded(self, sample_css):
        pipeline = ThemeExtractionPipeline(fetcher=PageFetcher(session=FakeSession({})))
        result = await pipeline.extract(image_bytes=b"definitely not a png", css=sample_css)
        assert result.image_analysis is None
        assert len(result.errors) == 1
        assert result.theme.source == ThemeSource.WEBSITE

    @pytest.mark.asyncio
    async def test_nothing_supplied(self):
        result = await ThemeExtractionPipeline(fetcher=PageFetcher(session=FakeSession({}))).extract()
        assert result.ok
        assert result.styles is None and result.image_analysis is None
        assert result.theme == DEFAULT_THEME


class TestSyncWrapper:
    """extract_theme_sync"""

    def test_runs_without_network(self, crimson_png):
        result = extract_theme_sync(image_bytes=crimson_png)
        assert result.theme.source == ThemeSource.IMAGE
        assert result.theme.colors.brand.primary.as_tuple() == (220, 20, 60)


def _site(url, primary=None, secondary=None, body=None, heading=None, style=VisualStyle.MODERN):
    colors = {}
    if primary:
        colors[StyleCategory.PRIMARY] = [ColorCandidate(color=hex_to_rgb(primary), confidence=0.9)]
    if secondary:
        colors[StyleCategory.SECONDARY] = [ColorCandidate(color=hex_to_rgb(secondary), confidence=0.8)]
    fonts = []
    if body:
        fonts.append(FontCandidate(family=body, confidence=0.9, role="body"))
    if heading:
        fonts.append(FontCandidate(family=heading, confidence=0.9, role="heading"))
    return SiteAnalysis(url=url, styles=ExtractedStyles(colors=colors, fonts=fonts, visual_style=style))


class TestSummarizeSites:
    """summarize_sites"""

    def test_common_colors_fonts_and_style(self):
        summary = summarize_sites([
            _site("a", "#0055AA", "#FF6600", "Inter", "Playfair Display", VisualStyle.ELEGANT),
            _site("b", "#0055AA", "#222222", "inter", "Lora", VisualStyle.BOLD),
            _site("c", "#10B981", None, "Roboto", None, VisualStyle.BOLD),
        ])
        assert [c.hex for c in summary.common_colors] == ["#0055AA", "#FF6600", "#222222", "#10B981"]
        assert summary.common_fonts == ["Inter", "Playfair Display", "Lora"]
        assert summary.suggested_style == VisualStyle.BOLD

    def test_failed_sites_are_ignored(self):
        failed = SiteAnalysis(url="down", error="Unexpected status 500")
        summary = summarize_sites([failed, _site("up", "#0055AA", style=VisualStyle.CORPORATE)])
        assert summary.results[0] == failed
        assert failed.styles.is_empty
        assert [c.hex for c in summary.common_colors] == ["#0055AA"]
        assert summary.suggested_style == VisualStyle.CORPORATE

    def test_limits_and_tie_break(self):
        sites = [_site(f"s{i}", f"#{i:02X}0000", f"#00{i:02X}00", f"Font {i}", style=style)
                 for i, style in enumerate([VisualStyle.PLAYFUL, VisualStyle.MINIMAL, VisualStyle.MINIMAL,
                                            VisualStyle.PLAYFUL])]
        summary = summarize_sites(sites)
        assert len(summary.common_colors) == 5
        assert summary.common_fonts == ["Font 0", "Font 1", "Font 2"]
        assert summary.suggested_style == VisualStyle.PLAYFUL

    def test_nothing_usable(self):
        summary = summarize_sites([])
        assert summary.results == []
        assert summary.common_colors == [] and summary.common_fonts == []
        assert summary.suggested_style == VisualStyle.MODERN


class TestAnalyzeSites:
    """analyze_sites"""

    @pytest.mark.asyncio
    async def test_records_per_site_errors(self, site_routes):
        down = "https://down.example/"
        session = FakeSession(site_routes)
        summary = await analyze_sites([SITE, down], fetcher=PageFetcher(session=session))
        assert [r.url for r in summary.results] == [SITE, down]
        assert summary.results[0].ok
        assert not summary.results[1].ok
        assert down in summary.results[1].error
        assert summary.results[1].styles.is_empty
        assert summary.common_colors[0] == hex_to_rgb("#0055AA")
        assert "Inter" in summary.common_fonts
        assert summary.suggested_style == summary.results[0].styles.visual_style
        assert not session.closed

    @pytest.mark.asyncio
    async def test_repeated_site_is_counted_once(self, site_routes):
        session = FakeSession(site_routes)
        summary = await analyze_sites([SITE, SITE], fetcher=PageFetcher(session=session))
        assert len(summary.results) == 2
        assert summary.common_colors.count(hex_to_rgb("#0055AA")) == 1
        assert len(summary.common_fonts) == len(set(f.lower() for f in summary.common_fonts))

    @pytest.mark.asyncio
    async def test_all_sites_down(self):
        summary = await analyze_sites(["https://a.example/", "https://b.example/"],
                                      fetcher=PageFetcher(session=FakeSession({})))
        assert all(not r.ok for r in summary.results)
        assert summary.common_colors == []
        assert summary.suggested_style == VisualStyle.MODERN

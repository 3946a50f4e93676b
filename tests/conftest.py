"""Shared fixtures: Pillow-built images, sample markup and an isolated environment."""

import io

import pytest
from PIL import Image

from theme_extraction.config import get_config

CRIMSON = (220, 20, 60)


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Strip THEME_* settings so option defaults are the built-in ones."""
    for name in (
        "THEME_MAX_PALETTE_SIZE", "THEME_SAMPLE_STRIDE", "THEME_BUCKET_WIDTH", "THEME_MERGE_DISTANCE",
        "THEME_MAX_DIMENSION", "THEME_MAX_COLORS_PER_CATEGORY", "THEME_FOLLOW_STYLESHEETS",
        "THEME_MAX_STYLESHEETS", "THEME_FETCH_TIMEOUT", "THEME_USER_AGENT", "THEME_CONTRAST_LEVEL",
        "THEME_MAX_DARKEN_STEPS", "THEME_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def solid_png():
    """Factory for a PNG of one flat color."""
    def _make(color=CRIMSON, size=(32, 24)):
        return _png_bytes(Image.new("RGB", size, color))
    return _make


@pytest.fixture
def crimson_png(solid_png):
    return solid_png(CRIMSON)


@pytest.fixture
def two_tone_png():
    """Left three quarters navy, right quarter orange."""
    image = Image.new("RGB", (40, 20), (20, 40, 120))
    image.paste((250, 140, 20), (30, 0, 40, 20))
    return _png_bytes(image)


@pytest.fixture
def transparent_logo_png():
    """Green square logo on a fully transparent canvas."""
    image = Image.new("RGBA", (20, 20), (0, 0, 0, 0))
    image.paste((16, 160, 80, 255), (5, 5, 15, 15))
    return _png_bytes(image)


@pytest.fixture
def sample_css():
    return """
    /* brand tokens */
    :root {
      --brand-primary: #0055AA;
      --color-text: #1F2933;
      --font-heading: 'Playfair Display', Georgia, serif;
    }
    body { background-color: #FFFFFF; color: var(--color-text); font-family: "Inter", sans-serif; }
    a, a:hover { color: #0066CC; }
    .btn-primary { background: var(--brand-primary); color: #fff; border: 1px solid #004488; }
    @media (max-width: 600px) {
      .card { background: #F7F7F7; }
    }
    @keyframes pulse { from { color: red; } to { color: blue; } }
    h1, h2 { font-family: 'Playfair Display', serif; }
    """


@pytest.fixture
def sample_html():
    return """<!doctype html>
    <html>
      <head>
        <meta name="theme-color" content="#0055aa">
        <link rel="stylesheet" href="/css/site.css">
        <link rel="stylesheet" href="https://cdn.example.com/theme.css">
        <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;700&family=Playfair+Display" rel="stylesheet">
        <style>.accent { background-color: #F59E0B; }</style>
      </head>
      <body>
        <header style="background: #FFFFFF; border-bottom: 1px solid #E5E7EB">Acme</header>
        <button class="bg-[#0055aa] text-[#ffffff]">Get a quote</button>
      </body>
    </html>
    """

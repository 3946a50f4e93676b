"""Tests for theme serialization."""

import json

from theme_extraction.theme_config import THEME_IMPORT, render_theme_config, theme_to_json
from theme_extraction.theme_generator import DEFAULT_THEME


class TestRenderThemeConfig:
    """render_theme_config"""

    def test_module_shape(self):
        source = render_theme_config(DEFAULT_THEME, "Acme Plumbing")
        assert source.startswith(THEME_IMPORT)
        assert "export default defineTheme({" in source
        assert source.rstrip().endswith("});")
        assert "name: 'Acme Plumbing'," in source

    def test_colors_and_fonts(self):
        source = render_theme_config(DEFAULT_THEME, "Acme")
        assert "primary: '#2563EB'," in source
        assert "primaryHover:" in source
        assert "onPrimary: '#FFFFFF'," in source
        assert "mutedForeground: '#4B5563'," in source
        assert "sans: ['Inter', 'system-ui', 'sans-serif']," in source
        assert "Confidence: 30%" in source

    def test_site_name_is_escaped(self):
        source = render_theme_config(DEFAULT_THEME, "Joe's Diner")
        assert "name: 'Joe\\'s Diner'," in source


class TestThemeToJson:
    """theme_to_json"""

    def test_round_trips_through_json(self):
        payload = json.loads(theme_to_json(DEFAULT_THEME))
        assert payload['colors']['brand']['primary'] == "#2563EB"
        assert payload['colors']['brand']['onPrimary'] == "#FFFFFF"
        assert payload['colors']['surface']['cardBorder'] == "#E5E7EB"
        assert payload['typography']['fontFamily']['heading'][0] == "Inter"
        assert payload['meta'] == {'style': 'modern', 'confidence': 0.3, 'source': 'default'}

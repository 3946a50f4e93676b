"""Tests for configuration loading, error types and logging profiles."""

import logging

import pytest

from theme_extraction.config import get_config, load_config
from theme_extraction.exceptions import (
    ConfigurationError,
    DecodeError,
    FetchError,
    ImageError,
    InvalidHex,
    ParseError,
    is_recoverable,
)
from theme_extraction.logging_config import get_logger, get_logging_config, setup_logging
from theme_extraction.models import ImageAnalysisOptions, ThemeGenerationOptions, WebsiteAnalysisOptions


class TestLoadConfig:
    """Environment-seeded defaults."""

    def test_built_in_defaults(self):
        config = load_config(strict=True)
        assert config.image.max_palette_size == 8
        assert config.image.bucket_width == 8
        assert config.image.merge_distance == 16.0
        assert config.generator.contrast_level == "AA"
        assert config.generator.max_darken_steps == 20
        assert config.website.follow_linked_stylesheets is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("THEME_MAX_PALETTE_SIZE", "4")
        monkeypatch.setenv("THEME_CONTRAST_LEVEL", "aaa")
        monkeypatch.setenv("THEME_FOLLOW_STYLESHEETS", "no")
        config = load_config(strict=True)
        assert config.image.max_palette_size == 4
        assert config.generator.contrast_level == "AAA"
        assert config.website.follow_linked_stylesheets is False

    def test_unparseable_value_strict(self, monkeypatch):
        monkeypatch.setenv("THEME_SAMPLE_STRIDE", "every-other")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(strict=True)
        assert isinstance(exc_info.value.cause, ValueError)

    def test_invalid_value_strict(self, monkeypatch):
        monkeypatch.setenv("THEME_CONTRAST_LEVEL", "B")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(strict=True)
        assert exc_info.value.context['problems']

    @pytest.mark.parametrize("name,value", [("THEME_SAMPLE_STRIDE", "x"), ("THEME_BUCKET_WIDTH", "0")])
    def test_lenient_falls_back(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        config = load_config()
        assert config.image.sample_stride == 1
        assert config.image.bucket_width == 8

    def test_to_dict(self):
        data = load_config().to_dict()
        assert set(data) == {'image', 'website', 'generator'}
        assert data['website']['max_stylesheets'] == 5

    def test_options_read_cached_config(self, monkeypatch):
        monkeypatch.setenv("THEME_MAX_COLORS_PER_CATEGORY", "2")
        monkeypatch.setenv("THEME_MAX_DARKEN_STEPS", "7")
        get_config.cache_clear()
        assert WebsiteAnalysisOptions().max_colors_per_category == 2
        assert ThemeGenerationOptions().max_darken_steps == 7
        assert ImageAnalysisOptions().max_palette_size == 8

    def test_explicit_options_win(self, monkeypatch):
        monkeypatch.setenv("THEME_MAX_PALETTE_SIZE", "3")
        get_config.cache_clear()
        assert ImageAnalysisOptions(max_palette_size=6).max_palette_size == 6

    def test_unknown_contrast_level_rejected(self):
        with pytest.raises(ValueError):
            ThemeGenerationOptions(preferred_contrast_level="A")


class TestExceptions:
    """Exception hierarchy and recovery hints."""

    def test_message_includes_cause_and_context(self):
        error = DecodeError("Unsupported image", cause=OSError("truncated"), context={'bytes': 12})
        text = str(error)
        assert "Unsupported image" in text
        assert "OSError: truncated" in text
        assert "'bytes': 12" in text
        assert isinstance(error, ImageError)

    def test_invalid_hex_is_value_error(self):
        error = InvalidHex("#12")
        assert isinstance(error, ValueError)
        assert error.value == "#12"

    def test_fetch_error_context(self):
        error = FetchError("https://x.example", "Unexpected status 404", status=404)
        assert error.context == {'url': "https://x.example", 'status': 404}

    @pytest.mark.parametrize("error,expected", [
        (FetchError("u", "timeout"), True),
        (FetchError("u", "server", status=503), True),
        (FetchError("u", "throttled", status=429), True),
        (FetchError("u", "missing", status=404), False),
        (ParseError("bad"), False),
        (ValueError("other"), False),
    ])
    def test_is_recoverable(self, error, expected):
        assert is_recoverable(error) is expected


class TestLogging:
    """Logging profiles."""

    def test_development_profile(self, monkeypatch):
        monkeypatch.delenv("ENV", raising=False)
        monkeypatch.delenv("DEBUG", raising=False)
        config = get_logging_config()
        assert config["environment"] == "development"
        assert config["default_level"] == "INFO"

    def test_production_profile(self, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        monkeypatch.delenv("DEBUG", raising=False)
        config = get_logging_config()
        assert config["default_level"] == "WARNING"
        assert "theme_extraction.image_analyzer" in config["suppress_modules"]

    def test_debug_wins(self, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        monkeypatch.setenv("DEBUG", "true")
        assert get_logging_config()["environment"] == "debug"

    def test_level_override(self, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        monkeypatch.setenv("THEME_LOG_LEVEL", "error")
        assert get_logging_config()["default_level"] == "ERROR"

    def test_setup_sets_root_level(self, monkeypatch):
        root = logging.getLogger()
        previous = root.level
        try:
            setup_logging("DEBUG")
            assert root.level == logging.DEBUG
            assert get_logger("theme_extraction.test").name == "theme_extraction.test"
        finally:
            root.setLevel(previous)

"""
Configuration management for theme extraction.

Environment variables only seed the defaults of the option structs;
every analyzer still takes its options as a plain value.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Any, List

from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ThemeExtractor/1.0)"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class ImageConfig:
    """Image analysis defaults"""
    max_palette_size: int = field(default_factory=lambda: int(os.getenv('THEME_MAX_PALETTE_SIZE', '8')))
    sample_stride: int = field(default_factory=lambda: int(os.getenv('THEME_SAMPLE_STRIDE', '1')))
    bucket_width: int = field(default_factory=lambda: int(os.getenv('THEME_BUCKET_WIDTH', '8')))
    merge_distance: float = field(default_factory=lambda: float(os.getenv('THEME_MERGE_DISTANCE', '16')))
    max_dimension: int = field(default_factory=lambda: int(os.getenv('THEME_MAX_DIMENSION', '400')))


@dataclass
class WebsiteConfig:
    """Website analysis and fetch defaults"""
    max_colors_per_category: int = field(default_factory=lambda: int(os.getenv('THEME_MAX_COLORS_PER_CATEGORY', '5')))
    follow_linked_stylesheets: bool = field(default_factory=lambda: _env_bool('THEME_FOLLOW_STYLESHEETS', 'true'))
    max_stylesheets: int = field(default_factory=lambda: int(os.getenv('THEME_MAX_STYLESHEETS', '5')))
    fetch_timeout: float = field(default_factory=lambda: float(os.getenv('THEME_FETCH_TIMEOUT', '10')))
    user_agent: str = field(default_factory=lambda: os.getenv('THEME_USER_AGENT', DEFAULT_USER_AGENT))


@dataclass
class GeneratorConfig:
    """Theme generation defaults"""
    contrast_level: str = field(default_factory=lambda: os.getenv('THEME_CONTRAST_LEVEL', 'AA').upper())
    max_darken_steps: int = field(default_factory=lambda: int(os.getenv('THEME_MAX_DARKEN_STEPS', '20')))


@dataclass
class Config:
    """Master configuration"""
    image: ImageConfig = field(default_factory=ImageConfig)
    website: WebsiteConfig = field(default_factory=WebsiteConfig)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'image': {
                'max_palette_size': self.image.max_palette_size,
                'sample_stride': self.image.sample_stride,
                'bucket_width': self.image.bucket_width,
                'merge_distance': self.image.merge_distance,
                'max_dimension': self.image.max_dimension
            },
            'website': {
                'max_colors_per_category': self.website.max_colors_per_category,
                'follow_linked_stylesheets': self.website.follow_linked_stylesheets,
                'max_stylesheets': self.website.max_stylesheets,
                'fetch_timeout': self.website.fetch_timeout,
                'user_agent': self.website.user_agent
            },
            'generator': {
                'contrast_level': self.generator.contrast_level,
                'max_darken_steps': self.generator.max_darken_steps
            }
        }

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when valid)"""
        problems = []
        if self.image.max_palette_size < 1:
            problems.append(f"max_palette_size must be at least 1, got {self.image.max_palette_size}")
        if self.image.sample_stride < 1:
            problems.append(f"sample_stride must be at least 1, got {self.image.sample_stride}")
        if not 1 <= self.image.bucket_width <= 64:
            problems.append(f"bucket_width must be between 1 and 64, got {self.image.bucket_width}")
        if self.image.merge_distance < 0:
            problems.append(f"merge_distance must not be negative, got {self.image.merge_distance}")
        if self.image.max_dimension < 1:
            problems.append(f"max_dimension must be at least 1, got {self.image.max_dimension}")
        if self.website.max_colors_per_category < 1:
            problems.append(f"max_colors_per_category must be at least 1, got {self.website.max_colors_per_category}")
        if self.website.fetch_timeout <= 0:
            problems.append(f"fetch_timeout must be positive, got {self.website.fetch_timeout}")
        if self.generator.contrast_level not in ("AA", "AAA"):
            problems.append(f"contrast_level must be AA or AAA, got {self.generator.contrast_level}")
        if self.generator.max_darken_steps < 0:
            problems.append(f"max_darken_steps must not be negative, got {self.generator.max_darken_steps}")
        return problems


def load_config(strict: bool = False) -> Config:
    """Build a configuration from the current environment.

    Args:
        strict: Raise ConfigurationError instead of silently using defaults

    Returns:
        Config instance
    """
    try:
        config = Config()
    except ValueError as e:
        if strict:
            raise ConfigurationError("Unparseable configuration value", cause=e)
        return _fallback_config()

    problems = config.validate()
    if problems:
        if strict:
            raise ConfigurationError("Invalid configuration", context={'problems': problems})
        return _fallback_config()
    return config


def _fallback_config() -> Config:
    # Built-in defaults, ignoring the environment
    return Config(
        image=ImageConfig(max_palette_size=8, sample_stride=1, bucket_width=8, merge_distance=16.0, max_dimension=400),
        website=WebsiteConfig(max_colors_per_category=5, follow_linked_stylesheets=True, max_stylesheets=5,
                              fetch_timeout=10.0, user_agent=DEFAULT_USER_AGENT),
        generator=GeneratorConfig(contrast_level="AA", max_darken_steps=20),
    )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get singleton configuration instance"""
    return load_config()

"""
Environment-specific logging configuration
"""
import logging
import os
from typing import Dict, Any, Optional


def get_logging_config() -> Dict[str, Any]:
    """Get logging configuration based on environment"""

    is_production = os.getenv("ENV") == "production"
    is_debug = os.getenv("DEBUG", "false").lower() == "true"

    config = {
        "production": {
            # Production: only degraded inputs and failures
            "default_level": "WARNING",
            "console_format": "%(levelname)s - %(message)s",
            "suppress_modules": [
                "theme_extraction.image_analyzer",
                "theme_extraction.website_analyzer",
            ]
        },
        "development": {
            "default_level": "INFO",
            "console_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "suppress_modules": []
        },
        "debug": {
            "default_level": "DEBUG",
            "console_format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
            "suppress_modules": []
        }
    }

    if is_debug:
        selected_config = dict(config["debug"])
    elif is_production:
        selected_config = dict(config["production"])
    else:
        selected_config = dict(config["development"])

    # THEME_LOG_LEVEL overrides the profile level
    override = os.getenv("THEME_LOG_LEVEL")
    if override:
        selected_config["default_level"] = override.upper()

    selected_config["environment"] = "debug" if is_debug else ("production" if is_production else "development")

    return selected_config


def setup_logging(level: Optional[str] = None) -> None:
    """Minimal logging setup.

    - Sets root logger level
    - Ensures a basic StreamHandler is attached once
    """
    config = get_logging_config()
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config["console_format"]))
        root.addHandler(handler)
    try:
        root.setLevel(getattr(logging, (level or config["default_level"]).upper()))
    except AttributeError:
        root.setLevel(logging.INFO)

    for module in config.get("suppress_modules", []):
        logging.getLogger(module).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger after ensuring logging is initialized."""
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)

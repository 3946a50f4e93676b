"""Serialization of a ThemeSuggestion for the site configuration layer."""

import json
from typing import Any, Dict, List

from .models import ThemeSuggestion

THEME_IMPORT = "import { defineTheme } from '@platform/theme-system';"


def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _render_block(values: Dict[str, Any], indent: int) -> List[str]:
    pad = '  ' * indent
    lines = []
    for key, value in values.items():
        if isinstance(value, dict):
            lines.append(f"{pad}{key}: {{")
            lines.extend(_render_block(value, indent + 1))
            lines.append(f"{pad}}},")
        elif isinstance(value, list):
            lines.append(f"{pad}{key}: [{', '.join(_quote(str(v)) for v in value)}],")
        else:
            lines.append(f"{pad}{key}: {_quote(str(value))},")
    return lines


def render_theme_config(theme: ThemeSuggestion, site_name: str) -> str:
    """
    Render the theme.config.ts source for a site.

    Args:
        theme: Generated theme
        site_name: Display name written into the config

    Returns:
        TypeScript module text calling defineTheme(...)
    """
    config = {'name': site_name}
    config.update(theme.to_theme_config())
    lines = [
        THEME_IMPORT,
        "",
        "/**",
        f" * Theme configuration for {site_name}",
        " * Generated from extracted brand colors",
        f" * Style: {theme.visual_style.value}",
        f" * Confidence: {round(theme.confidence * 100)}%",
        " */",
        "export default defineTheme({",
    ]
    lines.extend(_render_block(config, 1))
    lines.append("});")
    return "\n".join(lines) + "\n"


def theme_to_json(theme: ThemeSuggestion, indent: int = 2) -> str:
    """Theme-config shaped JSON plus generation metadata."""
    payload = theme.to_theme_config()
    payload['meta'] = {
        'style': theme.visual_style.value,
        'confidence': theme.confidence,
        'source': theme.source.value,
    }
    return json.dumps(payload, indent=indent)

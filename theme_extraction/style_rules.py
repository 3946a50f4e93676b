"""
Selector and variable-name rules that map CSS declarations to style roles.

Rules are plain data evaluated top to bottom; the first matching rule wins.
A rule whose category is None claims the declaration without assigning a
role (for example button label colors, which say nothing about body text).
"""

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Sequence, Tuple

from .models import StyleCategory

# Property families a rule can match
COLOR = "color"
BACKGROUND = "background"
BORDER = "border"

_PROPERTY_KINDS = {
    'color': COLOR,
    'background': BACKGROUND,
    'background-color': BACKGROUND,
    'background-image': BACKGROUND,
    'border': BORDER,
    'border-color': BORDER,
    'border-top': BORDER,
    'border-right': BORDER,
    'border-bottom': BORDER,
    'border-left': BORDER,
    'border-top-color': BORDER,
    'border-right-color': BORDER,
    'border-bottom-color': BORDER,
    'border-left-color': BORDER,
    'outline': BORDER,
    'outline-color': BORDER,
}


def property_kind(prop: str) -> Optional[str]:
    """Family of a CSS property, or None when it carries no role signal."""
    return _PROPERTY_KINDS.get(prop.lower())


@dataclass(frozen=True)
class SelectorRule:
    """Maps (selector subject, property family) to a role and a weight."""
    name: str
    subject: Pattern
    kinds: Tuple[str, ...]
    category: Optional[StyleCategory]
    weight: float

    def matches(self, subject: str, kind: str) -> bool:
        return kind in self.kinds and bool(self.subject.search(subject))


def _subject(pattern: str) -> Pattern:
    return re.compile(pattern, re.IGNORECASE)


_BUTTON = r'^(?:button(?![\w-])|input\[type=["\']?(?:submit|button)["\']?\])|\.(?:btn|button|cta)(?![a-z])'
_ROOT = r'^(?::root|html|body)(?![\w-])'
_LINK = r'^a(?![\w-])|\.link(?![\w-])'
_HEADING = r'^h[1-6](?![\w-])|\.(?:title|heading|headline)(?![\w-])'
_ACCENT = r'\.(?:accent|highlight|badge|tag|pill|label)(?![\w-])|^mark(?![\w-])'
_SURFACE = r'^(?:header|nav|footer|aside|section|article|dialog)(?![\w-])|\.(?:card|panel|modal|navbar|header|footer|sidebar|surface)(?![\w-])'
_FORM = r'^(?:input|textarea|select)(?![\w-])|\.(?:form-control|input)(?![\w-])'
_PRIMARY_CLASS = r'\.[\w-]*(?:primary|brand)[\w-]*'
_SECONDARY_CLASS = r'\.[\w-]*secondary[\w-]*'

SELECTOR_RULES: Sequence[SelectorRule] = (
    SelectorRule('button-fill', _subject(_BUTTON), (BACKGROUND,), StyleCategory.PRIMARY, 3.0),
    SelectorRule('button-outline', _subject(_BUTTON), (BORDER,), StyleCategory.PRIMARY, 1.5),
    SelectorRule('button-label', _subject(_BUTTON), (COLOR,), None, 0.0),
    SelectorRule('secondary-class', _subject(_SECONDARY_CLASS), (BACKGROUND, COLOR, BORDER), StyleCategory.SECONDARY, 2.5),
    SelectorRule('primary-class', _subject(_PRIMARY_CLASS), (BACKGROUND, COLOR, BORDER), StyleCategory.PRIMARY, 2.5),
    SelectorRule('link', _subject(_LINK), (COLOR,), StyleCategory.LINK, 2.5),
    SelectorRule('root-background', _subject(_ROOT), (BACKGROUND,), StyleCategory.BACKGROUND, 3.0),
    SelectorRule('root-text', _subject(_ROOT), (COLOR,), StyleCategory.TEXT, 3.0),
    SelectorRule('heading-text', _subject(_HEADING), (COLOR,), StyleCategory.TEXT, 1.5),
    SelectorRule('accent', _subject(_ACCENT), (BACKGROUND, COLOR), StyleCategory.ACCENT, 2.0),
    SelectorRule('surface', _subject(_SURFACE), (BACKGROUND,), StyleCategory.SURFACE, 1.5),
    SelectorRule('form-border', _subject(_FORM), (BORDER,), StyleCategory.BORDER, 1.5),
    SelectorRule('form-fill', _subject(_FORM), (BACKGROUND,), StyleCategory.SURFACE, 1.0),
    SelectorRule('divider', _subject(r'^hr(?![\w-])|\.(?:divider|separator)(?![\w-])'), (BACKGROUND, BORDER),
                 StyleCategory.BORDER, 1.5),
    SelectorRule('any-border', _subject(r'.'), (BORDER,), StyleCategory.BORDER, 1.0),
    SelectorRule('any-text', _subject(r'.'), (COLOR,), StyleCategory.TEXT, 0.5),
)

# Fallback for declarations no rule claims: an unclassified sighting
UNCLASSIFIED_WEIGHT = 0.5


def classify_declaration(subject: str, prop: str) -> Tuple[bool, Optional[StyleCategory], float]:
    """
    Classify one declaration by its selector subject and property.

    Returns:
        (matched, category, weight). `matched` is False when no rule applies
        and the color should be tallied as unclassified.
    """
    kind = property_kind(prop)
    if kind is None:
        return False, None, 0.0
    for rule in SELECTOR_RULES:
        if rule.matches(subject, kind):
            return True, rule.category, rule.weight
    return False, None, UNCLASSIFIED_WEIGHT


# === Custom property names ===

VARIABLE_WEIGHT = 4.0

_ON_COLOR_TOKENS = {'foreground', 'fg', 'contrast', 'on', 'inverse'}
_BRAND_TOKENS = {'primary', 'secondary', 'accent', 'brand'}

# (tokens, category); checked in order, first hit wins
VARIABLE_RULES: Sequence[Tuple[frozenset, StyleCategory]] = (
    (frozenset({'border', 'divider', 'outline', 'ring', 'stroke'}), StyleCategory.BORDER),
    (frozenset({'link', 'anchor'}), StyleCategory.LINK),
    (frozenset({'text', 'foreground', 'fg', 'ink'}), StyleCategory.TEXT),
    (frozenset({'background', 'bg', 'page', 'canvas'}), StyleCategory.BACKGROUND),
    (frozenset({'surface', 'card', 'muted', 'panel', 'popover'}), StyleCategory.SURFACE),
    (frozenset({'secondary'}), StyleCategory.SECONDARY),
    (frozenset({'accent', 'highlight', 'tertiary'}), StyleCategory.ACCENT),
    (frozenset({'primary', 'brand', 'main'}), StyleCategory.PRIMARY),
)


def variable_tokens(name: str) -> frozenset:
    return frozenset(t for t in re.split(r'[-_]+', name.lower().lstrip('-')) if t)


def classify_variable(name: str) -> Optional[StyleCategory]:
    """Role implied by a custom property name such as --brand-primary."""
    tokens = variable_tokens(name)
    # --primary-foreground and friends are label colors for a brand fill
    if tokens & _BRAND_TOKENS and tokens & _ON_COLOR_TOKENS:
        return None
    for names, category in VARIABLE_RULES:
        if tokens & names:
            return category
    return None


def is_heading_selector(subject: str) -> bool:
    return bool(_subject(_HEADING).search(subject))


def is_heading_variable(name: str) -> bool:
    tokens = variable_tokens(name)
    return bool(tokens & {'heading', 'headings', 'display', 'title'})

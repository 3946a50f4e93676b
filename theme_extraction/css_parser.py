"""
Tolerant CSS tokenizer.

Walks stylesheet text into (selector, property, value) declarations. Never
raises: unbalanced braces, stray semicolons and unknown at-rules simply end
or skip the affected block, so partial stylesheets still yield results.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .color_utils import parse_css_color
from .models import RGBColor

# At-rules whose blocks contain ordinary rules
NESTING_AT_RULES = ('@media', '@supports', '@layer', '@container', '@document', '@scope')

_COMMENT_RE = re.compile(r'/\*.*?(?:\*/|$)', re.DOTALL)
_URL_RE = re.compile(r'url\([^)]*\)', re.IGNORECASE)
_VAR_RE = re.compile(r'var\(\s*(--[\w-]+)\s*(?:,\s*([^()]*(?:\([^()]*\))?[^()]*))?\)')
_COLOR_TOKEN_RE = re.compile(
    r'#[0-9a-fA-F]{3,8}\b|(?:rgba?|hsla?)\([^)]*\)|\b[a-zA-Z]+\b',
    re.IGNORECASE,
)
# Longer color tokens are malformed and skipped
MAX_COLOR_TOKEN_LENGTH = 64
_GENERIC_FONTS = {
    'serif', 'sans-serif', 'monospace', 'cursive', 'fantasy', 'system-ui',
    'ui-sans-serif', 'ui-serif', 'ui-monospace', 'ui-rounded', 'emoji', 'math',
    'inherit', 'initial', 'unset', 'revert', '-apple-system', 'blinkmacsystemfont',
}


@dataclass(frozen=True)
class Declaration:
    selector: str
    property: str
    value: str
    origin: str = 'css'


def strip_comments(css: str) -> str:
    return _COMMENT_RE.sub(' ', css)


def _block_end(css: str, start: int) -> int:
    """Index just past the '}' matching the '{' before `start` (or end of text)."""
    depth = 1
    i = start
    length = len(css)
    while i < length:
        ch = css[i]
        if ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return i + 1
        elif ch in ('"', "'"):
            closing = css.find(ch, i + 1)
            i = length if closing == -1 else closing
        i += 1
    return length


def parse_declarations(block: str) -> List[Tuple[str, str]]:
    """Split a declaration block into (property, value) pairs."""
    pairs = []
    for chunk in block.split(';'):
        if ':' not in chunk:
            continue
        prop, _, value = chunk.partition(':')
        prop = prop.strip().lower() if not prop.strip().startswith('--') else prop.strip()
        value = value.replace('!important', '').strip()
        if prop and value:
            pairs.append((prop, value))
    return pairs


def iter_rules(css: str) -> Iterator[Tuple[str, str]]:
    """Yield (prelude, block body) for every style rule, descending into @media and friends."""
    text = strip_comments(css)
    i = 0
    length = len(text)
    while i < length:
        brace = text.find('{', i)
        if brace == -1:
            return
        prelude = text[i:brace]
        # A ';' or '}' before the brace ends a statement such as @import or a stray close
        cut = max(prelude.rfind(';'), prelude.rfind('}'))
        if cut != -1:
            prelude = prelude[cut + 1:]
        prelude = prelude.strip()
        end = _block_end(text, brace + 1)
        body = text[brace + 1:end - 1] if end <= length and text[end - 1:end] == '}' else text[brace + 1:end]

        lowered = prelude.lower()
        if lowered.startswith(NESTING_AT_RULES):
            yield from iter_rules(body)
        elif lowered.startswith('@font-face'):
            yield '@font-face', body
        elif lowered.startswith('@'):
            pass  # @keyframes, @page, ...
        elif prelude:
            yield prelude, body
        i = end


def iter_declarations(css: str) -> Iterator[Declaration]:
    """Yield one Declaration per selector in each rule's selector list."""
    for prelude, body in iter_rules(css):
        pairs = parse_declarations(body)
        if not pairs:
            continue
        selectors = [s.strip() for s in prelude.split(',') if s.strip()]
        for selector in selectors:
            for prop, value in pairs:
                yield Declaration(selector=selector, property=prop, value=value)


def inline_declarations(selector: str, style: str) -> List[Declaration]:
    """Declarations from a style="..." attribute, attributed to `selector`."""
    return [Declaration(selector=selector, property=p, value=v, origin='inline') for p, v in parse_declarations(style)]


def collect_variables(declarations: List[Declaration]) -> Dict[str, str]:
    """Raw values of custom properties; later definitions win."""
    return {d.property: d.value for d in declarations if d.property.startswith('--')}


def resolve_vars(value: str, variables: Dict[str, str], depth: int = 0) -> str:
    """Substitute var(--name, fallback) references a few levels deep."""
    if 'var(' not in value or depth > 4:
        return value

    def _substitute(match: 're.Match') -> str:
        name, fallback = match.group(1), match.group(2)
        if name in variables:
            return resolve_vars(variables[name], variables, depth + 1)
        return fallback or ''

    return _VAR_RE.sub(_substitute, value)


def extract_colors(value: str) -> List[RGBColor]:
    """Every color token in a property value (url(...) contents ignored)."""
    colors = []
    for token in _COLOR_TOKEN_RE.findall(_URL_RE.sub(' ', value)):
        if len(token) > MAX_COLOR_TOKEN_LENGTH:
            continue
        color = parse_css_color(token)
        if color is not None:
            colors.append(color)
    return colors


def first_font_family(value: str) -> Optional[str]:
    """First concrete family in a font-family list, skipping generics."""
    for part in value.split(','):
        name = part.strip().strip('"\'').strip()
        if not name or name.lower().startswith('var(') or name[0].isdigit():
            continue
        if name.lower() in _GENERIC_FONTS:
            continue
        name = re.sub(r'\s+', ' ', name)
        return name
    return None


def subject_of(selector: str) -> str:
    """Rightmost compound selector, i.e. the element the rule styles."""
    parts = re.split(r'\s*[>+~]\s*|\s+', selector.strip())
    parts = [p for p in parts if p]
    return parts[-1] if parts else ''


def specificity(selector: str) -> Tuple[int, int, int]:
    """Approximate CSS specificity as (ids, classes/attributes/pseudo-classes, types)."""
    stripped = re.sub(r'\[[^\]]*\]', '.a', selector)
    stripped = re.sub(r'::[\w-]+', ' el', stripped)
    ids = len(re.findall(r'#[\w-]+', stripped))
    classes = len(re.findall(r'\.[\w-]+|:(?!:)[\w-]+', stripped))
    types = len(re.findall(r'(?:^|[\s>+~])([a-zA-Z][\w-]*)', stripped))
    return ids, classes, types


def specificity_weight(selector: str) -> float:
    """Ranking multiplier derived from specificity, capped so one rule cannot dominate."""
    if selector.startswith('@') or selector.startswith('--'):
        return 1.0
    ids, classes, types = specificity(selector)
    return min(3.0, 1.0 + 0.5 * ids + 0.25 * classes + 0.1 * types)

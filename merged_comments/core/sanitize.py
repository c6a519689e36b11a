"""Input coercion for widget settings."""

import math
import re
from typing import Any

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
_LONE_LESS_THAN = re.compile(r'<(?![a-zA-Z/!?])')
_SCRIPT_OR_STYLE = re.compile(r'<(script|style)[^>]*?>.*?</\1>', re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r'<[^>]*>?')
_PERCENT_OCTET = re.compile(r'%[a-f0-9]{2}', re.IGNORECASE)
_WHITESPACE_RUN = re.compile(r'[\r\n\t ]+')


def to_non_negative_int(value: Any) -> int:
    """Coerce a settings value to an integer >= 0.

    Strings are parsed by their leading integer ("12px" -> 12), floats are
    truncated, booleans map to 0/1. Negative and unparsable values give 0.
    """
    if isinstance(value, bool):
        number = int(value)
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if math.isfinite(value) else 0
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        number = int(match.group(1)) if match else 0
    else:
        number = 0
    return number if number > 0 else 0


def strip_all_tags(text: str) -> str:
    """Remove markup, dropping <script>/<style> bodies entirely."""
    text = _SCRIPT_OR_STYLE.sub('', text)
    return _TAG.sub('', text)


def sanitize_text_field(value: Any) -> str:
    """Reduce user input to a single line of plain text.

    Stray "<" characters that do not open a tag are kept as "&lt;", tags are
    removed, percent-encoded octets are dropped, and runs of whitespace
    (including line breaks and tabs) collapse to one space.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)

    if '<' in text:
        text = _LONE_LESS_THAN.sub('&lt;', text)
        text = strip_all_tags(text)

    while True:
        text, replaced = _PERCENT_OCTET.subn('', text)
        if not replaced:
            break

    return _WHITESPACE_RUN.sub(' ', text).strip()

"""JSON-safe text sanitization for extracted resume content.

Text pulled out of PDF/DOCX files routinely carries raw backslashes, control
characters and escape-like fragments such as ``\\uDoe`` that make strict JSON
encoders fail with "unsupported Unicode escape sequence". The functions here
rewrite such text so it can be embedded in JSON request bodies and prompt text:

1. malformed ``\\u`` introducers (not followed by exactly four hex digits) are
   neutralized as literal backslashes;
2. every literal backslash is doubled, without escaping twice;
3. control characters U+0000-U+001F and U+007F-U+009F become ``\\uXXXX``
   (lowercase hex).

All other code points, including emoji and any non-Latin script, pass through
unchanged.

Sanitizing is not idempotent: a second pass doubles the backslashes again.
Sanitize exactly once per transmission.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from app.core.config import ESCAPE_MODES, settings

UNIFORM = "uniform"
PRESERVE_UNICODE_ESCAPES = "preserve_unicode_escapes"

_BACKSLASH_RE = re.compile(r"(?P<escape>(?<!\\)\\u[0-9a-fA-F]{4}(?![0-9a-fA-F]))|\\")
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def _resolve_mode(mode: str | None) -> str:
    resolved = (mode or settings.sanitizer_escape_mode).strip().lower()
    if resolved not in ESCAPE_MODES:
        raise ValueError(f"Unsupported escape mode '{mode}'. Expected one of: {', '.join(ESCAPE_MODES)}")
    return resolved


def _escape_backslash(match: re.Match[str]) -> str:
    # Well-formed \uXXXX escapes survive only in preserve mode, and only when
    # their backslash is not itself preceded by a backslash.
    if match.group("escape"):
        return match.group(0)
    return "\\\\"


def _escape_backslashes(text: str, mode: str) -> str:
    if "\\" not in text:
        return text
    if mode == PRESERVE_UNICODE_ESCAPES:
        return _BACKSLASH_RE.sub(_escape_backslash, text)
    # Uniform mode treats malformed and well-formed \u introducers alike.
    return text.replace("\\", "\\\\")


def _encode_control_char(match: re.Match[str]) -> str:
    return f"\\u{ord(match.group(0)):04x}"


def _sanitize_text(text: str, mode: str) -> str:
    escaped = _escape_backslashes(text, mode)
    return _CONTROL_CHAR_RE.sub(_encode_control_char, escaped)


def sanitize_scalar(value: Any, *, mode: str | None = None) -> Any:
    """Return ``value`` rewritten so it is safe inside a JSON string literal.

    Non-string values (``None``, numbers, booleans, anything else) are returned
    as is. ``mode`` overrides the configured ``SANITIZER_ESCAPE_MODE``.
    """
    if not isinstance(value, str):
        return value
    return _sanitize_text(value, _resolve_mode(mode))


def _walk(value: Any, mode: str) -> Any:
    if isinstance(value, str):
        return _sanitize_text(value, mode)
    if isinstance(value, Mapping):
        return {key: _walk(item, mode) for key, item in value.items()}
    if isinstance(value, list):
        return [_walk(item, mode) for item in value]
    if isinstance(value, tuple):
        return tuple(_walk(item, mode) for item in value)
    return value


def sanitize_structured(value: Any, *, mode: str | None = None) -> Any:
    """Recursively sanitize every string leaf of a JSON-shaped value.

    Mappings come back as new dicts with the same keys (keys are left alone),
    lists and tuples as new sequences of the same type and order. Non-string
    leaves are returned unchanged. The input is never mutated.
    """
    return _walk(value, _resolve_mode(mode))

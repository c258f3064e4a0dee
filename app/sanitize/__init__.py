from .json_text import (
    PRESERVE_UNICODE_ESCAPES,
    UNIFORM,
    sanitize_scalar,
    sanitize_structured,
)

__all__ = [
    "UNIFORM",
    "PRESERVE_UNICODE_ESCAPES",
    "sanitize_scalar",
    "sanitize_structured",
]

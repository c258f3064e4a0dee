from __future__ import annotations

from app.core.config import settings


def cors_allowed_origins() -> list[str]:
    origins = list(settings.cors_allowed_origins)
    if settings.cors_allow_credentials:
        # Browsers reject a wildcard origin on credentialed requests.
        origins = [origin for origin in origins if origin != "*"]
    return origins


def cors_allow_origin_regex() -> str | None:
    regex = (settings.cors_allow_origin_regex or "").strip()
    return regex or None

from contextlib import asynccontextmanager
import json
import logging

from app.ai.factory import get_ai_client
from app.core.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    logger.info(
        json.dumps(
            {
                "event": "startup",
                "ai_model": settings.ai_model,
                "ai_configured": bool(settings.ai_api_key),
                "sanitizer_escape_mode": settings.sanitizer_escape_mode,
                "rate_limit": settings.rate_limit if settings.rate_limit_enabled else None,
                "max_upload_bytes": settings.max_upload_bytes,
            }
        )
    )
    yield
    get_ai_client.cache_clear()

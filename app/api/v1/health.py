from fastapi import APIRouter

from app.core.config import settings

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check():
    return {
        "status": "healthy",
        "ai_configured": bool(settings.ai_api_key),
        "sanitizer_escape_mode": settings.sanitizer_escape_mode,
    }

from __future__ import annotations

import json
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.ai.errors import GatewayCreditsError, GatewayError, GatewayRateLimitError

logger = logging.getLogger(__name__)


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    logger.warning(
        json.dumps(
            {
                "event": "gateway_error",
                "path": request.url.path,
                "code": exc.code,
                "status": exc.status_code,
                "error": str(exc),
            }
        )
    )
    if isinstance(exc, GatewayRateLimitError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc), "retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )
    if isinstance(exc, GatewayCreditsError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc), "action": "topup"},
        )
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(json.dumps({"event": "unhandled_error", "path": request.url.path, "error": str(exc)}))
    return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error occurred"})

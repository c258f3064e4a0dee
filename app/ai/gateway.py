from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Sequence

from app.ai.errors import GatewayError, GatewayResponseError
from app.ai.factory import get_ai_client
from app.ai.types import ChatMessage

logger = logging.getLogger(__name__)


def _log_run(
    *,
    run_id: str,
    operation: str,
    model: str | None,
    status: str,
    started: float,
    prompt_chars: int,
    error_code: str | None = None,
) -> None:
    logger.info(
        json.dumps(
            {
                "event": "ai_gateway_call",
                "run_id": run_id,
                "operation": operation,
                "model": model,
                "status": status,
                "error_code": error_code,
                "prompt_chars": prompt_chars,
                "latency_ms": int((time.perf_counter() - started) * 1000),
            }
        )
    )


def json_completion(
    messages: Sequence[ChatMessage],
    *,
    operation: str = "unknown",
    temperature: float | None = None,
    max_output_tokens: int | None = None,
) -> dict[str, Any]:
    """Run one JSON-mode chat completion and return the decoded object.

    Raises a ``GatewayError`` subclass on every failure; nothing is retried here
    beyond what the underlying client already does.
    """
    run_id = uuid.uuid4().hex
    started = time.perf_counter()
    prompt_chars = sum(len(m.content) for m in messages)
    model: str | None = None

    try:
        client = get_ai_client()
        model = client.model
        content = client.complete_json(
            messages,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        if not content or not content.strip():
            raise GatewayResponseError("AI gateway returned an empty response.")
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise GatewayResponseError("AI gateway returned malformed JSON.") from exc
        if not isinstance(parsed, dict):
            raise GatewayResponseError("AI gateway returned JSON that is not an object.")
    except GatewayError as exc:
        _log_run(
            run_id=run_id,
            operation=operation,
            model=model,
            status="error",
            started=started,
            prompt_chars=prompt_chars,
            error_code=exc.code,
        )
        raise

    _log_run(
        run_id=run_id,
        operation=operation,
        model=model,
        status="success",
        started=started,
        prompt_chars=prompt_chars,
    )
    return parsed

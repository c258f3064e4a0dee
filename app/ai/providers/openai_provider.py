from __future__ import annotations

from typing import Optional, Sequence

import openai
from openai import OpenAI

from app.ai.errors import (
    GatewayCreditsError,
    GatewayError,
    GatewayNotConfiguredError,
    GatewayRateLimitError,
)
from app.ai.types import ChatMessage


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


class OpenAIProvider:
    """Chat-completion client for any OpenAI-compatible gateway."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 2,
        temperature: float = 0.2,
    ):
        self.model = model
        self._temperature = temperature
        key = (api_key or "").strip()
        if not key or _looks_like_placeholder(key):
            raise GatewayNotConfiguredError()

        self._client = OpenAI(
            api_key=key,
            base_url=base_url or None,
            timeout=timeout_s,
            max_retries=max_retries,
        )

    def complete_json(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> str:
        create_kwargs = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": self._temperature if temperature is None else temperature,
            "response_format": {"type": "json_object"},
        }
        if max_output_tokens:
            create_kwargs["max_tokens"] = max_output_tokens

        try:
            response = self._client.chat.completions.create(**create_kwargs)
        except openai.APIStatusError as exc:
            if exc.status_code == 429:
                raise GatewayRateLimitError() from exc
            if exc.status_code == 402:
                raise GatewayCreditsError() from exc
            raise GatewayError(f"AI gateway error: {exc.status_code} {exc.message}") from exc
        except openai.APIConnectionError as exc:
            raise GatewayError(f"AI gateway unreachable: {exc}", code="gateway_unreachable") from exc

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

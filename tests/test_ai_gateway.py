import json
import sys
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import httpx  # noqa: E402
import openai  # noqa: E402

from app.ai.errors import (  # noqa: E402
    GatewayCreditsError,
    GatewayError,
    GatewayNotConfiguredError,
    GatewayRateLimitError,
    GatewayResponseError,
)
from app.ai.gateway import json_completion  # noqa: E402
from app.ai.providers.openai_provider import OpenAIProvider  # noqa: E402
from app.ai.types import ChatMessage  # noqa: E402

MESSAGES = [
    ChatMessage(role="system", content="Return JSON."),
    ChatMessage(role="user", content="Parse this resume:\n\nJane"),
]


def _status_error(status_code: int, cls=openai.APIStatusError):
    request = httpx.Request("POST", "https://gateway.test/v1/chat/completions")
    response = httpx.Response(status_code, request=request, text="upstream said no")
    return cls("upstream said no", response=response, body=None)


def _provider_with(create) -> OpenAIProvider:
    provider = OpenAIProvider(model="test-model", api_key="sk-test-123")
    provider._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return provider


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class OpenAIProviderTests(unittest.TestCase):
    def test_missing_or_placeholder_key_is_not_configured(self):
        for key in (None, "", "   ", "your_openai_key", "changeme"):
            with self.subTest(key=key):
                with self.assertRaises(GatewayNotConfiguredError):
                    OpenAIProvider(model="test-model", api_key=key)

    def test_requests_json_object_mode(self):
        captured = {}

        def create(**kwargs):
            captured.update(kwargs)
            return _completion('{"name": "Jane"}')

        provider = _provider_with(create)
        content = provider.complete_json(MESSAGES, max_output_tokens=500)

        self.assertEqual(content, '{"name": "Jane"}')
        self.assertEqual(captured["response_format"], {"type": "json_object"})
        self.assertEqual(captured["model"], "test-model")
        self.assertEqual(captured["max_tokens"], 500)
        self.assertEqual(captured["messages"][1], {"role": "user", "content": "Parse this resume:\n\nJane"})

    def test_rate_limit_translated(self):
        def create(**kwargs):
            raise _status_error(429, openai.RateLimitError)

        with self.assertRaises(GatewayRateLimitError) as ctx:
            _provider_with(create).complete_json(MESSAGES)
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.retry_after, 60)

    def test_payment_required_translated(self):
        def create(**kwargs):
            raise _status_error(402)

        with self.assertRaises(GatewayCreditsError) as ctx:
            _provider_with(create).complete_json(MESSAGES)
        self.assertEqual(ctx.exception.code, "credits_depleted")

    def test_other_status_becomes_generic_gateway_error(self):
        def create(**kwargs):
            raise _status_error(503, openai.InternalServerError)

        with self.assertRaises(GatewayError) as ctx:
            _provider_with(create).complete_json(MESSAGES)
        self.assertEqual(ctx.exception.code, "gateway_error")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIn("503", str(ctx.exception))

    def test_empty_choices_returns_empty_string(self):
        provider = _provider_with(lambda **kwargs: SimpleNamespace(choices=[]))
        self.assertEqual(provider.complete_json(MESSAGES), "")


class FakeClient:
    model = "fake-model"

    def __init__(self, content):
        self.content = content

    def complete_json(self, messages, *, temperature=None, max_output_tokens=None):
        return self.content


class JsonCompletionTests(unittest.TestCase):
    def _run(self, content):
        with patch("app.ai.gateway.get_ai_client", return_value=FakeClient(content)):
            return json_completion(MESSAGES, operation="parse_resume")

    def test_decodes_json_object(self):
        self.assertEqual(self._run(json.dumps({"name": "José"})), {"name": "José"})

    def test_empty_response_rejected(self):
        for content in ("", "   "):
            with self.subTest(content=content):
                with self.assertRaises(GatewayResponseError):
                    self._run(content)

    def test_non_object_json_rejected(self):
        with self.assertRaises(GatewayResponseError):
            self._run("[1, 2, 3]")

    def test_malformed_json_rejected(self):
        with self.assertRaises(GatewayResponseError) as ctx:
            self._run('{"name": ')
        self.assertEqual(ctx.exception.status_code, 502)

    def test_logs_one_event_per_call(self):
        with self.assertLogs("app.ai.gateway", level="INFO") as logs:
            self._run('{"ok": true}')
        self.assertEqual(len(logs.records), 1)
        event = json.loads(logs.records[0].getMessage())
        self.assertEqual(event["event"], "ai_gateway_call")
        self.assertEqual(event["status"], "success")
        self.assertEqual(event["model"], "fake-model")


if __name__ == "__main__":
    unittest.main()

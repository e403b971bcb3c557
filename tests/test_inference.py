import os
import unittest
from types import SimpleNamespace
from unittest import mock

import httpx
import openai
import requests

from inference.core import ModelResponse, create_model_client, resolve_api_key
from inference.gemini import GeminiClient, parse_envelope, to_contents
from inference.openai_client import OpenAIClient
from protocol.errors import EnvelopeMalformedError, UpstreamError


class _StubResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code


class _StubHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


OK_BODY = '{"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "there"}]}}]}'


class GeminiClientTests(unittest.TestCase):
    def _client(self, http, api_key="k-123"):
        return GeminiClient(api_key=api_key, model="chat-model", vision_model="vision-model", http=http, timeout=9)

    def test_chat_request_shape(self):
        http = _StubHttp(_StubResponse(OK_BODY))
        turns = [
            {"role": "user", "text": "hi"},
            {"role": "assistant", "text": "hello"},
            {"role": "user", "text": "brighten"},
        ]
        response = self._client(http).generate("SYSTEM", turns, temperature=0.7, max_output_tokens=1000)

        self.assertEqual(response, ModelResponse(success=True, text="Hello there"))
        call = http.calls[0]
        self.assertTrue(call["url"].endswith("/models/chat-model:generateContent"))
        self.assertEqual(call["headers"]["x-goog-api-key"], "k-123")
        self.assertEqual(call["timeout"], 9)
        body = call["json"]
        self.assertEqual(body["systemInstruction"], {"parts": [{"text": "SYSTEM"}]})
        self.assertEqual([c["role"] for c in body["contents"]], ["user", "model", "user"])
        self.assertEqual(body["generationConfig"], {"temperature": 0.7, "maxOutputTokens": 1000})

    def test_vision_request_shape(self):
        http = _StubHttp(_StubResponse(OK_BODY))
        self._client(http).generate_with_image("VISION", "Analyze", "QUJD", temperature=0.4, max_output_tokens=2000)

        call = http.calls[0]
        self.assertTrue(call["url"].endswith("/models/vision-model:generateContent"))
        parts = call["json"]["contents"][0]["parts"]
        self.assertEqual(parts[0], {"text": "Analyze"})
        self.assertEqual(parts[1], {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}})

    def test_missing_key_never_calls_network(self):
        http = _StubHttp(_StubResponse(OK_BODY))
        response = self._client(http, api_key="").generate("S", [{"role": "user", "text": "hi"}])
        self.assertFalse(response.success)
        self.assertEqual(response.error, "credential_missing")
        self.assertIn("No API key set", response.text)
        self.assertEqual(http.calls, [])

    def test_transport_failure(self):
        http = _StubHttp(error=requests.ConnectionError("down"))
        response = self._client(http).generate("S", [{"role": "user", "text": "hi"}])
        self.assertEqual(response.error, "transport_failure")
        self.assertEqual(response.text, "Network error. Please check your connection.")

    def test_upstream_error_message_passed_through(self):
        body = '{"error": {"code": 429, "message": "Quota exceeded"}}'
        response = self._client(_StubHttp(_StubResponse(body, 429))).generate("S", [])
        self.assertEqual(response.error, "upstream_error")
        self.assertEqual(response.text, "Gemini API Error: Quota exceeded")

    def test_malformed_envelopes(self):
        with self.assertRaises(EnvelopeMalformedError) as ctx:
            parse_envelope("<html>")
        self.assertEqual(str(ctx.exception), "Invalid JSON response from Gemini API.")
        with self.assertRaises(EnvelopeMalformedError) as ctx:
            parse_envelope('{"candidates": []}')
        self.assertEqual(str(ctx.exception), "Invalid response from Gemini API.")
        for body in (
            '{"candidates": [{"content": {"parts": null}}]}',
            '{"candidates": [{"content": {"parts": "text"}}]}',
        ):
            with self.subTest(body=body):
                with self.assertRaises(EnvelopeMalformedError):
                    parse_envelope(body)
        self.assertEqual(parse_envelope('{"candidates": [{"content": {"parts": [{"text": 3}, {"text": "ok"}]}}]}'), "ok")
        with self.assertRaises(UpstreamError) as ctx:
            parse_envelope("<html>", status_code=502)
        self.assertEqual(str(ctx.exception), "Gemini API Error: HTTP 502")

    def test_to_contents_role_mapping(self):
        contents = to_contents([{"role": "assistant", "text": "a"}, {"role": "user", "text": "b"}])
        self.assertEqual(contents[0], {"role": "model", "parts": [{"text": "a"}]})
        self.assertEqual(contents[1]["role"], "user")


class _FakeCompletions:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


def _fake_openai(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def _completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class OpenAIClientTests(unittest.TestCase):
    def setUp(self):
        self.request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

    def test_chat_keeps_assistant_role(self):
        completions = _FakeCompletions(result=_completion("Sure"))
        client = OpenAIClient(api_key="k", model="m", client=_fake_openai(completions))
        response = client.generate("SYS", [{"role": "user", "text": "a"}, {"role": "assistant", "text": "b"}])

        self.assertEqual(response.text, "Sure")
        messages = completions.calls[0]["messages"]
        self.assertEqual([m["role"] for m in messages], ["system", "user", "assistant"])
        self.assertEqual(completions.calls[0]["model"], "m")

    def test_image_sent_as_data_url(self):
        completions = _FakeCompletions(result=_completion("ok"))
        client = OpenAIClient(api_key="k", model="m", vision_model="v", client=_fake_openai(completions))
        client.generate_with_image("SYS", "Analyze", "QUJD")

        call = completions.calls[0]
        self.assertEqual(call["model"], "v")
        image_part = call["messages"][1]["content"][1]
        self.assertEqual(image_part["image_url"]["url"], "data:image/jpeg;base64,QUJD")

    def test_connection_error(self):
        completions = _FakeCompletions(error=openai.APIConnectionError(request=self.request))
        client = OpenAIClient(api_key="k", client=_fake_openai(completions))
        self.assertEqual(client.generate("S", []).error, "transport_failure")

    def test_status_error(self):
        error = openai.APIStatusError(
            "Rate limit reached",
            response=httpx.Response(429, request=self.request),
            body=None,
        )
        client = OpenAIClient(api_key="k", client=_fake_openai(_FakeCompletions(error=error)))
        response = client.generate("S", [])
        self.assertEqual(response.error, "upstream_error")
        self.assertEqual(response.text, "OpenAI API Error: Rate limit reached")

    def test_empty_choices(self):
        client = OpenAIClient(api_key="k", client=_fake_openai(_FakeCompletions(result=SimpleNamespace(choices=[]))))
        self.assertEqual(client.generate("S", []).error, "envelope_malformed")


class ClientFactoryTests(unittest.TestCase):
    def test_preference_wins_over_environment(self):
        with mock.patch.dict(os.environ, {"COACH_TEST_KEY": "from-env"}):
            self.assertEqual(resolve_api_key({"gemini_api_key": " pref "}, "gemini_api_key", "COACH_TEST_KEY"), "pref")
            self.assertEqual(resolve_api_key({}, "gemini_api_key", "COACH_TEST_KEY"), "from-env")
        self.assertEqual(resolve_api_key(None, "gemini_api_key", ""), "")

    def test_builds_configured_provider(self):
        config = {
            "model": {
                "provider": "openai",
                "timeout": 30,
                "openai": {"model": "gpt-x", "preference_key": "openai_api_key"},
            }
        }
        client = create_model_client(config, {"openai_api_key": "sk"})
        self.assertIsInstance(client, OpenAIClient)
        self.assertEqual(client.model, "gpt-x")
        self.assertEqual(client.api_key, "sk")

        config["model"]["provider"] = "gemini"
        config["model"]["gemini"] = {"model": "g", "preference_key": "gemini_api_key"}
        self.assertIsInstance(create_model_client(config, {}), GeminiClient)

        config["model"]["provider"] = "other"
        with self.assertRaises(ValueError):
            create_model_client(config, {})


if __name__ == "__main__":
    unittest.main()

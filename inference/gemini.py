"""
Gemini generateContent backend over plain HTTPS.

Wire contract:
  request:  {"systemInstruction": {"parts": [{"text": ...}]},
             "contents": [{"role": "user"|"model", "parts": [...]}, ...],
             "generationConfig": {"temperature": ..., "maxOutputTokens": ...}}
  response: {"error": {"message": ...}} or {"candidates": [{"content": {"parts": [{"text": ...}]}}]}
"""

from __future__ import annotations

import json
from typing import List, Optional

import requests

from protocol.errors import EnvelopeMalformedError, TransportError, UpstreamError
from .core import ModelClient

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

ROLE_MAP = {"assistant": "model", "user": "user"}


class GeminiClient(ModelClient):
    provider = "Gemini"
    missing_key_message = "No API key set. Please configure your Gemini API key in Plug-in Manager."

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-3-pro-preview",
        vision_model: str = "",
        base_url: str = "",
        timeout: float = 60.0,
        http: Optional[requests.Session] = None,
    ):
        super().__init__(api_key=api_key, model=model, vision_model=vision_model, timeout=timeout)
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.http = http or requests.Session()

    def _generate(self, system_prompt, turns, temperature, max_output_tokens) -> str:
        body = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": to_contents(turns),
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }
        return self._post(self.model, body)

    def _generate_with_image(self, system_prompt, text, image_b64, mime_type, temperature, max_output_tokens) -> str:
        body = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": text},
                        {"inlineData": {"mimeType": mime_type, "data": image_b64}},
                    ],
                }
            ],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }
        return self._post(self.vision_model, body)

    def _post(self, model: str, body: dict) -> str:
        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            response = self.http.post(
                url,
                json=body,
                headers={"Content-Type": "application/json", "x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError("Network error. Please check your connection.") from e
        return parse_envelope(response.text, response.status_code)


def to_contents(turns: List[dict]) -> List[dict]:
    """Local turns -> Gemini contents; 'assistant' is called 'model' on the wire."""
    return [
        {
            "role": ROLE_MAP.get(turn.get("role"), "user"),
            "parts": [{"text": turn.get("text", "")}],
        }
        for turn in turns
    ]


def parse_envelope(body: str, status_code: int = 200) -> str:
    """Return the first candidate's concatenated text parts."""
    try:
        decoded = json.loads(body) if body else None
    except ValueError:
        decoded = None

    if not isinstance(decoded, dict):
        if status_code >= 400:
            raise UpstreamError(f"Gemini API Error: HTTP {status_code}")
        raise EnvelopeMalformedError("Invalid JSON response from Gemini API.")

    error = decoded.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise UpstreamError(f"Gemini API Error: {message or 'Unknown error'}")

    candidates = decoded.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise EnvelopeMalformedError("Invalid response from Gemini API.")

    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts", []) if isinstance(content, dict) else []
    if not isinstance(parts, list):
        raise EnvelopeMalformedError("Invalid response from Gemini API.")
    texts = (part.get("text") for part in parts if isinstance(part, dict))
    return "".join(text for text in texts if isinstance(text, str))

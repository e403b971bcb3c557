"""
OpenAI chat-completions backend (official SDK).
"""

from __future__ import annotations

from typing import List, Optional

import openai
from openai import OpenAI

from protocol.errors import EnvelopeMalformedError, TransportError, UpstreamError
from .core import ModelClient


class OpenAIClient(ModelClient):
    provider = "OpenAI"
    missing_key_message = "No API key set. Please configure your OpenAI API key in Plug-in Manager."

    def __init__(
        self,
        api_key: str = "",
        model: str = "gpt-4o-mini",
        vision_model: str = "",
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[OpenAI] = None,
    ):
        super().__init__(api_key=api_key, model=model, vision_model=vision_model, timeout=timeout)
        self.base_url = base_url
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    def _generate(self, system_prompt, turns, temperature, max_output_tokens) -> str:
        messages = [{"role": "system", "content": system_prompt}]
        for turn in turns:
            role = "assistant" if turn.get("role") == "assistant" else "user"
            messages.append({"role": role, "content": turn.get("text", "")})
        return self._complete(self.model, messages, temperature, max_output_tokens)

    def _generate_with_image(self, system_prompt, text, image_b64, mime_type, temperature, max_output_tokens) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": text},
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
                ],
            },
        ]
        return self._complete(self.vision_model, messages, temperature, max_output_tokens)

    def _complete(self, model: str, messages: List[dict], temperature: float, max_output_tokens: int) -> str:
        try:
            result = self.client.chat.completions.create(
                messages=messages,
                model=model,
                temperature=temperature,
                max_tokens=max_output_tokens,
            )
        except openai.APIConnectionError as e:
            raise TransportError("Network error. Please check your connection.") from e
        except openai.APIStatusError as e:
            raise UpstreamError(f"OpenAI API Error: {e.message}") from e
        except openai.OpenAIError as e:
            raise UpstreamError(f"OpenAI API Error: {e}") from e

        choices = getattr(result, "choices", None)
        if not choices:
            raise EnvelopeMalformedError("Invalid response from OpenAI API.")
        return choices[0].message.content or ""

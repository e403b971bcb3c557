"""
Model client contract shared by the vendor backends.

Clients take plain role-tagged turns ({"role": "user"|"assistant", "text": ...})
and return a ModelResponse. Failures in the error taxonomy (missing key,
transport, malformed envelope, upstream error) come back as an unsuccessful
ModelResponse carrying a user-facing message; they never raise.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import List, Optional

from protocol.errors import CoachError, CredentialMissingError


@dataclass
class ModelResponse:
    success: bool
    text: str
    error: str = ""     # error kind when success is False

    @classmethod
    def failure(cls, exc: CoachError) -> "ModelResponse":
        return cls(success=False, text=str(exc), error=exc.kind)

    def to_dict(self) -> dict:
        return asdict(self)


class ModelClient:
    """Base class: credential check and error-to-response conversion."""

    provider = "model"
    missing_key_message = "No API key set."

    def __init__(self, api_key: str = "", model: str = "", vision_model: str = "", timeout: float = 60.0):
        self.api_key = api_key or ""
        self.model = model
        self.vision_model = vision_model or model
        self.timeout = timeout

    def generate(
        self,
        system_prompt: str,
        turns: List[dict],
        temperature: float = 0.7,
        max_output_tokens: int = 1000,
    ) -> ModelResponse:
        """Chat completion over the ordered conversation ``turns``."""
        return self._guarded(self._generate, system_prompt, turns, temperature, max_output_tokens)

    def generate_with_image(
        self,
        system_prompt: str,
        text: str,
        image_b64: str,
        mime_type: str = "image/jpeg",
        temperature: float = 0.4,
        max_output_tokens: int = 2000,
    ) -> ModelResponse:
        """Single-turn vision request with an inline base64 image."""
        return self._guarded(
            self._generate_with_image,
            system_prompt, text, image_b64, mime_type, temperature, max_output_tokens,
        )

    def _guarded(self, call, *args) -> ModelResponse:
        try:
            if not self.api_key:
                raise CredentialMissingError(self.missing_key_message)
            text = call(*args)
        except CoachError as e:
            print(f"[{self.provider}] {e.kind}: {e}")
            return ModelResponse.failure(e)
        return ModelResponse(success=True, text=text)

    def _generate(self, system_prompt, turns, temperature, max_output_tokens) -> str:
        raise NotImplementedError

    def _generate_with_image(self, system_prompt, text, image_b64, mime_type, temperature, max_output_tokens) -> str:
        raise NotImplementedError


def resolve_api_key(preferences: Optional[dict], preference_key: str, env_var: str = "") -> str:
    """Host preference first, then the configured environment variable."""
    key = ""
    if preferences:
        key = str(preferences.get(preference_key) or "").strip()
    if not key and env_var:
        key = os.environ.get(env_var, "").strip()
    return key


def create_model_client(config: dict, preferences: Optional[dict] = None) -> ModelClient:
    """
    Build the client named by ``config["model"]["provider"]``.

    Read the key fresh for every request: the user may set it while the chat is open.
    """
    model_cfg = config.get("model", {})
    provider = str(model_cfg.get("provider", "gemini")).lower()
    provider_cfg = model_cfg.get(provider, {})
    api_key = resolve_api_key(
        preferences,
        provider_cfg.get("preference_key", f"{provider}_api_key"),
        provider_cfg.get("api_key_env", ""),
    )

    if provider == "gemini":
        from .gemini import GeminiClient
        return GeminiClient(
            api_key=api_key,
            model=provider_cfg.get("model", "gemini-3-pro-preview"),
            vision_model=provider_cfg.get("vision_model", ""),
            base_url=provider_cfg.get("base_url", ""),
            timeout=float(model_cfg.get("timeout", 60)),
        )
    if provider == "openai":
        from .openai_client import OpenAIClient
        return OpenAIClient(
            api_key=api_key,
            model=provider_cfg.get("model", "gpt-4o-mini"),
            vision_model=provider_cfg.get("vision_model", ""),
            base_url=provider_cfg.get("base_url") or None,
            timeout=float(model_cfg.get("timeout", 60)),
        )
    raise ValueError(f"Unknown model provider: {provider}")

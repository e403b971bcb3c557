"""
Model endpoint clients (Gemini over HTTPS, OpenAI SDK).
"""

from .core import ModelClient, ModelResponse, create_model_client, resolve_api_key

__all__ = [
    "ModelClient",
    "ModelResponse",
    "create_model_client",
    "resolve_api_key",
]

"""LLM access for the chat: configuration, the shared provider, error
taxonomy and the ``generate`` / ``generate_json`` call helpers."""

from hh_vibe.providers.config import ProviderConfig
from hh_vibe.providers.errors import (
    AuthenticationError,
    ContentFilterError,
    ContextLengthError,
    GenerationError,
    ModelNotFoundError,
    ProviderError,
    RateLimitError,
    TransientError,
)
from hh_vibe.providers.factory import get_llm_provider, reset_providers
from hh_vibe.providers.generation import generate, generate_json

__all__ = [
    "AuthenticationError",
    "ContentFilterError",
    "ContextLengthError",
    "GenerationError",
    "ModelNotFoundError",
    "ProviderConfig",
    "ProviderError",
    "RateLimitError",
    "TransientError",
    "generate",
    "generate_json",
    "get_llm_provider",
    "reset_providers",
]

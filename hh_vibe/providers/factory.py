"""Process-wide LLM provider.

The chat orchestrator receives its provider explicitly; this module only
decides which adapter the HTTP layer hands it. One instance is kept per
process so SDK connection pools are reused.
"""

import logging

from hh_vibe.providers.config import PROVIDER_NAMES, ProviderConfig
from hh_vibe.providers.llm.base import LLMProvider, SDKProvider
from hh_vibe.providers.llm.claude_adapter import ClaudeAdapter
from hh_vibe.providers.llm.gemini_adapter import GeminiAdapter
from hh_vibe.providers.llm.openai_adapter import OpenAIAdapter

logger = logging.getLogger(__name__)

_ADAPTERS: dict[str, type[SDKProvider]] = {
    adapter.name: adapter for adapter in (GeminiAdapter, OpenAIAdapter, ClaudeAdapter)
}

_llm_provider: LLMProvider | None = None


def get_llm_provider(config: ProviderConfig | None = None) -> LLMProvider:
    """Return the shared provider, creating it on first call.

    Args:
        config: Used only when no provider exists yet. Defaults to
            ``ProviderConfig.from_env()``.

    Raises:
        ValueError: If the configured provider name is unknown.
    """
    global _llm_provider

    if _llm_provider is not None:
        return _llm_provider

    config = config or ProviderConfig.from_env()
    adapter_class = _ADAPTERS.get(config.llm_provider)
    if adapter_class is None:
        raise ValueError(
            f"Unknown LLM provider: {config.llm_provider} "
            f"(expected one of {', '.join(PROVIDER_NAMES)})"
        )

    _llm_provider = adapter_class(config)
    logger.info("LLM provider initialized: %s", config.llm_provider)
    return _llm_provider


def reset_providers() -> None:
    """Drop the shared provider. Test isolation only."""
    global _llm_provider
    _llm_provider = None

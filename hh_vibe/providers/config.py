"""LLM provider configuration.

Read straight from the process environment so the provider layer can be
used without the FastAPI settings object (scripts, tests).
"""

import json
import os
from dataclasses import dataclass

PROVIDER_NAMES = ("gemini", "openai", "claude")


def _routing_from_env(name: str) -> dict[str, str] | None:
    """Parse a ``{"task_type": "model"}`` JSON object from ``name``.

    Raises:
        ValueError: If the variable is set but is not a JSON object of strings.
    """
    raw = os.getenv(name)
    if not raw:
        return None
    routing = json.loads(raw)
    if not isinstance(routing, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in routing.items()
    ):
        msg = f"{name} must be a JSON object mapping task types to model names"
        raise ValueError(msg)
    return routing


@dataclass
class ProviderConfig:
    """Which vendor to call, with what credentials, defaults and retry budget.

    The ``*_model_routing`` fields override the adapter's task-to-model
    table, keyed by ``TaskType`` value.
    """

    llm_provider: str = "gemini"

    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    google_api_key: str | None = None

    claude_model_routing: dict[str, str] | None = None
    openai_model_routing: dict[str, str] | None = None
    gemini_model_routing: dict[str, str] | None = None

    default_max_tokens: int = 4096
    default_temperature: float = 0.7

    # Backoff budget, shape shared with RetryPolicy
    max_retries: int = 2
    retry_base_delay_ms: int = 500
    retry_max_delay_ms: int = 8000

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Build a config from environment variables.

        Recognized: LLM_PROVIDER, ANTHROPIC_API_KEY, OPENAI_API_KEY,
        GOOGLE_API_KEY, {CLAUDE,OPENAI,GEMINI}_MODEL_ROUTING (JSON),
        DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, LLM_MAX_RETRIES,
        LLM_RETRY_BASE_DELAY_MS and LLM_RETRY_MAX_DELAY_MS.
        """
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "gemini").strip().lower(),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            google_api_key=os.getenv("GOOGLE_API_KEY") or None,
            claude_model_routing=_routing_from_env("CLAUDE_MODEL_ROUTING"),
            openai_model_routing=_routing_from_env("OPENAI_MODEL_ROUTING"),
            gemini_model_routing=_routing_from_env("GEMINI_MODEL_ROUTING"),
            default_max_tokens=int(os.getenv("DEFAULT_MAX_TOKENS", "4096")),
            default_temperature=float(os.getenv("DEFAULT_TEMPERATURE", "0.7")),
            max_retries=int(os.getenv("LLM_MAX_RETRIES", "2")),
            retry_base_delay_ms=int(os.getenv("LLM_RETRY_BASE_DELAY_MS", "500")),
            retry_max_delay_ms=int(os.getenv("LLM_RETRY_MAX_DELAY_MS", "8000")),
        )

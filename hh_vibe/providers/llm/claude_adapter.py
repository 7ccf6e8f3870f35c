"""Anthropic Claude adapter, selected with LLM_PROVIDER=claude."""

from typing import TYPE_CHECKING

import anthropic
from anthropic import AsyncAnthropic

from hh_vibe.providers.errors import (
    AuthenticationError,
    ContentFilterError,
    ContextLengthError,
    ProviderError,
    RateLimitError,
    TransientError,
)
from hh_vibe.providers.llm.base import (
    CompletionRequest,
    RawCompletion,
    SDKProvider,
    retry_after_header,
)

if TYPE_CHECKING:
    from hh_vibe.providers.config import ProviderConfig

# Chat turns go to Haiku; long documents and comparisons to Sonnet
DEFAULT_CLAUDE_MODEL = "claude-3-5-haiku-20241022"

DEFAULT_CLAUDE_ROUTING: dict[str, str] = {
    "card_generation": "claude-3-5-sonnet-20241022",
    "comparison": "claude-3-5-sonnet-20241022",
}

_JSON_ONLY_INSTRUCTION = (
    "Respond ONLY with valid JSON. No explanations, no markdown, just the JSON object."
)


class ClaudeAdapter(SDKProvider):
    """Claude over the Anthropic Messages API.

    The API has no JSON response mode, so ``json_mode`` is expressed as an
    extra instruction appended to the system prompt.
    """

    name = "claude"
    default_model = DEFAULT_CLAUDE_MODEL
    default_routing = DEFAULT_CLAUDE_ROUTING
    routing_setting = "claude_model_routing"

    def __init__(self, config: "ProviderConfig") -> None:
        super().__init__(config)
        self.client = AsyncAnthropic(api_key=config.anthropic_api_key)

    async def _send(self, request: CompletionRequest) -> RawCompletion:
        system, turns = request.split_system()
        if request.json_mode:
            system = (
                f"{system}\n\nIMPORTANT: {_JSON_ONLY_INSTRUCTION}"
                if system
                else _JSON_ONLY_INSTRUCTION
            )

        response = await self.client.messages.create(
            model=request.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            system=system or anthropic.NOT_GIVEN,  # type: ignore[arg-type]
            messages=[{"role": m.role, "content": m.content} for m in turns],  # type: ignore[misc]
        )
        text = "".join(block.text for block in response.content if block.type == "text")
        return RawCompletion(
            content=text,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            finish_reason=response.stop_reason or "unknown",
        )

    def _classify_error(self, error: Exception) -> ProviderError:
        message = str(error)
        if isinstance(error, anthropic.RateLimitError):
            return RateLimitError(message, retry_after_seconds=retry_after_header(error))
        if isinstance(error, anthropic.AuthenticationError):
            return AuthenticationError(message)
        if isinstance(error, anthropic.BadRequestError):
            lowered = message.lower()
            if "prompt is too long" in lowered or "context_length" in lowered:
                return ContextLengthError(message)
            if "content_policy" in lowered:
                return ContentFilterError(message)
            return ProviderError(message)
        # Timeouts subclass APIConnectionError; overloaded (529) is a 5xx
        if isinstance(error, (anthropic.APIConnectionError, anthropic.InternalServerError)):
            return TransientError(message)
        return ProviderError(message)

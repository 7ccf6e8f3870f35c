"""OpenAI adapter, selected with LLM_PROVIDER=openai."""

from typing import TYPE_CHECKING

import openai
from openai import AsyncOpenAI

from hh_vibe.providers.errors import (
    AuthenticationError,
    ContentFilterError,
    ContextLengthError,
    ModelNotFoundError,
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

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

DEFAULT_OPENAI_ROUTING: dict[str, str] = {
    "card_generation": "gpt-4o",
}


class OpenAIAdapter(SDKProvider):
    """GPT models over the Chat Completions API.

    System messages stay inline in the message list; JSON mode maps to
    ``response_format={"type": "json_object"}``.
    """

    name = "openai"
    default_model = DEFAULT_OPENAI_MODEL
    default_routing = DEFAULT_OPENAI_ROUTING
    routing_setting = "openai_model_routing"

    def __init__(self, config: "ProviderConfig") -> None:
        super().__init__(config)
        self.client = AsyncOpenAI(api_key=config.openai_api_key)

    async def _send(self, request: CompletionRequest) -> RawCompletion:
        response = await self.client.chat.completions.create(
            model=request.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            messages=[{"role": m.role, "content": m.content} for m in request.messages],  # type: ignore[misc]
            response_format={"type": "json_object"} if request.json_mode else openai.NOT_GIVEN,  # type: ignore[arg-type]
        )
        choice = response.choices[0]
        usage = response.usage
        return RawCompletion(
            content=choice.message.content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            finish_reason=choice.finish_reason or "unknown",
        )

    def _classify_error(self, error: Exception) -> ProviderError:
        message = str(error)
        if isinstance(error, openai.RateLimitError):
            return RateLimitError(message, retry_after_seconds=retry_after_header(error))
        if isinstance(error, openai.AuthenticationError):
            return AuthenticationError(message)
        if isinstance(error, openai.NotFoundError):
            return ModelNotFoundError(message)
        if isinstance(error, openai.BadRequestError):
            if "context_length" in message:
                return ContextLengthError(message)
            if "content_policy" in message:
                return ContentFilterError(message)
            return ProviderError(message)
        if isinstance(error, (openai.APIConnectionError, openai.InternalServerError)):
            return TransientError(message)
        return ProviderError(message)

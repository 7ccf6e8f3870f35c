"""Google Gemini adapter, the default provider.

Every chat call site runs on gemini-2.0-flash; only card bodies, which are
long structured documents, go to gemini-2.5-flash. Uses the unified
google-genai SDK.
"""

from typing import TYPE_CHECKING

from google import genai
from google.genai import types

from hh_vibe.providers.errors import (
    AuthenticationError,
    ContentFilterError,
    ContextLengthError,
    ProviderError,
    RateLimitError,
    TransientError,
)
from hh_vibe.providers.llm.base import CompletionRequest, RawCompletion, SDKProvider

if TYPE_CHECKING:
    from hh_vibe.providers.config import ProviderConfig

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"

DEFAULT_GEMINI_ROUTING: dict[str, str] = {
    "card_generation": "gemini-2.5-flash",
}

# Substring of the lowered error text -> error class, first match wins
_ERROR_MARKERS: list[tuple[tuple[str, ...], type[ProviderError]]] = [
    (("resource_exhausted", "resource exhausted", "429"), RateLimitError),
    (("permission", "unauthenticated", "api key not valid"), AuthenticationError),
    # Unsupported regions are rejected with a 400; retrying cannot help
    (("location is not supported",), AuthenticationError),
    (("safety", "blocked"), ContentFilterError),
    (("context", "token count"), ContextLengthError),
    (("unavailable", "503", "500", "deadline", "timeout"), TransientError),
]


class GeminiAdapter(SDKProvider):
    """Gemini over the google-genai async client."""

    name = "gemini"
    default_model = DEFAULT_GEMINI_MODEL
    default_routing = DEFAULT_GEMINI_ROUTING
    routing_setting = "gemini_model_routing"

    def __init__(self, config: "ProviderConfig") -> None:
        super().__init__(config)
        self._client: genai.Client | None = None

    @property
    def client(self) -> genai.Client:
        """SDK client, created on first use.

        A missing key therefore fails the call, where chat sub-flows fall
        back, rather than application startup.

        Raises:
            AuthenticationError: If GOOGLE_API_KEY is not configured.
        """
        if self._client is None:
            if not self.config.google_api_key:
                raise AuthenticationError("GOOGLE_API_KEY is not set")
            self._client = genai.Client(api_key=self.config.google_api_key)
        return self._client

    async def _send(self, request: CompletionRequest) -> RawCompletion:
        client = self.client
        system, turns = request.split_system()
        contents = [
            types.Content(
                role="model" if m.role == "assistant" else "user",
                parts=[types.Part(text=m.content or "")],
            )
            for m in turns
        ]
        response = await client.aio.models.generate_content(
            model=request.model,
            contents=contents,  # type: ignore[arg-type]
            config=types.GenerateContentConfig(
                max_output_tokens=request.max_tokens,
                temperature=request.temperature,
                system_instruction=system,
                response_mime_type="application/json" if request.json_mode else None,
            ),
        )

        text = None
        finish_reason = "UNKNOWN"
        if response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                text = "".join(p.text for p in candidate.content.parts if p.text)
            if candidate.finish_reason:
                finish_reason = candidate.finish_reason.name

        usage = response.usage_metadata
        return RawCompletion(
            content=text,
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
            finish_reason=finish_reason,
        )

    def _classify_error(self, error: Exception) -> ProviderError:
        message = str(error)
        lowered = message.lower()
        for markers, error_class in _ERROR_MARKERS:
            if any(marker in lowered for marker in markers):
                return error_class(message)
        return ProviderError(message)

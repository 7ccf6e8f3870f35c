"""LLM provider interface and the shared SDK request pipeline.

``LLMProvider`` is what the chat sub-flows depend on. ``SDKProvider``
implements it once for the hosted vendors: model routing, defaults,
structured request logging and the retry loop live here, and each vendor
adapter only translates a ``CompletionRequest`` into its SDK call and maps
SDK exceptions onto the provider error taxonomy.
"""

import contextlib
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, NamedTuple

import structlog

from hh_vibe.providers.errors import ProviderError
from hh_vibe.providers.retry import with_retries

if TYPE_CHECKING:
    from hh_vibe.providers.config import ProviderConfig

logger = structlog.get_logger()


class TaskType(Enum):
    """One value per LLM call site in the chat flow.

    Adapters route models on it and MockLLMProvider keys its canned
    responses on it, so every call site can be scripted on its own.
    """

    INTENT_CLASSIFICATION = "intent_classification"
    PERSONA_DETECTION = "persona_detection"
    SOFT_QUESTION = "soft_question"
    FINAL_PROFESSION = "final_profession"
    CLARIFICATION_QUESTION = "clarification_question"
    PROFESSION_CLARIFICATION = "profession_clarification"
    PROFESSION_DESCRIPTION = "profession_description"
    CLARIFYING_QUESTIONS = "clarifying_questions"
    SUGGESTION_KEYWORDS = "suggestion_keywords"
    PROFESSION_SUGGESTION = "profession_suggestion"
    CATALOG_MATCH = "catalog_match"
    MARKET_NAME_SELECTION = "market_name_selection"
    GAME_DAY = "game_day"
    COMPARISON = "comparison"
    SIMILAR_PROFESSIONS = "similar_professions"
    TASK_EXAMPLES = "task_examples"
    CAREER_DETAILS = "career_details"
    LEVEL_EXPLANATION = "level_explanation"
    IMPACT = "impact"
    CHAT_RESPONSE = "chat_response"
    CARD_GENERATION = "card_generation"


@dataclass
class LLMMessage:
    """Provider-agnostic chat message.

    Attributes:
        role: "system", "user" or "assistant".
        content: Text content.
    """

    role: str
    content: str | None = None


@dataclass
class LLMResponse:
    """Provider-agnostic completion result.

    Attributes:
        content: Completion text, None when the model produced nothing.
        model: Model that served the request.
        input_tokens: Prompt tokens billed.
        output_tokens: Completion tokens billed.
        finish_reason: Vendor stop reason ("stop", "end_turn", "MAX_TOKENS"...).
        latency_ms: Wall time including retries.
    """

    content: str | None
    model: str
    input_tokens: int
    output_tokens: int
    finish_reason: str
    latency_ms: float


@dataclass(frozen=True)
class CompletionRequest:
    """A fully resolved request, handed to the vendor adapter."""

    model: str
    messages: list[LLMMessage]
    max_tokens: int
    temperature: float
    json_mode: bool

    def split_system(self) -> tuple[str | None, list[LLMMessage]]:
        """Separate the system instruction from the dialogue turns.

        The last system message wins when several are present.
        """
        system = None
        turns: list[LLMMessage] = []
        for message in self.messages:
            if message.role == "system":
                system = message.content
            else:
                turns.append(message)
        return system, turns


class RawCompletion(NamedTuple):
    """What a vendor call yields before timing is attached."""

    content: str | None
    input_tokens: int
    output_tokens: int
    finish_reason: str


class LLMProvider(ABC):
    """Interface every chat call site depends on."""

    def __init__(self, config: "ProviderConfig") -> None:
        self.config = config

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier ("gemini", "openai", "claude", "mock")."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        task: TaskType,
        max_tokens: int | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: Conversation as list of LLMMessage.
            task: Call site, used for model routing.
            max_tokens: Override the configured default.
            temperature: Override the configured default.
            json_mode: Ask for a bare JSON object.

        Raises:
            ProviderError: On any failure once retries are spent.
        """
        ...

    @abstractmethod
    def get_model_for_task(self, task: TaskType) -> str:
        """Return the model identifier serving ``task``."""
        ...


class SDKProvider(LLMProvider):
    """Base for adapters backed by a vendor SDK.

    Subclasses set ``name``, ``default_model``, ``default_routing`` and
    ``routing_setting`` (the ProviderConfig field holding overrides), then
    implement ``_send`` and ``_classify_error``.
    """

    name: ClassVar[str]
    default_model: ClassVar[str]
    default_routing: ClassVar[dict[str, str]] = {}
    routing_setting: ClassVar[str]

    def __init__(self, config: "ProviderConfig") -> None:
        super().__init__(config)
        self.model_routing = {
            **self.default_routing,
            **(getattr(config, self.routing_setting) or {}),
        }

    @property
    def provider_name(self) -> str:
        return self.name

    def get_model_for_task(self, task: TaskType) -> str:
        return self.model_routing.get(task.value, self.default_model)

    @abstractmethod
    async def _send(self, request: CompletionRequest) -> RawCompletion:
        """Perform one vendor call. SDK exceptions propagate untouched."""
        ...

    @abstractmethod
    def _classify_error(self, error: Exception) -> ProviderError:
        """Map an SDK exception onto the provider error taxonomy."""
        ...

    async def complete(
        self,
        messages: list[LLMMessage],
        task: TaskType,
        max_tokens: int | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        request = CompletionRequest(
            model=self.get_model_for_task(task),
            messages=messages,
            max_tokens=max_tokens if max_tokens is not None else self.config.default_max_tokens,
            temperature=(
                temperature if temperature is not None else self.config.default_temperature
            ),
            json_mode=json_mode,
        )
        log = logger.bind(provider=self.name, model=request.model, task=task.value)
        log.info("llm_request_start", message_count=len(messages), json_mode=json_mode)
        start_time = time.monotonic()

        async def _attempt() -> RawCompletion:
            try:
                return await self._send(request)
            except ProviderError:
                raise
            except Exception as e:
                log.error(
                    "llm_request_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    latency_ms=(time.monotonic() - start_time) * 1000,
                )
                raise self._classify_error(e) from e

        raw = await with_retries(_attempt, self.config, label=self.name)
        latency_ms = (time.monotonic() - start_time) * 1000

        log.info(
            "llm_request_complete",
            input_tokens=raw.input_tokens,
            output_tokens=raw.output_tokens,
            finish_reason=raw.finish_reason,
            latency_ms=latency_ms,
        )
        return LLMResponse(
            content=raw.content or None,
            model=request.model,
            input_tokens=raw.input_tokens,
            output_tokens=raw.output_tokens,
            finish_reason=raw.finish_reason,
            latency_ms=latency_ms,
        )


def retry_after_header(error: Exception) -> float | None:
    """Read a Retry-After hint off an HTTP-backed SDK exception."""
    response = getattr(error, "response", None)
    if response is None:
        return None
    value = response.headers.get("retry-after")
    if value is None:
        return None
    with contextlib.suppress(ValueError):
        return float(value)
    return None

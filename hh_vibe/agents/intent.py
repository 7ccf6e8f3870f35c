"""Intent classification for chat turns.

The classifier sends the message and the last 3 history turns to the LLM
and expects strict JSON back. It never fails: on a provider error or
malformed output it returns a ``general_chat`` result with confidence 0.5.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hh_vibe.prompts.chat import CAREER_ADVISOR_SYSTEM_PROMPT, build_intent_prompt
from hh_vibe.providers import ProviderError, generate_json
from hh_vibe.providers.llm.base import LLMProvider, TaskType
from hh_vibe.schemas.chat import Message

logger = logging.getLogger(__name__)

_INTENT_TEMPERATURE = 0.3
_FALLBACK_CONFIDENCE = 0.5


class Intent(str, Enum):
    """The 14 intents the classifier can return."""

    SEARCH_PROFESSION = "search_profession"
    UNCERTAIN = "uncertain"
    CLARIFICATION = "clarification"
    SCENARIO_CHOICE = "scenario_choice"
    GAME_DAY = "game_day"
    COMPARE_PROFESSIONS = "compare_professions"
    SHOW_IMPACT = "show_impact"
    SHOW_SIMILAR = "show_similar"
    SHOW_TASKS = "show_tasks"
    SHOW_CAREER_DETAILS = "show_career_details"
    EXPLAIN_LEVELS = "explain_levels"
    SAVE_CARD = "save_card"
    SHARE_CARD = "share_card"
    GENERAL_CHAT = "general_chat"


@dataclass
class IntentResult:
    """Classification of one user message.

    Attributes:
        intent: Classified intent.
        confidence: Model confidence (0.0-1.0).
        extracted_info: Entities pulled from the message (``profession``,
            ``level``, ``professionsToCompare``, ``levelsToCompare``, ...).
    """

    intent: Intent
    confidence: float
    extracted_info: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def fallback(cls) -> "IntentResult":
        return cls(intent=Intent.GENERAL_CHAT, confidence=_FALLBACK_CONFIDENCE)

    def extracted_str(self, key: str) -> str | None:
        """Return a non-empty string entity, or None."""
        value = self.extracted_info.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    def extracted_list(self, key: str) -> list[str]:
        """Return a list entity with non-string and blank items dropped."""
        value = self.extracted_info.get(key)
        if not isinstance(value, list):
            return []
        return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _parse_result(data: dict[str, Any]) -> IntentResult:
    try:
        intent = Intent(data.get("intent"))
    except ValueError:
        logger.warning("Unknown intent %r, treating as general chat", data.get("intent"))
        return IntentResult.fallback()

    try:
        confidence = float(data.get("confidence", _FALLBACK_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = _FALLBACK_CONFIDENCE
    confidence = min(max(confidence, 0.0), 1.0)

    extracted = data.get("extractedInfo")
    if not isinstance(extracted, dict):
        extracted = {}

    return IntentResult(intent=intent, confidence=confidence, extracted_info=extracted)


async def classify_intent(
    llm: LLMProvider,
    message: str,
    history: Sequence[Message],
) -> IntentResult:
    """Classify a user message into one of the 14 intents.

    Args:
        llm: LLM provider.
        message: The incoming user message.
        history: Conversation so far; only the last 3 turns are sent.

    Returns:
        IntentResult. Falls back to general chat on any LLM failure.
    """
    prompt = build_intent_prompt(message=message, history=history)
    try:
        data = await generate_json(
            llm,
            prompt,
            task=TaskType.INTENT_CLASSIFICATION,
            temperature=_INTENT_TEMPERATURE,
            system=CAREER_ADVISOR_SYSTEM_PROMPT,
        )
    except ProviderError as e:
        logger.warning("Intent classification failed, using fallback: %s", e)
        return IntentResult.fallback()

    result = _parse_result(data)
    logger.debug("Classified intent %s (%.2f)", result.intent.value, result.confidence)
    return result

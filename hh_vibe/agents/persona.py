"""Persona accumulation.

The persona is the user profile the client carries between turns. Two
writers update it:

- ``detect_persona`` asks the LLM for a broad re-reading of the dialogue
  every turn.
- Sub-flows write specific fields (clarification answers, soft-question
  answers) through ``merge_persona``.

Merge rules:
    - List fields (interests, skills, goals) are appended to, never replaced
      or deduplicated.
    - Scalar fields are overwritten only when the delta carries a non-empty
      value.

Consumers tolerate missing fields: experience defaults to "no experience",
location and company size default to "any".
"""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from hh_vibe.prompts.chat import CAREER_ADVISOR_SYSTEM_PROMPT, build_persona_prompt
from hh_vibe.providers import ProviderError, generate_json
from hh_vibe.providers.llm.base import LLMProvider, TaskType
from hh_vibe.schemas.chat import Message, Persona

logger = logging.getLogger(__name__)

_PERSONA_TEMPERATURE = 0.3

LIST_FIELDS: frozenset[str] = frozenset({"interests", "skills", "goals"})


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def merge_persona(current: Persona | None, delta: Persona | dict[str, Any]) -> Persona:
    """Merge an inferred delta into the current persona.

    Args:
        current: Persona carried by the request (None on a fresh session).
        delta: Fields to merge. A dict may use wire (camelCase) or Python names.

    Returns:
        A new Persona; ``current`` is not modified.
    """
    if isinstance(delta, dict):
        delta = Persona.model_validate(delta)

    merged = (current or Persona()).model_dump()
    for field, value in delta.model_dump(exclude_unset=True).items():
        if field in LIST_FIELDS:
            if value:
                merged[field] = [*(merged.get(field) or []), *value]
        elif not _is_empty(value):
            merged[field] = value

    return Persona.model_validate(merged)


def append_answer(persona: Persona, field: str, answer: str) -> Persona:
    """Append one answer to a list field (``interests`` or ``skills``)."""
    return merge_persona(persona, {field: [answer]})


def _new_items(existing: list[str] | None, proposed: Any) -> list[str]:
    """Items of ``proposed`` that are not already in ``existing``.

    The detector returns the whole profile; re-appending items it merely
    echoed back would grow the lists every turn.
    """
    if not isinstance(proposed, list):
        return []
    known = set(existing or [])
    return [item for item in proposed if isinstance(item, str) and item and item not in known]


async def detect_persona(
    llm: LLMProvider,
    message: str,
    history: Sequence[Message],
    current: Persona | None,
) -> Persona:
    """Re-infer the persona from the dialogue and merge it into ``current``.

    Args:
        llm: LLM provider.
        message: The incoming user message.
        history: Conversation so far (last 5 turns are used).
        current: Persona carried by the request.

    Returns:
        Updated persona. On LLM failure, ``current`` unchanged (or a
        persona with ``isUncertain=false`` if there was none).
    """
    fallback = current or Persona(is_uncertain=False)
    prompt = build_persona_prompt(message=message, history=history, persona=current)

    try:
        data = await generate_json(
            llm,
            prompt,
            task=TaskType.PERSONA_DETECTION,
            temperature=_PERSONA_TEMPERATURE,
            system=CAREER_ADVISOR_SYSTEM_PROMPT,
        )
        detected = Persona.model_validate(data)
    except (ProviderError, PydanticValidationError) as e:
        logger.warning("Persona detection failed, keeping current persona: %s", e)
        return fallback

    delta = detected.model_dump(exclude_unset=True)
    base = current or Persona()
    for field in LIST_FIELDS & delta.keys():
        delta[field] = _new_items(getattr(base, field), delta[field])

    return merge_persona(current, delta)

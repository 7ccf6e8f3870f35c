"""Prompt-in, text-out helpers over LLMProvider.

Every chat call site talks to the model through ``generate`` or
``generate_json``: one user prompt, a per-call temperature and an optional
JSON-only flag. Malformed output becomes a GenerationError so callers
only need a single ``except ProviderError`` around each call.
"""

import json
from typing import Any

from hh_vibe.providers.errors import GenerationError
from hh_vibe.providers.llm.base import LLMMessage, LLMProvider, TaskType

__all__ = ["generate", "generate_json", "parse_json_object"]


async def generate(
    llm: LLMProvider,
    prompt: str,
    *,
    task: TaskType,
    temperature: float,
    json_mode: bool = False,
    system: str | None = None,
) -> str:
    """Run a single-prompt completion and return its text.

    Args:
        llm: Provider to call.
        prompt: User prompt.
        task: Task type for routing (and mock lookup in tests).
        temperature: Sampling temperature for this call site.
        json_mode: Ask the provider for JSON-only output.
        system: Optional system instruction.

    Returns:
        Non-empty completion text.

    Raises:
        ProviderError: On API failure.
        GenerationError: If the model returned no text.
    """
    messages: list[LLMMessage] = []
    if system:
        messages.append(LLMMessage(role="system", content=system))
    messages.append(LLMMessage(role="user", content=prompt))

    response = await llm.complete(
        messages,
        task=task,
        temperature=temperature,
        json_mode=json_mode,
    )
    content = (response.content or "").strip()
    if not content:
        raise GenerationError(f"Empty completion for {task.value}")
    return content


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse a model answer into a JSON object.

    Handles answers wrapped in markdown code fences.

    Args:
        text: Raw completion text.

    Returns:
        Parsed JSON object.

    Raises:
        GenerationError: If the text is not a JSON object.
    """
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]

    try:
        data = json.loads(text.strip())
    except (json.JSONDecodeError, IndexError) as e:
        raise GenerationError(f"Malformed JSON from model: {e}") from e

    if not isinstance(data, dict):
        raise GenerationError(
            f"Expected a JSON object from model, got {type(data).__name__}"
        )
    return data


async def generate_json(
    llm: LLMProvider,
    prompt: str,
    *,
    task: TaskType,
    temperature: float,
    system: str | None = None,
) -> dict[str, Any]:
    """Run a JSON-mode completion and parse it.

    Args:
        llm: Provider to call.
        prompt: User prompt describing the expected JSON shape.
        task: Task type for routing (and mock lookup in tests).
        temperature: Sampling temperature for this call site.
        system: Optional system instruction.

    Returns:
        Parsed JSON object.

    Raises:
        ProviderError: On API failure.
        GenerationError: On empty or malformed output.
    """
    text = await generate(
        llm,
        prompt,
        task=task,
        temperature=temperature,
        json_mode=True,
        system=system,
    )
    return parse_json_object(text)

"""Side-by-side comparison of two professions.

Market statistics for both professions are fetched concurrently and given
to the LLM as ground truth. The comparison is rendered as markdown over
eight dimensions.
"""

from typing import Any

from hh_vibe.agents.state import AwaitingCompareProfessions
from hh_vibe.agents.subflows.base import (
    SubflowContext,
    SubflowResult,
    ask_json,
    dict_field,
    reply,
    text_field,
)
from hh_vibe.prompts.explainers import build_comparison_prompt
from hh_vibe.providers.llm.base import TaskType
from hh_vibe.services.market_stats import fetch_stats_pair

_COMPARISON_TEMPERATURE = 0.5

COMPARISON_LABELS = {
    "schedule": "📅 График",
    "stress": "😰 Стресс",
    "skills": "🎯 Навыки",
    "growth": "📈 Карьерный рост",
    "impact": "💡 Влияние",
    "format": "🏢 Формат работы",
    "salary": "💰 Зарплата",
    "demand": "📊 Спрос на рынке",
}


def _as_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)] if value not in (None, "") else []


def render_comparison(
    first: str,
    second: str,
    content: str,
    comparison: dict[str, Any],
) -> str:
    """Render an LLM comparison as markdown.

    Args:
        first: First profession name.
        second: Second profession name.
        content: Summary paragraph.
        comparison: ``{dimension: {"profession1": ..., "profession2": ...}}``.

    Returns:
        Markdown text. Unknown dimensions are ignored.
    """
    parts = [f"{content}\n\n"]
    if not comparison:
        return "".join(parts)

    parts.append(f"## 📊 {first} vs {second}\n\n")
    for key, label in COMPARISON_LABELS.items():
        entry = comparison.get(key)
        if not isinstance(entry, dict):
            continue
        parts.append(f"### {label}\n\n")
        if key == "skills":
            parts.append(f"**{first}:**\n")
            parts.extend(f"- {skill}\n" for skill in _as_list(entry.get("profession1")))
            parts.append(f"\n**{second}:**\n")
            parts.extend(f"- {skill}\n" for skill in _as_list(entry.get("profession2")))
            parts.append("\n")
        else:
            parts.append(f"- **{first}:** {entry.get('profession1', '')}\n")
            parts.append(f"- **{second}:** {entry.get('profession2', '')}\n\n")
    return "".join(parts)


async def compare_professions(ctx: SubflowContext, first: str, second: str) -> SubflowResult:
    """Compare two professions using live market statistics."""
    first_stats, second_stats = await fetch_stats_pair(ctx.market, first, second)
    data = await ask_json(
        ctx.llm,
        build_comparison_prompt(
            first=first,
            second=second,
            first_stats=first_stats,
            second_stats=second_stats,
        ),
        task=TaskType.COMPARISON,
        temperature=_COMPARISON_TEMPERATURE,
    )
    if data is None:
        content = f"Сравнение {first} и {second}. Обе профессии интересны по-своему!"
        comparison: dict[str, Any] = {}
    else:
        content = text_field(data, "content", f"Вот сравнение {first} и {second}:")
        comparison = dict_field(data, "comparison")

    return reply(
        render_comparison(first, second, content, comparison).rstrip(),
        "showing_results",
    )


async def handle_compare_reply(ctx: SubflowContext) -> SubflowResult:
    """Parse "A, B" after the comparison prompt; re-prompt on bad input."""
    parts = [p.strip() for p in ctx.message.split(",")]
    names = [p for p in parts if p]
    if len(names) >= 2:
        return await compare_professions(ctx, names[0], names[1])

    return reply(
        'Пожалуйста, укажи две профессии через запятую. Например: "Бариста, Массажист"',
        "initial",
        metadata=AwaitingCompareProfessions().to_metadata(),
    )


async def handle_compare_intent(ctx: SubflowContext) -> SubflowResult:
    """Comparison requested mid-conversation."""
    names = ctx.intent.extracted_list("professionsToCompare")
    if len(names) >= 2:
        return await compare_professions(ctx, names[0], names[1])

    return reply(
        "Скажи, какие две профессии ты хочешь сравнить? "
        'Например: "Frontend-разработчик и Backend-разработчик"',
        "initial",
        metadata=AwaitingCompareProfessions().to_metadata(),
    )

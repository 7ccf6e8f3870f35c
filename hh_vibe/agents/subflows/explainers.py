"""Result-display explainers for a profession the user is looking at.

Impact, similar professions, task examples, career path and level
differences. The profession comes from the classifier, else from the last
shown card, else a default. Where live vacancies help (similar, tasks,
career) they are fetched first and passed to the LLM.
"""

import logging
from typing import Any

from hh_vibe.adapters.market import MarketDataError, SearchParams
from hh_vibe.agents.subflows.base import (
    MAIN_MENU_BUTTON,
    SubflowContext,
    SubflowResult,
    as_text,
    ask_json,
    cards_from_selection,
    dict_field,
    list_field,
    market_lines,
    reply,
    text_field,
)
from hh_vibe.prompts.explainers import (
    build_career_prompt,
    build_impact_prompt,
    build_levels_prompt,
    build_similar_prompt,
    build_tasks_prompt,
)
from hh_vibe.providers.llm.base import TaskType
from hh_vibe.services.market_stats import find_market_professions, strip_html

logger = logging.getLogger(__name__)

_IMPACT_TEMPERATURE = 0.6
_SIMILAR_TEMPERATURE = 0.5
_TASKS_TEMPERATURE = 0.7
_CAREER_TEMPERATURE = 0.6
_LEVELS_TEMPERATURE = 0.5

MAX_SIMILAR_CARDS = 4
CAREER_LEVELS = ("junior", "middle", "senior")

FALLBACK_TASKS = [
    "Работа над текущими проектами",
    "Общение с коллегами и командой",
    "Решение технических задач",
    "Участие в встречах и планировании",
]

LEVEL_LABELS = {
    "experience": "📚 Опыт",
    "responsibilities": "💼 Обязанности",
    "skills": "🎯 Навыки",
    "autonomy": "🚀 Самостоятельность",
    "impact": "💡 Влияние",
    "salary": "💰 Зарплата",
}


def _context_line(label: str, value: Any) -> str | None:
    text = as_text(value)
    return f"- {label}: {text}" if text else None


def _context_lines(*pairs: tuple[str, Any]) -> list[str]:
    lines = (_context_line(label, value) for label, value in pairs)
    return [line for line in lines if line]


# =============================================================================
# Impact
# =============================================================================


def render_impact(profession: str, content: str, impact: dict[str, Any]) -> str:
    text = f"{content}\n\n"
    if not impact:
        return text

    text += f"💡 **Влияние {profession}:**\n\n"
    if impact.get("direct"):
        text += f"🎯 Прямое влияние: {impact['direct']}\n\n"
    if impact.get("indirect"):
        text += f"🌊 Косвенное влияние: {impact['indirect']}\n\n"
    examples = list_field(impact, "examples")
    if examples:
        text += "📊 Примеры:\n" + "".join(f"• {ex}\n" for ex in examples) + "\n"
    if impact.get("importance"):
        text += f"⭐ Почему это важно: {impact['importance']}"
    return text


async def handle_show_impact(ctx: SubflowContext) -> SubflowResult:
    profession = ctx.resolve_profession()
    data = await ask_json(
        ctx.llm,
        build_impact_prompt(profession=profession),
        task=TaskType.IMPACT,
        temperature=_IMPACT_TEMPERATURE,
    )
    if data is None:
        content, impact = f"Профессия {profession} играет важную роль!", {}
    else:
        content = text_field(
            data, "content", f"Профессия {profession} важна и приносит реальную пользу!"
        )
        impact = dict_field(data, "impact")

    return reply(render_impact(profession, content, impact).rstrip(), "showing_results")


# =============================================================================
# Similar professions
# =============================================================================


async def handle_show_similar(ctx: SubflowContext) -> SubflowResult:
    """Up to 4 professions similar to the current one, catalog first."""
    profession = ctx.resolve_profession()
    last_card = ctx.last_card
    level = (last_card.level if last_card else None) or ctx.persona.experience

    market_names = await find_market_professions(
        ctx.market, [profession], limit=10, page_size=30, exclude=profession
    )
    data = await ask_json(
        ctx.llm,
        build_similar_prompt(
            profession=profession,
            context_lines=_context_lines(
                ("Уровень", level),
                ("Навыки", ctx.persona.skills),
                ("Интересы", ctx.persona.interests),
            ),
            catalog_lines=ctx.catalog.prompt_lines(),
            market_lines=market_lines(market_names),
        ),
        task=TaskType.SIMILAR_PROFESSIONS,
        temperature=_SIMILAR_TEMPERATURE,
    )
    if data is None:
        content = f"Вот несколько интересных профессий, похожих на {profession}:"
        cards = [entry.to_ref() for entry in ctx.catalog.entries[:3]]
    else:
        content = text_field(data, "content", f"Вот профессии, похожие на {profession}:")
        cards = cards_from_selection(
            ctx,
            data.get("selectedProfessions"),
            level=level or "Middle",
            vacancy_counts=dict(market_names),
            limit=MAX_SIMILAR_CARDS,
        )

    return reply(
        content,
        "showing_results",
        type="cards",
        cards=cards,
        metadata={"currentProfession": profession, "showingSimilar": True},
    )


# =============================================================================
# Task examples
# =============================================================================


async def _responsibility_snippets(ctx: SubflowContext, query: str) -> list[str]:
    try:
        result = await ctx.market.search(SearchParams(text=query, page_size=10))
    except MarketDataError as e:
        logger.warning("Vacancy snippets unavailable for %r: %s", query, e)
        return []
    snippets = (strip_html(item.responsibility_snippet) for item in result.items[:5])
    return [s for s in snippets if s]


async def handle_show_tasks(ctx: SubflowContext) -> SubflowResult:
    """Typical tasks, grounded in real vacancy responsibilities."""
    profession = ctx.resolve_profession()
    last_card = ctx.last_card
    level = (last_card.level if last_card else None) or ctx.persona.experience
    specialization = ctx.persona.specialization

    query = f"{profession} {specialization}" if specialization else profession
    responsibilities = await _responsibility_snippets(ctx, query)

    data = await ask_json(
        ctx.llm,
        build_tasks_prompt(
            profession=profession,
            level=level,
            context_lines=_context_lines(
                ("Компания", last_card.company if last_card else None),
                ("Локация", ctx.persona.location),
                ("Специализация", specialization),
            ),
            responsibilities=responsibilities,
        ),
        task=TaskType.TASK_EXAMPLES,
        temperature=_TASKS_TEMPERATURE,
    )
    content = f"Типичные задачи для {profession}:"
    if data is None:
        tasks = list(FALLBACK_TASKS)
    else:
        content = text_field(data, "content", content)
        tasks = list_field(data, "tasks")

    text = f"{content}\n\n" + "".join(f"{i}. {task}\n" for i, task in enumerate(tasks, 1))
    return reply(
        text.rstrip(),
        "showing_results",
        buttons=["Показать похожие профессии", "Карьерный путь", MAIN_MENU_BUTTON],
        metadata={"currentProfession": profession, "showingTasks": True},
    )


# =============================================================================
# Career details
# =============================================================================


async def _career_market_lines(
    ctx: SubflowContext,
    profession: str,
    specialization: str | None,
) -> list[str]:
    """Vacancy count, average salary and requirements per career level."""
    lines: list[str] = []
    for level in CAREER_LEVELS:
        query = " ".join(p for p in (profession, level, specialization) if p)
        try:
            result = await ctx.market.search(SearchParams(text=query, page_size=5))
        except MarketDataError as e:
            logger.warning("Career data unavailable for %r: %s", query, e)
            continue

        if result.total_count == 0:
            lines.append(f"- {level}: данных нет")
            continue

        lines.append(f"- {level.capitalize()}:")
        lines.append(f"  * Вакансий найдено: {result.total_count}")
        salaries = [
            item.salary.min or item.salary.max
            for item in result.items
            if item.salary and (item.salary.min or item.salary.max)
        ]
        if salaries:
            lines.append(f"  * Средняя зарплата: ~{round(sum(salaries) / len(salaries))} руб.")
        requirements = [strip_html(item.requirement_snippet) for item in result.items[:3]]
        requirements = [r for r in requirements if r][:2]
        if requirements:
            lines.append("  * Типичные требования:")
            lines.extend(f"    - {r}" for r in requirements)
    return lines


def render_career(content: str, details: dict[str, Any]) -> str:
    text = f"{content}\n\n"
    raw_levels = details.get("levels")
    if not isinstance(raw_levels, list):
        raw_levels = []
    levels = [lvl for lvl in raw_levels if isinstance(lvl, dict)]
    if levels:
        text += "📈 **Уровни карьерного роста:**\n\n"
        for level in levels:
            text += f"**{as_text(level.get('level'))}** ({as_text(level.get('duration'))})\n"
            text += f"💼 Обязанности: {as_text(level.get('responsibilities'))}\n"
            text += f"💰 Зарплата: {as_text(level.get('salary'))}\n"
            if level.get("tips"):
                text += f"💡 Советы: {as_text(level['tips'])}\n"
            text += "\n"
    if details.get("nextSteps"):
        text += f"🎯 **Следующие шаги:** {as_text(details['nextSteps'])}\n\n"
    if details.get("marketDemand"):
        text += f"📊 **Спрос на рынке:** {as_text(details['marketDemand'])}"
    return text


async def handle_show_career_details(ctx: SubflowContext) -> SubflowResult:
    profession = ctx.resolve_profession()
    last_card = ctx.last_card
    current_level = ctx.intent.extracted_str("level") or (
        last_card.level if last_card else None
    )
    specialization = ctx.persona.specialization

    data = await ask_json(
        ctx.llm,
        build_career_prompt(
            profession=profession,
            current_level=current_level,
            context_lines=_context_lines(
                ("Локация", ctx.persona.location),
                ("Специализация", specialization),
            ),
            market_lines=await _career_market_lines(ctx, profession, specialization),
        ),
        task=TaskType.CAREER_DETAILS,
        temperature=_CAREER_TEMPERATURE,
    )
    if data is None:
        content = (
            f"Карьерный путь для {profession} обычно включает несколько уровней роста."
        )
        details: dict[str, Any] = {}
    else:
        content = text_field(data, "content", f"Карьерный путь для {profession}:")
        details = data

    return reply(
        render_career(content, details).rstrip(),
        "showing_results",
        buttons=["Показать похожие профессии", "Примеры задач", MAIN_MENU_BUTTON],
        metadata={"currentProfession": profession, "showingCareer": True},
    )


# =============================================================================
# Level differences
# =============================================================================


def render_levels(first: str, second: str, content: str, comparison: dict[str, Any]) -> str:
    text = f"{content}\n\n"
    if not comparison:
        return text

    text += f"📊 **Сравнение {first} vs {second}:**\n\n"
    for key, label in LEVEL_LABELS.items():
        entry = comparison.get(key)
        if not isinstance(entry, dict):
            continue
        text += f"{label}:\n"
        text += f"• {first}: {as_text(entry.get(first))}\n"
        text += f"• {second}: {as_text(entry.get(second))}\n\n"
    return text


async def handle_explain_levels(ctx: SubflowContext) -> SubflowResult:
    profession = ctx.resolve_profession()
    levels = ctx.intent.extracted_list("levelsToCompare")
    first = levels[0] if len(levels) > 0 else "Junior"
    second = levels[1] if len(levels) > 1 else "Senior"

    data = await ask_json(
        ctx.llm,
        build_levels_prompt(profession=profession, first=first, second=second),
        task=TaskType.LEVEL_EXPLANATION,
        temperature=_LEVELS_TEMPERATURE,
    )
    if data is None:
        content = (
            f"{second} отличается от {first} более высоким уровнем ответственности, "
            "опыта и влияния на проект."
        )
        comparison: dict[str, Any] = {}
    else:
        content = text_field(data, "content", f"Вот главные различия между {first} и {second}:")
        comparison = dict_field(data, "comparison")

    return reply(
        render_levels(first, second, content, comparison).rstrip(),
        "showing_results",
        buttons=["Карьерный путь", "Примеры задач", MAIN_MENU_BUTTON],
    )

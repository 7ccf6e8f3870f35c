"""Prompt templates for result-display flows.

Game day, comparison, similar professions, task examples, career details,
level differences, profession impact and search. Where live market data is
available it is passed to the model as ground truth.
"""

from collections.abc import Sequence

from hh_vibe.core.llm_sanitization import sanitize_llm_input
from hh_vibe.prompts.chat import numbered
from hh_vibe.services.market_stats import ProfessionStats, format_rubles

# =============================================================================
# Game day
# =============================================================================

_GAME_DAY_START_TEMPLATE = """Создай интерактивный "игровой день" для профессии "{profession}".

Опиши первую ситуацию рабочего дня (утро, 9:00-10:00), где пользователь должен сделать выбор.

Формат JSON:
{{
  "content": "Описание ситуации (2-3 предложения)",
  "situation": "короткое описание что происходит",
  "time": "09:00",
  "buttons": ["Действие 1", "Действие 2", "Действие 3"]
}}

Пример для Frontend-разработчика:
{{
  "content": "☕ 9:00 - Ты пришел в офис. В Slack 5 новых сообщений: коллега просит помочь с багом, PM напоминает о дедлайне, тимлид зовет на код-ревью. Что делаешь первым делом?",
  "situation": "morning_decisions",
  "time": "09:00",
  "buttons": ["Помочь с багом", "Идти на код-ревью", "Проверить свои задачи"]
}}"""


def build_game_day_start_prompt(*, profession: str) -> str:
    """Build the prompt for the first game-day situation."""
    return _GAME_DAY_START_TEMPLATE.format(profession=sanitize_llm_input(profession))


_GAME_DAY_CONTINUE_TEMPLATE = """Продолжи интерактивный "игровой день" для профессии "{profession}".

Текущая ситуация: {situation}
Время: {time}
Шаг: {step}
Выбор пользователя: "{choice}"

Создай следующую ситуацию (через 1-2 часа). Всего за день 5-6 ситуаций.

Формат JSON:
{{
  "content": "Что произошло после выбора + новая ситуация",
  "situation": "краткое описание",
  "time": "новое время (HH:00)",
  "buttons": ["Действие 1", "Действие 2", "Действие 3"],
  "isLastStep": false
}}

Если это последняя ситуация дня (шаг 5-6), установи "isLastStep": true и кнопки
["Завершить день", "Начать заново", "Выбрать другую профессию"]."""


def build_game_day_continue_prompt(
    *,
    profession: str,
    choice: str,
    step: int,
    time: str,
    situation: str,
) -> str:
    """Build the prompt for the next game-day situation."""
    return _GAME_DAY_CONTINUE_TEMPLATE.format(
        profession=sanitize_llm_input(profession),
        situation=sanitize_llm_input(situation),
        time=sanitize_llm_input(time),
        step=step,
        choice=sanitize_llm_input(choice),
    )


# =============================================================================
# Comparison
# =============================================================================

_COMPARISON_TEMPLATE = """Сравни две профессии: "{first}" и "{second}".

ВАЖНО: Используй РЕАЛЬНЫЕ данные рынка труда из HeadHunter ниже. НЕ выдумывай статистику!

**{first}:**
{first_stats}

**{second}:**
{second_stats}

Сравни по критериям: график работы, уровень стресса, навыки (hard/soft), карьерный рост,
влияние на продукт/компанию, формат работы (офис/удаленка), зарплатная вилка
(ИСПОЛЬЗУЙ РЕАЛЬНЫЕ ДАННЫЕ), спрос на рынке (по количеству вакансий и конкуренции).

Формат JSON:
{{
  "content": "Краткий вывод о главных различиях (2-3 предложения)",
  "comparison": {{
    "schedule": {{"profession1": "описание", "profession2": "описание"}},
    "stress": {{"profession1": "описание", "profession2": "описание"}},
    "skills": {{"profession1": ["навык1", "навык2"], "profession2": ["навык1", "навык2"]}},
    "growth": {{"profession1": "описание", "profession2": "описание"}},
    "impact": {{"profession1": "описание", "profession2": "описание"}},
    "format": {{"profession1": "описание", "profession2": "описание"}},
    "salary": {{"profession1": "реальный диапазон", "profession2": "реальный диапазон"}},
    "demand": {{"profession1": "описание спроса", "profession2": "описание спроса"}}
  }}
}}"""


def _stats_block(stats: ProfessionStats) -> str:
    lines = [
        f"- Количество вакансий на рынке: {stats.vacancies}",
        f"- Конкуренция: {stats.competition}",
        f"- Средняя зарплата: {stats.format_salary()}",
    ]
    if stats.min_salary and stats.max_salary:
        lines.append(
            f"- Диапазон зарплат: {format_rubles(stats.min_salary)} - "
            f"{format_rubles(stats.max_salary)} руб."
        )
    return "\n".join(lines)


def build_comparison_prompt(
    *,
    first: str,
    second: str,
    first_stats: ProfessionStats,
    second_stats: ProfessionStats,
) -> str:
    """Build the comparison prompt with real market statistics."""
    return _COMPARISON_TEMPLATE.format(
        first=sanitize_llm_input(first),
        second=sanitize_llm_input(second),
        first_stats=_stats_block(first_stats),
        second_stats=_stats_block(second_stats),
    )


# =============================================================================
# Similar professions
# =============================================================================

_SIMILAR_TEMPLATE = """Найди 3-4 профессии, похожие на "{profession}".

Контекст пользователя:
{context}

Доступные готовые карточки профессий:
{catalog}

Похожие профессии из HeadHunter (актуальный рынок):
{market}

Выбери 3-4 профессии со схожими навыками и типом работы. Приоритет у готовых
карточек, но можно включить профессии из HeadHunter, если они релевантны.

Формат JSON:
{{
  "content": "Почему эти профессии похожи и могут заинтересовать (2-3 предложения)",
  "selectedProfessions": [
    {{
      "name": "название профессии",
      "source": "existing" или "hh",
      "slug": "slug, если source=existing, иначе null",
      "reason": "почему похожа (1 предложение)"
    }}
  ]
}}"""


def build_similar_prompt(
    *,
    profession: str,
    context_lines: Sequence[str],
    catalog_lines: Sequence[str],
    market_lines: Sequence[str],
) -> str:
    """Build the similar-professions selection prompt."""
    return _SIMILAR_TEMPLATE.format(
        profession=sanitize_llm_input(profession),
        context="\n".join(sanitize_llm_input(line) for line in context_lines) or "—",
        catalog=numbered(catalog_lines),
        market=numbered(market_lines),
    )


# =============================================================================
# Task examples
# =============================================================================

_TASKS_TEMPLATE = """Опиши типичные задачи для профессии "{profession}"{level_suffix}.

Контекст:
{context}

{source}
создай 5-7 конкретных примеров задач, которые специалист выполняет в течение дня/недели.
Задачи реалистичные, конкретные и соответствуют уровню опыта.

Формат JSON:
{{
  "content": "Краткое введение (1 предложение)",
  "tasks": ["Задача 1 - конкретное описание", "Задача 2 - конкретное описание"]
}}"""


def build_tasks_prompt(
    *,
    profession: str,
    level: str | None,
    context_lines: Sequence[str],
    responsibilities: Sequence[str],
) -> str:
    """Build the task-examples prompt, grounded in vacancy responsibilities."""
    if responsibilities:
        source = (
            "Реальные обязанности из вакансий на HeadHunter:\n"
            + numbered(sanitize_llm_input(r) for r in responsibilities)
            + "\n\nНа основе этих данных"
        )
    else:
        source = "На основе твоих знаний"
    return _TASKS_TEMPLATE.format(
        profession=sanitize_llm_input(profession),
        level_suffix=f" уровня {sanitize_llm_input(level)}" if level else "",
        context="\n".join(sanitize_llm_input(line) for line in context_lines) or "—",
        source=source,
    )


# =============================================================================
# Career details
# =============================================================================

_CAREER_TEMPLATE = """Опиши детальный карьерный путь для профессии "{profession}"{level_suffix}.

Контекст:
{context}

Реальные данные с HeadHunter:
{market}

На основе этих данных опиши карьерный рост с конкретными примерами и советами.

Формат JSON:
{{
  "content": "Общее описание карьерного пути (2-3 предложения)",
  "levels": [
    {{
      "level": "Junior",
      "duration": "1-2 года",
      "skills": ["навык1", "навык2"],
      "responsibilities": "Что делает на этом уровне",
      "salary": "диапазон зарплаты (используй данные HeadHunter, если есть)",
      "tips": "Советы для перехода на следующий уровень"
    }}
  ],
  "nextSteps": "Что делать для карьерного роста",
  "marketDemand": "Краткий анализ спроса на рынке"
}}
Опиши уровни Junior, Middle, Senior и Lead/Principal."""


def build_career_prompt(
    *,
    profession: str,
    current_level: str | None,
    context_lines: Sequence[str],
    market_lines: Sequence[str],
) -> str:
    """Build the career-details prompt with per-level market data."""
    level_suffix = (
        f" (текущий уровень: {sanitize_llm_input(current_level)})" if current_level else ""
    )
    return _CAREER_TEMPLATE.format(
        profession=sanitize_llm_input(profession),
        level_suffix=level_suffix,
        context="\n".join(sanitize_llm_input(line) for line in context_lines) or "—",
        market="\n".join(sanitize_llm_input(line) for line in market_lines) or "данных нет",
    )


# =============================================================================
# Level differences
# =============================================================================

_LEVELS_TEMPLATE = """Объясни разницу между уровнями {first} и {second} для профессии "{profession}".

Формат JSON:
{{
  "content": "Краткое резюме главных различий (2-3 предложения)",
  "comparison": {{
    "experience": {{"{first}": "описание опыта", "{second}": "описание опыта"}},
    "responsibilities": {{"{first}": "обязанности", "{second}": "обязанности"}},
    "skills": {{"{first}": ["навык1", "навык2"], "{second}": ["навык1", "навык2"]}},
    "autonomy": {{"{first}": "самостоятельность", "{second}": "самостоятельность"}},
    "impact": {{"{first}": "влияние на проект/команду", "{second}": "влияние на проект/команду"}},
    "salary": {{"{first}": "диапазон", "{second}": "диапазон"}}
  }}
}}"""


def build_levels_prompt(*, profession: str, first: str, second: str) -> str:
    """Build the level-differences prompt."""
    return _LEVELS_TEMPLATE.format(
        profession=sanitize_llm_input(profession),
        first=sanitize_llm_input(first),
        second=sanitize_llm_input(second),
    )


# =============================================================================
# Impact
# =============================================================================

_IMPACT_TEMPLATE = """Опиши влияние и ценность профессии "{profession}".

Покажи:
- какую конкретную пользу приносит специалист
- как его работа влияет на продукт/компанию
- реальные примеры влияния (с цифрами, если возможно)
- почему эта профессия важна

Формат JSON:
{{
  "content": "Эмоциональное описание влияния (2-3 предложения)",
  "impact": {{
    "direct": "прямое влияние на продукт",
    "indirect": "косвенное влияние на компанию",
    "examples": ["пример 1 с цифрами", "пример 2"],
    "importance": "почему это важно"
  }}
}}"""


def build_impact_prompt(*, profession: str) -> str:
    """Build the profession-impact prompt."""
    return _IMPACT_TEMPLATE.format(profession=sanitize_llm_input(profession))


# =============================================================================
# Search
# =============================================================================

_CATALOG_MATCH_TEMPLATE = """Найди профессии, соответствующие запросу пользователя.

Запрос: "{query}"
Извлеченная информация: {extracted}

Доступные профессии (название -> slug):
{catalog}

Если запрос точно соответствует или похож на профессию из списка, верни её slug.

Ответь ТОЛЬКО в формате JSON:
{{
  "content": "короткий комментарий о найденных профессиях",
  "professionSlugs": ["slug1", "slug2"]
}}"""


def build_catalog_match_prompt(
    *,
    query: str,
    extracted: str,
    catalog_lines: Sequence[str],
) -> str:
    """Build the prompt that matches a query against the card catalog."""
    return _CATALOG_MATCH_TEMPLATE.format(
        query=sanitize_llm_input(query),
        extracted=sanitize_llm_input(extracted),
        catalog=numbered(catalog_lines),
    )


_MARKET_NAME_SELECTION_TEMPLATE = """Из списка профессий выбери 1-3 наиболее точно соответствующих запросу пользователя "{query}".

Доступные профессии из HeadHunter:
{market}

Ответь ТОЛЬКО в формате JSON:
{{
  "content": "короткое объяснение",
  "selectedNames": ["название профессии 1", "название профессии 2"]
}}"""


def build_market_name_selection_prompt(
    *,
    query: str,
    market_lines: Sequence[str],
) -> str:
    """Build the prompt that picks market-derived names for a search query."""
    return _MARKET_NAME_SELECTION_TEMPLATE.format(
        query=sanitize_llm_input(query),
        market=numbered(market_lines),
    )

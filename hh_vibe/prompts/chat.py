"""Chat prompt templates: intent, persona, soft questions and suggestions.

Each prompt set is a module-level template plus a ``build_*_prompt``
builder. Builders sanitize every user-controlled value (messages, history,
persona answers) before it reaches the template.

All prompts are in Russian: the product talks to Russian-speaking users and
the model answers in the language of the prompt.
"""

import json
from collections.abc import Iterable, Sequence

from hh_vibe.core.llm_sanitization import sanitize_llm_input
from hh_vibe.schemas.chat import Message, Persona

# Shared by every call site; the user prompt carries the task and JSON shape
CAREER_ADVISOR_SYSTEM_PROMPT = (
    "Ты AI-ассистент для карьерного консультирования. Общаешься по-русски, "
    "дружелюбно и по делу. Если просят JSON, отвечаешь только валидным JSON "
    "без пояснений."
)


# =============================================================================
# Shared helpers
# =============================================================================


def format_history(history: Sequence[Message], limit: int) -> str:
    """Render the last ``limit`` history messages as ``role: content`` lines."""
    if limit <= 0:
        return ""
    return "\n".join(
        f"{m.role}: {sanitize_llm_input(m.content)}" for m in history[-limit:]
    )


def persona_json(persona: Persona | None) -> str:
    """Serialize a persona in wire form for embedding in a prompt."""
    if persona is None:
        return "{}"
    data = persona.model_dump(by_alias=True, exclude_none=True)
    return sanitize_llm_input(json.dumps(data, ensure_ascii=False))


def numbered(lines: Iterable[str], empty: str = "—") -> str:
    """Render lines as a 1-based numbered list, or ``empty`` if there are none."""
    rendered = [f"{i}. {line}" for i, line in enumerate(lines, start=1)]
    return "\n".join(rendered) if rendered else empty


# =============================================================================
# Intent classification
# =============================================================================

_INTENT_TEMPLATE = """Проанализируй сообщение пользователя и определи его намерение.

Возможные намерения:
- "search_profession": пользователь знает, какую профессию ищет, или упоминает конкретные навыки/должности
- "uncertain": пользователь не знает, чего хочет ("не знаю", "помоги выбрать", "что посоветуешь")
- "clarification": пользователь отвечает на уточняющий вопрос
- "scenario_choice": пользователь выбирает между "знаю профессию" и "не знаю"
- "game_day": хочет прожить день в профессии ("прожить день", "игровой день", "симуляция")
- "compare_professions": хочет сравнить профессии ("сравни", "в чем разница", "отличия")
- "show_impact": спрашивает о влиянии/ценности профессии ("какая польза", "зачем", "влияние")
- "show_similar": хочет похожие профессии ("похожие", "аналогичные", "альтернативы", "что еще")
- "show_tasks": хочет примеры задач ("пример задач", "что делает", "задачи", "обязанности")
- "show_career_details": спрашивает о карьерном росте ("карьера", "рост", "что дальше", "развитие")
- "explain_levels": спрашивает о различиях уровней ("отличие junior", "чем отличается middle", "разница между")
- "save_card": хочет сохранить карточку ("сохранить", "скачать", "PDF", "избранное")
- "share_card": хочет поделиться ("поделиться", "отправить", "ссылка")
- "general_chat": общение, приветствие, вопросы о сервисе

История диалога:
{history}

Текущее сообщение: "{message}"

Ответь ТОЛЬКО в формате JSON:
{{
  "intent": "...",
  "confidence": 0.0-1.0,
  "extractedInfo": {{
    "profession": "название профессии, если упоминается",
    "skills": ["навык1", "навык2"],
    "level": "junior/middle/senior, если упоминается",
    "interests": ["интерес1", "интерес2"],
    "professionsToCompare": ["профессия1", "профессия2"],
    "levelsToCompare": ["junior", "senior"]
  }}
}}"""


def build_intent_prompt(*, message: str, history: Sequence[Message]) -> str:
    """Build the intent classification prompt (last 3 turns of context)."""
    return _INTENT_TEMPLATE.format(
        history=format_history(history, 3),
        message=sanitize_llm_input(message),
    )


# =============================================================================
# Persona detection
# =============================================================================

_PERSONA_TEMPLATE = """На основе диалога определи профиль пользователя.

Текущий профиль: {persona}

История диалога:
{history}

Новое сообщение: "{message}"

Определи и обнови профиль пользователя. Ответь ТОЛЬКО в формате JSON:
{{
  "experience": "junior/middle/senior/none",
  "interests": ["интерес1", "интерес2"],
  "currentRole": "текущая роль, если упоминается",
  "goals": ["цель1", "цель2"],
  "isUncertain": true/false
}}"""


def build_persona_prompt(
    *,
    message: str,
    history: Sequence[Message],
    persona: Persona | None,
) -> str:
    """Build the persona detection prompt (last 5 turns of context)."""
    return _PERSONA_TEMPLATE.format(
        persona=persona_json(persona),
        history=format_history(history, 5),
        message=sanitize_llm_input(message),
    )


# =============================================================================
# Soft questions (uncertain-user flow)
# =============================================================================

_SOFT_QUESTION_TEMPLATE = """Твоя задача - помочь пользователю выбрать профессию через серию интересных и душевных вопросов.

Контекст пользователя:
{persona}

История диалога:
{history}

Уже заданные вопросы:
{asked}

ВАЖНО:
1. Задавай вопросы с вайбом: дружелюбно, тепло, иногда с эмодзи
2. Всего за процесс 5-7 вопросов
3. Чередуй вопросы с кнопками и вопросы со свободной формой ответа
4. Вопросы разные по типу: интересы и увлечения, стиль работы (команда/самостоятельно), ценности в работе, жизненная ситуация, что вдохновляет, навыки и опыт
5. Не повторяй уже заданные вопросы

Текущий шаг: {step} из 5-7

Сгенерируй ОДИН вопрос для текущего шага. Формат JSON:
{{
  "content": "Текст вопроса с вайбом",
  "buttons": ["Вариант 1", "Вариант 2", "Вариант 3"],
  "isFreeForm": true/false,
  "questionType": "interests/work_style/values/situation/inspiration/skills"
}}
Поле "buttons" добавляй только для вопросов с кнопками."""


def build_soft_question_prompt(
    *,
    step: int,
    history: Sequence[Message],
    persona: Persona,
    asked_questions: Sequence[str],
) -> str:
    """Build the prompt for the next soft question.

    Args:
        step: 0-based step of the uncertain-user flow.
        history: Conversation so far (last 10 turns are used).
        persona: Current persona.
        asked_questions: Questions already asked in this flow.

    Returns:
        Prompt text.
    """
    return _SOFT_QUESTION_TEMPLATE.format(
        persona=persona_json(persona),
        history=format_history(history, 10),
        asked=numbered(
            (sanitize_llm_input(q) for q in asked_questions),
            empty="Вопросов еще не было",
        ),
        step=step + 1,
    )


# =============================================================================
# Final profession for the uncertain-user flow
# =============================================================================

_FINAL_PROFESSION_TEMPLATE = """На основе всего диалога определи ОДНУ профессию, которая лучше всего подходит пользователю.

Профиль пользователя:
{persona}

Полная история диалога:
{history}

Доступные готовые карточки профессий:
{catalog}

ВАЖНО:
1. Выбери ТОЛЬКО ОДНУ профессию
2. Если есть подходящая профессия из готовых карточек, выбери её
3. Иначе предложи конкретную профессию с реального рынка труда
4. Объясни, почему выбрана именно эта профессия

Формат JSON:
{{
  "profession": "точное название профессии",
  "reasoning": "объяснение выбора (3-4 предложения)",
  "confidence": 0.0-1.0,
  "source": "existing" или "hh",
  "slug": "slug, если source=existing, иначе null"
}}"""


def build_final_profession_prompt(
    *,
    history: Sequence[Message],
    persona: Persona,
    catalog_lines: Sequence[str],
) -> str:
    """Build the final-profession prompt (last 20 turns of context)."""
    return _FINAL_PROFESSION_TEMPLATE.format(
        persona=persona_json(persona),
        history=format_history(history, 20),
        catalog=numbered(catalog_lines, empty="Нет готовых карточек"),
    )


# =============================================================================
# Generic clarifying questions
# =============================================================================

_CLARIFYING_UNCERTAIN_FOCUS = """ВАЖНО: Пользователь не знает, чего хочет. Задай вопросы, которые помогут определить:
- его интересы и хобби
- что ему нравится делать
- какие навыки у него есть
- что для него важно в работе (стабильность, творчество, деньги, помощь людям)"""

_CLARIFYING_SEARCH_FOCUS = """ВАЖНО: Пользователь ищет конкретную профессию или направление. Уточни:
- уровень опыта
- предпочитаемую сферу
- что важно в работе"""

_CLARIFYING_TEMPLATE = """Сгенерируй 2-3 уточняющих вопроса для пользователя.

Намерение: {intent}
Извлеченная информация: {extracted}
Профиль пользователя: {persona}

Доступные профессии: {professions}

{focus}

Ответь ТОЛЬКО в формате JSON:
{{
  "content": "текст вопроса",
  "buttons": ["вариант 1", "вариант 2", "вариант 3"]
}}

Кнопки должны быть короткими (2-4 слова) и конкретными."""


def build_clarifying_questions_prompt(
    *,
    intent: str,
    extracted: dict,
    persona: Persona,
    profession_names: Sequence[str],
) -> str:
    """Build the prompt for generic clarifying questions."""
    focus = (
        _CLARIFYING_UNCERTAIN_FOCUS if persona.is_uncertain else _CLARIFYING_SEARCH_FOCUS
    )
    return _CLARIFYING_TEMPLATE.format(
        intent=intent,
        extracted=sanitize_llm_input(json.dumps(extracted, ensure_ascii=False)),
        persona=persona_json(persona),
        professions=", ".join(profession_names) or "—",
        focus=focus,
    )


# =============================================================================
# Profession suggestions for uncertain users
# =============================================================================

_SUGGESTION_KEYWORDS_TEMPLATE = """Проанализируй диалог с пользователем и определи, какие профессии могут ему подойти.

Профиль пользователя: {persona}

История диалога:
{history}

Сгенерируй 5-7 ключевых слов на русском для поиска профессий в базе вакансий
(например: "разработка", "дизайн", "продажи", "менеджмент", "аналитика").

Ответь ТОЛЬКО в формате JSON:
{{
  "keywords": ["ключевое слово 1", "ключевое слово 2"],
  "reasoning": "короткое объяснение выбора направлений"
}}"""


def build_suggestion_keywords_prompt(
    *,
    history: Sequence[Message],
    persona: Persona,
) -> str:
    """Build the prompt that turns a dialogue into market search keywords."""
    return _SUGGESTION_KEYWORDS_TEMPLATE.format(
        persona=persona_json(persona),
        history=format_history(history, 10),
    )


_SUGGESTION_SELECTION_TEMPLATE = """Из списка профессий выбери 3-5 наиболее подходящих для пользователя.

Профиль пользователя: {persona}

История диалога:
{history}

Доступные профессии из HeadHunter (актуальные вакансии):
{market}

Существующие готовые карточки профессий:
{catalog}

ВАЖНО:
1. Приоритетно выбирай профессии из готовых карточек
2. Если среди них нет подходящих, выбирай из списка HeadHunter
3. Учитывай количество вакансий: больше вакансий = больше возможностей

Ответь ТОЛЬКО в формате JSON:
{{
  "content": "короткое персональное объяснение (2-3 предложения)",
  "selectedProfessions": [
    {{
      "name": "название профессии",
      "source": "existing" или "hh",
      "slug": "slug, если source=existing, иначе null",
      "reason": "почему подходит (1 предложение)"
    }}
  ]
}}"""


def build_suggestion_selection_prompt(
    *,
    history: Sequence[Message],
    persona: Persona,
    market_lines: Sequence[str],
    catalog_lines: Sequence[str],
) -> str:
    """Build the prompt that picks suggested professions for an uncertain user."""
    return _SUGGESTION_SELECTION_TEMPLATE.format(
        persona=persona_json(persona),
        history=format_history(history, 10),
        market=numbered(market_lines),
        catalog=numbered(catalog_lines),
    )


# =============================================================================
# General chat
# =============================================================================

_GENERAL_CHAT_TEMPLATE = """Пользователь написал: "{message}"
Ответь коротко и по-дружески. Направь разговор к обсуждению карьеры."""


def build_general_chat_prompt(*, message: str) -> str:
    """Build the free-text general chat prompt."""
    return _GENERAL_CHAT_TEMPLATE.format(message=sanitize_llm_input(message))

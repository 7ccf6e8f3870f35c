"""Clarification prompt templates.

Prompts for the open-ended "what exactly do you mean" question, the
extraction of the user's profession description, and the six adaptive
clarification questions asked before a card is generated.

Every clarification question is phrased with the "vibe" of the profession:
professional slang, a conversational tone and at most two emoji.
"""

from collections.abc import Sequence

from hh_vibe.core.llm_sanitization import sanitize_llm_input
from hh_vibe.prompts.chat import format_history
from hh_vibe.schemas.chat import Message

_VIBE_RULES = """ВАЖНО:
1. Вопрос должен передавать ВАЙБ профессии "{profession}": профессиональный сленг, специфичные термины, атмосфера
2. Вопрос должен звучать как живой диалог, а не формальный опрос
3. Можно использовать эмодзи, но не больше 1-2"""

_BUTTONS_JSON = """Формат JSON:
{{
  "content": "Яркий вопрос с вайбом профессии",
  "buttons": ["Вариант 1", "Вариант 2", "Вариант 3", "Вариант 4"]
}}"""


# =============================================================================
# Step questions
# =============================================================================

_LEVEL_TEMPLATE = (
    """Для профессии "{profession}" создай ЯРКИЙ и ИНТЕРЕСНЫЙ вопрос об уровне опыта с релевантными вариантами ответов.

"""
    + _VIBE_RULES
    + """
4. ПЕРВЫМ вариантом ВСЕГДА должна быть кнопка "Без опыта"
5. Для IT-профессий дальше: Джун, Мидл, Сеньор
6. Для рабочих профессий: Начинающий, Опытный, Мастер
7. Для творческих профессий: Начинающий, С опытом, Профессионал

Пример: для "Бариста": "Какой у тебя опыт в кофе? Впервые за эспрессо-машиной или уже варишь идеальный латте? ☕"

"""
    + _BUTTONS_JSON
)

_WORK_FORMAT_TEMPLATE = (
    """Для профессии "{profession}" определи, нужно ли спрашивать о формате работы (офис/удаленка).

- Если профессия требует ФИЗИЧЕСКОГО ПРИСУТСТВИЯ (строитель, водитель, повар, массажист и т.д.), верни "isRelevant": false
- Если профессия может быть удаленной (IT, дизайн, маркетинг, аналитика), создай яркий вопрос

"""
    + _VIBE_RULES
    + """

Формат JSON:
{{
  "isRelevant": true/false,
  "content": "Яркий вопрос о формате работы (если isRelevant=true)",
  "buttons": ["Офис", "Удалёнка", "Гибрид", "Не важно"]
}}"""
)

_COMPANY_SIZE_TEMPLATE = (
    """Для профессии "{profession}" создай ЯРКИЙ вопрос о месте работы с релевантными вариантами.

"""
    + _VIBE_RULES
    + """
4. Варианты адаптируй под профессию:
   - IT: Стартап, Средняя компания, Крупная корпорация, Не важно
   - рабочие: Частная фирма, Муниципальное предприятие, Крупная организация, Не важно
   - творческие: Агентство, Фриланс, Крупная студия, Не важно
   - медицинские: Частная клиника, Государственная больница, Медицинский центр, Не важно

"""
    + _BUTTONS_JSON
)

_LOCATION_TEMPLATE = (
    """Для профессии "{profession}" создай ЯРКИЙ вопрос о городе работы.

"""
    + _VIBE_RULES
    + """
4. Учитывай, насколько для этой профессии важен город

Формат JSON:
{{
  "content": "Яркий вопрос о локации",
  "buttons": ["Москва", "Санкт-Петербург", "Другой город", "Не важно"]
}}"""
)

_SPECIALIZATION_TEMPLATE = (
    """Для профессии "{profession}" предложи 3-4 возможные специализации или направления внутри профессии.

"""
    + _VIBE_RULES
    + """
4. Варианты должны быть КОНКРЕТНЫМИ и РЕАЛЬНЫМИ
5. Кнопки короткие (2-4 слова), последняя - "Не важно"

"""
    + _BUTTONS_JSON
)

_MOTIVATION_TEMPLATE = (
    """Для профессии "{profession}" создай ЯРКИЙ вопрос о мотивации, ценностях или том, что важно в работе.

"""
    + _VIBE_RULES
    + """
4. Варианты показывают разные мотивы работы в этой профессии

"""
    + _BUTTONS_JSON
)

_STEP_TEMPLATES: dict[str, str] = {
    "level": _LEVEL_TEMPLATE,
    "work_format": _WORK_FORMAT_TEMPLATE,
    "company_size": _COMPANY_SIZE_TEMPLATE,
    "location": _LOCATION_TEMPLATE,
    "specialization": _SPECIALIZATION_TEMPLATE,
    "motivation": _MOTIVATION_TEMPLATE,
}


def build_step_question_prompt(*, step: str, profession: str) -> str:
    """Build the prompt for one clarification step.

    Args:
        step: Step name ("level", "work_format", "company_size", "location",
            "specialization" or "motivation").
        profession: Profession being clarified.

    Returns:
        Prompt text.

    Raises:
        KeyError: If the step is unknown.
    """
    return _STEP_TEMPLATES[step].format(profession=sanitize_llm_input(profession))


# =============================================================================
# Open-ended profession clarification
# =============================================================================

_PROFESSION_CLARIFICATION_TEMPLATE = """Пользователь хочет узнать о профессии "{profession}", которой пока нет в базе.
Название может означать разные вещи, поэтому уточни, что именно он имеет в виду.

История диалога:
{history}

Задай ОДИН короткий дружелюбный вопрос и предложи 3-4 варианта, чем может заниматься такой специалист.

Формат JSON:
{{
  "content": "Уточняющий вопрос",
  "buttons": ["Вариант 1", "Вариант 2", "Вариант 3"]
}}"""


def build_profession_clarification_prompt(
    *,
    profession: str,
    history: Sequence[Message],
) -> str:
    """Build the open-ended "what do you mean by X" prompt."""
    return _PROFESSION_CLARIFICATION_TEMPLATE.format(
        profession=sanitize_llm_input(profession),
        history=format_history(history, 5),
    )


_PROFESSION_DESCRIPTION_TEMPLATE = """Пользователь уточнил, что он имеет в виду под профессией "{profession}".

История диалога:
{history}

Ответ пользователя: "{answer}"

Сформулируй короткое (1-2 предложения) описание профессии так, как её понимает пользователь.

Формат JSON:
{{
  "description": "описание профессии"
}}"""


def build_profession_description_prompt(
    *,
    profession: str,
    answer: str,
    history: Sequence[Message],
) -> str:
    """Build the prompt that turns a clarification answer into a description."""
    return _PROFESSION_DESCRIPTION_TEMPLATE.format(
        profession=sanitize_llm_input(profession),
        answer=sanitize_llm_input(answer),
        history=format_history(history, 5),
    )

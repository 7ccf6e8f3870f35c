"""Profession card generation prompt.

The model writes the narrative body of a card; market numbers (vacancies,
competition, salary) come from HeadHunter and are passed in as facts.
"""

from hh_vibe.core.llm_sanitization import sanitize_llm_input
from hh_vibe.services.market_stats import ProfessionStats

CARD_SYSTEM_PROMPT = (
    "Ты пишешь яркие и честные карточки профессий для молодых специалистов. "
    "Отвечаешь только валидным JSON на русском языке."
)

_CARD_TEMPLATE = """Создай карточку профессии "{profession}" (уровень {level}, компания: {company}).

Параметры:
{options}

Данные рынка труда (HeadHunter):
- Вакансий: {vacancies}
- Конкуренция: {competition}
- Средняя зарплата: {salary}

Опиши типичный рабочий день (5-7 пунктов расписания), технологический стек
или инструменты, 4 плюса профессии, карьерный путь от Junior до Lead,
6-8 ключевых навыков с уровнем владения 0-100 для уровня {level} и одну
короткую рабочую ситуацию с вариантами ответа.

Формат JSON:
{{
  "schedule": [
    {{"time": "10:00", "title": "Стендап", "emoji": "☕", "description": "что происходит", "detail": "подробности"}}
  ],
  "stack": ["инструмент1", "инструмент2"],
  "benefits": [{{"icon": "🚀", "text": "плюс профессии"}}],
  "careerPath": [
    {{"level": "Junior", "years": "0-1 год", "salary": "80 000 - 120 000 ₽", "current": false}}
  ],
  "skills": [{{"name": "навык", "level": 70}}],
  "dialog": {{
    "message": "сообщение коллеги или клиента",
    "options": ["вариант 1", "вариант 2", "вариант 3"],
    "response": "чем заканчивается ситуация"
  }},
  "topCompanies": ["компания1", "компания2"],
  "isIT": true/false
}}"""


def build_card_prompt(
    *,
    profession: str,
    level: str,
    company: str,
    stats: ProfessionStats,
    company_size: str | None = None,
    location: str | None = None,
    specialization: str | None = None,
    profession_description: str | None = None,
) -> str:
    """Build the card generation prompt.

    Args:
        profession: Profession name.
        level: Card level (Junior / Middle / Senior).
        company: Company label.
        stats: Live market statistics.
        company_size: Preferred company size.
        location: Preferred location.
        specialization: Preferred specialization.
        profession_description: User's own description of the profession.

    Returns:
        Prompt text.
    """
    options = [
        f"- {label}: {sanitize_llm_input(value)}"
        for label, value in (
            ("Размер компании", company_size),
            ("Локация", location),
            ("Специализация", specialization),
            ("Как пользователь понимает профессию", profession_description),
        )
        if value
    ]
    return _CARD_TEMPLATE.format(
        profession=sanitize_llm_input(profession),
        level=sanitize_llm_input(level),
        company=sanitize_llm_input(company),
        options="\n".join(options) or "- без дополнительных пожеланий",
        vacancies=stats.vacancies,
        competition=stats.competition,
        salary=stats.format_salary(),
    )

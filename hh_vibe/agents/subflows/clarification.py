"""Clarification sequence asked before a personalized card is generated.

    level -> [work_format] -> company_size -> [location] -> specialization -> motivation

Skips:
    - work_format is skipped unless the LLM marks it relevant for the
      profession; a failed call or a missing flag also skips it.
    - A remote or hybrid work format sets ``location=remote``, which skips
      the location question.

Each answer is mapped to a canonical persona value by keyword. The answer
to ``motivation`` triggers card generation with every collected field.

Entry points:
    - ``ask_step`` starts the sequence (search found one card, or the
      open-ended profession clarification was answered).
    - ``start_profession_clarification`` asks "what exactly do you mean by X"
      for an unknown profession.
"""

import logging
from dataclasses import dataclass

from hh_vibe.agents.persona import merge_persona
from hh_vibe.agents.state import (
    ClarificationInProgress,
    ClarificationStep,
    ProfessionClarification,
)
from hh_vibe.agents.subflows.base import (
    CARD_FOLLOWUP_BUTTONS,
    SubflowContext,
    SubflowResult,
    ask_json,
    list_field,
    reply,
    text_field,
)
from hh_vibe.agents.subflows.general import handle_general_chat
from hh_vibe.prompts.clarification import (
    build_profession_clarification_prompt,
    build_profession_description_prompt,
    build_step_question_prompt,
)
from hh_vibe.providers.llm.base import TaskType
from hh_vibe.schemas.profession import UserPreferences
from hh_vibe.services.card_generation import CardGenerationError, CardOptions

logger = logging.getLogger(__name__)

_STEP_QUESTION_TEMPERATURE = 0.8
_PROFESSION_CLARIFICATION_TEMPERATURE = 0.7
_DESCRIPTION_TEMPERATURE = 0.3

NO_EXPERIENCE_BUTTON = "Без опыта"


@dataclass
class StepQuestion:
    content: str
    buttons: list[str]


# Default (LLM answered without the field) and fallback (LLM call failed)
# question per step.
_DEFAULTS: dict[ClarificationStep, StepQuestion] = {
    ClarificationStep.LEVEL: StepQuestion(
        "Какой у тебя уровень опыта?",
        ["Без опыта", "Студент", "Джун (Junior)", "Мидл (Middle)", "Сеньор (Senior)"],
    ),
    ClarificationStep.WORK_FORMAT: StepQuestion(
        "Предпочитаешь офис или удалёнку?",
        ["Офис", "Удалёнка", "Гибрид", "Не важно"],
    ),
    ClarificationStep.COMPANY_SIZE: StepQuestion(
        "Где ты хотел бы работать?",
        ["Частная организация", "Государственная", "Крупная компания", "Не важно"],
    ),
    ClarificationStep.LOCATION: StepQuestion(
        "В каком городе ты планируешь работать?",
        ["Москва", "Санкт-Петербург", "Другой город", "Не важно"],
    ),
    ClarificationStep.SPECIALIZATION: StepQuestion(
        "В какой сфере внутри профессии вы бы хотели попробовать?",
        ["Вариант 1", "Вариант 2", "Вариант 3", "Не важно"],
    ),
    ClarificationStep.MOTIVATION: StepQuestion(
        "Что тебя больше всего привлекает в этой профессии?",
        ["Творчество", "Стабильность", "Деньги", "Развитие"],
    ),
}

_FALLBACK_BUTTONS: dict[ClarificationStep, list[str]] = {
    ClarificationStep.LEVEL: ["Без опыта", "Начинающий", "С опытом", "Опытный", "Мастер"],
    ClarificationStep.SPECIALIZATION: ["Финтех", "Ритейл", "Продуктовый магазин", "Не важно"],
}


# =============================================================================
# Answer mappers
# =============================================================================


def map_level_answer(answer: str) -> str:
    """Map a level answer to student / junior / middle / senior."""
    text = answer.lower()
    if "без опыта" in text or "студент" in text:
        return "student"
    if "джун" in text or "junior" in text:
        return "junior"
    if "мидл" in text or "middle" in text:
        return "middle"
    if "сеньор" in text or "senior" in text:
        return "senior"
    if "начинающий" in text:
        return "student"
    if "опыт" in text:
        return "middle"
    if "мастер" in text:
        return "senior"
    return "student"


def map_work_format_answer(answer: str) -> str:
    """Map a work-format answer to office / remote / hybrid / any."""
    text = answer.lower()
    if "офис" in text:
        return "office"
    if "удален" in text or "удалён" in text or "remote" in text:
        return "remote"
    if "гибрид" in text:
        return "hybrid"
    return "any"


def map_company_size_answer(answer: str) -> str:
    """Map a company-size answer to startup / medium / large / any."""
    text = answer.lower()
    if "стартап" in text:
        return "startup"
    if "средн" in text:
        return "medium"
    if "крупн" in text or "корпорац" in text:
        return "large"
    return "any"


def map_location_answer(answer: str) -> str:
    """Map a location answer to moscow / spb / remote / other."""
    text = answer.lower()
    if "москв" in text:
        return "moscow"
    if "санкт" in text or "петербург" in text or "спб" in text:
        return "spb"
    if "удален" in text or "удалён" in text or "remote" in text:
        return "remote"
    return "other"


# Card level and company label for the terminal generation call.
CARD_LEVELS = {"student": "Junior", "junior": "Junior", "middle": "Middle", "senior": "Senior"}
COMPANY_LABELS = {
    "startup": "стартап",
    "medium": "средняя компания",
    "large": "крупная корпорация",
    "any": "IT-компания",
}
_WORK_FORMAT_LABELS = {"remote": "Удалёнка", "office": "Офис", "hybrid": "Гибрид"}
_LOCATION_LABELS = {"moscow": "Москва", "spb": "Санкт-Петербург", "remote": "Удалённо"}


# =============================================================================
# Step questions
# =============================================================================


def _no_experience_first(buttons: list[str]) -> list[str]:
    """Move the "no experience" option to the front, adding it if missing."""
    index = next(
        (i for i, b in enumerate(buttons) if NO_EXPERIENCE_BUTTON.lower() in b.lower()),
        None,
    )
    if index is None:
        return [NO_EXPERIENCE_BUTTON, *buttons]
    return [buttons[index], *buttons[:index], *buttons[index + 1 :]]


async def generate_step_question(
    ctx: SubflowContext,
    step: ClarificationStep,
    profession: str,
) -> StepQuestion | None:
    """Phrase the question for ``step`` in the profession's vibe.

    Returns:
        The question, or None when ``step`` is work_format and the question
        does not apply to the profession.
    """
    default = _DEFAULTS[step]
    data = await ask_json(
        ctx.llm,
        build_step_question_prompt(step=step.value, profession=profession),
        task=TaskType.CLARIFICATION_QUESTION,
        temperature=_STEP_QUESTION_TEMPERATURE,
    )

    if step is ClarificationStep.WORK_FORMAT:
        if data is None or not data.get("isRelevant"):
            logger.info("Skipping work format question for %r", profession)
            return None

    if data is None:
        return StepQuestion(
            default.content, list(_FALLBACK_BUTTONS.get(step, default.buttons))
        )

    buttons = list_field(data, "buttons") or list(default.buttons)
    if step is ClarificationStep.LEVEL:
        buttons = _no_experience_first(buttons)
    return StepQuestion(text_field(data, "content", default.content), buttons)


async def ask_step(
    ctx: SubflowContext,
    step: ClarificationStep,
    profession: str,
    *,
    description: str | None = None,
    existing_slug: str | None = None,
    prefix: str = "",
) -> SubflowResult:
    """Ask the clarification question for ``step``.

    For work_format, falls through to company_size when the question does
    not apply.
    """
    question = await generate_step_question(ctx, step, profession)
    if question is None:
        step = ClarificationStep.COMPANY_SIZE
        question = await generate_step_question(ctx, step, profession)
        question = question or _DEFAULTS[step]

    state = ClarificationInProgress(
        step=step,
        profession=profession,
        profession_description=description,
        existing_slug=existing_slug,
    )
    return reply(
        prefix + question.content,
        "clarifying",
        type="buttons",
        buttons=question.buttons,
        metadata=state.to_metadata(),
    )


# =============================================================================
# Handlers
# =============================================================================


async def handle_clarification_step(ctx: SubflowContext) -> SubflowResult:
    """Record the answer to the current step and ask the next one."""
    state = ctx.subflow
    if not isinstance(state, ClarificationInProgress):
        return await handle_general_chat(ctx)
    answer = ctx.message

    async def ask(step: ClarificationStep) -> SubflowResult:
        return await ask_step(
            ctx,
            step,
            state.profession,
            description=state.profession_description,
            existing_slug=state.existing_slug,
        )

    if state.step is ClarificationStep.LEVEL:
        ctx.persona = merge_persona(ctx.persona, {"experience": map_level_answer(answer)})
        return await ask(ClarificationStep.WORK_FORMAT)

    if state.step is ClarificationStep.WORK_FORMAT:
        work_format = map_work_format_answer(answer)
        update = {"work_style": work_format}
        if work_format in ("remote", "hybrid"):
            update["location"] = "remote"
        ctx.persona = merge_persona(ctx.persona, update)
        return await ask(ClarificationStep.COMPANY_SIZE)

    if state.step is ClarificationStep.COMPANY_SIZE:
        ctx.persona = merge_persona(
            ctx.persona, {"company_size": map_company_size_answer(answer)}
        )
        if ctx.persona.location != "remote":
            return await ask(ClarificationStep.LOCATION)
        return await ask(ClarificationStep.SPECIALIZATION)

    if state.step is ClarificationStep.LOCATION:
        ctx.persona = merge_persona(ctx.persona, {"location": map_location_answer(answer)})
        return await ask(ClarificationStep.SPECIALIZATION)

    if state.step is ClarificationStep.SPECIALIZATION:
        ctx.persona = merge_persona(ctx.persona, {"specialization": answer})
        return await ask(ClarificationStep.MOTIVATION)

    ctx.persona = merge_persona(ctx.persona, {"motivation": answer})
    return await generate_personalized_card(ctx, state)


async def generate_personalized_card(
    ctx: SubflowContext,
    state: ClarificationInProgress,
) -> SubflowResult:
    """Terminal step: generate, store and show the personalized card."""
    persona = ctx.persona
    profession = state.profession
    level = CARD_LEVELS.get(persona.experience or "middle", "Middle")
    company = COMPANY_LABELS.get(persona.company_size or "any", "IT-компания")

    options = CardOptions(
        company_size=persona.company_size,
        location=persona.location,
        specialization=persona.specialization,
        profession_description=state.profession_description,
        user_preferences=UserPreferences(
            location=persona.location,
            company_size=persona.company_size,
            specialization=persona.specialization,
            motivation=persona.motivation,
            work_style=persona.work_style,
        ),
    )
    try:
        card = await ctx.store.generate(profession, level, company, options, force=True)
    except CardGenerationError as e:
        logger.error("Personalized card generation failed for %r: %s", profession, e.message)
        return reply(
            f'К сожалению, не удалось сгенерировать карточку для "{profession}". '
            f"Ошибка: {e.message}",
            "initial",
        )

    lines = [
        f"• Уровень: {card.level or level}",
        f"• Формат: {_WORK_FORMAT_LABELS.get(persona.work_style or '', 'Не важно')}",
        f"• Компания: {company}",
        f"• Локация: {_LOCATION_LABELS.get(persona.location or '', 'Другой город')}",
    ]
    if persona.specialization:
        lines.append(f"• Специализация: {persona.specialization}")

    return reply(
        f'Отлично! Я сгенерировал карточку для профессии "{profession}" с учетом '
        "ваших предпочтений:\n\n" + "\n".join(lines) + "\n\nЧто хочешь узнать дополнительно?",
        "showing_results",
        type="cards",
        cards=[card.to_ref()],
        buttons=list(CARD_FOLLOWUP_BUTTONS),
        metadata={"showingProfessionCard": True, "currentProfession": profession},
    )


async def handle_profession_clarification(ctx: SubflowContext) -> SubflowResult:
    """Turn the answer to "what do you mean by X" into a description, then ask the level."""
    state = ctx.subflow
    if not isinstance(state, ProfessionClarification):
        return await handle_general_chat(ctx)

    data = await ask_json(
        ctx.llm,
        build_profession_description_prompt(
            profession=state.profession,
            answer=ctx.message,
            history=ctx.history,
        ),
        task=TaskType.PROFESSION_DESCRIPTION,
        temperature=_DESCRIPTION_TEMPERATURE,
    )
    description = text_field(data, "description", "") if data else ""

    return await ask_step(
        ctx,
        ClarificationStep.LEVEL,
        state.profession,
        description=description or None,
        prefix=f'Отлично! Перед тем как сгенерирую карточку для "{state.profession}", '
        "уточни пару деталей 👇\n\n",
    )


async def start_profession_clarification(
    ctx: SubflowContext,
    profession: str,
) -> SubflowResult:
    """Ask what the user means by an unknown profession name.

    Falls back to starting the clarification sequence directly.
    """
    data = await ask_json(
        ctx.llm,
        build_profession_clarification_prompt(profession=profession, history=ctx.history),
        task=TaskType.PROFESSION_CLARIFICATION,
        temperature=_PROFESSION_CLARIFICATION_TEMPERATURE,
    )
    content = text_field(data, "content", "") if data else ""
    if not content:
        return await ask_step(
            ctx,
            ClarificationStep.LEVEL,
            profession,
            prefix=f'Перед тем как сгенерирую карточку для "{profession}", '
            "уточни пару деталей 👇\n\n",
        )

    return reply(
        content,
        "clarifying",
        type="buttons",
        buttons=list_field(data, "buttons") or None,
        metadata=ProfessionClarification(profession=profession).to_metadata(),
    )

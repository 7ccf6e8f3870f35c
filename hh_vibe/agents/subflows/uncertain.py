"""Uncertain-user flow: soft questions, final profession, confirmation.

The flow asks seven "soft" questions (interests, work style, values, ...),
stores every answer in the persona by the question's declared type, then
picks ONE profession and asks whether the user likes it:

    step 0 .. 6   soft question, answer stored in persona
    after step 6  final profession -> card lookup/generation -> confirmation
    confirmation  "да" shows the card, anything else restarts at step 0
"""

import logging
from dataclasses import dataclass

from hh_vibe.agents.persona import append_answer, merge_persona
from hh_vibe.agents.state import (
    UNCERTAIN_FLOW_STEPS,
    AwaitingProfessionConfirmation,
    UncertainFlow,
)
from hh_vibe.agents.subflows.base import (
    MAIN_MENU_BUTTON,
    SubflowContext,
    SubflowResult,
    ask_json,
    contains_any,
    list_field,
    reply,
    text_field,
    virtual_card,
)
from hh_vibe.agents.subflows.general import handle_general_chat
from hh_vibe.prompts.chat import build_final_profession_prompt, build_soft_question_prompt
from hh_vibe.providers.llm.base import TaskType
from hh_vibe.schemas.chat import Message, ProfessionCardRef
from hh_vibe.services.card_generation import CardGenerationError
from hh_vibe.services.slug import slugify

logger = logging.getLogger(__name__)

_SOFT_QUESTION_TEMPERATURE = 0.8
_FINAL_PROFESSION_TEMPERATURE = 0.6

FALLBACK_PROFESSION = "Разработчик"
FALLBACK_REASONING = "На основе твоих ответов подобрана эта профессия"

AFFIRMATIVE_KEYWORDS = ("да", "понравил", "подходит")


# =============================================================================
# Soft questions
# =============================================================================


@dataclass
class SoftQuestion:
    content: str
    buttons: list[str] | None
    is_free_form: bool
    question_type: str = "general"


_FALLBACK_QUESTIONS = [
    SoftQuestion(
        content="Расскажи, что тебя заводит в жизни? 🌟",
        buttons=None,
        is_free_form=True,
    ),
    SoftQuestion(
        content="Что тебе важнее в работе?",
        buttons=["💰 Стабильность", "🚀 Драйв", "🎯 Смысл", "🌟 Творчество"],
        is_free_form=False,
    ),
]


def asked_questions(history: list[Message]) -> list[str]:
    """Texts of the soft questions already asked in this conversation."""
    return [
        m.content
        for m in history
        if m.role == "assistant" and m.metadata and m.metadata.get("uncertainFlow") is True
    ]


async def generate_soft_question(ctx: SubflowContext, step: int) -> SoftQuestion:
    """Generate the soft question for ``step`` (0-based).

    Falls back to alternating static questions on LLM failure.
    """
    data = await ask_json(
        ctx.llm,
        build_soft_question_prompt(
            step=step,
            history=ctx.history,
            persona=ctx.persona,
            asked_questions=asked_questions(ctx.history),
        ),
        task=TaskType.SOFT_QUESTION,
        temperature=_SOFT_QUESTION_TEMPERATURE,
    )
    if data is None:
        return _FALLBACK_QUESTIONS[step % len(_FALLBACK_QUESTIONS)]

    is_free_form = data.get("isFreeForm") is True
    buttons = list_field(data, "buttons") or (
        None if is_free_form else ["Вариант 1", "Вариант 2", "Вариант 3"]
    )
    return SoftQuestion(
        content=text_field(data, "content", "Расскажи, что тебя интересует?"),
        buttons=buttons,
        is_free_form=is_free_form,
        question_type=text_field(data, "questionType", "general"),
    )


async def ask_soft_question(
    ctx: SubflowContext,
    step: int,
    prefix: str = "",
) -> SubflowResult:
    """Ask the soft question for ``step`` and record the flow position."""
    question = await generate_soft_question(ctx, step)
    if question.is_free_form or not question.buttons:
        message_type = "text"
    else:
        message_type = "buttons"

    state = UncertainFlow(
        step=step,
        question_type=question.question_type,
        is_free_form=question.is_free_form,
    )
    return reply(
        prefix + question.content,
        "clarifying",
        type=message_type,
        buttons=question.buttons,
        metadata=state.to_metadata(),
    )


def store_soft_answer(ctx: SubflowContext, question_type: str, answer: str) -> None:
    """Write the answer into the persona field chosen by the question type."""
    if question_type == "work_style":
        ctx.persona = merge_persona(ctx.persona, {"work_style": answer})
    elif question_type == "values":
        ctx.persona = merge_persona(ctx.persona, {"values": answer})
    elif question_type == "skills":
        ctx.persona = append_answer(ctx.persona, "skills", answer)
    else:
        ctx.persona = append_answer(ctx.persona, "interests", answer)


# =============================================================================
# Final profession
# =============================================================================


@dataclass
class FinalProfession:
    profession: str
    reasoning: str
    confidence: float
    source: str | None = None
    slug: str | None = None


async def determine_final_profession(ctx: SubflowContext) -> FinalProfession:
    """Pick ONE profession from the whole dialogue."""
    data = await ask_json(
        ctx.llm,
        build_final_profession_prompt(
            history=ctx.history,
            persona=ctx.persona,
            catalog_lines=ctx.catalog.prompt_lines(),
        ),
        task=TaskType.FINAL_PROFESSION,
        temperature=_FINAL_PROFESSION_TEMPERATURE,
    )
    if data is None:
        return FinalProfession(
            profession=FALLBACK_PROFESSION,
            reasoning=FALLBACK_REASONING,
            confidence=0.5,
        )

    try:
        confidence = float(data.get("confidence") or 0.7)
    except (TypeError, ValueError):
        confidence = 0.7
    slug = data.get("slug")
    return FinalProfession(
        profession=text_field(data, "profession", FALLBACK_PROFESSION),
        reasoning=text_field(data, "reasoning", FALLBACK_REASONING),
        confidence=confidence,
        source=data.get("source") if isinstance(data.get("source"), str) else None,
        slug=slug if isinstance(slug, str) and slug else None,
    )


async def find_or_generate_card(
    ctx: SubflowContext,
    profession: str,
    *,
    source: str | None = None,
    slug: str | None = None,
) -> ProfessionCardRef:
    """Resolve a profession name to a card reference.

    Order: catalog slug named by the LLM, stored card under the name's slug,
    newly generated card, virtual card.
    """
    if source == "existing":
        entry = ctx.catalog.by_slug(slug)
        if entry is not None:
            return entry.to_ref()

    profession_slug = slugify(profession)
    cached = await ctx.store.get(profession_slug)
    if cached is not None:
        return cached.to_ref()

    logger.info("Profession %r not stored, generating card", profession)
    try:
        card = await ctx.store.generate(profession, "middle", "IT-компания")
    except CardGenerationError as e:
        logger.error("Card generation failed for %r: %s", profession, e.message)
        return virtual_card(profession)
    return card.to_ref()


# =============================================================================
# Handlers
# =============================================================================


async def handle_uncertain_flow(ctx: SubflowContext) -> SubflowResult:
    """Store the soft-question answer and advance the flow."""
    state = ctx.subflow
    if not isinstance(state, UncertainFlow):
        return await handle_general_chat(ctx)

    store_soft_answer(ctx, state.question_type, ctx.message)

    next_step = state.step + 1
    if next_step < UNCERTAIN_FLOW_STEPS:
        return await ask_soft_question(ctx, next_step)

    final = await determine_final_profession(ctx)
    card = await find_or_generate_card(
        ctx, final.profession, source=final.source, slug=final.slug
    )
    confirmation = AwaitingProfessionConfirmation(
        suggested_profession=final.profession,
        profession_card=card,
    )
    return reply(
        f"{final.reasoning}\n\nЯ подобрал для тебя профессию: **{final.profession}**. "
        "Что скажешь, понравилась? 😊",
        "showing_results",
        type="cards",
        cards=[card],
        buttons=["Да, понравилась!", "Не совсем, предложи другую"],
        metadata=confirmation.to_metadata(),
    )


async def handle_profession_confirmation(ctx: SubflowContext) -> SubflowResult:
    """Show the suggested card on "yes", restart the soft questions otherwise."""
    state = ctx.subflow
    if not isinstance(state, AwaitingProfessionConfirmation):
        return await handle_general_chat(ctx)

    if contains_any(ctx.message, AFFIRMATIVE_KEYWORDS):
        cards = [state.profession_card] if state.profession_card else None
        return reply(
            "Отлично! 🎉 Рад, что тебе понравилось! Вот детальная информация "
            f'о профессии "{state.suggested_profession}":',
            "showing_results",
            type="cards",
            cards=cards,
            buttons=["Показать похожие профессии", MAIN_MENU_BUTTON],
        )

    ctx.persona = ctx.persona.model_copy(update={"is_uncertain": True})
    return await ask_soft_question(
        ctx,
        step=0,
        prefix="Понятно, давай подберем что-то другое! 😊\n\n",
    )

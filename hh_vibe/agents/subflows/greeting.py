"""Greeting and scenario choice.

The first turn of every conversation is a fixed greeting offering four
scenarios. The reply to it is matched by keyword or emoji, so both a
pressed button and a typed answer select a branch.
"""

from hh_vibe.agents.state import (
    AwaitingCompareProfessions,
    AwaitingGameDayProfession,
    Greeting,
)
from hh_vibe.agents.subflows.base import SubflowContext, SubflowResult, contains_any, reply
from hh_vibe.agents.subflows.uncertain import ask_soft_question
from hh_vibe.schemas.chat import Persona

GREETING_TEXT = (
    "👋 Привет! Хочешь почувствовать, каково быть в роли конкретного "
    "специалиста — или помочь тебе подобрать профессию, которая тебе подойдёт?"
)

GREETING_BUTTONS = [
    "🎯 Я уже знаю профессию",
    "🤔 Помоги мне выбрать",
    "🎮 Прожить день в профессии",
    "⚖️ Сравнить профессии",
]

KNOWN_PROFESSION_KEYWORDS = ("знаю профессию", "🎯")
HELP_ME_CHOOSE_KEYWORDS = ("помоги", "выбрать", "🤔")
GAME_DAY_KEYWORDS = ("прожить день", "🎮")
COMPARE_KEYWORDS = ("сравнить", "⚖️")


def greeting(persona: Persona | None = None) -> SubflowResult:
    """The fixed scenario-choice greeting."""
    return reply(
        GREETING_TEXT,
        "initial",
        type="buttons",
        buttons=list(GREETING_BUTTONS),
        metadata=Greeting().to_metadata(),
        persona=persona or Persona(is_uncertain=False),
    )


async def handle_greeting_reply(ctx: SubflowContext) -> SubflowResult:
    """Branch on the scenario the user picked from the greeting."""
    message = ctx.message

    if contains_any(message, KNOWN_PROFESSION_KEYWORDS):
        return reply(
            "Отлично! Напиши название профессии, которая тебя интересует, "
            "и я покажу её вайб ✨",
            "initial",
        )

    if contains_any(message, HELP_ME_CHOOSE_KEYWORDS):
        ctx.persona = ctx.persona.model_copy(update={"is_uncertain": True})
        return await ask_soft_question(
            ctx,
            step=0,
            prefix="Окей, давай вместе найдем профессию, которая тебе подойдет! 🌿\n\n",
        )

    if contains_any(message, GAME_DAY_KEYWORDS):
        return reply(
            "Круто! Напиши название профессии, и ты проживёшь целый рабочий день "
            "в этой роли 🎮",
            "initial",
            metadata=AwaitingGameDayProfession().to_metadata(),
        )

    if contains_any(message, COMPARE_KEYWORDS):
        return reply(
            "Интересно! Напиши две профессии через запятую, и я сравню их для тебя. "
            'Например: "Frontend-разработчик, Backend-разработчик"',
            "initial",
            metadata=AwaitingCompareProfessions().to_metadata(),
        )

    return greeting(ctx.persona)

"""Game day: an interactive working day in a chosen profession.

    start (step 1, 09:00) -> step 2..5 -> last step (step >= 6 or LLM flags it)

Each step asks the LLM for the next situation given the previous one and
the user's choice. Time of day is whatever the LLM returns; on failure the
current time is kept. The day ends on the last step or when the user says
"завершить".
"""

from hh_vibe.agents.state import (
    GAME_DAY_LAST_STEP,
    GAME_DAY_START_TIME,
    AwaitingGameDayProfession,
    GameDayInProgress,
)
from hh_vibe.agents.subflows.base import (
    MAIN_MENU_BUTTON,
    SubflowContext,
    SubflowResult,
    ask_json,
    list_field,
    reply,
    text_field,
)
from hh_vibe.agents.subflows.general import handle_general_chat
from hh_vibe.prompts.explainers import (
    build_game_day_continue_prompt,
    build_game_day_start_prompt,
)
from hh_vibe.providers.llm.base import TaskType

_GAME_DAY_TEMPERATURE = 0.8

FINISH_KEYWORD = "завершить"


async def start_game_day(ctx: SubflowContext, profession: str) -> SubflowResult:
    """Show the first situation of the day."""
    data = await ask_json(
        ctx.llm,
        build_game_day_start_prompt(profession=profession),
        task=TaskType.GAME_DAY,
        temperature=_GAME_DAY_TEMPERATURE,
    )
    if data is None:
        content = (
            f"🎮 Игровой день для {profession}! Представь, что ты начинаешь свой "
            "рабочий день. Что делаешь первым?"
        )
        buttons = ["Проверить почту", "Выпить кофе", "Начать работу"]
        state = GameDayInProgress(profession=profession)
    else:
        content = text_field(data, "content", f"Начинаем игровой день в профессии {profession}!")
        buttons = list_field(data, "buttons") or ["Начать день", "Выбрать другую профессию"]
        state = GameDayInProgress(
            profession=profession,
            step=1,
            time=text_field(data, "time", GAME_DAY_START_TIME),
            situation=text_field(data, "situation", "start"),
        )

    return reply(
        content,
        "clarifying",
        type="buttons",
        buttons=buttons,
        metadata=state.to_metadata(),
    )


async def continue_game_day(ctx: SubflowContext, state: GameDayInProgress) -> SubflowResult:
    """Show the situation that follows the user's choice."""
    next_step = state.step + 1
    data = await ask_json(
        ctx.llm,
        build_game_day_continue_prompt(
            profession=state.profession,
            choice=ctx.message,
            step=state.step,
            time=state.time,
            situation=state.situation,
        ),
        task=TaskType.GAME_DAY,
        temperature=_GAME_DAY_TEMPERATURE,
    )
    if data is None:
        content = "День продолжается... Что делаешь дальше?"
        buttons = ["Продолжить работу", "Сделать перерыв", "Завершить день"]
        next_state = GameDayInProgress(
            profession=state.profession,
            step=next_step,
            time=state.time,
            is_last_step=next_step >= GAME_DAY_LAST_STEP,
        )
    else:
        content = text_field(data, "content", "Продолжаем день...")
        buttons = list_field(data, "buttons") or ["Продолжить", "Завершить"]
        next_state = GameDayInProgress(
            profession=state.profession,
            step=next_step,
            time=text_field(data, "time", state.time),
            situation=text_field(data, "situation", "continue"),
            is_last_step=data.get("isLastStep") is True or next_step >= GAME_DAY_LAST_STEP,
        )

    return reply(
        content,
        "clarifying",
        type="buttons",
        buttons=buttons,
        metadata=next_state.to_metadata(),
    )


async def handle_game_day(ctx: SubflowContext) -> SubflowResult:
    """Advance a running game day, or close it."""
    state = ctx.subflow
    if not isinstance(state, GameDayInProgress):
        return await handle_general_chat(ctx)

    if state.is_last_step or FINISH_KEYWORD in ctx.message.lower():
        return reply(
            f"🎉 Отличная работа! Ты прожил день как {state.profession}. Теперь ты лучше "
            "понимаешь, каково работать в этой профессии!\n\n"
            "Хочешь посмотреть полную карточку профессии или выбрать другую?",
            "showing_results",
            buttons=["Показать карточку", "Выбрать другую профессию", MAIN_MENU_BUTTON],
        )

    return await continue_game_day(ctx, state)


async def handle_game_day_profession(ctx: SubflowContext) -> SubflowResult:
    """The user named the profession for a game day."""
    profession = ctx.intent.extracted_str("profession") or ctx.message.strip()
    return await start_game_day(ctx, profession)


async def handle_game_day_intent(ctx: SubflowContext) -> SubflowResult:
    """Game day requested mid-conversation."""
    profession = ctx.intent.extracted_str("profession")
    if profession:
        return await start_game_day(ctx, profession)
    return reply(
        "Круто! Напиши название профессии, и ты проживёшь целый рабочий день "
        "в этой роли 🎮",
        "initial",
        metadata=AwaitingGameDayProfession().to_metadata(),
    )

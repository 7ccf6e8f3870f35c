"""Free-form chat that steers the user back to careers."""

from hh_vibe.agents.subflows.base import SubflowContext, SubflowResult, ask_text, reply
from hh_vibe.prompts.chat import build_general_chat_prompt
from hh_vibe.providers.llm.base import TaskType

_CHAT_TEMPERATURE = 0.8

FALLBACK_CHAT_REPLY = (
    "Я помогаю разобраться с профессиями и карьерой 🙂 Расскажи, что тебе интересно, "
    "или назови профессию, о которой хочешь узнать."
)


async def handle_general_chat(ctx: SubflowContext) -> SubflowResult:
    content = await ask_text(
        ctx.llm,
        build_general_chat_prompt(message=ctx.message),
        task=TaskType.CHAT_RESPONSE,
        temperature=_CHAT_TEMPERATURE,
    )
    return reply((content or "").strip() or FALLBACK_CHAT_REPLY, "initial")

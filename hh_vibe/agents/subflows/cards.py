"""Save and share the last shown profession card."""

from hh_vibe.agents.subflows.base import MAIN_MENU_BUTTON, SubflowContext, SubflowResult, reply

CARD_ACTION_BUTTONS = ["Открыть карточку", "Похожие профессии", MAIN_MENU_BUTTON]


async def handle_save_card(ctx: SubflowContext) -> SubflowResult:
    card = ctx.last_card
    if card is None:
        return reply("Сначала выбери профессию, которую хочешь сохранить 😊", "showing_results")

    return reply(
        "✅ Отлично! Ты можешь:\n\n"
        "1. 📥 **Скачать PDF** — перейди на страницу профессии и нажми кнопку "
        '"Скачать PDF карточку"\n'
        "2. ⭐ **Добавить в избранное** — открой карточку в браузере и добавь в закладки\n"
        f"3. 🔗 **Сохранить ссылку**: /profession/{card.slug}\n\n"
        "Хочешь посмотреть полную карточку профессии?",
        "showing_results",
        buttons=list(CARD_ACTION_BUTTONS),
        metadata={"professionSlug": card.slug},
    )


async def handle_share_card(ctx: SubflowContext) -> SubflowResult:
    card = ctx.last_card
    if card is None:
        return reply("Сначала выбери профессию, которой хочешь поделиться 😊", "showing_results")

    share_url = f"{ctx.base_url.rstrip('/')}/profession/{card.slug}"
    return reply(
        f'🔗 **Поделиться профессией "{card.profession}"**\n\n'
        f"Ссылка для отправки:\n{share_url}\n\n"
        "Скопируй эту ссылку и отправь друзьям! Они смогут посмотреть полную карточку "
        "профессии с расписанием дня, навыками и карьерным путём.",
        "showing_results",
        buttons=list(CARD_ACTION_BUTTONS),
    )

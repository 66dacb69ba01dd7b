from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from devquiz.quiz.models import Topic


def topic_keyboard(topics: list[Topic]) -> InlineKeyboardMarkup:
    buttons = []
    for topic in topics:
        label = f"{topic.icon} {topic.name}".strip()
        buttons.append([InlineKeyboardButton(text=label, callback_data=f"topic:{topic.id}")])
    buttons.append([InlineKeyboardButton(text="🏠 Back", callback_data="go_home")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)

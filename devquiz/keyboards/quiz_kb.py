from collections import Counter

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from devquiz.quiz.models import Answer, ChoiceAnswer, MatchingAnswer, Question, QuestionType, TextAnswer
from devquiz.quiz.session import Active

LABELS = "ABCDEFGH"


def _label(i: int) -> str:
    return LABELS[i] if i < len(LABELS) else str(i + 1)


def _short(text: str, limit: int = 48) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[:limit - 1] + "…"


def single_choice_rows(options: tuple[str, ...], answer: Answer | None) -> list[list[InlineKeyboardButton]]:
    selected = answer.text if isinstance(answer, TextAnswer) else None
    rows = []
    for i, option in enumerate(options):
        mark = "🔘" if option == selected else "⚪️"
        rows.append([InlineKeyboardButton(
            text=f"{mark} {_label(i)}) {_short(option)}",
            callback_data=f"ans:{i}",
        )])
    return rows


def multiple_choice_rows(options: tuple[str, ...], answer: Answer | None) -> list[list[InlineKeyboardButton]]:
    selected = answer.choices if isinstance(answer, ChoiceAnswer) else frozenset()
    rows = []
    for i, option in enumerate(options):
        mark = "☑️" if option in selected else "⬜️"
        rows.append([InlineKeyboardButton(
            text=f"{mark} {_label(i)}) {_short(option)}",
            callback_data=f"multi:{i}",
        )])
    return rows


def matching_left_rows(question: Question, answer: Answer | None) -> list[list[InlineKeyboardButton]]:
    """One button per left item; paired items also get a clear button."""
    pairs = answer.pairs if isinstance(answer, MatchingAnswer) else {}
    rows = []
    for i, pair in enumerate(question.matching_pairs):
        chosen = pairs.get(pair.left)
        if chosen is None:
            rows.append([InlineKeyboardButton(text=f"{_short(pair.left, 30)} → ?", callback_data=f"left:{i}")])
        else:
            rows.append([
                InlineKeyboardButton(
                    text=f"{_short(pair.left, 20)} → {_short(chosen, 20)}",
                    callback_data=f"left:{i}",
                ),
                InlineKeyboardButton(text="✖️", callback_data=f"unpair:{i}"),
            ])
    return rows


def matching_right_keyboard(question: Question, answer: Answer | None) -> InlineKeyboardMarkup:
    """Right-hand items still free to pair with the picked left item.

    Shown alphabetically so the bank's pair order doesn't give the answer away.
    """
    # Each paired value uses up one item, so repeated right-hand values stay available
    used = Counter(answer.pairs.values()) if isinstance(answer, MatchingAnswer) else Counter()
    free = []
    for i, right in enumerate(question.right_items()):
        if used[right]:
            used[right] -= 1
            continue
        free.append((i, right))
    rows = [
        [InlineKeyboardButton(text=_short(right), callback_data=f"right:{i}")]
        for i, right in sorted(free, key=lambda item: item[1].lower())
    ]
    rows.append([InlineKeyboardButton(text="🔙 Cancel", callback_data="pick_cancel")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def navigation_rows(state: Active) -> list[list[InlineKeyboardButton]]:
    nav = []
    if not state.is_first:
        nav.append(InlineKeyboardButton(text="⬅️ Back", callback_data="nav:prev"))
    if not state.is_last:
        nav.append(InlineKeyboardButton(text="Next ➡️", callback_data="nav:next"))
    rows = [nav] if nav else []
    rows.append([InlineKeyboardButton(text="🏁 Finish", callback_data="nav:finish")])
    rows.append([InlineKeyboardButton(text="❌ Leave quiz", callback_data="cancel_quiz")])
    return rows


def question_keyboard(state: Active) -> InlineKeyboardMarkup:
    question = state.current_question
    answer = state.session.answers.get_answer(question.id)

    if question.type == QuestionType.SINGLE:
        rows = single_choice_rows(question.options, answer)
    elif question.type == QuestionType.MULTIPLE:
        rows = multiple_choice_rows(question.options, answer)
    elif question.type == QuestionType.MATCHING:
        rows = matching_left_rows(question, answer)
    else:
        # Fill-in answers are typed as text
        rows = []

    return InlineKeyboardMarkup(inline_keyboard=rows + navigation_rows(state))


def results_keyboard(topic_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔁 Try again", callback_data=f"topic:{topic_id}")],
        [InlineKeyboardButton(text="🤖 Show AI feedback", callback_data="show_feedback")],
        [InlineKeyboardButton(text="🏠 Main menu", callback_data="go_home")],
    ])

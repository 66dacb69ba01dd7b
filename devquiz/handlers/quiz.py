import html
import logging

from aiogram import Router, F
from aiogram.filters import StateFilter
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from devquiz.keyboards.main_menu import main_menu_keyboard
from devquiz.keyboards.quiz_kb import matching_right_keyboard, question_keyboard
from devquiz.quiz.models import MatchingAnswer, QuestionType, TextAnswer
from devquiz.quiz.session import Active, QuizMachine, QuizRegistry
from devquiz.services.review import format_answer
from devquiz.states.quiz_states import QuizFlow

logger = logging.getLogger(__name__)

router = Router()

TYPE_HINTS = {
    QuestionType.SINGLE: "Pick one answer.",
    QuestionType.MULTIPLE: "Pick all correct answers.",
    QuestionType.FILL: "✏️ Type your answer as a message.",
    QuestionType.MATCHING: "Tap an item on the left, then choose its match.",
}

STALE_QUIZ = "This quiz is no longer active."


# ============================================================================
# HELPERS
# ============================================================================

def _question_text(state: Active) -> str:
    """Text of the question under the cursor."""
    q = state.current_question
    total = len(state.session.questions)
    answer = state.session.answers.get_answer(q.id)

    lines = [
        f"❓ Question {state.cursor + 1} of {total}",
        f"#{q.difficulty.value} · {q.type.value.replace('-', ' ')}",
        "",
        f"<b>{html.escape(q.prompt)}</b>",
    ]
    if q.code:
        lines += ["", f"<pre>{html.escape(q.code)}</pre>"]

    # Long options don't fit on buttons, so list them in full
    if q.options:
        lines.append("")
        lines += [f"{chr(ord('A') + i)}) {html.escape(o)}" for i, o in enumerate(q.options)]

    lines += ["", f"<i>{TYPE_HINTS[q.type]}</i>"]
    if answer is not None and q.type == QuestionType.FILL:
        lines.append(f"Your answer: <code>{html.escape(format_answer(q, answer))}</code>")

    return "\n".join(lines)


def _parse_index(data: str) -> int | None:
    """Parses the index from callback data like 'ans:2'."""
    try:
        return int(data.split(":", 1)[1])
    except (ValueError, IndexError):
        return None


def _active(machine: QuizMachine) -> Active | None:
    state = machine.state
    if isinstance(state, Active) and state.current_question is not None:
        return state
    return None


async def _edit(message: Message, text: str, reply_markup) -> None:
    try:
        await message.edit_text(text, reply_markup=reply_markup, parse_mode="HTML")
    except TelegramBadRequest as e:
        # Same content re-rendered (e.g. the already selected option tapped again)
        logger.debug(f"Message not edited: {e}")


async def send_current_question(message: Message, machine: QuizMachine, edit: bool = False) -> None:
    """Send (or redraw in place) the question under the cursor."""
    state = _active(machine)
    if state is None:
        return
    text = _question_text(state)
    keyboard = question_keyboard(state)
    if edit:
        await _edit(message, text, keyboard)
    else:
        await message.answer(text, reply_markup=keyboard, parse_mode="HTML")


# ============================================================================
# ANSWERS
# ============================================================================

@router.callback_query(QuizFlow.answering_question, F.data.startswith("ans:"))
async def choose_single(callback: CallbackQuery, quizzes: QuizRegistry):
    """Single-choice answer from an option button."""
    machine = quizzes.get(callback.from_user.id)
    state = _active(machine)
    index = _parse_index(callback.data)
    if state is None or index is None or not 0 <= index < len(state.current_question.options):
        await callback.answer(STALE_QUIZ)
        return

    machine.answer(TextAnswer(state.current_question.options[index]))
    await send_current_question(callback.message, machine, edit=True)
    await callback.answer()


@router.callback_query(QuizFlow.answering_question, F.data.startswith("multi:"))
async def toggle_multiple(callback: CallbackQuery, quizzes: QuizRegistry):
    """Multiple-choice option toggled on or off."""
    machine = quizzes.get(callback.from_user.id)
    state = _active(machine)
    index = _parse_index(callback.data)
    if state is None or index is None or not 0 <= index < len(state.current_question.options):
        await callback.answer(STALE_QUIZ)
        return

    machine.toggle_choice(state.current_question.options[index])
    await send_current_question(callback.message, machine, edit=True)
    await callback.answer()


@router.callback_query(QuizFlow.answering_question, F.data.startswith("left:"))
async def pick_left(callback: CallbackQuery, state: FSMContext, quizzes: QuizRegistry):
    """Matching: left item picked, ask for its match."""
    machine = quizzes.get(callback.from_user.id)
    active = _active(machine)
    index = _parse_index(callback.data)
    if active is None or index is None or not 0 <= index < len(active.current_question.matching_pairs):
        await callback.answer(STALE_QUIZ)
        return

    question = active.current_question
    left = question.matching_pairs[index].left
    answer = active.session.answers.get_answer(question.id)
    if isinstance(answer, MatchingAnswer):
        # The item's current match is offered again when re-pairing
        answer = answer.without_pair(left)

    await state.update_data(picked_left=left)
    await state.set_state(QuizFlow.answering_matching_sub)
    await _edit(
        callback.message,
        _question_text(active) + f"\n\n👉 Choose the match for <b>{html.escape(left)}</b>:",
        matching_right_keyboard(question, answer),
    )
    await callback.answer()


@router.callback_query(QuizFlow.answering_matching_sub, F.data.startswith("right:"))
async def pick_right(callback: CallbackQuery, state: FSMContext, quizzes: QuizRegistry):
    """Matching: right item chosen for the picked left item."""
    machine = quizzes.get(callback.from_user.id)
    active = _active(machine)
    index = _parse_index(callback.data)
    data = await state.get_data()
    left = data.get("picked_left")

    await state.set_state(QuizFlow.answering_question)
    if active is None or left is None or index is None:
        await callback.answer(STALE_QUIZ)
        return

    rights = active.current_question.right_items()
    if 0 <= index < len(rights):
        machine.answer_pair(left, rights[index])

    await state.update_data(picked_left=None)
    await send_current_question(callback.message, machine, edit=True)
    await callback.answer()


@router.callback_query(QuizFlow.answering_matching_sub, F.data == "pick_cancel")
async def cancel_pick(callback: CallbackQuery, state: FSMContext, quizzes: QuizRegistry):
    await state.update_data(picked_left=None)
    await state.set_state(QuizFlow.answering_question)
    await send_current_question(callback.message, quizzes.get(callback.from_user.id), edit=True)
    await callback.answer()


@router.callback_query(QuizFlow.answering_question, F.data.startswith("unpair:"))
async def unpair(callback: CallbackQuery, quizzes: QuizRegistry):
    """Matching: remove one pair."""
    machine = quizzes.get(callback.from_user.id)
    active = _active(machine)
    index = _parse_index(callback.data)
    if active is None or index is None or not 0 <= index < len(active.current_question.matching_pairs):
        await callback.answer(STALE_QUIZ)
        return

    machine.clear_pair(active.current_question.matching_pairs[index].left)
    await send_current_question(callback.message, machine, edit=True)
    await callback.answer()


@router.message(QuizFlow.answering_question)
async def answer_via_text(message: Message, quizzes: QuizRegistry):
    """Typed answer for fill-in questions."""
    machine = quizzes.get(message.from_user.id)
    active = _active(machine)
    if active is None:
        return

    if active.current_question.type != QuestionType.FILL:
        await message.answer("Use the buttons under the question to answer.")
        return

    user_answer = message.text.strip() if message.text else ""
    if not user_answer:
        await message.answer("Type your answer as text:")
        return

    machine.answer(TextAnswer(user_answer))
    await send_current_question(message, machine)


# ============================================================================
# NAVIGATION
# ============================================================================

@router.callback_query(QuizFlow.answering_question, F.data.in_({"nav:prev", "nav:next"}))
async def navigate(callback: CallbackQuery, quizzes: QuizRegistry):
    machine = quizzes.get(callback.from_user.id)
    if _active(machine) is None:
        await callback.answer(STALE_QUIZ)
        return

    if callback.data == "nav:next":
        machine.advance()
    else:
        machine.retreat()
    await send_current_question(callback.message, machine, edit=True)
    await callback.answer()


@router.callback_query(
    StateFilter(QuizFlow.answering_question, QuizFlow.answering_matching_sub), F.data == "nav:finish"
)
async def finish_quiz(callback: CallbackQuery, state: FSMContext, quizzes: QuizRegistry):
    """Submit the quiz; allowed from any question."""
    machine = quizzes.get(callback.from_user.id)
    if not isinstance(machine.state, Active):
        await callback.answer(STALE_QUIZ)
        return

    machine.finish()
    await state.update_data(picked_left=None)
    await state.set_state(QuizFlow.viewing_results)
    await callback.answer()

    from devquiz.handlers.results import show_results
    await show_results(callback.message, machine)


@router.callback_query(F.data == "cancel_quiz")
async def cancel_quiz(callback: CallbackQuery, state: FSMContext, quizzes: QuizRegistry):
    """Leave the current quiz and go home."""
    quizzes.get(callback.from_user.id).abandon()
    await state.clear()
    await callback.message.answer(
        "Quiz cancelled. Back to the main menu.",
        reply_markup=main_menu_keyboard(),
    )
    await callback.answer()

import logging

from aiogram import Router, F
from aiogram.types import CallbackQuery, Message

from devquiz.config import settings
from devquiz.keyboards.quiz_kb import results_keyboard
from devquiz.quiz.session import Completed, QuizMachine, QuizRegistry
from devquiz.services.feedback import schedule_feedback
from devquiz.services.review import format_review, format_summary
from devquiz.states.quiz_states import QuizFlow

logger = logging.getLogger(__name__)

router = Router()


async def show_results(message: Message, machine: QuizMachine):
    """Show the score card and review, then request AI feedback in the background."""
    completed = machine.state
    if not isinstance(completed, Completed):
        return

    result = completed.result
    questions = completed.session.questions

    await message.answer(format_summary(result), parse_mode="HTML")
    if questions:
        for chunk in format_review(result, questions):
            await message.answer(chunk, parse_mode="HTML")

    keyboard = results_keyboard(completed.session.topic_id)
    if not settings.FEEDBACK_ENABLED or not questions:
        await message.answer("What next?", reply_markup=keyboard)
        return

    await message.answer("🤖 Preparing personalised feedback, it will arrive shortly...", reply_markup=keyboard)

    async def deliver(text: str) -> None:
        await message.answer(f"🤖 AI feedback\n\n{text}")

    # Not awaited: the results above are already usable without feedback
    schedule_feedback(machine, completed.session.id, result, questions, deliver)


@router.callback_query(QuizFlow.viewing_results, F.data == "show_feedback")
async def resend_feedback(callback: CallbackQuery, quizzes: QuizRegistry):
    """Show the feedback attached to the finished quiz, if it has arrived."""
    completed = quizzes.get(callback.from_user.id).state
    if not isinstance(completed, Completed):
        await callback.answer("This quiz is no longer active.")
        return
    if completed.feedback is None:
        await callback.answer("Feedback is still being prepared.")
        return
    await callback.message.answer(f"🤖 AI feedback\n\n{completed.feedback}")
    await callback.answer()

from aiogram import Router, F
from aiogram.types import CallbackQuery
from aiogram.fsm.context import FSMContext

from devquiz.keyboards.main_menu import main_menu_keyboard
from devquiz.keyboards.topic_kb import topic_keyboard
from devquiz.quiz.session import Active, QuizRegistry
from devquiz.states.quiz_states import QuizFlow

router = Router()


@router.callback_query(F.data == "start_test")
async def choose_topic(callback: CallbackQuery, state: FSMContext, quizzes: QuizRegistry):
    await state.set_state(QuizFlow.choosing_topic)
    await callback.message.edit_text(
        "📚 Choose a topic:",
        reply_markup=topic_keyboard(quizzes.bank.topics),
    )
    await callback.answer()


@router.callback_query(F.data.startswith("topic:"))
async def topic_selected(callback: CallbackQuery, state: FSMContext, quizzes: QuizRegistry):
    """Start a new session for the topic; also used by 'Try again' on the results screen."""
    topic_id = callback.data.split(":", 1)[1]
    machine = quizzes.get(callback.from_user.id)
    new_state = machine.start(topic_id)
    await callback.answer()

    if not isinstance(new_state, Active) or not new_state.session.questions:
        machine.reset()
        await state.clear()
        await callback.message.answer(
            "😞 There are no questions for this topic yet. Pick another one.",
            reply_markup=main_menu_keyboard(),
        )
        return

    await state.set_state(QuizFlow.answering_question)
    await state.update_data(picked_left=None)

    from devquiz.handlers.quiz import send_current_question
    await send_current_question(callback.message, machine)

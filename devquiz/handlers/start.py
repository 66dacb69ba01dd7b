from aiogram import Router, F
from aiogram.filters import CommandStart
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from devquiz.keyboards.main_menu import main_menu_keyboard
from devquiz.quiz.session import QuizRegistry

router = Router()

WELCOME_TEXT = (
    "👋 Hi! I'm DevQuiz, a quiz bot for testing your programming knowledge.\n\n"
    "Up to 10 questions per quiz, with a review and AI feedback at the end.\n"
    "Choose what you want to do:"
)


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext, quizzes: QuizRegistry):
    await state.clear()
    quizzes.get(message.from_user.id).reset()
    await message.answer(WELCOME_TEXT, reply_markup=main_menu_keyboard())


@router.callback_query(F.data == "go_home")
async def go_home(callback: CallbackQuery, state: FSMContext, quizzes: QuizRegistry):
    await state.clear()
    quizzes.get(callback.from_user.id).reset()
    await callback.message.edit_text(WELCOME_TEXT, reply_markup=main_menu_keyboard())
    await callback.answer()

from aiogram.fsm.state import StatesGroup, State


class QuizFlow(StatesGroup):
    choosing_topic = State()
    answering_question = State()
    answering_matching_sub = State()
    viewing_results = State()

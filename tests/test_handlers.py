"""Tests for the bot handlers with mocked Telegram objects."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from devquiz.handlers.quiz import (
    _parse_index,
    _question_text,
    answer_via_text,
    cancel_quiz,
    choose_single,
    finish_quiz,
    navigate,
    pick_left,
    pick_right,
    router as quiz_router,
    toggle_multiple,
)
from devquiz.handlers.results import show_results
from devquiz.handlers.topic import topic_selected
from devquiz.keyboards.quiz_kb import matching_right_keyboard
from devquiz.quiz.bank import parse_bank, parse_question
from devquiz.quiz.models import ChoiceAnswer, MatchingAnswer, QuestionType, TextAnswer
from devquiz.quiz.session import Active, Completed, Idle, QuizRegistry
from devquiz.states.quiz_states import QuizFlow

USER_ID = 12345


def _callback(data: str) -> MagicMock:
    callback = MagicMock()
    callback.data = data
    callback.from_user.id = USER_ID
    callback.answer = AsyncMock()
    callback.message.answer = AsyncMock()
    callback.message.edit_text = AsyncMock()
    return callback


def _message(text: str) -> MagicMock:
    message = MagicMock()
    message.text = text
    message.from_user.id = USER_ID
    message.answer = AsyncMock()
    return message


def _fsm(data: dict | None = None) -> AsyncMock:
    state = AsyncMock()
    state.get_data.return_value = data or {}
    return state


@pytest.fixture
def quizzes(bank, rng):
    return QuizRegistry(bank, rng=rng)


def _go_to_type(machine, q_type: QuestionType):
    """Move the cursor to the first question of the given type."""
    for i, q in enumerate(machine.session.questions):
        if q.type == q_type:
            machine.jump(i)
            return q
    raise AssertionError(f"no {q_type} question in session")


# ============================================================================
# HELPERS
# ============================================================================


class TestHelpers:
    def test_parse_index(self):
        assert _parse_index("ans:2") == 2
        assert _parse_index("ans:x") is None
        assert _parse_index("ans") is None

    def test_question_text(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        q = _go_to_type(machine, QuestionType.SINGLE)

        text = _question_text(machine.state)

        assert f"Question {machine.state.cursor + 1} of 3" in text
        assert q.prompt in text
        assert "A) 3" in text
        assert "B) 4" in text


# ============================================================================
# TOPIC SELECTION
# ============================================================================


class TestTopicSelected:
    async def test_starts_session(self, quizzes):
        callback = _callback("topic:topic-x")
        state = _fsm()

        await topic_selected(callback, state, quizzes)

        machine = quizzes.get(USER_ID)
        assert isinstance(machine.state, Active)
        state.set_state.assert_awaited_with(QuizFlow.answering_question)
        callback.message.answer.assert_awaited_once()
        assert "Question 1 of 3" in callback.message.answer.call_args.args[0]

    async def test_empty_topic(self, quizzes):
        callback = _callback("topic:empty")
        state = _fsm()

        await topic_selected(callback, state, quizzes)

        assert isinstance(quizzes.get(USER_ID).state, Idle)
        state.clear.assert_awaited_once()
        assert "no questions" in callback.message.answer.call_args.args[0]

    async def test_try_again_replaces_finished_session(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        machine.finish()
        old_id = machine.session_id

        await topic_selected(_callback("topic:topic-x"), _fsm(), quizzes)

        assert isinstance(machine.state, Active)
        assert machine.session_id != old_id


# ============================================================================
# ANSWERS
# ============================================================================


class TestAnswers:
    async def test_single_choice(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        q = _go_to_type(machine, QuestionType.SINGLE)
        callback = _callback("ans:1")

        await choose_single(callback, quizzes)

        assert machine.session.answers.get_answer(q.id) == TextAnswer("4")
        callback.message.edit_text.assert_awaited_once()
        callback.answer.assert_awaited_once_with()

    async def test_out_of_range_option(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        q = _go_to_type(machine, QuestionType.SINGLE)
        callback = _callback("ans:9")

        await choose_single(callback, quizzes)

        assert machine.session.answers.get_answer(q.id) is None
        callback.message.edit_text.assert_not_awaited()

    async def test_stale_callback_after_finish(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        machine.finish()
        callback = _callback("ans:0")

        await choose_single(callback, quizzes)

        assert isinstance(machine.state, Completed)
        callback.answer.assert_awaited_once()

    async def test_fill_text(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        q = _go_to_type(machine, QuestionType.FILL)
        message = _message("  Yield ")

        await answer_via_text(message, quizzes)

        assert machine.session.answers.get_answer(q.id) == TextAnswer("Yield")
        assert "Your answer" in message.answer.call_args.args[0]

    async def test_text_on_button_question(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        q = _go_to_type(machine, QuestionType.SINGLE)
        message = _message("4")

        await answer_via_text(message, quizzes)

        assert machine.session.answers.get_answer(q.id) is None
        assert "buttons" in message.answer.call_args.args[0]

    async def test_matching_flow(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        q = _go_to_type(machine, QuestionType.MATCHING)
        state = _fsm()

        await pick_left(_callback("left:1"), state, quizzes)
        state.update_data.assert_awaited_with(picked_left="B")
        state.set_state.assert_awaited_with(QuizFlow.answering_matching_sub)

        state.get_data.return_value = {"picked_left": "B"}
        await pick_right(_callback("right:1"), state, quizzes)

        assert machine.session.answers.get_answer(q.id) == MatchingAnswer({"B": "2"})
        state.set_state.assert_awaited_with(QuizFlow.answering_question)


class TestMultipleChoice:
    async def test_toggle(self, rng):
        raw = {
            "topics": [{"id": "m", "name": "Multi"}],
            "questions": [{
                "id": "m-1", "topic": "m", "type": "multiple", "question": "Pick",
                "options": ["a", "b", "c"], "correct": ["a", "c"],
            }],
        }
        quizzes = QuizRegistry(parse_bank(raw), rng=rng)
        machine = quizzes.get(USER_ID)
        machine.start("m")

        await toggle_multiple(_callback("multi:0"), quizzes)
        await toggle_multiple(_callback("multi:2"), quizzes)

        assert machine.session.answers.get_answer("m-1") == ChoiceAnswer.of("a", "c")


# ============================================================================
# NAVIGATION AND FINISH
# ============================================================================


class TestNavigation:
    async def test_next_and_prev(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")

        await navigate(_callback("nav:next"), quizzes)
        assert machine.state.cursor == 1
        await navigate(_callback("nav:prev"), quizzes)
        await navigate(_callback("nav:prev"), quizzes)
        assert machine.state.cursor == 0

    @patch("devquiz.handlers.results.settings")
    async def test_finish_shows_results(self, mock_settings, quizzes):
        mock_settings.FEEDBACK_ENABLED = False
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        callback = _callback("nav:finish")
        state = _fsm()

        await finish_quiz(callback, state, quizzes)

        assert isinstance(machine.state, Completed)
        state.set_state.assert_awaited_with(QuizFlow.viewing_results)
        sent = [c.args[0] for c in callback.message.answer.call_args_list]
        assert "Score: 0 / 3 (0%)" in sent[0]
        assert any("Review" in text for text in sent)

    @pytest.mark.parametrize("flow_state", [QuizFlow.answering_question, QuizFlow.answering_matching_sub])
    async def test_finish_button_routed_while_answering(self, flow_state):
        """Finish is handled both on a question and while picking a match."""
        handler = next(h for h in quiz_router.callback_query.handlers if h.callback is finish_quiz)

        passed, _ = await handler.check(_callback("nav:finish"), raw_state=flow_state.state)

        assert passed

    @patch("devquiz.handlers.results.settings")
    async def test_finish_during_matching_pick(self, mock_settings, quizzes):
        mock_settings.FEEDBACK_ENABLED = False
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        _go_to_type(machine, QuestionType.MATCHING)
        state = _fsm({"picked_left": "A"})

        await finish_quiz(_callback("nav:finish"), state, quizzes)

        assert isinstance(machine.state, Completed)
        state.update_data.assert_awaited_with(picked_left=None)
        state.set_state.assert_awaited_with(QuizFlow.viewing_results)

    async def test_cancel(self, quizzes):
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        state = _fsm()

        await cancel_quiz(_callback("cancel_quiz"), state, quizzes)

        assert isinstance(machine.state, Idle)
        state.clear.assert_awaited_once()


class TestShowResults:
    @patch("devquiz.handlers.results.schedule_feedback")
    @patch("devquiz.handlers.results.settings")
    async def test_schedules_feedback_without_waiting(self, mock_settings, mock_schedule, quizzes):
        mock_settings.FEEDBACK_ENABLED = True
        machine = quizzes.get(USER_ID)
        machine.start("topic-x")
        machine.finish()
        message = _message("")

        await show_results(message, machine)

        mock_schedule.assert_called_once()
        args = mock_schedule.call_args.args
        assert args[0] is machine
        assert args[1] == machine.session_id
        assert args[2] is machine.state.result

    async def test_ignored_when_not_completed(self, quizzes):
        machine = quizzes.get(USER_ID)
        message = _message("")

        await show_results(message, machine)

        message.answer.assert_not_awaited()


class TestMatchingKeyboard:
    def _question(self, rights):
        pairs = [{"id": str(i), "left": f"L{i}", "right": r} for i, r in enumerate(rights)]
        raw = {
            "id": "dup", "topic": "t", "type": "drag-drop", "question": "Match",
            "matching_pairs": pairs,
            "correct": {p["left"]: p["right"] for p in pairs},
        }
        return parse_question(raw)

    @staticmethod
    def _right_buttons(keyboard):
        return [row[0].callback_data for row in keyboard.inline_keyboard if row[0].callback_data.startswith("right:")]

    def test_used_items_are_hidden(self):
        q = self._question(["x", "y"])
        keyboard = matching_right_keyboard(q, MatchingAnswer({"L0": "x"}))
        assert self._right_buttons(keyboard) == ["right:1"]

    def test_repeated_right_values_stay_available(self):
        """Pairing one of two identical right items leaves the other one free."""
        q = self._question(["same", "same", "other"])

        keyboard = matching_right_keyboard(q, MatchingAnswer({"L0": "same"}))

        assert sorted(self._right_buttons(keyboard)) == ["right:1", "right:2"]

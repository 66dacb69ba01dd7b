"""
Quiz session state machine.

States are immutable values: Idle -> Active -> Completed -> Idle.
Transitions are plain functions that take a state and return the next one.
A transition that is not legal from the given state returns that state
unchanged instead of raising, so out-of-range navigation is a no-op.

The answer transitions write into the session's AnswerStore and return the
same Active state; the store is the only mutable part of a session.
`finish` closes it, so an Active value kept from before the finish can no
longer change the answers behind a Completed result.
"""

import logging
import random
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Union

from devquiz.config import MAX_SESSION_QUESTIONS
from devquiz.quiz.answers import AnswerStore
from devquiz.quiz.bank import QuestionBank
from devquiz.quiz.models import Answer, Question, QuizResult
from devquiz.quiz.scoring import score
from devquiz.quiz.selector import draw_questions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """One attempt at a quiz: a fixed question sequence plus its answers."""
    id: str
    topic_id: str
    topic_name: str
    questions: tuple[Question, ...]
    started_at: float
    answers: AnswerStore = field(default_factory=AnswerStore, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Active:
    session: Session
    cursor: int = 0

    @property
    def current_question(self) -> Question | None:
        if 0 <= self.cursor < len(self.session.questions):
            return self.session.questions[self.cursor]
        return None

    @property
    def is_first(self) -> bool:
        return self.cursor == 0

    @property
    def is_last(self) -> bool:
        return self.cursor >= len(self.session.questions) - 1


@dataclass(frozen=True)
class Completed:
    session: Session
    result: QuizResult
    feedback: str | None = None


QuizState = Union[Idle, Active, Completed]


# ============================================================================
# TRANSITIONS
# ============================================================================

def start_session(
    state: QuizState,
    bank: QuestionBank,
    topic_id: str,
    now: float | None = None,
    rng: random.Random | None = None,
    limit: int = MAX_SESSION_QUESTIONS,
) -> QuizState:
    """Idle -> Active with a freshly drawn question list and an empty answer store."""
    if not isinstance(state, Idle):
        return state

    topic = bank.get_topic(topic_id)
    session = Session(
        id=uuid.uuid4().hex,
        topic_id=topic_id,
        topic_name=topic.name if topic else topic_id,
        questions=draw_questions(bank, topic_id, limit=limit, rng=rng),
        started_at=time.time() if now is None else now,
    )
    logger.info(f"Session {session.id} started: topic={topic_id!r}, questions={len(session)}")
    return Active(session=session, cursor=0)


def advance(state: QuizState) -> QuizState:
    if isinstance(state, Active) and state.cursor < len(state.session.questions) - 1:
        return replace(state, cursor=state.cursor + 1)
    return state


def retreat(state: QuizState) -> QuizState:
    if isinstance(state, Active) and state.cursor > 0:
        return replace(state, cursor=state.cursor - 1)
    return state


def jump(state: QuizState, index: int) -> QuizState:
    if isinstance(state, Active) and 0 <= index < len(state.session.questions):
        return replace(state, cursor=index)
    return state


def answer(state: QuizState, value: Answer) -> QuizState:
    """Record an answer for the question under the cursor. The cursor stays put."""
    question = _current(state)
    if question is not None:
        state.session.answers.set_answer(question.id, value)
    return state


def answer_pair(state: QuizState, left: str, right: str) -> QuizState:
    question = _current(state)
    if question is not None:
        state.session.answers.set_pair(question.id, left, right)
    return state


def clear_pair(state: QuizState, left: str) -> QuizState:
    question = _current(state)
    if question is not None:
        state.session.answers.clear_pair(question.id, left)
    return state


def toggle_choice(state: QuizState, option: str) -> QuizState:
    question = _current(state)
    if question is not None:
        state.session.answers.toggle_choice(question.id, option)
    return state


def finish(state: QuizState, now: float | None = None) -> QuizState:
    """Active -> Completed. Legal at any cursor position."""
    if not isinstance(state, Active):
        return state
    result = score(state.session, now=now)
    state.session.answers.close()
    logger.info(
        f"Session {state.session.id} finished: {result.score}/{result.total_questions} ({result.level.value})"
    )
    return Completed(session=state.session, result=result)


def restart(state: QuizState) -> QuizState:
    """Completed -> Idle, discarding the session and its result."""
    if isinstance(state, Completed):
        return Idle()
    return state


def abandon(state: QuizState) -> QuizState:
    """Active -> Idle when the user leaves mid-quiz."""
    if isinstance(state, Active):
        logger.info(f"Session {state.session.id} abandoned at question {state.cursor + 1}")
        return Idle()
    return state


def attach_feedback(state: QuizState, session_id: str, text: str) -> QuizState:
    """Attach feedback to the completed session it was generated for.

    Feedback for any other session (restarted or replaced meanwhile) is dropped.
    """
    if isinstance(state, Completed) and state.session.id == session_id:
        return replace(state, feedback=text)
    logger.info(f"Discarding feedback for superseded session {session_id}")
    return state


def _current(state: QuizState) -> Question | None:
    if isinstance(state, Active):
        return state.current_question
    return None


# ============================================================================
# PER-USER HOLDER
# ============================================================================

class QuizMachine:
    """Holds one user's quiz state and applies transitions to it."""

    def __init__(self, bank: QuestionBank, rng: random.Random | None = None):
        self.bank = bank
        self.rng = rng
        self.state: QuizState = Idle()

    @property
    def session(self) -> Session | None:
        if isinstance(self.state, (Active, Completed)):
            return self.state.session
        return None

    @property
    def session_id(self) -> str | None:
        session = self.session
        return session.id if session is not None else None

    def reset(self) -> QuizState:
        """Back to Idle from any state."""
        self.state = abandon(restart(self.state))
        return self.state

    def start(self, topic_id: str, now: float | None = None) -> QuizState:
        """Start a new session, dropping whatever session was there before."""
        self.reset()
        self.state = start_session(self.state, self.bank, topic_id, now=now, rng=self.rng)
        return self.state

    def advance(self) -> QuizState:
        self.state = advance(self.state)
        return self.state

    def retreat(self) -> QuizState:
        self.state = retreat(self.state)
        return self.state

    def jump(self, index: int) -> QuizState:
        self.state = jump(self.state, index)
        return self.state

    def answer(self, value: Answer) -> QuizState:
        self.state = answer(self.state, value)
        return self.state

    def answer_pair(self, left: str, right: str) -> QuizState:
        self.state = answer_pair(self.state, left, right)
        return self.state

    def clear_pair(self, left: str) -> QuizState:
        self.state = clear_pair(self.state, left)
        return self.state

    def toggle_choice(self, option: str) -> QuizState:
        self.state = toggle_choice(self.state, option)
        return self.state

    def finish(self, now: float | None = None) -> QuizState:
        self.state = finish(self.state, now=now)
        return self.state

    def restart(self) -> QuizState:
        self.state = restart(self.state)
        return self.state

    def abandon(self) -> QuizState:
        self.state = abandon(self.state)
        return self.state

    def attach_feedback(self, session_id: str, text: str) -> bool:
        """Returns True if the feedback was attached to the current session."""
        previous = self.state
        self.state = attach_feedback(self.state, session_id, text)
        return self.state is not previous


class QuizRegistry:
    """Quiz machines keyed by chat id."""

    def __init__(self, bank: QuestionBank, rng: random.Random | None = None):
        self.bank = bank
        self.rng = rng
        self._machines: dict[int, QuizMachine] = {}

    def get(self, chat_id: int) -> QuizMachine:
        machine = self._machines.get(chat_id)
        if machine is None:
            machine = QuizMachine(self.bank, rng=self.rng)
            self._machines[chat_id] = machine
        return machine

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._machines

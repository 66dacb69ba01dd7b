import math
import time
from typing import TYPE_CHECKING

from devquiz.config import ADVANCED_THRESHOLD, INTERMEDIATE_THRESHOLD
from devquiz.quiz.models import (
    Answer,
    ChoiceAnswer,
    Level,
    MatchingAnswer,
    Question,
    QuestionType,
    QuizResult,
    TextAnswer,
    UserAnswerRecord,
)

if TYPE_CHECKING:
    from devquiz.quiz.session import Session


def check_answer(question: Question, answer: Answer | None) -> bool:
    """Check if the stored answer is correct for the given question.

    Never raises: a missing answer or an answer of the wrong shape is
    simply incorrect.
    """
    q_type = question.type
    correct = question.correct_answer

    if q_type in (QuestionType.SINGLE, QuestionType.FILL):
        if not isinstance(correct, TextAnswer):
            return False
        given = answer.text if isinstance(answer, TextAnswer) else ""
        return _normalize(given) == _normalize(correct.text)

    elif q_type == QuestionType.MULTIPLE:
        if not isinstance(correct, ChoiceAnswer):
            return False
        given = answer.choices if isinstance(answer, ChoiceAnswer) else frozenset()
        return len(given) == len(correct.choices) and all(c in given for c in correct.choices)

    elif q_type == QuestionType.MATCHING:
        if not isinstance(correct, MatchingAnswer):
            return False
        given = answer.pairs if isinstance(answer, MatchingAnswer) else {}
        # Extra keys in the user's mapping are ignored
        return all(given.get(left) == right for left, right in correct.pairs.items())

    return False


def _normalize(text: str) -> str:
    return text.strip().casefold()


def proficiency_level(percentage: float) -> Level:
    """Advanced above 80%, Intermediate above 50%, Beginner otherwise."""
    if percentage > ADVANCED_THRESHOLD:
        return Level.ADVANCED
    elif percentage > INTERMEDIATE_THRESHOLD:
        return Level.INTERMEDIATE
    return Level.BEGINNER


def score_answers(
    questions: tuple[Question, ...],
    answers,
    started_at: float,
    finished_at: float,
    topic_name: str,
) -> QuizResult:
    """Evaluate every question in session order and aggregate the result.

    `answers` is anything with get_answer(question_id). Nothing is mutated.
    """
    records = []
    for q in questions:
        answer = answers.get_answer(q.id)
        records.append(UserAnswerRecord(
            question_id=q.id,
            answer=answer,
            is_correct=check_answer(q, answer),
        ))

    score = sum(1 for r in records if r.is_correct)
    total = len(questions)
    percentage = score / total * 100 if total > 0 else 0.0
    time_spent = max(0, math.floor(finished_at - started_at + 0.5))

    return QuizResult(
        score=score,
        total_questions=total,
        percentage=percentage,
        time_spent=time_spent,
        level=proficiency_level(percentage),
        topic=topic_name,
        user_answers=tuple(records),
    )


def score(session: "Session", now: float | None = None) -> QuizResult:
    """Score a session against its answer store at time `now` (defaults to the clock)."""
    finished_at = time.time() if now is None else now
    return score_answers(
        session.questions,
        session.answers,
        started_at=session.started_at,
        finished_at=finished_at,
        topic_name=session.topic_name,
    )
